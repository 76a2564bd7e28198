"""
SQL statement generation for the handler operations.

This module turns an abstract CRUD request into parameterized SQL:
- Identifier quoting per dialect (columns) and minimal table name sanitizing
- Optional allow-list validation of identifiers
- Placeholder standardization from `?` to the driver's paramstyle
- INSERT/SELECT/UPDATE/DELETE and DDL statement builders

Everything here is stateless. Raw predicates and column type definitions are
passed through verbatim: the caller is responsible for their safety.
"""
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from dbaccess.exceptions import ConfigurationError
from dbaccess.types import adapt_value

__all__ = [
    'Statement',
    'quote_identifier',
    'sanitize_table_name',
    'table_name',
    'validate_identifier',
    'standardize_placeholders',
    'build_create_table',
    'build_drop_table',
    'build_create_database',
    'build_drop_database',
    'build_insert',
    'build_select',
    'build_update',
    'build_delete',
    'build_equality_condition',
]

logger = logging.getLogger(__name__)

_PATTERNS = {
    'whitespace': re.compile(r'\s+'),
    'identifier': re.compile(r'^[A-Za-z_][A-Za-z0-9_$.]*$'),
    # string literals are matched first so placeholders inside them survive
    'tokens': re.compile(r"('(?:[^']|'')*'|\"(?:[^\"]|\"\")*\")|(\?)|(%)"),
}

_QUOTE_CHARS = {
    'mysql': '`',
}


@dataclass(frozen=True)
class Statement:
    """SQL text with `?` placeholders and its positional parameters.
    """
    sql: str
    params: tuple = field(default_factory=tuple)

    def render(self, paramstyle: str = 'qmark') -> tuple[str, tuple | None]:
        """Return SQL and parameters ready for `cursor.execute`.

        Parameters are None when there are none, so drivers using `%`
        formatting never interpret the SQL text.
        """
        if not self.params:
            return self.sql, None
        return standardize_placeholders(self.sql, paramstyle), self.params

    def __str__(self) -> str:
        return self.sql


def quote_identifier(identifier: str, dialect: str = 'sqlite') -> str:
    """Quote a column identifier, doubling any embedded quote character.

    Parameters
        identifier: Column name
        dialect: Backend name, mysql quotes with backticks, others with `"`

    Returns
        Quoted identifier
    """
    quote = _QUOTE_CHARS.get(dialect, '"')
    return quote + str(identifier).replace(quote, quote * 2) + quote


def sanitize_table_name(table: str) -> str:
    """Collapse whitespace runs to `_` and strip quote characters.

    This is not injection-proofing, table names stay unquoted so the
    engine applies its own case-folding.
    """
    if not table or not str(table).strip():
        raise ConfigurationError('Table name cannot be empty')
    name = _PATTERNS['whitespace'].sub('_', str(table).strip())
    return name.replace('"', '').replace('`', '')


def validate_identifier(name: str, kind: str = 'identifier') -> str:
    """Raise ConfigurationError unless `name` matches the safe allow-list.
    """
    if not isinstance(name, str) or not _PATTERNS['identifier'].match(name):
        raise ConfigurationError(f'Invalid {kind}: {name!r}')
    return name


def standardize_placeholders(sql: str, paramstyle: str = 'qmark') -> str:
    """Convert `?` placeholders to the driver's paramstyle.

    Placeholders inside string literals are preserved. For `format` style
    drivers literal `%` characters are doubled.

    Parameters
        sql: SQL string using `?` placeholders
        paramstyle: DBAPI paramstyle (`qmark`, `format`, `pyformat`, `numeric`)

    Returns
        SQL with placeholders converted
    """
    if not sql or paramstyle == 'qmark':
        return sql

    if paramstyle not in {'format', 'pyformat', 'numeric'}:
        raise ConfigurationError(f'Unsupported paramstyle: {paramstyle}')

    percent = paramstyle in {'format', 'pyformat'}
    position = 0

    def replace(match):
        nonlocal position
        literal, mark, pct = match.groups()
        if literal is not None:
            return literal.replace('%', '%%') if percent else literal
        if pct is not None:
            return '%%' if percent else pct
        position += 1
        return '%s' if percent else f':{position}'

    return _PATTERNS['tokens'].sub(replace, sql)


def table_name(table: str, validate: bool = False) -> str:
    """Sanitized table name as it appears in generated SQL, validated against
    the allow-list when `validate` is set.
    """
    name = sanitize_table_name(table)
    if validate:
        validate_identifier(name, 'table name')
    return name


def _columns(columns: Iterable[str], dialect: str, validate: bool) -> list[str]:
    quoted = []
    for col in columns:
        if validate:
            validate_identifier(col, 'column name')
        quoted.append(quote_identifier(col, dialect))
    return quoted


def _where(sql: str, condition: str | None) -> str:
    if condition and condition.strip():
        return f'{sql} WHERE {condition}'
    return sql


def build_create_table(table: str, columns: Mapping[str, str], dialect: str = 'sqlite',
                       validate: bool = False) -> Statement:
    """CREATE TABLE with quoted column names and caller-supplied type text.
    """
    if not columns:
        raise ConfigurationError(f'Cannot create table {table} without columns')
    quoted = _columns(columns.keys(), dialect, validate)
    defs = ', '.join(f'{col} {sql_type}' for col, sql_type in zip(quoted, columns.values()))
    return Statement(f'CREATE TABLE {table_name(table, validate)} ({defs})')


def build_drop_table(table: str, validate: bool = False) -> Statement:
    return Statement(f'DROP TABLE {table_name(table, validate)}')


def build_create_database(name: str, validate: bool = False) -> Statement:
    return Statement(f'CREATE DATABASE {table_name(name, validate)}')


def build_drop_database(name: str, validate: bool = False) -> Statement:
    return Statement(f'DROP DATABASE {table_name(name, validate)}')


def build_insert(table: str, values: Mapping[str, Any], dialect: str = 'sqlite',
                 validate: bool = False) -> Statement:
    """INSERT binding values positionally in mapping iteration order.
    """
    if not values:
        raise ConfigurationError(f'Cannot insert an empty record into {table}')
    quoted = _columns(values.keys(), dialect, validate)
    placeholders = ', '.join('?' for _ in quoted)
    sql = f"INSERT INTO {table_name(table, validate)} ({', '.join(quoted)}) VALUES ({placeholders})"
    return Statement(sql, tuple(adapt_value(v) for v in values.values()))


def build_select(table: str, columns: Iterable[str] | None = None,
                 condition: str | None = None, params: Iterable[Any] = (),
                 dialect: str = 'sqlite', validate: bool = False) -> Statement:
    """SELECT quoted columns (or `*`) with an optional raw WHERE predicate.
    """
    if isinstance(columns, str):
        columns = [columns]
    column_list = list(columns or [])
    selected = ', '.join(_columns(column_list, dialect, validate)) if column_list else '*'
    sql = _where(f'SELECT {selected} FROM {table_name(table, validate)}', condition)
    return Statement(sql, tuple(adapt_value(p) for p in params))


def build_update(table: str, values: Mapping[str, Any], condition: str | None = None,
                 params: Iterable[Any] = (), dialect: str = 'sqlite',
                 validate: bool = False) -> Statement:
    """UPDATE ... SET binding values first, then the predicate parameters.
    """
    if not values:
        raise ConfigurationError(f'Cannot update {table} without values')
    assignments = ', '.join(f'{col} = ?' for col in _columns(values.keys(), dialect, validate))
    sql = _where(f'UPDATE {table_name(table, validate)} SET {assignments}', condition)
    bound = [adapt_value(v) for v in values.values()]
    bound.extend(adapt_value(p) for p in params)
    return Statement(sql, tuple(bound))


def build_delete(table: str, condition: str | None = None, params: Iterable[Any] = (),
                 validate: bool = False) -> Statement:
    sql = _where(f'DELETE FROM {table_name(table, validate)}', condition)
    return Statement(sql, tuple(adapt_value(p) for p in params))


def build_equality_condition(conditions: Mapping[str, Any], dialect: str = 'sqlite',
                             validate: bool = False) -> tuple[str | None, tuple]:
    """Build `"a" = ? AND "b" = ?` from a column/value mapping.
    """
    if not conditions:
        return None, ()
    quoted = _columns(conditions.keys(), dialect, validate)
    return ' AND '.join(f'{col} = ?' for col in quoted), tuple(conditions.values())
