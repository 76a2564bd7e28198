"""
Python value type to SQL column type mapping.

The canonical table maps host value types to portable SQL literals. Some
backends reject a canonical literal (PostgreSQL has no BLOB, Oracle no
DOUBLE), so a small per-backend override table is applied on lookup.
"""
import logging
import uuid
from collections.abc import Mapping
from typing import Any

import numpy as np
from dbaccess.exceptions import ConfigurationError

__all__ = [
    'Char',
    'TYPE_MAPPINGS',
    'sql_type',
    'column_definitions',
    'adapt_value',
]

logger = logging.getLogger(__name__)


class Char(str):
    """Single character text value, stored as CHAR(1).
    """

    def __new__(cls, value: str = ' ') -> 'Char':
        if len(value) != 1:
            raise ValueError(f'Char requires exactly one character, got {value!r}')
        return super().__new__(cls, value)


TYPE_MAPPINGS: Mapping[type, str] = {
    # numeric
    int: 'INTEGER',
    np.int8: 'TINYINT',
    np.int16: 'SMALLINT',
    np.int32: 'INTEGER',
    np.int64: 'BIGINT',
    float: 'DOUBLE',
    np.float32: 'FLOAT',
    np.float64: 'DOUBLE',
    # boolean
    bool: 'BOOLEAN',
    np.bool_: 'BOOLEAN',
    # text
    str: 'VARCHAR(255)',
    Char: 'CHAR(1)',
    # binary
    bytes: 'BLOB',
    bytearray: 'BLOB',
    memoryview: 'BLOB',
    # other
    uuid.UUID: 'VARCHAR(36)',
}

_BACKEND_OVERRIDES: dict[str, dict[str, str]] = {
    'postgresql': {
        'TINYINT': 'SMALLINT',
        'DOUBLE': 'DOUBLE PRECISION',
        'FLOAT': 'REAL',
        'BLOB': 'BYTEA',
    },
    'oracleautonomous': {
        'TINYINT': 'NUMBER(3)',
        'SMALLINT': 'NUMBER(5)',
        'INTEGER': 'NUMBER(10)',
        'BIGINT': 'NUMBER(19)',
        'FLOAT': 'BINARY_FLOAT',
        'DOUBLE': 'BINARY_DOUBLE',
        'BOOLEAN': 'NUMBER(1)',
        'VARCHAR(255)': 'VARCHAR2(255)',
        'VARCHAR(36)': 'VARCHAR2(36)',
    },
    'mysql': {
        'BOOLEAN': 'TINYINT(1)',
    },
}


def sql_type(python_type: type, backend: str | None = None) -> str:
    """Return the SQL column type literal for a Python value type.

    Args:
        python_type: Type to convert (e.g. `int`, `uuid.UUID`, `numpy.int16`)
        backend: Optional backend name to apply its overrides

    Returns
        SQL type literal

    Raises
        ConfigurationError: If the type is not mapped
    """
    literal = TYPE_MAPPINGS.get(python_type)
    if literal is None:
        name = getattr(python_type, '__qualname__', repr(python_type))
        raise ConfigurationError(f'Unsupported type: {name}')
    if backend is not None:
        key = getattr(backend, 'value', backend)
        literal = _BACKEND_OVERRIDES.get(key, {}).get(literal, literal)
    return literal


def column_definitions(columns: Mapping[str, type], backend: str | None = None) -> dict[str, str]:
    """Build a `create_table` column map from column name to Python type.
    """
    return {name: sql_type(python_type, backend) for name, python_type in columns.items()}


def adapt_value(value: Any) -> Any:
    """Convert a value into something every supported driver can bind.
    """
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, bytearray | memoryview):
        return bytes(value)
    if isinstance(value, Char):
        return str(value)
    return value
