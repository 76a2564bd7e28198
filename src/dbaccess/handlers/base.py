"""
Shared handler surface.

`BaseHandler` implements the CRUD and DDL operations once. The concrete
handlers differ only in where a call's physical connection comes from:

- `PooledHandler` borrows any connection of a bounded shared pool per call
- `ThreadConfinedHandler` uses the calling thread's own connection

Every data-path method catches its failure, including a statement that cannot
be built (empty record, empty table name, rejected identifier). In lenient
mode the failure is reported and a sentinel (`False` or `[]`) is returned; in
strict mode an `OperationError` chained to the cause is raised. Option and
driver errors raised by `connect()` always propagate.
"""
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Self

from dbaccess.backends import get_backend
from dbaccess.drivers import resolve_driver
from dbaccess.exceptions import OperationError, StateError
from dbaccess.options import ConnectionOptions
from dbaccess.reporting import LoggingReporter, Reporter
from dbaccess.sql import Statement, build_create_database, build_create_table
from dbaccess.sql import build_delete, build_drop_database, build_drop_table
from dbaccess.sql import build_equality_condition, build_insert, build_select
from dbaccess.sql import build_update, table_name

__all__ = ['BaseHandler', 'raw_connection']


def raw_connection(connection: Any) -> Any:
    """Extract the raw DBAPI connection from a pool proxy."""
    return getattr(connection, 'dbapi_connection', None) or connection


class BaseHandler(ABC):
    """Uniform CRUD/DDL/transaction contract over one backend.

    Args:
        options: Immutable connection options
        reporter: Receives every caught driver failure
        logger: Logger for operational messages
    """

    def __init__(self, options: ConnectionOptions, reporter: Reporter | None = None,
                 logger: logging.Logger | None = None) -> None:
        self.options = options
        self.backend = get_backend(options.backend)
        self.strict_mode = options.strict_mode
        self.logger = logger or logging.getLogger(__name__)
        self.reporter = reporter or LoggingReporter(self.logger, owner=options.owner)

    def __enter__(self) -> Self:
        self.connect()
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.disconnect()

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.url!r}, connected={self.is_connected()})'

    @property
    def backend_name(self) -> str:
        """Backend kind this handler targets (e.g. 'sqlite')."""
        return self.backend.name

    @property
    def url(self) -> str:
        """Connection URL built from the backend template, without password."""
        return self.backend.build_url(self.options)

    #
    # Connection lifecycle, provided by the concrete handlers
    #

    @abstractmethod
    def connect(self) -> bool:
        """Establish the connection resource, idempotent."""

    @abstractmethod
    def disconnect(self) -> bool:
        """Release the connection resource, safe to call repeatedly."""

    @abstractmethod
    def is_connected(self) -> bool:
        """Check whether a connection resource is live for the caller."""

    @abstractmethod
    def begin_transaction(self, connection: Any | None = None) -> bool:
        """Turn autocommit off on the transaction's connection."""

    @abstractmethod
    def commit_transaction(self, connection: Any | None = None) -> bool:
        """Commit and restore autocommit."""

    @abstractmethod
    def rollback_transaction(self, connection: Any | None = None) -> bool:
        """Roll back and restore autocommit."""

    @abstractmethod
    def _borrow(self, connection: Any | None = None):
        """Context manager yielding the connection a single call runs on.

        Raises StateError when there is none for the calling context.
        """

    @abstractmethod
    def _current_connection(self) -> Any | None:
        """Connection an open transaction of the calling thread runs on."""

    #
    # Helpers
    #

    def _open_raw_connection(self) -> Any:
        """Open one physical connection, resolving the driver first.

        Driver resolution errors are configuration errors and propagate.
        """
        driver = resolve_driver(self.options.backend)
        self.backend.prepare(self.options)
        return self.backend.connect(self.options, driver)

    def _fail(self, exc: BaseException, code: str, message: str, sentinel: Any,
              **context: Any) -> Any:
        """Raise in strict mode, otherwise report and return the sentinel.

        A missing connection is reported as `NOT_CONNECTED` with the failed
        operation's code in the context.
        """
        if self.strict_mode:
            if isinstance(exc, OperationError):
                raise exc
            raise OperationError(f'{message}: {exc}') from exc
        if isinstance(exc, StateError):
            level, context['operation'], code = logging.WARNING, code, 'NOT_CONNECTED'
        else:
            level = logging.ERROR
        self.reporter.report(exc, level, code, message=message,
                             backend=self.backend_name, **context)
        return sentinel

    def _execute(self, connection: Any, statement: Statement) -> int:
        """Execute a statement and return the affected row count.
        """
        sql, params = statement.render(self.backend.paramstyle)
        cursor = connection.cursor()
        try:
            if params is None:
                cursor.execute(sql)
            else:
                cursor.execute(sql, params)
            rowcount = cursor.rowcount
        finally:
            cursor.close()
        self.logger.debug(f'Executed statement with {len(statement.params)} parameters: {statement.sql}')
        return rowcount

    def _select(self, connection: Any, statement: Statement) -> list[dict[str, Any]]:
        """Execute a query and map rows to dicts.
        """
        sql, params = statement.render(self.backend.paramstyle)
        cursor = connection.cursor()
        try:
            if params is None:
                cursor.execute(sql)
            else:
                cursor.execute(sql, params)
            records = self.backend.fetch_records(cursor)
        finally:
            cursor.close()
        self.logger.debug(f'Select query returned {len(records)} rows')
        return records

    def _table_exists_on(self, connection: Any, table: str) -> bool:
        name = table_name(table, self.options.validate_identifiers)
        normalized = self.backend.normalize_identifier(name)
        return bool(self._select(connection, self.backend.table_exists_statement(normalized)))

    @contextmanager
    def transaction(self, connection: Any | None = None) -> Iterator[Any]:
        """Context manager running the block in one transaction.

        Commits when the block succeeds and rolls back when it raises. Begin
        and commit failures raise `OperationError` in either mode, since a
        context manager cannot return a sentinel.

        Examples
            with handler.transaction():
                handler.insert_record('accounts', {'ID': 1})
                handler.update_records('totals', {'N': 1}, 'ID = ?', 7)
        """
        if not self.begin_transaction(connection):
            raise OperationError('Failed to begin transaction')
        held = connection if connection is not None else self._current_connection()
        try:
            yield held
        except BaseException:
            self.logger.warning('Rolling back the current transaction')
            self.rollback_transaction(connection)
            raise
        if not self.commit_transaction(connection):
            self.rollback_transaction(connection)
            raise OperationError('Failed to commit transaction')

    #
    # DDL
    #

    def create_table(self, table: str, columns: Mapping[str, str],
                     connection: Any | None = None) -> bool:
        """Create a table from column names to raw SQL type definitions.

        Column names are quoted, the type text is passed through as is.
        """
        statement = None
        try:
            statement = build_create_table(table, columns, self.backend.name,
                                           self.options.validate_identifiers)
            with self._borrow(connection) as cn:
                self._execute(cn, statement)
            self.logger.info(f'Table created successfully: {table}')
            return True
        except Exception as exc:
            return self._fail(exc, 'CREATE_TABLE_FAILED', f'Failed to create table: {table}',
                              False, sql=getattr(statement, 'sql', None))

    def table_exists(self, table: str, connection: Any | None = None) -> bool:
        """Check table presence in the backend catalog.

        The name is sanitized like in generated SQL, then folded according to
        how the engine stores unquoted identifiers before comparing.
        """
        try:
            with self._borrow(connection) as cn:
                return self._table_exists_on(cn, table)
        except Exception as exc:
            return self._fail(exc, 'TABLE_EXISTS_FAILED',
                              f'Error checking if table exists: {table}', False)

    def drop_table(self, table: str, connection: Any | None = None) -> bool:
        """Drop a table. Returns True without issuing DDL if it does not exist.
        """
        statement = None
        try:
            statement = build_drop_table(table, self.options.validate_identifiers)
            with self._borrow(connection) as cn:
                if not self._table_exists_on(cn, table):
                    self.logger.info(f"Table '{table}' does not exist, no drop attempt will be made")
                    return True
                self._execute(cn, statement)
            self.logger.info(f"Table '{table}' dropped successfully")
            return True
        except Exception as exc:
            return self._fail(exc, 'DROP_TABLE_FAILED', f"Failed to drop table '{table}'",
                              False, sql=getattr(statement, 'sql', None))

    def create_database(self, name: str, connection: Any | None = None) -> bool:
        """Create a database (server engines only)."""
        try:
            statement = build_create_database(name, self.options.validate_identifiers)
            with self._borrow(connection) as cn:
                self._execute(cn, statement)
            self.logger.info(f'Database created successfully: {name}')
            return True
        except Exception as exc:
            return self._fail(exc, 'CREATE_DATABASE_FAILED', f'Failed to create database: {name}',
                              False)

    def drop_database(self, name: str, connection: Any | None = None) -> bool:
        """Drop a database (server engines only)."""
        try:
            statement = build_drop_database(name, self.options.validate_identifiers)
            with self._borrow(connection) as cn:
                self._execute(cn, statement)
            self.logger.info(f'Database deleted successfully: {name}')
            return True
        except Exception as exc:
            return self._fail(exc, 'DROP_DATABASE_FAILED', f'Failed to delete database: {name}',
                              False)

    #
    # CRUD
    #

    def insert_record(self, table: str, values: Mapping[str, Any],
                      connection: Any | None = None) -> bool:
        """Insert one record, binding values in mapping order.

        Returns True if a row was inserted.
        """
        statement = None
        try:
            statement = build_insert(table, values, self.backend.name,
                                     self.options.validate_identifiers)
            with self._borrow(connection) as cn:
                return self._execute(cn, statement) > 0
        except Exception as exc:
            return self._fail(exc, 'INSERT_FAILED', f'Failed to insert record into table: {table}',
                              False, sql=getattr(statement, 'sql', None))

    def query_records(self, table: str, columns: list[str] | None = None,
                      condition: str | None = None, *params: Any,
                      connection: Any | None = None) -> list[dict[str, Any]]:
        """Select records, optionally restricted to columns and a raw predicate.

        The predicate uses `?` placeholders bound positionally to `params`.
        Records are keyed by the driver-reported column names.

        Examples
            handler.query_records('users', None, 'ID = ?', 1)
            handler.query_records('users', ['NAME'])
        """
        statement = None
        try:
            statement = build_select(table, columns, condition, params, self.backend.name,
                                     self.options.validate_identifiers)
            with self._borrow(connection) as cn:
                return self._select(cn, statement)
        except Exception as exc:
            return self._fail(exc, 'QUERY_FAILED', f'Failed to query records from table: {table}',
                              [], sql=getattr(statement, 'sql', None))

    def find_records(self, table: str, conditions: Mapping[str, Any] | None = None,
                     connection: Any | None = None) -> list[dict[str, Any]]:
        """Select records whose columns equal the given values (AND-ed).
        """
        try:
            condition, params = build_equality_condition(conditions or {}, self.backend.name,
                                                         self.options.validate_identifiers)
        except Exception as exc:
            return self._fail(exc, 'QUERY_FAILED', f'Failed to query records from table: {table}',
                              [])
        return self.query_records(table, None, condition, *params, connection=connection)

    def update_records(self, table: str, values: Mapping[str, Any],
                       condition: str | None = None, *params: Any,
                       connection: Any | None = None) -> bool:
        """Update records matching the predicate. Returns True if any row changed.
        """
        statement = None
        try:
            statement = build_update(table, values, condition, params, self.backend.name,
                                     self.options.validate_identifiers)
            with self._borrow(connection) as cn:
                return self._execute(cn, statement) > 0
        except Exception as exc:
            return self._fail(exc, 'UPDATE_FAILED', f'Failed to update records in table: {table}',
                              False, sql=getattr(statement, 'sql', None))

    def delete_records(self, table: str, condition: str | None = None, *params: Any,
                       connection: Any | None = None) -> bool:
        """Delete records matching the predicate. Returns True if any row was removed.
        """
        statement = None
        try:
            statement = build_delete(table, condition, params, self.options.validate_identifiers)
            with self._borrow(connection) as cn:
                return self._execute(cn, statement) > 0
        except Exception as exc:
            return self._fail(exc, 'DELETE_FAILED', f'Failed to delete records from table: {table}',
                              False, sql=getattr(statement, 'sql', None))
