"""
SQLite backend.

SQLite keeps identifiers as written and compares them case-insensitively, so
the catalog lookup uses NOCASE instead of folding the name. Autocommit is the
driver's `isolation_level = None`; a transaction is opened by switching back
to DEFERRED, which makes the driver issue BEGIN before the next DML.
"""
import logging
from types import ModuleType
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from dbaccess.backends.base import EmbeddedBackend, register_backend
from dbaccess.sql import Statement

if TYPE_CHECKING:
    from dbaccess.options import ConnectionOptions

logger = logging.getLogger(__name__)


@register_backend('sqlite')
class SQLiteBackend(EmbeddedBackend):
    """SQLite through the standard library driver.
    """

    driver_module = 'sqlite3'
    distribution = 'python (standard library sqlite3)'
    paramstyle = 'qmark'
    identifier_case = 'mixed'

    def build_url(self, options: 'ConnectionOptions') -> str:
        return sa.URL.create(drivername='sqlite', database=options.address).render_as_string()

    def connect(self, options: 'ConnectionOptions', driver: ModuleType) -> Any:
        """Open a connection usable from any thread, pooled connections move
        between threads.
        """
        conn = driver.connect(options.address, timeout=options.pool_timeout,
                              check_same_thread=False)
        self.enable_autocommit(conn)
        return conn

    def enable_autocommit(self, raw_conn: Any) -> None:
        raw_conn.isolation_level = None

    def disable_autocommit(self, raw_conn: Any) -> None:
        raw_conn.isolation_level = 'DEFERRED'

    def table_exists_statement(self, table: str) -> Statement:
        sql = "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ? COLLATE NOCASE"
        return Statement(sql, (table,))
