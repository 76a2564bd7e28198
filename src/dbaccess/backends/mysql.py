"""
MySQL backend using PyMySQL.

MySQL quotes identifiers with backticks unless ANSI_QUOTES is set, and keeps
table names as written (case sensitivity depends on the server's file system).
"""
import logging
from types import ModuleType
from typing import TYPE_CHECKING, Any

from dbaccess.backends.base import NetworkBackend, register_backend
from dbaccess.sql import Statement

if TYPE_CHECKING:
    from dbaccess.options import ConnectionOptions

logger = logging.getLogger(__name__)


@register_backend('mysql')
class MySQLBackend(NetworkBackend):
    """MySQL-specific connection handling.
    """

    driver_module = 'pymysql'
    distribution = 'PyMySQL'
    drivername = 'mysql+pymysql'
    paramstyle = 'format'
    identifier_case = 'mixed'

    def connect(self, options: 'ConnectionOptions', driver: ModuleType) -> Any:
        url = self.parse_address(options)
        return driver.connect(host=url.host or 'localhost',
                              port=url.port or 3306,
                              user=url.username,
                              password=url.password or '',
                              database=url.database,
                              connect_timeout=max(1, int(options.pool_timeout)),
                              autocommit=True)

    def enable_autocommit(self, raw_conn: Any) -> None:
        raw_conn.autocommit(True)

    def disable_autocommit(self, raw_conn: Any) -> None:
        raw_conn.autocommit(False)

    def table_exists_statement(self, table: str) -> Statement:
        sql = """
select table_name from information_schema.tables
where table_schema = database() and table_name = ?
"""
        return Statement(sql, (table,))
