"""
PostgreSQL backend using psycopg.

Unquoted identifiers are folded to lower case by the server.
"""
import logging
from types import ModuleType
from typing import TYPE_CHECKING, Any

from dbaccess.backends.base import NetworkBackend, register_backend
from dbaccess.sql import Statement

if TYPE_CHECKING:
    from dbaccess.options import ConnectionOptions

logger = logging.getLogger(__name__)


@register_backend('postgresql')
class PostgresBackend(NetworkBackend):
    """PostgreSQL-specific connection handling.
    """

    driver_module = 'psycopg'
    distribution = 'psycopg[binary]'
    drivername = 'postgresql+psycopg'
    paramstyle = 'format'
    identifier_case = 'lower'

    def connect(self, options: 'ConnectionOptions', driver: ModuleType) -> Any:
        conninfo = self.parse_address(options).set(drivername='postgresql')
        return driver.connect(conninfo.render_as_string(hide_password=False),
                              autocommit=True,
                              connect_timeout=max(1, int(options.pool_timeout)))

    def enable_autocommit(self, raw_conn: Any) -> None:
        raw_conn.autocommit = True

    def disable_autocommit(self, raw_conn: Any) -> None:
        raw_conn.autocommit = False

    def table_exists_statement(self, table: str) -> Statement:
        sql = """
select table_name from information_schema.tables
where table_schema = any (current_schemas(false)) and table_name = ?
"""
        return Statement(sql, (table,))
