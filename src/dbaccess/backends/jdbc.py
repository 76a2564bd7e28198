"""
H2 and HSQLDB backends.

Both engines only ship JDBC drivers, so connections go through the
JayDeBeApi bridge. The JDBC driver jars come from `options.jars` or from the
CLASSPATH environment variable. Unquoted identifiers are stored in upper case.
"""
import logging
from types import ModuleType
from typing import TYPE_CHECKING, Any

from dbaccess.backends.base import EmbeddedBackend, register_backend
from dbaccess.sql import Statement

if TYPE_CHECKING:
    from dbaccess.options import ConnectionOptions

logger = logging.getLogger(__name__)


class JdbcBackend(EmbeddedBackend):
    """File based engine reached through a JDBC driver class.
    """

    driver_module = 'jaydebeapi'
    distribution = 'JayDeBeApi'
    paramstyle = 'qmark'
    identifier_case = 'upper'
    reset_on_return = None

    jdbc_driver: str = ''
    url_prefix: str = ''

    def build_url(self, options: 'ConnectionOptions') -> str:
        return f'{self.url_prefix}{options.address}'

    def connect(self, options: 'ConnectionOptions', driver: ModuleType) -> Any:
        conn = driver.connect(self.jdbc_driver, self.build_url(options),
                              [options.username, options.password],
                              jars=list(options.jars) or None)
        self.enable_autocommit(conn)
        return conn

    def enable_autocommit(self, raw_conn: Any) -> None:
        raw_conn.jconn.setAutoCommit(True)

    def disable_autocommit(self, raw_conn: Any) -> None:
        raw_conn.jconn.setAutoCommit(False)

    def table_exists_statement(self, table: str) -> Statement:
        sql = """
SELECT TABLE_NAME FROM INFORMATION_SCHEMA.TABLES
WHERE TABLE_SCHEMA = CURRENT_SCHEMA AND TABLE_TYPE IN ('TABLE', 'BASE TABLE') AND TABLE_NAME = ?
"""
        return Statement(sql, (table,))


@register_backend('h2')
class H2Backend(JdbcBackend):
    """H2 file database.
    """

    jdbc_driver = 'org.h2.Driver'
    url_prefix = 'jdbc:h2:file:'


@register_backend('hsqldb')
class HSQLDBBackend(JdbcBackend):
    """HSQLDB file database.
    """

    jdbc_driver = 'org.hsqldb.jdbc.JDBCDriver'
    url_prefix = 'jdbc:hsqldb:file:'
