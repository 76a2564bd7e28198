"""
Oracle Autonomous Database backend using python-oracledb.

The address is a full connect descriptor (or TNS alias) handed to the driver
as its DSN. Unquoted identifiers are stored in upper case.
"""
import logging
from types import ModuleType
from typing import TYPE_CHECKING, Any

from dbaccess.backends.base import Backend, register_backend
from dbaccess.sql import Statement

if TYPE_CHECKING:
    from dbaccess.options import ConnectionOptions

logger = logging.getLogger(__name__)


@register_backend('oracleautonomous')
class OracleAutonomousBackend(Backend):
    """Oracle connection handling through a connect descriptor.
    """

    driver_module = 'oracledb'
    distribution = 'oracledb'
    paramstyle = 'numeric'
    identifier_case = 'upper'

    @classmethod
    def get_required_options(cls) -> list[str]:
        return ['address', 'username']

    def build_url(self, options: 'ConnectionOptions') -> str:
        return f'jdbc:oracle:thin:@{options.address}'

    def connect(self, options: 'ConnectionOptions', driver: ModuleType) -> Any:
        conn = driver.connect(user=options.username, password=options.password,
                              dsn=options.address)
        self.enable_autocommit(conn)
        return conn

    def enable_autocommit(self, raw_conn: Any) -> None:
        raw_conn.autocommit = True

    def disable_autocommit(self, raw_conn: Any) -> None:
        raw_conn.autocommit = False

    def table_exists_statement(self, table: str) -> Statement:
        return Statement('SELECT table_name FROM user_tables WHERE table_name = ?', (table,))
