"""
Base backend interface.

Defines the abstract base class that every backend strategy inherits from. A
backend encapsulates what differs between engines and drivers:

- connection URL template and driver connect call
- autocommit toggling on a raw DBAPI connection
- placeholder style and identifier quoting
- identifier case-folding and the catalog query behind `table_exists`

Handlers work with any engine through this interface.
"""
import logging
import pathlib
from abc import ABC, abstractmethod
from types import ModuleType
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from dbaccess.exceptions import ConfigurationError
from dbaccess.sql import Statement

if TYPE_CHECKING:
    from dbaccess.options import ConnectionOptions

logger = logging.getLogger(__name__)

# Registry of backend name -> backend class
# Defined here to avoid circular imports (concrete backends import from base)
_BACKEND_REGISTRY: dict[str, type['Backend']] = {}


def register_backend(name: str):
    """Decorator to register a backend class under a backend kind.

    Usage:
        @register_backend('sqlite')
        class SQLiteBackend(Backend):
            ...
    """
    def decorator(cls: type['Backend']) -> type['Backend']:
        cls.name = name
        _BACKEND_REGISTRY[name] = cls
        return cls
    return decorator


class Backend(ABC):
    """Base class for engine-specific behavior.
    """

    name: str = ''

    # DBAPI module to import, and the distribution that provides it
    driver_module: str = ''
    distribution: str = ''

    # Placeholder style used when rendering statements for this driver
    paramstyle: str = 'qmark'

    # How the engine stores unquoted identifiers: 'upper', 'lower' or 'mixed'
    identifier_case: str = 'mixed'

    # Passed to the pool, what to do with a connection returned to it
    reset_on_return: str | None = 'rollback'

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return option field names that must be non-empty for this backend.
        """
        return ['address']

    @classmethod
    def validate_options(cls, options: 'ConnectionOptions') -> None:
        """Validate options for this backend.

        Raises
            ConfigurationError: If any required field is None or empty
        """
        for field in cls.get_required_options():
            if not getattr(options, field):
                raise ConfigurationError(f'field {field} cannot be empty for {cls.name}')

    @abstractmethod
    def build_url(self, options: 'ConnectionOptions') -> str:
        """Build the display connection URL for these options.

        Passwords are never rendered.
        """

    @abstractmethod
    def connect(self, options: 'ConnectionOptions', driver: ModuleType) -> Any:
        """Open one raw DBAPI connection in autocommit mode.

        Args:
            options: ConnectionOptions with address and credentials
            driver: The imported DBAPI module for this backend
        """

    @abstractmethod
    def enable_autocommit(self, raw_conn: Any) -> None:
        """Enable auto-commit mode on a raw DBAPI connection.
        """

    @abstractmethod
    def disable_autocommit(self, raw_conn: Any) -> None:
        """Disable auto-commit mode on a raw DBAPI connection.
        """

    @abstractmethod
    def table_exists_statement(self, table: str) -> Statement:
        """Catalog query returning a row when `table` exists.

        Args:
            table: Table name, already normalized by `normalize_identifier`
        """

    def prepare(self, options: 'ConnectionOptions') -> None:
        """Hook run before the first physical connection attempt.
        """

    def normalize_identifier(self, identifier: str) -> str:
        """Fold an unquoted identifier the way the engine stores it.

        Best-effort only, collations and quoted mixed-case names can still
        defeat it.
        """
        if self.identifier_case == 'upper':
            return identifier.upper()
        if self.identifier_case == 'lower':
            return identifier.lower()
        return identifier

    def fetch_records(self, cursor: Any) -> list[dict[str, Any]]:
        """Map the cursor's remaining rows to dicts keyed by the driver-reported
        column names.
        """
        if cursor.description is None:
            return []
        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def close(self, raw_conn: Any) -> None:
        raw_conn.close()


class EmbeddedBackend(Backend):
    """File based engine addressed by a local path.
    """

    def prepare(self, options: 'ConnectionOptions') -> None:
        """Create missing parent directories of the database file.
        """
        if not options.create_parent_directories or options.is_memory:
            return
        parent = pathlib.Path(options.address).expanduser().parent
        if not parent.exists():
            parent.mkdir(parents=True, exist_ok=True)
            logger.debug(f'Created parent directories {parent}')


class NetworkBackend(Backend):
    """Client-server engine addressed by `host:port/database`.
    """

    drivername: str = ''

    def parse_address(self, options: 'ConnectionOptions') -> sa.URL:
        """Parse the address into an SQLAlchemy URL carrying the credentials.
        """
        try:
            url = sa.engine.make_url(f'{self.drivername}://{options.address}')
        except sa.exc.ArgumentError as exc:
            raise ConfigurationError(f'Invalid {self.name} address: {options.address}') from exc
        return url.set(username=options.username or None,
                       password=options.password or None)

    def build_url(self, options: 'ConnectionOptions') -> str:
        return self.parse_address(options).render_as_string(hide_password=True)
