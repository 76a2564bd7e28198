from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any

from dbaccess.exceptions import ConfigurationError

__all__ = [
    'BackendKind',
    'ConnectionOptions',
]


class BackendKind(str, Enum):
    """Supported backend identifiers.
    """
    SQLITE = 'sqlite'
    H2 = 'h2'
    HSQLDB = 'hsqldb'
    MYSQL = 'mysql'
    POSTGRESQL = 'postgresql'
    ORACLE_AUTONOMOUS = 'oracleautonomous'

    @classmethod
    def parse(cls, value: 'BackendKind | str') -> 'BackendKind':
        """Case-insensitive lookup of a backend identifier.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ConfigurationError(f'Backend kind must be a string, not {type(value).__name__}')
        try:
            return cls(value.strip().lower())
        except ValueError:
            available = [k.value for k in cls]
            raise ConfigurationError(f'Unsupported database type: {value}. Available: {available}') from None

    @property
    def embedded(self) -> bool:
        """True for engines addressed by a local file path."""
        return self in {BackendKind.SQLITE, BackendKind.H2, BackendKind.HSQLDB}


@dataclass(frozen=True)
class ConnectionOptions:
    """Options

    supported backends: `sqlite`, `h2`, `hsqldb`, `mysql`, `postgresql`,
    `oracleautonomous`

    - address: file path for embedded engines, `host:port/database` for
      mysql and postgresql, a connect descriptor for oracleautonomous
    - pool_size: maximum connections in the pool (pooled handler only)
    - pool_timeout: seconds to wait for a pooled connection
    - leak_detection_threshold: seconds a pooled connection may be held
      before a warning is logged on its return
    - owner: tenant identifier attached to every failure report
    - jars: JDBC driver jars for the h2 and hsqldb bridges
    - validate_identifiers: reject table/column names outside a safe
      allow-list before any SQL is issued
    """
    backend: BackendKind | str = BackendKind.H2
    address: str | None = None
    username: str = ''
    password: str = ''
    pool_size: int = 5
    pool_timeout: float = 30.0
    leak_detection_threshold: float = 30.0
    strict_mode: bool = False
    create_parent_directories: bool = True
    owner: str | None = None
    jars: tuple[str, ...] = field(default_factory=tuple)
    validate_identifiers: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'backend', BackendKind.parse(self.backend))
        object.__setattr__(self, 'jars', tuple(str(j) for j in self.jars or ()))
        object.__setattr__(self, 'username', self.username or '')
        object.__setattr__(self, 'password', self.password or '')
        if self.address is not None:
            object.__setattr__(self, 'address', str(self.address))
        if not isinstance(self.pool_size, int) or isinstance(self.pool_size, bool) or self.pool_size < 1:
            raise ConfigurationError(f'pool_size must be a positive integer, got {self.pool_size!r}')
        if self.pool_timeout <= 0:
            raise ConfigurationError(f'pool_timeout must be positive, got {self.pool_timeout!r}')
        if self.leak_detection_threshold < 0:
            raise ConfigurationError('leak_detection_threshold cannot be negative')

        from dbaccess.backends import get_backend_class
        get_backend_class(self.backend).validate_options(self)

    @classmethod
    def from_dict(cls, values: Mapping[str, Any], **kw: Any) -> 'ConnectionOptions':
        """Build options from a mapping, keyword arguments take precedence.
        """
        merged = {**dict(values), **kw}
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(merged) - known)
        if unknown:
            raise ConfigurationError(f'Unknown connection options: {unknown}')
        return cls(**merged)

    def with_changes(self, **kw: Any) -> 'ConnectionOptions':
        """Return a copy with the given fields replaced.
        """
        return replace(self, **kw)

    @property
    def is_memory(self) -> bool:
        return self.backend is BackendKind.SQLITE and self.address in {':memory:', ''}

    def __repr__(self) -> str:
        return (f'ConnectionOptions(backend={self.backend.value!r}, address={self.address!r}, '
                f'username={self.username!r}, pool_size={self.pool_size}, '
                f'strict_mode={self.strict_mode}, owner={self.owner!r})')
