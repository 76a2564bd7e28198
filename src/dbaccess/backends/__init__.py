"""
Backend factory for engine-specific behavior.
"""
from functools import lru_cache

from dbaccess.backends.base import _BACKEND_REGISTRY
from dbaccess.backends.base import Backend as Backend
from dbaccess.backends.base import register_backend as register_backend
from dbaccess.backends.jdbc import H2Backend as H2Backend
from dbaccess.backends.jdbc import HSQLDBBackend as HSQLDBBackend
from dbaccess.backends.mysql import MySQLBackend as MySQLBackend
from dbaccess.backends.oracle import OracleAutonomousBackend as OracleAutonomousBackend
from dbaccess.backends.postgres import PostgresBackend as PostgresBackend
from dbaccess.backends.sqlite import SQLiteBackend as SQLiteBackend
from dbaccess.exceptions import ConfigurationError


def _key(kind) -> str:
    return getattr(kind, 'value', kind)


def _validate_backend(name: str) -> None:
    """Raise ConfigurationError if the backend is not registered."""
    if name not in _BACKEND_REGISTRY:
        available = list(_BACKEND_REGISTRY.keys())
        raise ConfigurationError(f'Unsupported backend: {name}. Available: {available}')


@lru_cache(maxsize=8)
def _get_backend(name: str) -> Backend:
    """Get cached backend instance."""
    _validate_backend(name)
    return _BACKEND_REGISTRY[name]()


def get_backend(kind) -> Backend:
    """Get the backend instance for a backend kind or name."""
    return _get_backend(_key(kind))


def get_backend_class(kind) -> type[Backend]:
    """Get the backend class without instantiating."""
    name = _key(kind)
    _validate_backend(name)
    return _BACKEND_REGISTRY[name]
