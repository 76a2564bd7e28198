"""
Driver resolution.

Makes sure the DBAPI module a backend needs is importable before the first
physical connection attempt, so a missing dependency surfaces as a
configuration error naming the package to install instead of a generic
connection failure.
"""
import importlib
import logging
from functools import lru_cache
from types import ModuleType

from dbaccess.backends import get_backend
from dbaccess.exceptions import ConfigurationError
from dbaccess.options import BackendKind

__all__ = [
    'resolve_driver',
    'driver_info',
]

logger = logging.getLogger(__name__)


def driver_info(kind: BackendKind | str) -> tuple[str, str]:
    """Return the (module, distribution) pair for a backend kind.
    """
    backend = get_backend(BackendKind.parse(kind))
    return backend.driver_module, backend.distribution


@lru_cache(maxsize=16)
def _import_driver(module: str, distribution: str) -> ModuleType:
    try:
        driver = importlib.import_module(module)
    except ImportError as exc:
        raise ConfigurationError(
            f'Database driver not found: {module}. '
            f'Please install the following dependency: {distribution}') from exc
    logger.debug(f'Loaded database driver {module}')
    return driver


def resolve_driver(kind: BackendKind | str) -> ModuleType:
    """Import and return the DBAPI module for a backend kind.

    Raises
        ConfigurationError: If the backend is unsupported or its driver
            cannot be imported
    """
    module, distribution = driver_info(kind)
    return _import_driver(module, distribution)
