"""
Fluent handler construction.

`HandlerBuilder` collects connection options step by step and produces either
handler kind. `connect()` is the one-call facade taking a `ConnectionOptions`
or a plain mapping.
"""
import logging
from collections.abc import Mapping
from typing import Any, Self

from dbaccess.exceptions import ConfigurationError, ConnectionFailure, DatabaseError
from dbaccess.handlers import BaseHandler, PooledHandler, ThreadConfinedHandler
from dbaccess.options import BackendKind, ConnectionOptions
from dbaccess.reporting import Reporter

__all__ = [
    'HandlerBuilder',
    'connect',
]

logger = logging.getLogger(__name__)


class HandlerBuilder:
    """Fluent builder for `PooledHandler` and `ThreadConfinedHandler`.

    The backend name is checked as soon as `with_backend()` is called. All
    other values are validated together when `options()` or one of the build
    methods is called.

    Examples
        handler = (HandlerBuilder.for_postgresql('localhost:5432/app')
                   .with_credentials('app', 'secret')
                   .strict_mode(True)
                   .build_and_connect())
    """

    def __init__(self, backend: BackendKind | str = BackendKind.H2) -> None:
        self._values: dict[str, Any] = {'backend': backend}
        self._reporter: Reporter | None = None
        self._logger: logging.Logger | None = None

    #
    # Factories
    #

    @classmethod
    def for_sqlite(cls, path: str) -> Self:
        return cls(BackendKind.SQLITE).with_address(path)

    @classmethod
    def for_h2(cls, path: str) -> Self:
        return cls(BackendKind.H2).with_address(path)

    @classmethod
    def for_hsqldb(cls, path: str) -> Self:
        return cls(BackendKind.HSQLDB).with_address(path)

    @classmethod
    def for_mysql(cls, address: str) -> Self:
        """Address in the form `host:port/database`."""
        return cls(BackendKind.MYSQL).with_address(address)

    @classmethod
    def for_postgresql(cls, address: str) -> Self:
        """Address in the form `host:port/database`."""
        return cls(BackendKind.POSTGRESQL).with_address(address)

    @classmethod
    def for_oracle_autonomous(cls, descriptor: str, username: str, password: str) -> Self:
        return (cls(BackendKind.ORACLE_AUTONOMOUS)
                .with_address(descriptor)
                .with_credentials(username, password))

    @classmethod
    def from_options(cls, options: ConnectionOptions | Mapping[str, Any]) -> Self:
        """Start from existing options, or a mapping of option fields.
        """
        if isinstance(options, Mapping):
            options = ConnectionOptions.from_dict(options)
        if not isinstance(options, ConnectionOptions):
            raise ConfigurationError(f'Expected ConnectionOptions or a mapping, got {type(options).__name__}')
        builder = cls(options.backend)
        builder._values = {f: getattr(options, f) for f in options.__dataclass_fields__}
        return builder

    #
    # Fluent setters
    #

    def _set(self, **kw: Any) -> Self:
        self._values.update(kw)
        return self

    def with_backend(self, kind: BackendKind | str) -> Self:
        return self._set(backend=BackendKind.parse(kind))

    def with_address(self, address: str) -> Self:
        return self._set(address=str(address))

    with_file_path = with_address

    def with_credentials(self, username: str, password: str) -> Self:
        return self._set(username=username, password=password)

    def create_parent_directories(self, flag: bool = True) -> Self:
        return self._set(create_parent_directories=flag)

    def strict_mode(self, flag: bool = True) -> Self:
        """Raise `OperationError` from data calls instead of returning a
        sentinel.
        """
        return self._set(strict_mode=flag)

    def with_pool_size(self, size: int) -> Self:
        return self._set(pool_size=size)

    def with_pool_timeout(self, seconds: float) -> Self:
        return self._set(pool_timeout=seconds)

    def with_leak_detection_threshold(self, seconds: float) -> Self:
        """Seconds a pooled connection may be held before a warning, 0 disables.
        """
        return self._set(leak_detection_threshold=seconds)

    def with_owner(self, owner: str) -> Self:
        return self._set(owner=owner)

    def with_jars(self, *paths: str) -> Self:
        return self._set(jars=tuple(paths))

    def validate_identifiers(self, flag: bool = True) -> Self:
        return self._set(validate_identifiers=flag)

    def with_reporter(self, reporter: Reporter | None) -> Self:
        self._reporter = reporter
        return self

    def with_logger(self, logger: logging.Logger | None) -> Self:
        self._logger = logger
        return self

    #
    # Terminal operations
    #

    def options(self) -> ConnectionOptions:
        """Validate and return the collected options.

        Raises
            ConfigurationError: If a value is invalid or a required field is
                missing for the backend
        """
        return ConnectionOptions(**self._values)

    def build(self) -> PooledHandler:
        """Return an unconnected pooled handler."""
        return PooledHandler(self.options(), reporter=self._reporter, logger=self._logger)

    def build_thread_confined(self) -> ThreadConfinedHandler:
        """Return an unconnected thread-confined handler."""
        return ThreadConfinedHandler(self.options(), reporter=self._reporter, logger=self._logger)

    def build_and_connect(self) -> PooledHandler:
        """Return a connected pooled handler.

        Raises
            ConnectionFailure: If the first connection attempt fails, in either
                mode
        """
        return _connect_or_raise(self.build())

    def build_thread_confined_and_connect(self) -> ThreadConfinedHandler:
        """Return a thread-confined handler connected for the calling thread.
        """
        return _connect_or_raise(self.build_thread_confined())


def _connect_or_raise(handler: BaseHandler) -> Any:
    try:
        connected = handler.connect()
    except ConfigurationError:
        raise
    except DatabaseError as exc:
        raise ConnectionFailure(f'Failed to connect to {handler.url}') from exc
    if not connected:
        raise ConnectionFailure(f'Failed to connect to {handler.url}')
    logger.debug(f'Connected {type(handler).__name__} to {handler.url}')
    return handler


def connect(options: ConnectionOptions | Mapping[str, Any], thread_confined: bool = False,
            reporter: Reporter | None = None, logger: logging.Logger | None = None,
            **kw: Any) -> PooledHandler | ThreadConfinedHandler:
    """Build and connect a handler in one call.

    Keyword arguments override fields of `options`.

    Examples
        handler = dbaccess.connect({'backend': 'sqlite', 'address': 'app.db'})
        handler = dbaccess.connect(options, thread_confined=True, strict_mode=True)
    """
    if isinstance(options, ConnectionOptions):
        options = options.with_changes(**kw) if kw else options
    elif isinstance(options, Mapping):
        options = ConnectionOptions.from_dict(options, **kw)
    else:
        raise ConfigurationError(f'Expected ConnectionOptions or a mapping, got {type(options).__name__}')
    builder = HandlerBuilder.from_options(options).with_reporter(reporter).with_logger(logger)
    if thread_confined:
        return builder.build_thread_confined_and_connect()
    return builder.build_and_connect()
