"""
Thread-confined handler.

Each thread lazily opens and owns exactly one physical connection, kept in a
per-handler `threading.local`. No locking is needed because connections are
never shared. A thread that never calls `disconnect()` keeps its connection
for the thread's lifetime.
"""
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from dbaccess.drivers import resolve_driver
from dbaccess.exceptions import StateError
from dbaccess.handlers.base import BaseHandler
from dbaccess.options import ConnectionOptions
from dbaccess.reporting import Reporter

__all__ = ['ThreadConfinedHandler']


class ThreadConfinedHandler(BaseHandler):
    """Handler with one connection per calling thread.

    `connect()`, `disconnect()` and `is_connected()` act on the calling
    thread's connection only.
    """

    def __init__(self, options: ConnectionOptions, reporter: Reporter | None = None,
                 logger: logging.Logger | None = None) -> None:
        super().__init__(options, reporter, logger)
        self._local = threading.local()

    def _current_connection(self) -> Any | None:
        return getattr(self._local, 'connection', None)

    def _require_connection(self, connection: Any | None = None) -> Any:
        cn = connection if connection is not None else self._current_connection()
        if cn is None:
            raise StateError('Connection is not established for this thread.')
        return cn

    def connect(self) -> bool:
        """Open the calling thread's connection if it has none. Idempotent.
        """
        if self._current_connection() is not None:
            return True
        resolve_driver(self.options.backend)
        try:
            self._local.connection = self._open_raw_connection()
        except Exception as exc:
            return self._fail(exc, 'CONNECT_FAILED', f'Failed to connect to {self.url}', False)
        self.logger.debug(f'Opened connection for thread {threading.current_thread().name}: {self.url}')
        return True

    def disconnect(self) -> bool:
        cn = self._current_connection()
        if cn is None:
            return True
        self._local.connection = None
        try:
            self.backend.close(cn)
        except Exception as exc:
            return self._fail(exc, 'DISCONNECT_FAILED', f'Failed to close connection to {self.url}',
                              False)
        self.logger.debug(f'Closed connection for thread {threading.current_thread().name}')
        return True

    def is_connected(self) -> bool:
        return self._current_connection() is not None

    @contextmanager
    def _borrow(self, connection: Any | None = None) -> Iterator[Any]:
        yield self._require_connection(connection)

    def begin_transaction(self, connection: Any | None = None) -> bool:
        try:
            self.backend.disable_autocommit(self._require_connection(connection))
            self.logger.debug('Transaction started')
            return True
        except Exception as exc:
            return self._fail(exc, 'BEGIN_FAILED', 'Failed to begin transaction', False)

    def commit_transaction(self, connection: Any | None = None) -> bool:
        try:
            cn = self._require_connection(connection)
            cn.commit()
            self.backend.enable_autocommit(cn)
            self.logger.debug('Transaction committed')
            return True
        except Exception as exc:
            return self._fail(exc, 'COMMIT_FAILED', 'Failed to commit transaction', False)

    def rollback_transaction(self, connection: Any | None = None) -> bool:
        try:
            cn = self._require_connection(connection)
            cn.rollback()
            self.backend.enable_autocommit(cn)
            self.logger.debug('Transaction rolled back')
            return True
        except Exception as exc:
            return self._fail(exc, 'ROLLBACK_FAILED', 'Failed to roll back transaction', False)
