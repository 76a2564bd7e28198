"""
Pooled handler.

All threads share one bounded SQLAlchemy `QueuePool`. Every call borrows a
connection and returns it when done, unless the caller holds one explicitly
(`acquire()`, `connection()`) or the calling thread has an open transaction,
in which case the call runs on that connection.

Pool behavior:
- at most `pool_size` connections, no overflow
- no connections are opened before first use
- a checkout waits up to `pool_timeout` seconds
- a connection held longer than `leak_detection_threshold` seconds logs a
  warning naming the holding thread when it is returned
"""
import logging
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import sqlalchemy as sa
from dbaccess.drivers import resolve_driver
from dbaccess.exceptions import OperationError, StateError
from dbaccess.handlers.base import BaseHandler, raw_connection
from dbaccess.options import ConnectionOptions
from dbaccess.reporting import Reporter
from sqlalchemy import event
from sqlalchemy.pool import QueuePool

__all__ = ['PooledHandler']


class PooledHandler(BaseHandler):
    """Handler backed by a bounded connection pool shared by all threads.

    Args:
        options: Immutable connection options
        reporter: Receives every caught driver failure
        logger: Logger for operational messages

    Examples
        handler = HandlerBuilder.for_sqlite('/tmp/app.db').build()
        handler.connect()
        handler.insert_record('users', {'ID': 1, 'NAME': 'ann'})
        with handler.connection() as cn:
            handler.query_records('users', connection=cn)
    """

    def __init__(self, options: ConnectionOptions, reporter: Reporter | None = None,
                 logger: logging.Logger | None = None) -> None:
        super().__init__(options, reporter, logger)
        self._pool: QueuePool | None = None
        self._lock = threading.RLock()
        self._local = threading.local()
        # bumped on every disconnect, pins from an older pool are stale
        self._generation = 0

    #
    # Pool lifecycle
    #

    def _create_pool(self) -> QueuePool:
        pool = QueuePool(self._open_raw_connection,
                         pool_size=self.options.pool_size,
                         max_overflow=0,
                         timeout=self.options.pool_timeout,
                         reset_on_return=self.backend.reset_on_return)
        event.listen(pool, 'checkout', self._on_checkout)
        event.listen(pool, 'checkin', self._on_checkin)
        return pool

    def _on_checkout(self, dbapi_connection: Any, connection_record: Any,
                     connection_proxy: Any) -> None:
        connection_record.info['checked_out_at'] = time.monotonic()
        connection_record.info['holder'] = threading.current_thread().name

    def _on_checkin(self, dbapi_connection: Any, connection_record: Any) -> None:
        started = connection_record.info.pop('checked_out_at', None)
        holder = connection_record.info.pop('holder', None)
        threshold = self.options.leak_detection_threshold
        if started is None or not threshold:
            return
        held = time.monotonic() - started
        if held > threshold:
            self.logger.warning(f'Possible connection leak: connection held by thread {holder} '
                                f'for {held:.1f}s (threshold {threshold}s)')

    def connect(self) -> bool:
        """Create the pool and verify one connection. Idempotent.

        Driver resolution failures raise `ConfigurationError` in either mode.
        """
        with self._lock:
            if self._pool is not None:
                return True
            resolve_driver(self.options.backend)
            pool = self._create_pool()
            try:
                pool.connect().close()
            except Exception as exc:
                pool.dispose()
                return self._fail(exc, 'CONNECT_FAILED', f'Failed to connect to {self.url}', False)
            self._pool = pool
            self.logger.info(f'Connection pool ready: {self.url} (size {self.options.pool_size})')
            return True

    def disconnect(self) -> bool:
        """Dispose the pool. Safe to call repeatedly.
        """
        with self._lock:
            if self._pool is None:
                return True
            self._unpin()
            pool, self._pool = self._pool, None
            self._generation += 1
            try:
                in_use = pool.checkedout()
                if in_use:
                    self.logger.warning(f'Closing pool with {in_use} connections still checked out')
                pool.dispose()
            except Exception as exc:
                return self._fail(exc, 'DISCONNECT_FAILED', f'Failed to close pool for {self.url}', False)
            self.logger.info(f'Connection pool closed: {self.url}')
            return True

    def is_connected(self) -> bool:
        return self._pool is not None

    #
    # Explicit handles
    #

    def _checkout(self) -> Any:
        pool = self._pool
        if pool is None:
            raise StateError('Connection pool is not initialized. Call connect() first.')
        try:
            return pool.connect()
        except sa.exc.TimeoutError as exc:
            raise OperationError(f'Timed out after {self.options.pool_timeout}s waiting for a '
                                 f'pooled connection') from exc

    def acquire(self) -> Any:
        """Check out one pooled connection. Return it with `release()`.

        Raises
            StateError: If the handler is not connected
            OperationError: If no connection becomes available in time
        """
        return self._checkout()

    def release(self, connection: Any) -> None:
        """Return a connection obtained from `acquire()` to the pool.
        """
        connection.close()

    @contextmanager
    def connection(self) -> Iterator[Any]:
        """Hold one pooled connection for the duration of the block.
        """
        cn = self._checkout()
        try:
            yield cn
        finally:
            cn.close()

    def _pinned(self) -> Any | None:
        """Connection pinned by this thread's open transaction.

        A pin taken from a pool that has since been disposed is dropped.
        """
        pin = getattr(self._local, 'pinned', None)
        if pin is None:
            return None
        generation, cn = pin
        if generation != self._generation:
            self._local.pinned = None
            cn.close()
            self.logger.warning('Discarded a transaction connection from a closed pool')
            return None
        return cn

    def _pin(self, connection: Any) -> None:
        self._local.pinned = (self._generation, connection)

    def _unpin(self) -> None:
        pin = getattr(self._local, 'pinned', None)
        self._local.pinned = None
        if pin is not None:
            pin[1].close()

    def _current_connection(self) -> Any | None:
        return self._pinned()

    @contextmanager
    def _borrow(self, connection: Any | None = None) -> Iterator[Any]:
        if connection is not None:
            yield raw_connection(connection)
            return
        pinned = self._pinned()
        if pinned is not None:
            yield raw_connection(pinned)
            return
        cn = self._checkout()
        try:
            yield raw_connection(cn)
        finally:
            cn.close()

    #
    # Transactions
    #

    def begin_transaction(self, connection: Any | None = None) -> bool:
        """Turn autocommit off.

        With a handle the transaction runs on that handle. Without one a
        connection is checked out and pinned to the calling thread: data calls
        from this thread without `connection=` run on it until commit or
        rollback returns it to the pool.
        """
        try:
            if connection is not None:
                self.backend.disable_autocommit(raw_connection(connection))
            else:
                if self._pinned() is not None:
                    raise OperationError('A transaction is already open on this thread')
                cn = self._checkout()
                try:
                    self.backend.disable_autocommit(raw_connection(cn))
                except Exception:
                    cn.close()
                    raise
                self._pin(cn)
            self.logger.debug('Transaction started')
            return True
        except Exception as exc:
            return self._fail(exc, 'BEGIN_FAILED', 'Failed to begin transaction', False)

    def _transaction_connection(self, connection: Any | None) -> Any:
        cn = connection if connection is not None else self._pinned()
        if cn is None:
            raise OperationError('No transaction is open on this thread')
        return raw_connection(cn)

    def commit_transaction(self, connection: Any | None = None) -> bool:
        """Commit and restore autocommit. A pinned connection is released only
        when the commit succeeds, so a failed commit can still be rolled back.
        """
        try:
            raw = self._transaction_connection(connection)
            raw.commit()
            self.backend.enable_autocommit(raw)
            if connection is None:
                self._unpin()
            self.logger.debug('Transaction committed')
            return True
        except Exception as exc:
            return self._fail(exc, 'COMMIT_FAILED', 'Failed to commit transaction', False)

    def rollback_transaction(self, connection: Any | None = None) -> bool:
        """Roll back and restore autocommit. A pinned connection is always
        released.
        """
        try:
            raw = self._transaction_connection(connection)
            try:
                raw.rollback()
                self.backend.enable_autocommit(raw)
            finally:
                if connection is None:
                    self._unpin()
            self.logger.debug('Transaction rolled back')
            return True
        except Exception as exc:
            return self._fail(exc, 'ROLLBACK_FAILED', 'Failed to roll back transaction', False)
