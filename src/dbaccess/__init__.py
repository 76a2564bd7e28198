"""
Uniform CRUD, DDL and transaction access to SQLite, H2, HSQLDB, MySQL,
PostgreSQL and Oracle Autonomous Database.

Handlers come in two connection models:
- PooledHandler: one bounded pool shared by all threads
- ThreadConfinedHandler: one connection per calling thread

Data calls return True/False or a list of dict records. With strict mode on
they raise OperationError instead.
"""
__version__ = '0.1.0'

from dbaccess.builder import HandlerBuilder, connect
from dbaccess.drivers import resolve_driver
from dbaccess.exceptions import ConfigurationError, ConnectionFailure
from dbaccess.exceptions import DatabaseError, OperationError, StateError
from dbaccess.handlers import BaseHandler, PooledHandler, ThreadConfinedHandler
from dbaccess.options import BackendKind, ConnectionOptions
from dbaccess.reporting import LoggingReporter, Reporter
from dbaccess.types import Char, column_definitions, sql_type

__all__ = [
    'HandlerBuilder',
    'connect',
    'resolve_driver',
    'ConfigurationError',
    'ConnectionFailure',
    'DatabaseError',
    'OperationError',
    'StateError',
    'BaseHandler',
    'PooledHandler',
    'ThreadConfinedHandler',
    'BackendKind',
    'ConnectionOptions',
    'LoggingReporter',
    'Reporter',
    'Char',
    'column_definitions',
    'sql_type',
]
