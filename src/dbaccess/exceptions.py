"""
Database access exception classes.
"""


class DatabaseError(Exception):
    """Base class for all dbaccess errors.
    """


class ConfigurationError(DatabaseError):
    """Invalid connection options, unsupported backend, missing driver or
    unmapped value type.

    Always raised, regardless of strict mode.
    """


class ConnectionFailure(DatabaseError):
    """The first connection attempt of a build-and-connect call failed.
    """


class OperationError(DatabaseError):
    """Error during a CRUD, DDL or transaction call.

    Only raised in strict mode. The driver exception is chained as the cause.
    """


class StateError(OperationError):
    """Operation attempted without an established connection for the calling
    context (pool closed, or the calling thread has none).
    """
