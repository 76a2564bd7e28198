"""
Structured failure reporting.

Handlers report every caught driver failure through a `Reporter` passed in at
construction. The default implementation writes to a logger.
"""
import logging
from typing import Any, Protocol, runtime_checkable

__all__ = [
    'Reporter',
    'LoggingReporter',
]


@runtime_checkable
class Reporter(Protocol):
    """Receives `(exception, severity, short error code, extra context)`.
    """

    def report(self, exc: BaseException, level: int, code: str, **context: Any) -> None:
        ...


class LoggingReporter:
    """Reporter that logs failures with their code and context.

    Args:
        logger: Logger to write to, defaults to this module's logger
        owner: Tenant identifier added to every report
    """

    def __init__(self, logger: logging.Logger | None = None, owner: str | None = None) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.owner = owner

    def report(self, exc: BaseException, level: int, code: str, **context: Any) -> None:
        message = context.pop('message', None) or str(exc)
        if self.owner and 'owner' not in context:
            context['owner'] = self.owner
        details = ', '.join(f'{k}={v!r}' for k, v in context.items() if v is not None)
        text = f'[{code}] {message}: {exc}'
        if details:
            text = f'{text} ({details})'
        self.logger.log(level, text, exc_info=exc if level >= logging.ERROR else None)
