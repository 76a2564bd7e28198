import logging

import pytest
from dbaccess.drivers import _import_driver


@pytest.fixture(autouse=True)
def clear_driver_cache():
    """Clear the driver import cache so patched imports never leak between tests."""
    _import_driver.cache_clear()
    yield
    _import_driver.cache_clear()


@pytest.fixture
def recording_reporter():
    """Reporter collecting every `(exc, level, code, context)` it receives."""
    class RecordingReporter:
        def __init__(self):
            self.reports = []

        def report(self, exc, level, code, **context):
            self.reports.append((exc, level, code, context))

        @property
        def codes(self):
            return [r[2] for r in self.reports]

    return RecordingReporter()


@pytest.fixture
def quiet_logger():
    logger = logging.getLogger('dbaccess.tests')
    logger.setLevel(logging.DEBUG)
    return logger


pytest_plugins = [
    'tests.fixtures.mocks',
    'tests.fixtures.sqlite',
    'tests.fixtures.postgres',
]
