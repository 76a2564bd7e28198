import logging

from dbaccess.reporting import LoggingReporter, Reporter


def test_logging_reporter_is_reporter():
    assert isinstance(LoggingReporter(), Reporter)


def test_report_includes_code_and_context(caplog):
    logger = logging.getLogger('dbaccess.tests.reporting')
    reporter = LoggingReporter(logger, owner='billing')
    with caplog.at_level(logging.DEBUG, logger='dbaccess.tests.reporting'):
        reporter.report(RuntimeError('boom'), logging.ERROR, 'INSERT_FAILED',
                        message='Failed to insert record into table: users', backend='sqlite')

    assert len(caplog.records) == 1
    record = caplog.records[0]
    assert record.levelno == logging.ERROR
    assert '[INSERT_FAILED]' in record.message
    assert 'Failed to insert record into table: users' in record.message
    assert 'boom' in record.message
    assert "owner='billing'" in record.message
    assert "backend='sqlite'" in record.message
    assert record.exc_info is not None


def test_warning_has_no_traceback(caplog):
    logger = logging.getLogger('dbaccess.tests.reporting')
    with caplog.at_level(logging.DEBUG, logger='dbaccess.tests.reporting'):
        LoggingReporter(logger).report(RuntimeError('idle'), logging.WARNING, 'NOT_CONNECTED')

    record = caplog.records[0]
    assert record.levelno == logging.WARNING
    assert record.exc_info is None
    assert 'owner' not in record.message
