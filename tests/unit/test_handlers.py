"""
Handler behavior with a mocked driver, for every backend kind.
"""
import logging
from unittest.mock import patch

import pytest
from dbaccess import HandlerBuilder
from dbaccess.exceptions import ConfigurationError, OperationError, StateError


def _builder(kind, tmp_path):
    if kind in {'sqlite', 'h2', 'hsqldb'}:
        return HandlerBuilder(kind).with_address(str(tmp_path / 'db' / kind))
    if kind == 'oracleautonomous':
        return HandlerBuilder.for_oracle_autonomous('(description=...)', 'admin', 'pw')
    return HandlerBuilder(kind).with_address('localhost:1234/app').with_credentials('u', 'p')


BACKENDS = ['sqlite', 'h2', 'hsqldb', 'mysql', 'postgresql', 'oracleautonomous']


@pytest.mark.parametrize('kind', BACKENDS)
def test_pooled_connect_disconnect(kind, tmp_path, mock_driver):
    handler = _builder(kind, tmp_path).build()
    assert handler.connect()
    assert handler.is_connected()
    assert handler.connect()
    assert mock_driver.connect.call_count == 1

    assert handler.disconnect()
    assert not handler.is_connected()
    assert handler.disconnect()


@pytest.mark.parametrize('kind', BACKENDS)
def test_confined_connect_disconnect(kind, tmp_path, mock_driver):
    handler = _builder(kind, tmp_path).build_thread_confined()
    assert handler.connect()
    assert handler.is_connected()
    assert handler.disconnect()
    assert not handler.is_connected()


def test_missing_driver_is_always_raised(tmp_path, recording_reporter):
    handler = _builder('mysql', tmp_path).with_reporter(recording_reporter).build()
    with patch('dbaccess.drivers.importlib.import_module', side_effect=ImportError):
        with pytest.raises(ConfigurationError, match='PyMySQL'):
            handler.connect()
    assert not handler.is_connected()
    assert recording_reporter.reports == []


def test_postgres_connects_with_conninfo(tmp_path, mock_driver):
    handler = _builder('postgresql', tmp_path).build()
    handler.connect()
    args, kwargs = mock_driver.connect.call_args
    assert args[0] == 'postgresql://u:p@localhost:1234/app'
    assert kwargs['autocommit'] is True
    handler.disconnect()


def test_jdbc_connects_with_driver_class(tmp_path, mock_driver):
    handler = _builder('h2', tmp_path).with_jars('/opt/h2.jar').build_thread_confined()
    handler.connect()
    args, kwargs = mock_driver.connect.call_args
    assert args[0] == 'org.h2.Driver'
    assert args[1].startswith('jdbc:h2:file:')
    assert kwargs['jars'] == ['/opt/h2.jar']
    handler.disconnect()


@pytest.mark.parametrize(('kind', 'stored'), [
    ('h2', 'USERS'),
    ('hsqldb', 'USERS'),
    ('oracleautonomous', 'USERS'),
    ('postgresql', 'users'),
    ('mysql', 'Users'),
    ('sqlite', 'Users'),
])
def test_table_exists_folds_name(kind, stored, tmp_path):
    backend = _builder(kind, tmp_path).build().backend
    statement = backend.table_exists_statement(backend.normalize_identifier('Users'))
    assert statement.params == (stored,)


def test_not_connected_lenient(tmp_path, recording_reporter):
    handler = _builder('sqlite', tmp_path).with_reporter(recording_reporter).build()
    assert handler.insert_record('t', {'ID': 1}) is False
    assert handler.query_records('t') == []
    assert handler.begin_transaction() is False
    assert recording_reporter.codes == ['NOT_CONNECTED'] * 3
    assert [r[3]['operation'] for r in recording_reporter.reports] == [
        'INSERT_FAILED', 'QUERY_FAILED', 'BEGIN_FAILED']
    assert all(r[1] == logging.WARNING for r in recording_reporter.reports)
    assert all(isinstance(r[0], StateError) for r in recording_reporter.reports)


def test_not_connected_strict(tmp_path):
    handler = _builder('sqlite', tmp_path).strict_mode(True).build_thread_confined()
    with pytest.raises(StateError, match='not established for this thread'):
        handler.table_exists('t')


def test_acquire_requires_connection(tmp_path):
    handler = _builder('sqlite', tmp_path).build()
    with pytest.raises(StateError):
        handler.acquire()
    with pytest.raises(StateError):
        with handler.connection():
            pass


def test_strict_failure_chains_driver_exception(tmp_path, mock_driver):
    handler = _builder('h2', tmp_path).strict_mode(True).build()
    handler.connect()
    with handler.connection() as cn:
        cn.dbapi_connection.cursor.side_effect = RuntimeError('driver failure')
        with pytest.raises(OperationError) as exc_info:
            handler.update_records('t', {'A': 1}, connection=cn)
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    handler.disconnect()


def test_unbuildable_statements_lenient(tmp_path, mock_driver, recording_reporter):
    """Rejected identifiers and empty records fail like any other data call"""
    handler = (_builder('h2', tmp_path)
               .validate_identifiers(True)
               .with_reporter(recording_reporter)
               .build())
    handler.connect()
    assert handler.insert_record('bad table;', {'ID': 1}) is False
    assert handler.insert_record('t', {}) is False
    assert handler.update_records('t', {}) is False
    assert handler.create_table('t', {}) is False
    assert handler.query_records('   ') == []
    assert handler.find_records('t', {'bad col': 1}) == []
    assert handler.drop_table('') is False
    handler.disconnect()

    assert recording_reporter.codes == [
        'INSERT_FAILED', 'INSERT_FAILED', 'UPDATE_FAILED', 'CREATE_TABLE_FAILED',
        'QUERY_FAILED', 'QUERY_FAILED', 'DROP_TABLE_FAILED']
    assert all(isinstance(r[0], ConfigurationError) for r in recording_reporter.reports)


def test_unbuildable_statements_strict(tmp_path, mock_driver):
    handler = _builder('h2', tmp_path).strict_mode(True).build()
    handler.connect()
    with pytest.raises(OperationError) as exc_info:
        handler.insert_record('t', {})
    assert isinstance(exc_info.value.__cause__, ConfigurationError)
    handler.disconnect()



def test_create_and_drop_database(tmp_path, mock_driver):
    handler = _builder('mysql', tmp_path).build_thread_confined()
    handler.connect()
    cursor = handler._current_connection().cursor.return_value

    assert handler.create_database('analytics')
    cursor.execute.assert_called_with('CREATE DATABASE analytics')
    assert handler.drop_database('analytics')
    cursor.execute.assert_called_with('DROP DATABASE analytics')
    handler.disconnect()


def test_create_database_failure_reported(tmp_path, mock_driver, recording_reporter):
    handler = _builder('mysql', tmp_path).with_reporter(recording_reporter).build_thread_confined()
    handler.connect()
    handler._current_connection().cursor.side_effect = RuntimeError('denied')
    assert handler.create_database('analytics') is False
    assert recording_reporter.codes == ['CREATE_DATABASE_FAILED']
    handler.disconnect()
