import uuid

import numpy as np
import pytest
from dbaccess.exceptions import ConfigurationError
from dbaccess.types import TYPE_MAPPINGS, Char, adapt_value, column_definitions
from dbaccess.types import sql_type


@pytest.mark.parametrize(('python_type', 'expected'), [
    (int, 'INTEGER'),
    (np.int8, 'TINYINT'),
    (np.int16, 'SMALLINT'),
    (np.int32, 'INTEGER'),
    (np.int64, 'BIGINT'),
    (float, 'DOUBLE'),
    (np.float32, 'FLOAT'),
    (np.float64, 'DOUBLE'),
    (bool, 'BOOLEAN'),
    (np.bool_, 'BOOLEAN'),
    (str, 'VARCHAR(255)'),
    (Char, 'CHAR(1)'),
    (bytes, 'BLOB'),
    (bytearray, 'BLOB'),
    (memoryview, 'BLOB'),
])
def test_canonical_mapping(python_type, expected):
    assert sql_type(python_type) == expected


def test_uuid_maps_to_varchar36():
    assert sql_type(uuid.UUID) == 'VARCHAR(36)'


def test_unmapped_type_raises():
    class Unmapped:
        pass

    with pytest.raises(ConfigurationError, match='Unsupported type: .*Unmapped'):
        sql_type(Unmapped)

    with pytest.raises(ConfigurationError):
        sql_type(dict)


def test_backend_overrides():
    """Canonical literals the engine rejects are replaced per backend"""
    assert sql_type(float, 'postgresql') == 'DOUBLE PRECISION'
    assert sql_type(bytes, 'postgresql') == 'BYTEA'
    assert sql_type(bool, 'oracleautonomous') == 'NUMBER(1)'
    assert sql_type(str, 'oracleautonomous') == 'VARCHAR2(255)'
    assert sql_type(bool, 'mysql') == 'TINYINT(1)'
    # backends without overrides keep the canonical literal
    assert sql_type(float, 'sqlite') == 'DOUBLE'
    assert sql_type(uuid.UUID, 'h2') == 'VARCHAR(36)'


def test_backend_override_accepts_enum():
    from dbaccess.options import BackendKind
    assert sql_type(bytes, BackendKind.POSTGRESQL) == 'BYTEA'


def test_column_definitions():
    columns = column_definitions({'ID': uuid.UUID, 'COUNT': np.int64, 'FLAG': bool})
    assert columns == {'ID': 'VARCHAR(36)', 'COUNT': 'BIGINT', 'FLAG': 'BOOLEAN'}
    assert list(columns) == ['ID', 'COUNT', 'FLAG']


def test_every_mapping_has_a_literal():
    assert all(isinstance(v, str) and v for v in TYPE_MAPPINGS.values())


def test_char_requires_one_character():
    assert Char('x') == 'x'
    with pytest.raises(ValueError):
        Char('xy')
    with pytest.raises(ValueError):
        Char('')


def test_adapt_value():
    value = uuid.UUID('12345678-1234-5678-1234-567812345678')
    assert adapt_value(value) == '12345678-1234-5678-1234-567812345678'

    adapted = adapt_value(np.int64(7))
    assert adapted == 7
    assert type(adapted) is int

    assert type(adapt_value(np.float32(1.5))) is float
    assert adapt_value(np.bool_(True)) is True
    assert adapt_value(bytearray(b'ab')) == b'ab'
    assert type(adapt_value(memoryview(b'ab'))) is bytes
    assert type(adapt_value(Char('z'))) is str

    assert adapt_value(None) is None
    assert adapt_value('text') == 'text'
