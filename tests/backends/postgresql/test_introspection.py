import copy
from unittest.mock import Mock

import pytest

from geotypes.backends.postgresql.introspection import COLUMNS_QUERY
from geotypes.backends.postgresql.introspection import count_spatial_columns
from geotypes.backends.postgresql.introspection import get_columns
from geotypes.backends.postgresql.introspection import resolve
from geotypes.exceptions import MalformedTypeString
from geotypes.types.geometry.components import TypeSpec
from geotypes.types.geometry.kinds import GeometryKind


def _rows():
    return [
        {
            'name': 'id',
            'raw_type': 'int4',
            'format_type': 'integer',
            'default': "nextval('places_id_seq'::regclass)",
            'null': False,
            'comment': None,
            'array': False,
        },
        {
            'name': 'title',
            'raw_type': 'varchar',
            'format_type': 'character varying(255)',
            'default': None,
            'null': True,
            'comment': 'Place name',
            'array': False,
        },
        {
            'name': 'location',
            'raw_type': 'geometry',
            'format_type': 'geometry(Point,4326)',
            'default': "'0101000020E610000000000000000000000000000000000000'::geometry",
            'null': True,
            'comment': None,
            'array': False,
        },
        {
            'name': 'area',
            'raw_type': 'geometry',
            'format_type': 'geometry(PolygonM,3785)',
            'default': None,
            'null': True,
            'comment': None,
            'array': False,
        },
        {
            'name': 'path',
            'raw_type': 'geography',
            'format_type': 'geography(LineStringZ,4326)',
            'default': None,
            'null': False,
            'comment': None,
            'array': False,
        },
        {
            'name': 'region',
            'raw_type': 'geography',
            'format_type': 'geography',
            'default': None,
            'null': True,
            'comment': None,
            'array': False,
        },
        {
            'name': 'stops',
            'raw_type': 'geometry',
            'format_type': 'geometry(Point,4326)[]',
            'default': None,
            'null': True,
            'comment': None,
            'array': True,
        },
        {
            'name': 'tags',
            'raw_type': 'text',
            'format_type': 'text[]',
            'default': None,
            'null': True,
            'comment': None,
            'array': True,
        },
    ]


def test_resolve():
    columns = resolve(_rows())
    assert [c.name for c in columns] == [
        'id',
        'title',
        'location',
        'area',
        'path',
        'region',
        'stops',
        'tags',
    ]
    assert {c.name: c.spec for c in columns} == {
        'id': None,
        'title': None,
        'location': TypeSpec(GeometryKind.point, 4326),
        'area': TypeSpec(GeometryKind.polygon, 3785, has_m=True),
        'path': TypeSpec(GeometryKind.linestring, 4326, has_z=True, geographic=True),
        'region': TypeSpec(None, 4326, geographic=True),
        'stops': TypeSpec(GeometryKind.point, 4326, array=True),
        'tags': None,
    }


def test_resolve_not_spatial():
    column, = resolve([{
        'name': 'title',
        'raw_type': 'varchar',
        'format_type': 'character varying(255)',
        'null': True,
        'comment': 'Place name',
    }])
    assert not column.spatial
    assert column.spec is None
    assert column.sql_type == 'character varying(255)'
    assert column.comment == 'Place name'
    assert column.null is True


def test_resolve_column_attributes():
    columns = {c.name: c for c in resolve(_rows())}

    assert columns['id'].null is False
    assert columns['id'].default == "nextval('places_id_seq'::regclass)"

    location = columns['location']
    assert location.spatial
    assert location.sql_type == 'geometry(Point,4326)'
    assert location.default == '0101000020E610000000000000000000000000000000000000'
    assert location.geometric_type is GeometryKind.point
    assert location.srid == 4326
    assert location.geographic is False

    assert columns['area'].limit == {'type': 'st_polygon', 'srid': 3785, 'has_m': True}
    assert columns['region'].limit == {'srid': 4326, 'type': 'geometry', 'geographic': True}

    assert columns['path'].null is False
    assert columns['path'].has_z is True

    assert columns['stops'].array is True
    assert columns['tags'].array is True
    assert columns['title'].array is False

    assert columns['title'].limit == 255
    assert columns['id'].limit is None
    assert columns['tags'].limit is None


def test_resolve_alternative_keys():
    column, = resolve([{
        'column_name': 'shape',
        'type_name': 'geometry',
        'type_modifier': 'MultiPolygon,3346',
        'notnull': True,
    }])
    assert column.name == 'shape'
    assert column.null is False
    assert column.spec == TypeSpec(GeometryKind.multipolygon, 3346)


def test_resolve_does_not_modify_rows():
    rows = _rows()
    before = copy.deepcopy(rows)
    resolve(rows)
    assert rows == before


def test_resolve_empty():
    assert resolve([]) == []


def test_resolve_malformed_modifier():
    with pytest.raises(MalformedTypeString) as e:
        resolve([{
            'name': 'location',
            'raw_type': 'geometry',
            'format_type': 'geometry(Point,abc)',
        }])
    assert e.value.context['column'] == 'location'


def test_count_spatial_columns():
    columns = resolve(_rows())
    assert count_spatial_columns(columns) == 5
    assert count_spatial_columns(columns, geographic=False) == 3
    assert count_spatial_columns(columns, geographic=True) == 2


def test_get_columns_runs_single_query():
    connection = Mock()
    connection.execute.return_value.mappings.return_value = _rows()

    columns = get_columns(connection, 'places', schema='public')

    assert len(columns) == 8
    connection.execute.assert_called_once_with(COLUMNS_QUERY, {'table': '"public"."places"'})


def test_get_columns_without_schema():
    connection = Mock()
    connection.execute.return_value.mappings.return_value = []
    assert get_columns(connection, 'places') == []
    connection.execute.assert_called_once_with(COLUMNS_QUERY, {'table': '"places"'})


def test_get_columns_quotes_table_name():
    connection = Mock()
    connection.execute.return_value.mappings.return_value = []
    get_columns(connection, 'My "Places"', schema='Geo.Data')
    connection.execute.assert_called_once_with(
        COLUMNS_QUERY,
        {'table': '"Geo.Data"."My ""Places"""'},
    )


@pytest.mark.parametrize('default, expected', [
    (
        "'0101000020E610000000000000000000000000000000000000'::geometry",
        '0101000020E610000000000000000000000000000000000000',
    ),
    (
        "'0101000020e610000000000000000000000000000000000000'::geography(Point,4326)",
        '0101000020E610000000000000000000000000000000000000',
    ),
    ("ST_GeomFromText('POINT(0 0)'::text)", "ST_GeomFromText('POINT(0 0)'::text)"),
    (None, None),
])
def test_resolve_spatial_default(default, expected):
    column, = resolve([{
        'name': 'location',
        'raw_type': 'geometry',
        'format_type': 'geometry(Point,4326)',
        'default': default,
    }])
    assert column.default == expected


def test_resolve_non_spatial_default_is_kept():
    column, = resolve([{
        'name': 'title',
        'raw_type': 'varchar',
        'format_type': 'character varying(123)',
        'default': "'abc'::character varying",
    }])
    assert column.default == "'abc'::character varying"
    assert column.limit == 123


@pytest.mark.parametrize('sql_type, limit', [
    ('character varying(123)', 123),
    ('character(2)', 2),
    ('character varying(10)[]', 10),
    ('bit varying(8)', 8),
    ('character varying', None),
    ('numeric(10,2)', None),
    ('timestamp(6) without time zone', None),
    ('integer', None),
])
def test_non_spatial_column_limit(sql_type: str, limit):
    column, = resolve([{'name': 'value', 'raw_type': 'other', 'format_type': sql_type}])
    assert column.limit == limit


def test_get_columns_keeps_percent_sign():
    connection = Mock()
    connection.execute.return_value.mappings.return_value = []
    get_columns(connection, 'growth%')
    connection.execute.assert_called_once_with(COLUMNS_QUERY, {'table': '"growth%"'})
