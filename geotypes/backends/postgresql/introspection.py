"""
PostgreSQL column introspection with PostGIS type details.

Spatial column metadata (kind, SRID, Z/M, geography) is taken from the same
catalog query, that is used to read all other columns of a table. The
`geometry_columns` and `geography_columns` views are never queried, so
reloading a schema costs one query per table, not one per spatial column.
"""

import logging
import re
from typing import Any
from typing import Iterable
from typing import List
from typing import Mapping
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from geotypes.types.geometry.components import ColumnMetadata
from geotypes.types.geometry.components import NOT_SPATIAL
from geotypes.types.geometry.load import from_catalog_row

log = logging.getLogger(__name__)


# `format_type` already renders PostGIS type modifiers, for example
# `geometry(Point,4326)` or `geography(PointZ,4326)[]`, so no extra lookups
# are needed for spatial columns.
COLUMNS_QUERY = sa.text("""
    SELECT
        a.attname AS name,
        COALESCE(et.typname, t.typname) AS raw_type,
        format_type(a.atttypid, a.atttypmod) AS format_type,
        pg_get_expr(d.adbin, d.adrelid) AS "default",
        NOT a.attnotnull AS "null",
        col_description(a.attrelid, a.attnum) AS comment,
        t.typcategory = 'A' AS "array"
    FROM pg_attribute a
    JOIN pg_type t ON t.oid = a.atttypid
    LEFT JOIN pg_type et ON et.oid = t.typelem AND t.typcategory = 'A'
    LEFT JOIN pg_attrdef d ON d.adrelid = a.attrelid AND d.adnum = a.attnum
    WHERE
        a.attrelid = CAST(:table AS regclass) AND
        a.attnum > 0 AND
        NOT a.attisdropped
    ORDER BY a.attnum
""")

# PostGIS shows spatial column defaults as a cast EWKB literal,
# `'0101000020E6...'::geometry`.
SPATIAL_DEFAULT_RE = re.compile(
    r"'(?P<value>[0-9A-Fa-f]*)'::(?:geometry|geography)(?:\(.*\))?",
    re.IGNORECASE,
)


def _first(row: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in row:
            return row[key]
    return default


def _is_nullable(row: Mapping[str, Any]) -> bool:
    if 'null' in row:
        return bool(row['null'])
    if 'nullable' in row:
        return bool(row['nullable'])
    if 'notnull' in row:
        return not row['notnull']
    return True


def _spatial_default(value: Any) -> Any:
    if isinstance(value, str):
        match = SPATIAL_DEFAULT_RE.fullmatch(value.strip())
        if match:
            return match.group('value').upper()
    return value


def resolve_column(row: Mapping[str, Any]) -> ColumnMetadata:
    name = _first(row, 'name', 'column_name')
    raw_type = _first(row, 'raw_type', 'raw_type_name', 'type_name')
    format_type = row.get('format_type')

    default = row.get('default')
    spec = from_catalog_row(raw_type, row, column=name)
    if spec is NOT_SPATIAL:
        spec = None
        array = bool(row.get('array')) or bool(format_type and format_type.endswith(']'))
    else:
        array = spec.array
        default = _spatial_default(default)

    return ColumnMetadata(
        name=name,
        sql_type=format_type or raw_type,
        null=_is_nullable(row),
        default=default,
        comment=row.get('comment'),
        array=array,
        spec=spec,
    )


def resolve(table_columns: Iterable[Mapping[str, Any]]) -> List[ColumnMetadata]:
    """Build column metadata from already fetched catalog rows.

    Rows are read, never modified. Result has one entry per row in the same
    order. Spatial type is attached only to `geometry` and `geography`
    columns.
    """
    columns = [resolve_column(row) for row in table_columns]
    log.debug(
        "Resolved %d columns, %d of them spatial.",
        len(columns),
        sum(1 for c in columns if c.spatial),
    )
    return columns


def get_columns(
    connection: sa.engine.Connection,
    table: str,
    schema: Optional[str] = None,
) -> List[ColumnMetadata]:
    """Read column metadata of a table using a single catalog query."""
    # Name is passed as a bind parameter, so percent signs are not doubled.
    quote = postgresql.dialect(paramstyle='named').identifier_preparer.quote_identifier
    name = f'{quote(schema)}.{quote(table)}' if schema else quote(table)
    log.debug("Reading columns of %s.", name)
    result = connection.execute(COLUMNS_QUERY, {'table': name})
    return resolve(result.mappings())


def count_spatial_columns(
    columns: Iterable[ColumnMetadata],
    geographic: Optional[bool] = None,
) -> int:
    """Count spatial columns, like `geometry_columns` and `geography_columns` do.

    If `geographic` is `None`, both geometry and geography columns are counted.
    """
    return sum(
        1 for c in columns
        if c.spatial and (geographic is None or c.geographic == geographic)
    )
