import logging
from typing import Any
from typing import List
from typing import Mapping
from typing import Optional
from typing import Union

import geoalchemy2 as ga
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from geotypes.types.geometry.components import TypeSpec
from geotypes.types.geometry.ewkb import encode
from geotypes.types.geometry.helpers import dimension_suffix
from geotypes.types.geometry.helpers import format_type
from geotypes.types.geometry.load import from_options

log = logging.getLogger(__name__)


def _ga_kwargs(spec: TypeSpec) -> dict:
    kind = spec.kind.name.upper() if spec.kind is not None else 'GEOMETRY'
    return {
        'geometry_type': kind + dimension_suffix(spec.has_z, spec.has_m),
        'srid': spec.srid or -1,
        'dimension': 2 + spec.has_z + spec.has_m,
        # Have to disable spatial index and create our own, because
        # Geoalchemy2 uses their own naming convention.
        'spatial_index': False,
    }


class SpatialGeometry(ga.Geometry):
    """GeoAlchemy2 geometry type, that renders exactly as `format_type`."""

    cache_ok = True

    def __init__(self, spec: TypeSpec):
        self.spec = spec
        super().__init__(**_ga_kwargs(spec))

    def get_col_spec(self, **kw):
        return format_type(self.spec)


class SpatialGeography(ga.Geography):

    cache_ok = True

    def __init__(self, spec: TypeSpec):
        self.spec = spec
        super().__init__(**_ga_kwargs(spec))

    def get_col_spec(self, **kw):
        return format_type(self.spec)


def get_column_type(spec: TypeSpec) -> Union[SpatialGeometry, SpatialGeography]:
    if spec.geographic:
        return SpatialGeography(spec)
    return SpatialGeometry(spec)


def get_server_default(
    spec: TypeSpec,
    options: Mapping[str, Any],
    *,
    column: str = None,
) -> Optional[str]:
    default = options.get('default')
    if default is None:
        return None
    return encode(default, spec, column=column)


def prepare(
    name: str,
    options: Mapping[str, Any],
    *,
    nullable: bool = None,
    comment: str = None,
) -> list:
    """Build SQLAlchemy column and GIST index for a spatial column declaration.

    WKT `default` option is stored as EWKB hex, the same way PostGIS shows
    column defaults in the catalog.
    """
    spec = from_options(options, column=name)
    if nullable is None:
        nullable = options.get('null', True) is not False
    if comment is None:
        comment = options.get('comment')

    server_default = get_server_default(spec, options, column=name)
    columns: List[Any] = [
        column := sa.Column(
            name,
            get_column_type(spec),
            nullable=nullable,
            server_default=server_default,
            comment=comment,
        ),
        sa.Index(None, column, postgresql_using="GIST"),
    ]
    log.debug("Prepared spatial column %s %s.", name, format_type(spec))
    return columns


def add_column_sql(
    table: str,
    name: str,
    options: Mapping[str, Any],
) -> str:
    """Render `ALTER TABLE ... ADD COLUMN` statement for a spatial column."""
    spec = from_options(options, column=name)
    quote = postgresql.dialect().identifier_preparer.quote_identifier
    sql = f'ALTER TABLE {quote(table)} ADD COLUMN {quote(name)} {format_type(spec)}'
    default = get_server_default(spec, options, column=name)
    if default is not None:
        sql += f" DEFAULT '{default}'"
    if options.get('null') is False:
        sql += ' NOT NULL'
    return sql
