from typing import Any
from typing import Dict

from geotypes.types.geometry.components import TypeSpec
from geotypes.types.geometry.constants import GEOGRAPHY
from geotypes.types.geometry.constants import GEOMETRY
from geotypes.types.geometry.kinds import GeometryKind
from geotypes.types.geometry.kinds import name_for
from geotypes.types.geometry.kinds import type_name_for


def dimension_suffix(has_z: bool, has_m: bool) -> str:
    return ('Z' if has_z else '') + ('M' if has_m else '')


def format_type(spec: TypeSpec) -> str:
    """Render spatial type as PostGIS column type.

        geometry
        geometry(point,4326)
        geography(geometry,4326)
        geometry(polygonM,3785)
        geometry(pointZ,0)[]

    """
    keyword = GEOGRAPHY if spec.geographic else GEOMETRY
    suffix = dimension_suffix(spec.has_z, spec.has_m)
    if spec.kind is None and spec.srid == 0 and not suffix:
        sql = keyword
    else:
        kind = name_for(spec.kind or GeometryKind.geometry)
        sql = f'{keyword}({kind}{suffix},{spec.srid})'
    if spec.array:
        sql += '[]'
    return sql


def to_limit(spec: TypeSpec) -> Dict[str, Any]:
    # Same shape as spatial column options, so that a dumped schema can be
    # loaded back with `from_options({'limit': ...})`.
    limit = {
        'srid': spec.srid,
        'type': type_name_for(spec.kind or GeometryKind.geometry),
    }
    if spec.has_z:
        limit['has_z'] = True
    if spec.has_m:
        limit['has_m'] = True
    if spec.geographic:
        limit['geographic'] = True
    return limit
