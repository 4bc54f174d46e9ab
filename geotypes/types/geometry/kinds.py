"""
Geometry kind registry.

Closed set of geometry kinds known to PostGIS typmods and (E)WKB, with
static lookup tables between kind names, synonyms used in column
declarations and numeric WKB type codes.

Tables are built once at import time and never modified afterwards.
"""

import enum
from typing import Dict

from geotypes.exceptions import UnknownCode
from geotypes.exceptions import UnknownKind


class GeometryKind(enum.IntEnum):
    # Values are the OGC WKB type codes.
    geometry = 0
    point = 1
    linestring = 2
    polygon = 3
    multipoint = 4
    multilinestring = 5
    multipolygon = 6
    geometrycollection = 7

    @property
    def multi(self) -> bool:
        return self in MULTI_KINDS


MULTI_KINDS = frozenset([
    GeometryKind.multipoint,
    GeometryKind.multilinestring,
    GeometryKind.multipolygon,
    GeometryKind.geometrycollection,
])

# Element kind of each multi kind, `None` means any kind.
MEMBER_KINDS = {
    GeometryKind.multipoint: GeometryKind.point,
    GeometryKind.multilinestring: GeometryKind.linestring,
    GeometryKind.multipolygon: GeometryKind.polygon,
    GeometryKind.geometrycollection: None,
}

# Names used by column declarations (`t.st_point`, `type: line_string`).
TYPE_NAMES = {
    GeometryKind.geometry: 'geometry',
    GeometryKind.point: 'st_point',
    GeometryKind.linestring: 'line_string',
    GeometryKind.polygon: 'st_polygon',
    GeometryKind.multipoint: 'multi_point',
    GeometryKind.multilinestring: 'multi_line_string',
    GeometryKind.multipolygon: 'multi_polygon',
    GeometryKind.geometrycollection: 'geometry_collection',
}

SYNONYMS = {
    'geography': GeometryKind.geometry,
    'spatial': GeometryKind.geometry,
}

_BY_NAME: Dict[str, GeometryKind] = {
    **{kind.name: kind for kind in GeometryKind},
    **{name: kind for kind, name in TYPE_NAMES.items()},
    **SYNONYMS,
}

_BY_CODE: Dict[int, GeometryKind] = {kind.value: kind for kind in GeometryKind}


def lookup_by_name(name: str, *, column: str = None) -> GeometryKind:
    try:
        return _BY_NAME[name.strip().lower()]
    except (KeyError, AttributeError):
        raise UnknownKind(kind=name, column=column) from None


def lookup_by_code(code: int) -> GeometryKind:
    try:
        return _BY_CODE[code]
    except KeyError:
        raise UnknownCode(code=code) from None


def code_for(kind: GeometryKind) -> int:
    return kind.value


def name_for(kind: GeometryKind) -> str:
    return kind.name


def wkt_name_for(kind: GeometryKind) -> str:
    return kind.name.upper()


def type_name_for(kind: GeometryKind) -> str:
    return TYPE_NAMES[kind]
