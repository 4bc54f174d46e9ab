"""
EWKB (PostGIS extended well-known binary) encoding of geometry literals.

Column defaults are declared as WKT and stored in the catalog as EWKB hex,
exactly as PostGIS renders them:

    POINT(0.0 0.0), geometry(point,4326)

    01                  byte order, always little endian on output
    01000020            type code, point | SRID flag
    E6100000            SRID 4326
    0000000000000000    X
    0000000000000000    Y

Type code flags: 0x20000000 - SRID follows, 0x80000000 - Z, 0x40000000 - M.
Members of multi geometries and collections carry their own byte order and
type code with Z/M flags, but never an SRID.
"""

import logging
import math
import string
import struct
from typing import List
from typing import Optional
from typing import Tuple
from typing import Union

import shapely
import shapely.wkt
from shapely.errors import ShapelyError
from shapely.geometry.base import BaseGeometry

from geotypes.exceptions import DimensionMismatch
from geotypes.exceptions import InvalidWKT
from geotypes.exceptions import MalformedEWKB
from geotypes.exceptions import UnknownCode
from geotypes.exceptions import UnsupportedDefault
from geotypes.types.geometry.components import TypeSpec
from geotypes.types.geometry.constants import EWKB_MAX_DEPTH
from geotypes.types.geometry.constants import EWKB_M_FLAG
from geotypes.types.geometry.constants import EWKB_SRID_FLAG
from geotypes.types.geometry.constants import EWKB_TYPE_MASK
from geotypes.types.geometry.constants import EWKB_Z_FLAG
from geotypes.types.geometry.constants import WKB_NDR
from geotypes.types.geometry.constants import WKB_XDR
from geotypes.types.geometry.helpers import format_type
from geotypes.types.geometry.kinds import GeometryKind
from geotypes.types.geometry.kinds import MEMBER_KINDS
from geotypes.types.geometry.kinds import code_for
from geotypes.types.geometry.kinds import lookup_by_code
from geotypes.types.geometry.kinds import lookup_by_name
from geotypes.types.geometry.kinds import wkt_name_for

log = logging.getLogger(__name__)


def dimension_name(has_z: bool, has_m: bool) -> str:
    return 'XY' + ('Z' if has_z else '') + ('M' if has_m else '')


def _kind_of(shape: BaseGeometry) -> GeometryKind:
    geom_type = shape.geom_type
    if geom_type == 'LinearRing':
        geom_type = 'LineString'
    return lookup_by_name(geom_type)


def _split_srid(literal: str, *, column: str = None) -> Tuple[Optional[int], str]:
    text = literal.strip()
    if text[:5].upper() != 'SRID=':
        return None, text
    prefix, sep, text = text.partition(';')
    srid = prefix[5:].strip()
    if not sep or not srid.isascii() or not srid.isdigit():
        raise InvalidWKT(literal=literal, reason="invalid SRID prefix", column=column)
    return int(srid), text


def load_wkt(literal: str, spec: TypeSpec, *, column: str = None) -> BaseGeometry:
    """Parse WKT literal and check it against column type."""
    if not isinstance(literal, str):
        raise InvalidWKT(literal=literal, reason="WKT literal must be a string", column=column)

    srid, text = _split_srid(literal, column=column)
    if srid is not None and srid != spec.srid:
        raise InvalidWKT(
            literal=literal,
            reason=f"SRID {srid} does not match column SRID {spec.srid}",
            column=column,
        )

    try:
        shape = shapely.wkt.loads(text)
    except ShapelyError as e:
        raise InvalidWKT(literal=literal, reason=str(e), column=column) from e

    kind = _kind_of(shape)
    if spec.kind is not None and kind is not spec.kind:
        raise InvalidWKT(
            literal=literal,
            reason=f"expected {wkt_name_for(spec.kind)}, got {wkt_name_for(kind)}",
            column=column,
        )

    has_z = bool(shapely.has_z(shape))
    has_m = bool(shapely.has_m(shape))
    if (has_z, has_m) != (spec.has_z, spec.has_m):
        raise DimensionMismatch(
            literal=literal,
            declared=dimension_name(spec.has_z, spec.has_m),
            given=dimension_name(has_z, has_m),
            column=column,
        )

    return shape


class _Writer:

    def __init__(self, has_z: bool, has_m: bool):
        self.has_z = has_z
        self.has_m = has_m
        self.dims = 2 + has_z + has_m
        self.flags = (EWKB_Z_FLAG if has_z else 0) | (EWKB_M_FLAG if has_m else 0)
        self.buffer = bytearray()

    def uint(self, value: int):
        self.buffer += struct.pack('<I', value)

    def doubles(self, values: List[float]):
        self.buffer += struct.pack(f'<{len(values)}d', *values)

    def coordinates(self, shape: BaseGeometry):
        return shapely.get_coordinates(
            shape,
            include_z=self.has_z,
            include_m=self.has_m,
        )

    def points(self, shape: BaseGeometry):
        coords = self.coordinates(shape)
        self.uint(len(coords))
        self.doubles(coords.ravel().tolist())

    def write(self, shape: BaseGeometry, srid: int = 0):
        kind = _kind_of(shape)
        code = code_for(kind) | self.flags
        if srid:
            code |= EWKB_SRID_FLAG
        self.buffer += struct.pack('<BI', WKB_NDR, code)
        if srid:
            self.uint(srid)

        if kind is GeometryKind.point:
            if shape.is_empty:
                self.doubles([math.nan] * self.dims)
            else:
                self.doubles(self.coordinates(shape)[0].tolist())
        elif kind is GeometryKind.linestring:
            self.points(shape)
        elif kind is GeometryKind.polygon:
            if shape.is_empty:
                self.uint(0)
            else:
                rings = [shape.exterior, *shape.interiors]
                self.uint(len(rings))
                for ring in rings:
                    self.points(ring)
        else:
            parts = list(shape.geoms)
            self.uint(len(parts))
            for part in parts:
                self.write(part)


def to_ewkb(literal: str, spec: TypeSpec, *, column: str = None) -> bytes:
    if spec.array:
        raise UnsupportedDefault(type=format_type(spec), column=column)
    shape = load_wkt(literal, spec, column=column)
    writer = _Writer(spec.has_z, spec.has_m)
    writer.write(shape, spec.srid)
    return bytes(writer.buffer)


def encode(literal: str, spec: TypeSpec, *, column: str = None) -> str:
    """Encode WKT literal as uppercase EWKB hex for given column type."""
    value = to_ewkb(literal, spec, column=column).hex().upper()
    log.debug("Encoded %r as %s for %s.", literal, value, format_type(spec))
    return value


class _Reader:

    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def read(self, fmt: str, size: int) -> tuple:
        if self.pos + size > len(self.data):
            raise MalformedEWKB(
                reason=f"unexpected end of data at byte {self.pos}, {size} more bytes expected",
            )
        values = struct.unpack_from(fmt, self.data, self.pos)
        self.pos += size
        return values

    def uint(self, endian: str) -> int:
        return self.read(endian + 'I', 4)[0]

    def doubles(self, endian: str, count: int):
        self.read(f'{endian}{count}d', count * 8)

    def geometry(
        self,
        parent: Tuple[bool, bool] = None,
        depth: int = 0,
    ) -> Tuple[GeometryKind, int, bool, bool]:
        offset = self.pos
        if depth > EWKB_MAX_DEPTH:
            raise MalformedEWKB(
                reason=f"geometry at byte {offset} is nested deeper than {EWKB_MAX_DEPTH} levels",
            )
        order = self.read('B', 1)[0]
        if order == WKB_NDR:
            endian = '<'
        elif order == WKB_XDR:
            endian = '>'
        else:
            raise MalformedEWKB(reason=f"invalid byte order marker {order} at byte {offset}")

        code = self.uint(endian)
        has_z = bool(code & EWKB_Z_FLAG)
        has_m = bool(code & EWKB_M_FLAG)
        base = code & EWKB_TYPE_MASK
        if base >= 1000:
            # ISO WKB dimension encoding, 1000 - Z, 2000 - M, 3000 - ZM.
            dims, base = divmod(base, 1000)
            has_z = has_z or dims in (1, 3)
            has_m = has_m or dims in (2, 3)
        if base == GeometryKind.geometry:
            raise UnknownCode(code=code)
        kind = lookup_by_code(base)

        srid = 0
        if code & EWKB_SRID_FLAG:
            srid = self.uint(endian)

        if parent is not None and (has_z, has_m) != parent:
            raise MalformedEWKB(
                reason=(
                    f"member at byte {offset} has {dimension_name(has_z, has_m)} "
                    f"coordinates, parent has {dimension_name(*parent)}"
                ),
            )

        dims = 2 + has_z + has_m
        if kind is GeometryKind.point:
            self.doubles(endian, dims)
        elif kind is GeometryKind.linestring:
            self.doubles(endian, self.uint(endian) * dims)
        elif kind is GeometryKind.polygon:
            for _ in range(self.uint(endian)):
                self.doubles(endian, self.uint(endian) * dims)
        else:
            member = MEMBER_KINDS[kind]
            for _ in range(self.uint(endian)):
                part_offset = self.pos
                part = self.geometry((has_z, has_m), depth + 1)[0]
                if member is not None and part is not member:
                    raise MalformedEWKB(
                        reason=(
                            f"{wkt_name_for(kind)} can't contain {wkt_name_for(part)} "
                            f"(byte {part_offset})"
                        ),
                    )

        return kind, srid, has_z, has_m


def _to_bytes(value: Union[str, bytes]) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        data = bytes(value)
    elif isinstance(value, str):
        text = value.strip()
        if not all(c in string.hexdigits for c in text):
            raise MalformedEWKB(reason="value contains non hexadecimal characters")
        if len(text) % 2:
            raise MalformedEWKB(reason=f"odd number of hex digits ({len(text)})")
        data = bytes.fromhex(text)
    else:
        raise MalformedEWKB(reason=f"expected hex string or bytes, got {type(value).__name__}")
    if not data:
        raise MalformedEWKB(reason="empty value")
    return data


def decode(value: Union[str, bytes]) -> Tuple[BaseGeometry, TypeSpec]:
    """Decode EWKB (hex or bytes) into a shape and its column type."""
    data = _to_bytes(value)
    reader = _Reader(data)
    kind, srid, has_z, has_m = reader.geometry()
    if reader.pos != len(data):
        raise MalformedEWKB(reason=f"{len(data) - reader.pos} trailing bytes after geometry")

    try:
        shape = shapely.from_wkb(data)
    except ShapelyError as e:
        raise MalformedEWKB(reason=str(e)) from e

    return shape, TypeSpec(kind=kind, srid=srid, has_z=has_z, has_m=has_m)


def format_wkt(shape: BaseGeometry, srid: int = 0) -> str:
    wkt = shapely.to_wkt(shape, rounding_precision=-1, trim=True, output_dimension=4)
    if srid:
        wkt = f'SRID={srid};{wkt}'
    return wkt


def to_wkt(value: Union[str, bytes]) -> str:
    shape, spec = decode(value)
    return format_wkt(shape, spec.srid)
