from typing import Optional

from typer import Argument
from typer import Option
from typer import echo

from geotypes.cli.helpers.errors import handle_errors
from geotypes.types.geometry import ewkb
from geotypes.types.geometry.components import TypeSpec
from geotypes.types.geometry.helpers import format_type
from geotypes.types.geometry.kinds import GeometryKind
from geotypes.types.geometry.load import from_options
from geotypes.types.geometry.load import from_sql_type_string


def _echo_spec(spec: TypeSpec):
    echo(f"kind: {(spec.kind or GeometryKind.geometry).name}")
    echo(f"srid: {spec.srid}")
    echo(f"has_z: {spec.has_z}")
    echo(f"has_m: {spec.has_m}")
    echo(f"geographic: {spec.geographic}")
    echo(f"array: {spec.array}")


def format_(
    type_: str = Argument('geometry', metavar='TYPE', help=(
        "Geometry kind, for example `point`, `st_polygon` or `geography`."
    )),
    srid: Optional[int] = Option(None, '--srid', help=(
        "Spatial reference system id, 4326 is used for geographic columns "
        "if not given."
    )),
    geographic: Optional[bool] = Option(None, '--geographic/--no-geographic', help=(
        "Use geography instead of geometry."
    )),
    has_z: bool = Option(False, '--has-z', help="Coordinates have Z value."),
    has_m: bool = Option(False, '--has-m', help="Coordinates have M value."),
    array: bool = Option(False, '--array', help="Array of spatial values."),
):
    """Render spatial column options as PostGIS column type"""
    with handle_errors():
        spec = from_options({
            'type': type_,
            'srid': srid,
            'geographic': geographic,
            'has_z': has_z,
            'has_m': has_m,
            'array': array,
        })
    echo(format_type(spec))


def parse(
    sql_type: str = Argument(..., help="Column type, for example `geometry(point,4326)`."),
):
    """Show spatial type details of a PostGIS column type"""
    with handle_errors():
        spec = from_sql_type_string(sql_type)
    _echo_spec(spec)


def encode(
    wkt: str = Argument(..., help="WKT literal, for example `POINT(0 0)`."),
    sql_type: str = Argument('geometry', help="Column type, for example `geometry(point,4326)`."),
):
    """Encode WKT literal as EWKB hex for a given column type"""
    with handle_errors():
        spec = from_sql_type_string(sql_type)
        value = ewkb.encode(wkt, spec)
    echo(value)


def decode(
    value: str = Argument(..., help="EWKB value as hex string."),
):
    """Show WKT and spatial type of an EWKB hex value"""
    with handle_errors():
        shape, spec = ewkb.decode(value)
    echo(ewkb.format_wkt(shape, spec.srid))
    _echo_spec(spec)
