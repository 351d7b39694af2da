"""
Command-line interface for coordkit.

Commands take a WKT geometry (hex WKB for "wkb decode") as their argument, or
"-" to read it from standard input.

Usage:
    coordkit wkt normalize <wkt> [--decimals N]
    coordkit wkt info <wkt> [--json]
    coordkit wkb encode <wkt> [--big-endian]
    coordkit wkb decode <hex> [--decimals N]
    coordkit bounds <wkt> [--json]
    coordkit centroid <wkt>
    coordkit polylabel <wkt> [--precision P] [--json]
    coordkit contains <wkt> <x> <y>
    coordkit project <wkt> --to TARGET [--from SOURCE]
"""

import json
import logging
import sys
from typing import NoReturn

import click
from pyproj.exceptions import CRSError

from .box import Box
from .errors import CoordkitError
from .geometry import Geometry, MultiPolygon, Point, Polygon
from .position import Position
from .projections import (
    WGS84_TO_WEB_MERCATOR,
    ProjProjection,
    Projection,
    UtmProjectionAdapter,
    UtmZone,
)
from .wkb import decode_wkb, encode_wkb
from .wkt import decode_wkt, encode_wkt


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _read_geometry(wkt: str) -> Geometry:
    if wkt == "-":
        wkt = click.get_text_stream("stdin").read()
    try:
        return decode_wkt(wkt)
    except CoordkitError as e:
        _fail(str(e))


def _box_dict(box: Box) -> dict[str, float]:
    data = {
        "min_x": box.min_x,
        "min_y": box.min_y,
        "max_x": box.max_x,
        "max_y": box.max_y,
    }
    if box.min_z is not None and box.max_z is not None:
        data["min_z"] = box.min_z
        data["max_z"] = box.max_z
    return data


def _resolve_projection(source: str, target: str) -> Projection:
    """Built-in projection for "web-mercator" and "utm:<zone>", pyproj otherwise"""
    name = target.strip().lower()
    if name == "web-mercator":
        return WGS84_TO_WEB_MERCATOR.forward
    if name.startswith("utm:"):
        return UtmProjectionAdapter.geographic_to_utm(UtmZone.parse(name[4:])).forward
    return ProjProjection.from_crs(source, target)


@click.group()
@click.version_option()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """
    Inspect, measure and reproject WKT geometries.

    Geometries are given as WKT text, or "-" to read from standard input.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG)


@main.group()
def wkt():
    """Well-known text utilities."""
    pass


@wkt.command()
@click.argument("geometry")
@click.option("--decimals", "-d", type=int, help="Round coordinates to N decimals")
def normalize(geometry: str, decimals: int | None):
    """
    Print a geometry as canonical WKT.

    Example:
        coordkit wkt normalize "point z ( 1.0 2 3 )"
    """
    geom = _read_geometry(geometry)
    click.echo(encode_wkt(geom, decimals=decimals))


@wkt.command()
@click.argument("geometry")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def info(geometry: str, output_json: bool):
    """
    Display the type, coordinate kind and bounds of a geometry.
    """
    geom = _read_geometry(geometry)
    bounds = geom.bounds
    if output_json:
        data: dict[str, str | bool | dict[str, float] | None] = {
            "type": geom.kind.wkt_keyword,
            "coord_kind": geom.coord_kind.name,
            "empty": geom.is_empty,
            "bounds": _box_dict(bounds) if bounds is not None else None,
        }
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"Type: {geom.kind.wkt_keyword}")
    click.echo(f"Coordinates: {geom.coord_kind.name}")
    click.echo(f"Empty: {'yes' if geom.is_empty else 'no'}")
    if bounds is not None:
        click.echo(f"Bounds: {' '.join(str(v) for v in bounds)}")


@main.group()
def wkb():
    """Well-known binary utilities (as hex strings)."""
    pass


@wkb.command("encode")
@click.argument("geometry")
@click.option("--big-endian", is_flag=True, help="Write big-endian (XDR) WKB")
def wkb_encode(geometry: str, big_endian: bool):
    """
    Print a WKT geometry as hex encoded WKB.

    Example:
        coordkit wkb encode "POINT(1 2)"
    """
    geom = _read_geometry(geometry)
    click.echo(encode_wkb(geom, big_endian=big_endian).hex())


@wkb.command("decode")
@click.argument("data")
@click.option("--decimals", "-d", type=int, help="Round coordinates to N decimals")
def wkb_decode(data: str, decimals: int | None):
    """
    Print hex encoded WKB (or EWKB) as WKT.
    """
    if data == "-":
        data = click.get_text_stream("stdin").read()
    try:
        geom = decode_wkb(bytes.fromhex(data.strip()))
    except ValueError as e:
        # FormatError, or a non-hex character
        _fail(str(e))
    click.echo(encode_wkt(geom, decimals=decimals))


@main.command()
@click.argument("geometry")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def bounds(geometry: str, output_json: bool):
    """
    Print the bounding box of a geometry as "min_x min_y max_x max_y".
    """
    geom = _read_geometry(geometry)
    box = geom.bounds
    if box is None:
        _fail("Geometry is empty")
    if output_json:
        click.echo(json.dumps(_box_dict(box), indent=2))
    else:
        click.echo(" ".join(str(v) for v in box))


@main.command()
@click.argument("geometry")
@click.option("--decimals", "-d", type=int, help="Round coordinates to N decimals")
def centroid(geometry: str, decimals: int | None):
    """
    Print the centroid of a geometry as a WKT point.

    Polygons are weighted by area, lines by length.
    """
    geom = _read_geometry(geometry)
    position = geom.centroid()
    if position is None:
        _fail("Geometry is empty")
    click.echo(encode_wkt(Point(position), decimals=decimals))


@main.command()
@click.argument("geometry")
@click.option(
    "--precision",
    "-p",
    type=float,
    default=1.0,
    show_default=True,
    help="Accepted error in coordinate units",
)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def polylabel(geometry: str, precision: float, output_json: bool):
    """
    Print the pole of inaccessibility of a polygon.

    For a multipolygon the largest polygon is used.
    """
    geom = _read_geometry(geometry)
    if isinstance(geom, MultiPolygon) and not geom.is_empty:
        geom = max(geom.polygons, key=lambda polygon: polygon.area)
    if not isinstance(geom, Polygon) or geom.is_empty:
        _fail("Expected a non-empty POLYGON or MULTIPOLYGON")
    try:
        result = geom.polylabel(precision)
    except CoordkitError as e:
        _fail(str(e))
    if output_json:
        data = {
            "x": result.position.x,
            "y": result.position.y,
            "distance": result.distance,
        }
        click.echo(json.dumps(data, indent=2))
    else:
        click.echo(f"{encode_wkt(Point(result.position))} distance={result.distance}")


@main.command()
@click.argument("geometry")
@click.argument("x", type=float)
@click.argument("y", type=float)
def contains(geometry: str, x: float, y: float):
    """
    Test whether a polygon contains the point (x, y).

    Prints "true" or "false".
    """
    geom = _read_geometry(geometry)
    if not isinstance(geom, (Polygon, MultiPolygon)):
        _fail("Expected a POLYGON or MULTIPOLYGON")
    click.echo("true" if geom.contains_point(Position(x, y)) else "false")


@main.command()
@click.argument("geometry")
@click.option(
    "--to",
    "target",
    required=True,
    help='"web-mercator", "utm:<zone>" (e.g. utm:31N) or any CRS known to pyproj',
)
@click.option(
    "--from",
    "source",
    default="EPSG:4326",
    show_default=True,
    help="Source CRS for pyproj targets (built-in targets take WGS84 lon/lat)",
)
@click.option("--decimals", "-d", type=int, help="Round coordinates to N decimals")
def project(geometry: str, target: str, source: str, decimals: int | None):
    """
    Project a geometry and print it as WKT.

    Example:
        coordkit project "POINT(0 0)" --to utm:31N
    """
    geom = _read_geometry(geometry)
    try:
        projection = _resolve_projection(source, target)
        projected = geom.project(projection)
    except (CoordkitError, CRSError) as e:
        _fail(str(e))
    click.echo(encode_wkt(projected, decimals=decimals))


if __name__ == "__main__":
    main()
