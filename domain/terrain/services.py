"""Terrain Bounded Context - Domain Services.

Pure coordinate resolution for HGT tiles.
NO I/O operations - sample storage is implemented by the infrastructure
adapter under `src/infrastructure/terrain/hgt_adapter.py`.

Every address form (geographic, linear, cartesian) converges on one
canonical (row, column) pair here, so the tile store has a single read path.

Boundary policy:
    The geographic extent of a tile is the CLOSED square
    [sw_lon, sw_lon + 1] x [sw_lat, sw_lat + 1]. The eastern and northern
    edges are inclusive because the grid carries a node row/column exactly
    on them. Nothing is clamped; a coordinate past an edge resolves to None.
"""

from __future__ import annotations

import math
import numbers
import re

from pyproj import Geod

from domain.terrain.errors import InvalidTileNameError
from domain.terrain.value_objects import (
    BoundingBox,
    CartesianIndex,
    GeoPoint,
    LinearIndex,
    SampleAddress,
    TileCorner,
    TileGeometry,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
# Fraction of a sample within which a scaled coordinate is treated as lying
# exactly on a grid node (absorbs float error from to_geographic).
NODE_SNAP_TOLERANCE = 1e-6

_TILE_NAME = re.compile(r"^([NnSs])([0-9]{2})([EeWw])([0-9]{3})$")

# WGS84 ellipsoid for geodesic calculations (same as GPS, EPSG:4326)
_geod = Geod(ellps="WGS84")


# ---------------------------------------------------------------------------
# Tile names
# ---------------------------------------------------------------------------
def parse_tile_name(stem: str) -> TileCorner:
    """Parse a filename stem such as ``N36W113`` into its southwest corner.

    Raises:
        InvalidTileNameError: If the stem does not match [NS]DD[EW]DDD or the
            degrees are out of range (e.g. N90, E180)
    """
    match = _TILE_NAME.match(stem)
    if match is None:
        raise InvalidTileNameError(stem)
    ns, lat, ew, lon = match.groups()
    latitude = int(lat) if ns in "Nn" else -int(lat)
    longitude = int(lon) if ew in "Ee" else -int(lon)
    try:
        return TileCorner(latitude=latitude, longitude=longitude)
    except ValueError as e:
        raise InvalidTileNameError(stem) from e


def tile_name_for(point: GeoPoint) -> str:
    """Return the stem of the tile whose southwest corner is floor(point).

    Points on a whole-degree line also lie on the edge of the neighbouring
    tile to the south/west; this picks the tile to the north/east.
    """
    corner = TileCorner(
        latitude=min(math.floor(point.latitude), 89),
        longitude=min(math.floor(point.longitude), 179),
    )
    return corner.stem


# ---------------------------------------------------------------------------
# Address normalization
# ---------------------------------------------------------------------------
def _is_integer(value: object) -> bool:
    # numpy integers register as numbers.Integral; bool is excluded
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def coerce_address(address: object) -> SampleAddress:
    """Accept raw Python forms as well as address value objects.

    - int -> LinearIndex
    - (column, row) tuple of ints -> CartesianIndex

    Raises:
        TypeError: If `address` is none of the supported forms
    """
    if isinstance(address, (GeoPoint, LinearIndex, CartesianIndex)):
        return address
    if _is_integer(address):
        return LinearIndex(index=int(address))
    if (
        isinstance(address, tuple)
        and len(address) == 2
        and all(_is_integer(v) for v in address)
    ):
        column, row = address
        return CartesianIndex(column=int(column), row=int(row))
    raise TypeError(f"Unsupported sample address: {address!r}")


def _floor_to_node(value: float) -> int:
    """Floor a scaled coordinate, snapping near-integers to the node."""
    nearest = round(value)
    if abs(value - nearest) <= NODE_SNAP_TOLERANCE:
        return int(nearest)
    return math.floor(value)


def geo_to_row_column(
    point: GeoPoint, geometry: TileGeometry
) -> tuple[int, int] | None:
    """Resolve a geographic coordinate to (row, column).

    Row 0 is the northern edge, so the latitude axis is inverted.

    Returns:
        (row, column), or None if the point is outside the tile
    """
    if not (math.isfinite(point.latitude) and math.isfinite(point.longitude)):
        return None
    steps = geometry.rows - 1
    corner = geometry.corner
    # Offsets in samples from the northwest node
    x = (point.longitude - corner.longitude) * steps
    y = (corner.latitude + 1 - point.latitude) * steps
    lo, hi = -NODE_SNAP_TOLERANCE, steps + NODE_SNAP_TOLERANCE
    if not (lo <= x <= hi and lo <= y <= hi):
        return None
    column = _floor_to_node(x)
    row = _floor_to_node(y)
    if 0 <= row < geometry.rows and 0 <= column < geometry.rows:
        return (row, column)
    return None


def linear_to_row_column(index: int, geometry: TileGeometry) -> tuple[int, int] | None:
    """Resolve a row-major offset to (row, column), or None if out of range."""
    if not (0 <= index < geometry.sample_count):
        return None
    return divmod(index, geometry.rows)


def cartesian_to_row_column(
    column: int, row: int, geometry: TileGeometry
) -> tuple[int, int] | None:
    """Validate a (column, row) pair and return it as (row, column)."""
    if 0 <= column < geometry.rows and 0 <= row < geometry.rows:
        return (row, column)
    return None


def to_row_column(
    address: SampleAddress, geometry: TileGeometry
) -> tuple[int, int] | None:
    """Resolve any address form to the canonical (row, column).

    Args:
        address: GeoPoint, LinearIndex or CartesianIndex
        geometry: Tile being queried

    Returns:
        (row, column), or None when the address falls outside the tile
    """
    if isinstance(address, GeoPoint):
        return geo_to_row_column(address, geometry)
    if isinstance(address, LinearIndex):
        return linear_to_row_column(address.index, geometry)
    if isinstance(address, CartesianIndex):
        return cartesian_to_row_column(address.column, address.row, geometry)
    raise TypeError(f"Unsupported sample address: {address!r}")


# ---------------------------------------------------------------------------
# Inverse conversions
# ---------------------------------------------------------------------------
def _check_row_column(row: int, column: int, geometry: TileGeometry) -> None:
    if not (0 <= row < geometry.rows and 0 <= column < geometry.rows):
        raise IndexError(
            f"(row={row}, column={column}) outside {geometry.rows}x{geometry.rows} grid"
        )


def row_column_to_linear(row: int, column: int, geometry: TileGeometry) -> int:
    """Return the row-major offset of (row, column).

    Raises:
        IndexError: If (row, column) is outside the grid
    """
    _check_row_column(row, column, geometry)
    return row * geometry.rows + column


def to_geographic(row: int, column: int, geometry: TileGeometry) -> GeoPoint:
    """Return the grid node of (row, column) as an absolute coordinate.

    Samples are node-registered, so the node is also the center of the
    sample's footprint. geo_to_row_column(to_geographic(r, c)) == (r, c).

    Raises:
        IndexError: If (row, column) is outside the grid
    """
    _check_row_column(row, column, geometry)
    steps = geometry.rows - 1
    corner = geometry.corner
    return GeoPoint(
        latitude=corner.latitude + 1 - row / steps,
        longitude=corner.longitude + column / steps,
    )


def sample_bounds(row: int, column: int, geometry: TileGeometry) -> BoundingBox:
    """Return the square footprint of one sample, centered on its node.

    Raises:
        IndexError: If (row, column) is outside the grid
    """
    center = to_geographic(row, column, geometry)
    half = geometry.spacing_deg / 2
    return BoundingBox(
        min_x=center.longitude - half,
        min_y=center.latitude - half,
        max_x=center.longitude + half,
        max_y=center.latitude + half,
    )


# ---------------------------------------------------------------------------
# Ground spacing
# ---------------------------------------------------------------------------
def sample_spacing_m(
    row: int, column: int, geometry: TileGeometry
) -> tuple[float, float]:
    """Geodesic size of one sample step at (row, column).

    Measures the ground distance to the next node east and the next node
    south on the WGS84 ellipsoid; east-west spacing shrinks with latitude.
    On the southernmost row the neighbour to the north is used instead, so
    the measurement never leaves [-90, 90].

    Returns:
        (east_m, south_m), both positive

    Raises:
        IndexError: If (row, column) is outside the grid
    """
    node = to_geographic(row, column, geometry)
    step = geometry.spacing_deg
    lat_step = -step if row < geometry.rows - 1 else step

    _, _, east_m = _geod.inv(
        node.longitude, node.latitude, node.longitude + step, node.latitude
    )
    _, _, south_m = _geod.inv(
        node.longitude, node.latitude, node.longitude, node.latitude + lat_step
    )
    return (float(abs(east_m)), float(abs(south_m)))
