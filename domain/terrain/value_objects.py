"""Terrain Bounded Context - Value Objects.

Immutable data structures describing HGT tiles and the ways a sample can be
addressed. All validation occurs at construction time via Pydantic.

Grid conventions (shared by every object here):
- A tile covers one whole-degree cell whose southwest corner is a TileCorner.
- Samples are node-registered: rows * rows grid nodes, the outermost rows and
  columns lying exactly on the cell's edges.
- Row 0 is the northernmost row, column 0 the westernmost column.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Numeric Constants
# ---------------------------------------------------------------------------
ARCSEC_PER_DEG = 3600
SAMPLE_BYTES = 2  # big-endian signed 16-bit
VOID_ELEVATION = -32768  # sentinel for voids (ocean, radar shadow)


class Resolution(Enum):
    """Supported HGT grid shapes, keyed by arcseconds per sample.

    The set is closed: a file whose size matches no member is invalid.
    Adding a resolution means adding a member here, nothing else.
    """

    ONE_ARCSECOND = 1  # 3601 x 3601 (SRTM1 / NASADEM)
    THREE_ARCSECOND = 3  # 1201 x 1201 (SRTM3)

    @property
    def arcseconds(self) -> int:
        return self.value

    @property
    def rows(self) -> int:
        """Row (and column) count; one extra row closes the edge nodes."""
        return ARCSEC_PER_DEG // self.value + 1

    @property
    def sample_count(self) -> int:
        return self.rows * self.rows

    @property
    def file_size(self) -> int:
        """Exact byte length of a tile at this resolution."""
        return self.sample_count * SAMPLE_BYTES

    @property
    def spacing_deg(self) -> float:
        """Distance between neighbouring nodes in degrees."""
        return 1.0 / (self.rows - 1)

    @classmethod
    def from_file_size(cls, size: int) -> Resolution | None:
        """Return the resolution whose file size is exactly `size`, if any.

        No two resolutions share a file size, so the first match is the
        only one.
        """
        for resolution in cls:
            if resolution.file_size == size:
                return resolution
        return None


# ---------------------------------------------------------------------------
# Geographic primitives
# ---------------------------------------------------------------------------
class GeoPoint(BaseModel):
    """Geographic coordinate in WGS84 (Value Object).

    Also the geographic form of a sample address.

    Invariants:
        GP-1: latitude in [-90, 90]
        GP-2: longitude in [-180, 180]
    """

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    model_config = ConfigDict(frozen=True)


class BoundingBox(BaseModel):
    """Geographic extent in EPSG:4326 (Value Object).

    Longitudes are not clamped to [-180, 180]: the footprint of a tile on the
    antimeridian extends half a sample past it.
    """

    min_x: float  # Western boundary (longitude)
    min_y: float  # Southern boundary (latitude)
    max_x: float  # Eastern boundary (longitude)
    max_y: float  # Northern boundary (latitude)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_bounds(self) -> "BoundingBox":
        values = (self.min_x, self.min_y, self.max_x, self.max_y)
        if not all(math.isfinite(v) for v in values):
            raise ValueError(f"Bounds must be finite: {values}")
        if not (self.min_x < self.max_x):
            raise ValueError(
                f"Invalid x ordering: min_x={self.min_x} >= max_x={self.max_x}"
            )
        if not (self.min_y < self.max_y):
            raise ValueError(
                f"Invalid y ordering: min_y={self.min_y} >= max_y={self.max_y}"
            )
        return self


class TileCorner(BaseModel):
    """Whole-degree southwest corner of a tile (Value Object).

    Invariants:
        TC-1: latitude in [-90, 89]
        TC-2: longitude in [-180, 179]
    """

    latitude: int = Field(ge=-90, le=89)
    longitude: int = Field(ge=-180, le=179)

    model_config = ConfigDict(frozen=True)

    @property
    def stem(self) -> str:
        """Canonical filename stem, e.g. ``N38W105``."""
        ns = "N" if self.latitude >= 0 else "S"
        ew = "E" if self.longitude >= 0 else "W"
        return f"{ns}{abs(self.latitude):02d}{ew}{abs(self.longitude):03d}"


class TileGeometry(BaseModel):
    """Resolution and position of one tile (Value Object).

    Everything the coordinate resolver needs; holds no sample data.
    """

    resolution: Resolution
    corner: TileCorner

    model_config = ConfigDict(frozen=True)

    @property
    def rows(self) -> int:
        return self.resolution.rows

    @property
    def sample_count(self) -> int:
        return self.resolution.sample_count

    @property
    def spacing_deg(self) -> float:
        return self.resolution.spacing_deg

    @property
    def stem(self) -> str:
        return self.corner.stem

    @property
    def bounds(self) -> BoundingBox:
        """Extent of the grid nodes: the closed one-degree cell."""
        return BoundingBox(
            min_x=self.corner.longitude,
            min_y=self.corner.latitude,
            max_x=self.corner.longitude + 1,
            max_y=self.corner.latitude + 1,
        )

    @property
    def footprint(self) -> BoundingBox:
        """Area covered by the samples: node extent plus half a sample."""
        nodes = self.bounds
        half = self.spacing_deg / 2
        return BoundingBox(
            min_x=nodes.min_x - half,
            min_y=nodes.min_y - half,
            max_x=nodes.max_x + half,
            max_y=nodes.max_y + half,
        )


# ---------------------------------------------------------------------------
# Sample addresses
# ---------------------------------------------------------------------------
class LinearIndex(BaseModel):
    """Row-major offset into the flat sample array, 0 = northwest corner.

    Not range-checked here: an index past the grid is a valid query that
    simply finds no sample.
    """

    index: int

    model_config = ConfigDict(frozen=True)


class CartesianIndex(BaseModel):
    """(column, row) offset within the grid, (0, 0) = northwest corner."""

    column: int
    row: int

    model_config = ConfigDict(frozen=True)


# The three interchangeable ways to ask for a sample
SampleAddress = Union[GeoPoint, LinearIndex, CartesianIndex]


class Sample(BaseModel):
    """One grid node of a tile (Value Object).

    Invariants:
        SA-1: elevation is None only for void samples
        SA-2: point is the node's coordinate and the center of bounds
    """

    row: int = Field(ge=0)
    column: int = Field(ge=0)
    index: int = Field(ge=0)  # row-major offset
    elevation: int | None  # meters, None for VOID_ELEVATION
    point: GeoPoint
    bounds: BoundingBox  # square footprint, one sample wide

    model_config = ConfigDict(frozen=True)

    @property
    def is_void(self) -> bool:
        return self.elevation is None
