"""Raster export of whole HGT tiles.

Optional capability layered on top of the tile store: converts the full
sample grid into a single-channel image or a georeferenced GeoTIFF. Voids
are treated exactly as `HgtTile.read` treats them; no lookup semantics are
added here.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np
import rasterio
from affine import Affine
from numpy.typing import NDArray
from rasterio.crs import CRS

from domain.terrain.value_objects import VOID_ELEVATION
from infrastructure.terrain.hgt_adapter import HgtTile

logger = logging.getLogger(__name__)

# Pixel types a single-channel image may use
IMAGE_DTYPES = ("uint8", "uint16")

_TARGET_CRS = CRS.from_epsg(4326)


def tile_transform(tile: HgtTile) -> Affine:
    """Affine transform whose pixels are the tile's sample footprints.

    Samples are node-registered, so the raster origin sits half a sample
    west and north of the tile's northwest node.
    """
    footprint = tile.geometry.footprint
    res = tile.geometry.spacing_deg
    return Affine.translation(footprint.min_x, footprint.max_y) @ Affine.scale(
        res, -res
    )


def to_image(
    tile: HgtTile,
    dtype: str = "uint16",
    elevation_range: tuple[float, float] | None = None,
) -> NDArray[Any]:
    """Scale a tile's elevations into a single-channel image array.

    The low end of `elevation_range` maps to 0 and the high end to the dtype
    maximum. The original elevation can be recovered with
    ``pixel / dtype_max * (high - low) + low``.

    Args:
        tile: Tile to render
        dtype: "uint8" or "uint16"
        elevation_range: (low, high) in meters; defaults to the tile's own
            min/max elevation

    Returns:
        (rows, rows) array; voids are 0, out-of-range values are clipped,
        and a flat range (or an all-void tile) yields all zeros
    """
    if dtype not in IMAGE_DTYPES:
        raise ValueError(
            f"Unsupported image dtype {dtype!r}, expected one of {IMAGE_DTYPES}"
        )

    samples = np.asarray(tile.samples)
    void = samples == VOID_ELEVATION

    if elevation_range is None:
        if tile.min_elevation is None or tile.max_elevation is None:
            return np.zeros(samples.shape, dtype=dtype)
        low, high = float(tile.min_elevation), float(tile.max_elevation)
    else:
        low, high = (float(v) for v in elevation_range)
        if high < low:
            raise ValueError(f"Invalid elevation range: low={low} > high={high}")

    if high == low:
        return np.zeros(samples.shape, dtype=dtype)

    pixel_max = float(np.iinfo(dtype).max)
    scaled = (samples.astype(np.float64) - low) / (high - low) * pixel_max
    scaled = np.clip(np.round(scaled), 0.0, pixel_max)
    scaled[void] = 0.0
    return scaled.astype(dtype)


def write_raster(
    path: Path,
    data: NDArray[Any],
    transform: Affine,
    crs: CRS | None = None,
    nodata: float | None = None,
    driver: str = "GTiff",
) -> None:
    """Write a single-band raster file using rasterio.

    Args:
        path: Output file path
        data: 2D array; its dtype is the band dtype
        transform: Affine transform for georeferencing
        crs: Coordinate reference system (None for plain images)
        nodata: NoData value (optional)
        driver: GDAL driver name ("GTiff", "PNG", ...)
    """
    if data.ndim != 2:
        raise ValueError(f"Data must be 2D, got {data.ndim}D")
    height, width = data.shape

    kwargs: dict[str, Any] = {
        "driver": driver,
        "height": height,
        "width": width,
        "count": 1,
        "dtype": str(data.dtype),
        "transform": transform,
    }
    # Only add crs/nodata if provided (allows plain images)
    if crs is not None:
        kwargs["crs"] = crs
    if nodata is not None:
        kwargs["nodata"] = nodata

    with rasterio.open(path, "w", **kwargs) as dst:
        dst.write(data, 1)


def write_image(
    tile: HgtTile,
    file_path: Path | str,
    dtype: str = "uint16",
    elevation_range: tuple[float, float] | None = None,
    driver: str = "PNG",
) -> Path:
    """Render a tile with `to_image` and write it as a grayscale image."""
    path = Path(file_path)
    image = to_image(tile, dtype=dtype, elevation_range=elevation_range)
    write_raster(path, image, tile_transform(tile), driver=driver)
    logger.debug("Image %s: wrote %dx%d %s", path.name, tile.rows, tile.rows, dtype)
    return path


def write_geotiff(tile: HgtTile, file_path: Path | str) -> Path:
    """Write raw elevations as an int16 GeoTIFF in EPSG:4326.

    Voids keep the sentinel value, declared as the band's nodata.
    """
    path = Path(file_path)
    # GDAL wants native byte order
    data = np.asarray(tile.samples, dtype=np.int16)
    write_raster(
        path,
        data,
        tile_transform(tile),
        crs=_TARGET_CRS,
        nodata=VOID_ELEVATION,
    )
    logger.debug("GeoTIFF %s: wrote %s", path.name, tile.geometry.stem)
    return path
