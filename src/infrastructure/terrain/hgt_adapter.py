"""HGT adapter for TileRepository.

Implements loading of NASADEM/SRTM `.hgt` tiles: headerless grids of
big-endian signed 16-bit samples, row-major from the northwest corner. The
file size alone determines the resolution; the filename stem (e.g.
``N38W105``) determines the tile's southwest corner.

Lifecycle:
1) stat the file and infer the Resolution from its exact byte length
2) Parse the southwest corner from the filename stem (unless supplied)
3) Map the file read-only with numpy.memmap (or read it eagerly)
4) Return an HgtTile owning the mapping; every query goes through the
   domain coordinate resolver and a single bounds-checked read

Caveat: truncating a file while it is mapped is not detected. Touching a
page past the new end of file may kill the process with SIGBUS on POSIX.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from functools import cached_property
from pathlib import Path

import numpy as np
from numpy.typing import NDArray

from domain.terrain.errors import (
    InsufficientMemoryError,
    InvalidTileSizeError,
    TileIOError,
)
from domain.terrain.services import (
    coerce_address,
    parse_tile_name,
    row_column_to_linear,
    sample_bounds,
    to_geographic,
    to_row_column,
)
from domain.terrain.value_objects import (
    VOID_ELEVATION,
    Resolution,
    Sample,
    SampleAddress,
    TileCorner,
    TileGeometry,
)

# Module-level logger (reused across all calls)
logger = logging.getLogger(__name__)

# Explicit big-endian int16: decoding never depends on host byte order
HGT_DTYPE = np.dtype(">i2")

# Share of void samples above which an eager load logs a warning
VOID_WARNING_PCT = 80.0

Address = SampleAddress | int | tuple[int, int]


class HgtTile:
    """One loaded elevation tile.

    Owns a read-only (rows, rows) array of big-endian samples and the tile's
    geometry. Immutable after construction, so any number of threads may
    query it without locking.

    Parameters
    ----------
    samples: NDArray
        Read-only (rows, rows) array with dtype ``>i2``.
    geometry: TileGeometry
        Resolution and southwest corner; must agree with `samples`.
    storage: str
        "memmap", "memory" or "tombstone" (informational).
    """

    def __init__(
        self,
        samples: NDArray[np.int16],
        geometry: TileGeometry,
        storage: str = "memory",
    ) -> None:
        if samples.shape != (geometry.rows, geometry.rows):
            raise ValueError(
                f"Samples shape {samples.shape} does not match "
                f"{geometry.rows}x{geometry.rows} grid"
            )
        if samples.dtype != HGT_DTYPE:
            raise ValueError(f"Samples must be big-endian int16, got {samples.dtype}")
        if samples.flags.writeable:
            raise ValueError("Samples array must be read-only")
        self._samples: NDArray[np.int16] | None = samples
        self._geometry = geometry
        self.storage = storage

    @classmethod
    def tombstone(cls, corner: TileCorner, resolution: Resolution) -> "HgtTile":
        """Return a virtual tile reporting elevation 0 everywhere.

        Handy for gaps in SRTM coverage (open ocean) where no file exists.
        Backed by a zero-stride view, so it allocates nothing per sample.
        """
        rows = resolution.rows
        samples = np.broadcast_to(np.zeros((), dtype=HGT_DTYPE), (rows, rows))
        geometry = TileGeometry(resolution=resolution, corner=corner)
        return cls(samples, geometry, storage="tombstone")

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------
    @property
    def geometry(self) -> TileGeometry:
        return self._geometry

    @property
    def resolution(self) -> Resolution:
        return self._geometry.resolution

    @property
    def corner(self) -> TileCorner:
        return self._geometry.corner

    @property
    def rows(self) -> int:
        return self._geometry.rows

    def __len__(self) -> int:
        return self._geometry.sample_count

    @property
    def samples(self) -> NDArray[np.int16]:
        """Read-only view of the raw samples (voids included)."""
        if self._samples is None:
            raise ValueError("I/O operation on closed tile")
        return self._samples

    @cached_property
    def _elevation_range(self) -> tuple[int, int] | None:
        data = self.samples
        valid = data[data != VOID_ELEVATION]
        if valid.size == 0:
            return None
        return (int(valid.min()), int(valid.max()))

    @property
    def min_elevation(self) -> int | None:
        """Lowest non-void elevation; None if every sample is void."""
        extent = self._elevation_range
        return None if extent is None else extent[0]

    @property
    def max_elevation(self) -> int | None:
        """Highest non-void elevation; None if every sample is void."""
        extent = self._elevation_range
        return None if extent is None else extent[1]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def read(self, row: int, column: int) -> int | None:
        """Return the elevation at (row, column).

        Returns None when (row, column) is outside the grid or the sample is
        the void sentinel. The two cases are deliberately indistinguishable
        here; use `contains` to tell them apart.
        """
        data = self.samples
        rows = self._geometry.rows
        if not (0 <= row < rows and 0 <= column < rows):
            return None
        value = int(data[row, column])
        if value == VOID_ELEVATION:
            return None
        return value

    def get(self, address: Address) -> int | None:
        """Return the elevation at any address form, or None.

        Args:
            address: GeoPoint, LinearIndex, CartesianIndex, a raw int
                (linear) or a raw (column, row) tuple

        Example:
            >>> tile = load_tile("N38W105.hgt")
            >>> tile.get(LinearIndex(index=2_707_976))
            3772
            >>> tile.get((24, 752))
            3772
        """
        position = to_row_column(coerce_address(address), self._geometry)
        if position is None:
            return None
        return self.read(*position)

    def contains(self, address: Address) -> bool:
        """Check if the address falls inside the grid (ignores voids)."""
        return to_row_column(coerce_address(address), self._geometry) is not None

    def sample(self, address: Address) -> Sample | None:
        """Return the full Sample record at an address, or None if outside.

        Unlike `get`, a void sample is returned (with elevation None).
        """
        position = to_row_column(coerce_address(address), self._geometry)
        if position is None:
            return None
        row, column = position
        return self._sample_at(row, column, self.read(row, column))

    def iter_samples(self) -> Iterator[Sample]:
        """Yield every sample in row-major order, northwest first."""
        data = self.samples
        for row in range(self.rows):
            values = data[row]
            for column in range(self.rows):
                value = int(values[column])
                elevation = None if value == VOID_ELEVATION else value
                yield self._sample_at(row, column, elevation)

    def _sample_at(self, row: int, column: int, elevation: int | None) -> Sample:
        return Sample(
            row=row,
            column=column,
            index=row_column_to_linear(row, column, self._geometry),
            elevation=elevation,
            point=to_geographic(row, column, self._geometry),
            bounds=sample_bounds(row, column, self._geometry),
        )

    # ------------------------------------------------------------------
    # Resource handling
    # ------------------------------------------------------------------
    def close(self) -> None:
        """Drop this tile's reference to its samples.

        The mapping is released once no other views of `samples` remain.
        """
        self._samples = None

    @property
    def closed(self) -> bool:
        return self._samples is None

    def __enter__(self) -> "HgtTile":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"HgtTile(stem={self._geometry.stem!r}, "
            f"resolution={self.resolution.name}, rows={self.rows}, "
            f"storage={self.storage!r})"
        )


class HgtTileAdapter:
    """Infrastructure adapter for loading tiles from `.hgt` files.

    Parameters
    ----------
    use_mmap: bool
        Map the file read-only (default) instead of reading it into memory.
    max_bytes: int | None
        Optional memory budget for eager (use_mmap=False) loads. Tiles larger
        than this raise InsufficientMemoryError before any allocation.
    """

    def __init__(self, use_mmap: bool = True, max_bytes: int | None = None) -> None:
        self.use_mmap = use_mmap
        self.max_bytes = max_bytes

    def load_tile(
        self, file_path: Path | str, corner: TileCorner | None = None
    ) -> HgtTile:
        """Load an HGT tile.

        Args:
            file_path: Path to the `.hgt` file
            corner: Southwest corner; parsed from the filename stem if None

        Raises:
            TileIOError: File cannot be stat'ed, opened or mapped
            InvalidTileSizeError: Size matches no known resolution
            InvalidTileNameError: Stem is not [NS]DD[EW]DDD (corner is None)
            InsufficientMemoryError: Eager load exceeds max_bytes
        """
        path = Path(file_path)

        try:
            st = path.stat()
        except OSError as e:
            # Log only filename, errno, and strerror to avoid leaking absolute paths
            logger.error(
                "Failed to stat %s (errno=%s, strerror=%s)",
                path.name,
                getattr(e, "errno", "unknown"),
                getattr(e, "strerror", "unknown"),
            )
            raise TileIOError(f"Cannot stat {path.name}: {e.strerror}") from e

        resolution = Resolution.from_file_size(st.st_size)
        if resolution is None:
            raise InvalidTileSizeError(st.st_size, path.name)

        if corner is None:
            corner = parse_tile_name(path.stem)
        geometry = TileGeometry(resolution=resolution, corner=corner)
        shape = (geometry.rows, geometry.rows)

        if not self.use_mmap and self.max_bytes is not None:
            if resolution.file_size > self.max_bytes:
                raise InsufficientMemoryError(
                    f"Tile size {resolution.file_size}B exceeds budget {self.max_bytes}B"
                )

        try:
            if self.use_mmap:
                samples = np.memmap(path, dtype=HGT_DTYPE, mode="r", shape=shape)
            else:
                samples = np.fromfile(
                    path, dtype=HGT_DTYPE, count=resolution.sample_count
                ).reshape(shape)
                samples.flags.writeable = False
        except OSError as e:
            logger.error(
                "Failed to open %s (errno=%s, strerror=%s)",
                path.name,
                getattr(e, "errno", "unknown"),
                getattr(e, "strerror", "unknown"),
            )
            raise TileIOError(f"Cannot read {path.name}: {e.strerror}") from e
        except ValueError as e:
            # File shrank between stat and map/read
            raise TileIOError(f"Cannot map {path.name}: {e}") from e
        except MemoryError as e:
            raise InsufficientMemoryError("Insufficient memory to load tile") from e

        if self.use_mmap:
            storage = "memmap"
        else:
            storage = "memory"
            void_pct = float((samples == VOID_ELEVATION).mean() * 100.0)
            if void_pct > VOID_WARNING_PCT:
                logger.warning(
                    "HGT %s: %.1f%% void samples detected", path.name, void_pct
                )

        logger.debug(
            "HGT %s: %s %dx%d grid (%d arcsec)",
            path.name,
            "mapped" if self.use_mmap else "read",
            geometry.rows,
            geometry.rows,
            resolution.arcseconds,
        )
        return HgtTile(samples, geometry, storage=storage)


def load_tile(file_path: Path | str, corner: TileCorner | None = None) -> HgtTile:
    """Load a memory-mapped HGT tile with the default adapter."""
    return HgtTileAdapter().load_tile(file_path, corner)
