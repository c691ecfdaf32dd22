"""Terrain Bounded Context - Error Hierarchy.

Custom exceptions for loading HGT elevation tiles.

Out-of-bounds queries and void samples are NOT errors: lookups return None
for both so callers can probe neighbouring tiles without exception-driven
control flow.
"""

from __future__ import annotations

from pathlib import Path


class TerrainError(Exception):
    """Base error for terrain operations."""


class TileIOError(TerrainError):
    """Tile file cannot be stat'ed, opened or mapped."""


class TileFormatError(TerrainError):
    """Tile file is not a valid HGT tile."""


class InvalidTileSizeError(TileFormatError):
    """File size matches no known resolution.

    Attributes:
        size: Offending file size in bytes
        name: File name (never the full path)
    """

    def __init__(self, size: int, name: str) -> None:
        self.size = size
        self.name = name
        super().__init__(f"Invalid HGT file length {size} for {name}")


class InvalidTileNameError(TileFormatError):
    """Filename stem does not encode a southwest corner (e.g. N36W113)."""

    def __init__(self, name: str | Path) -> None:
        self.name = Path(name).name
        super().__init__(f"Invalid HGT name {self.name!r}")


class InsufficientMemoryError(TerrainError):
    """Eager tile read requires more memory than allowed."""
