"""Domain Port(s) for Terrain I/O.

Defines interfaces (Protocols) that infrastructure adapters must implement.
No concrete I/O here.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from .value_objects import Sample, SampleAddress, TileCorner, TileGeometry


@runtime_checkable
class ElevationTile(Protocol):
    """Read-only elevation tile as seen by callers (e.g. renderers)."""

    @property
    def geometry(self) -> TileGeometry: ...

    def read(self, row: int, column: int) -> int | None: ...

    def get(self, address: SampleAddress | int | tuple[int, int]) -> int | None: ...

    def sample(self, address: SampleAddress | int | tuple[int, int]) -> Sample | None: ...


@runtime_checkable
class TileRepository(Protocol):
    """Port for obtaining elevation tiles from external sources.

    Implementations live in infrastructure (e.g., HGT adapter).
    """

    def load_tile(
        self, file_path: Path | str, corner: TileCorner | None = None
    ) -> ElevationTile:
        """Load a tile; `corner` overrides the position parsed from the name."""
        ...
