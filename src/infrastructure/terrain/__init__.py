"""Infrastructure adapters for the terrain bounded context.

This module provides the infrastructure layer implementations for terrain
operations: loading `.hgt` tiles and exporting them as rasters.

Adapter exported for simplified imports.
"""

from .hgt_adapter import HgtTile, HgtTileAdapter, load_tile

__all__ = ["HgtTile", "HgtTileAdapter", "load_tile"]
