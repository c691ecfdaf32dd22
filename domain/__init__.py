"""HGT Tiles Domain Layer.

This package contains the core logic organized by bounded contexts:
- terrain: Elevation tiles, sample addressing, coordinate resolution
"""

from domain import terrain

__all__ = ["terrain"]
