"""Terrain Bounded Context.

Responsible for elevation tiles and their coordinate arithmetic:
- Value Objects: Resolution, TileCorner, TileGeometry, GeoPoint, Sample
- Services: coordinate resolver (geographic / linear / cartesian -> row, column)
"""
