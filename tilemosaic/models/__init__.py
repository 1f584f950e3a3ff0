"""Data models for tile mosaics."""

from .query import DEFAULT_TILE_SERVER, Extents, GeoQuery
from .tile import MapTile, Mosaic, TileGrid, TileIndex

__all__ = [
    "DEFAULT_TILE_SERVER",
    "Extents",
    "GeoQuery",
    "MapTile",
    "Mosaic",
    "TileGrid",
    "TileIndex",
]
