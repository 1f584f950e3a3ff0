"""Utility functions for tile mosaics."""

from .geo_utils import (
    TILE_SIZE,
    lat_lon_to_tile_coords,
    tile_bounds,
    tile_coords_to_lat_lon,
    zoom_to_resolution,
)
from .hashing import query_identity, service_hash, stable_hash
from .image_utils import load_image, save_image

__all__ = [
    "TILE_SIZE",
    "lat_lon_to_tile_coords",
    "tile_bounds",
    "tile_coords_to_lat_lon",
    "zoom_to_resolution",
    "query_identity",
    "service_hash",
    "stable_hash",
    "load_image",
    "save_image",
]
