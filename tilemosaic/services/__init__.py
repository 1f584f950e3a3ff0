"""Tile mosaic services."""

from .cache_service import TileCache
from .fetch_service import TileFetcher, substitute_placeholders
from .material_service import render_material, write_material
from .model_service import ModelCreator
from .mosaic_service import MosaicService
from .tile_loader import TileLoader

__all__ = [
    "TileCache",
    "TileFetcher",
    "substitute_placeholders",
    "render_material",
    "write_material",
    "ModelCreator",
    "MosaicService",
    "TileLoader",
]
