"""Mosaic stitching service."""

import logging
from typing import Optional, Sequence

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..errors import PreconditionViolation
from ..models.tile import MapTile
from ..utils.geo_utils import TILE_SIZE
from ..utils.image_utils import load_image

logger = logging.getLogger(__name__)


class MosaicService:
    """Stitch a row-major grid of equally sized tiles into one image."""

    def __init__(self, tile_size: int = TILE_SIZE):
        self.tile_size = tile_size

    def stitch(
        self,
        tiles: Sequence[Optional[MapTile]],
        cols: int,
        rows: int,
    ) -> Image.Image:
        """
        Compose tiles into a single RGB image.

        Tile ``i`` lands in column ``i % cols`` and row ``i // cols``. Tiles
        are copied pixel-for-pixel; ``None`` entries and tiles whose image
        cannot be read are left black.

        Args:
            tiles: Exactly ``cols * rows`` entries in row-major order
            cols: Number of tile columns
            rows: Number of tile rows

        Returns:
            Image of ``cols * tile_size`` by ``rows * tile_size`` pixels

        Raises:
            PreconditionViolation: If the tile count does not match the grid
        """
        if cols <= 0 or rows <= 0:
            raise PreconditionViolation(f"Invalid mosaic grid {cols}x{rows}")
        if len(tiles) != cols * rows:
            raise PreconditionViolation(
                f"Mosaic grid is {cols}x{rows} = {cols * rows} cells "
                f"but {len(tiles)} tiles were given"
            )

        size = self.tile_size
        canvas = np.zeros((rows * size, cols * size, 3), dtype=np.uint8)

        for i, tile in enumerate(tiles):
            if tile is None:
                continue

            pixels = self._load_tile(tile)
            if pixels is None:
                continue

            top = (i // cols) * size
            left = (i % cols) * size
            canvas[top:top + size, left:left + size] = pixels

        return Image.fromarray(canvas)

    def _load_tile(self, tile: MapTile) -> Optional[np.ndarray]:
        """Decode a cached tile to an RGB array, or None if it is missing or unreadable."""
        try:
            image = load_image(tile.path)
        except (OSError, UnidentifiedImageError) as exc:
            logger.warning("Could not read tile %s from %s: %s", tile.index, tile.path, exc)
            return None

        if image.size != (self.tile_size, self.tile_size):
            # Only the top-left tile-sized block is copied, never resampled
            logger.warning(
                "Tile %s is %dx%d, expected %dx%d",
                tile.index,
                image.width,
                image.height,
                self.tile_size,
                self.tile_size,
            )
            image = image.crop((0, 0, self.tile_size, self.tile_size))

        return np.asarray(image, dtype=np.uint8)
