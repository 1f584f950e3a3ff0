"""Tile and mosaic data models."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from PIL import Image

from ..utils.geo_utils import TILE_SIZE


@dataclass(frozen=True, order=True)
class TileIndex:
    """Slippy-map tile index.

    Field order makes the natural sort row-major: by y, then x.
    """

    z: int
    y: int
    x: int

    def __str__(self) -> str:
        return f"{self.z}/{self.x}/{self.y}"


@dataclass(frozen=True)
class MapTile:
    """A resolved tile and the cached image that backs it."""

    index: TileIndex
    path: Path

    @property
    def x(self) -> int:
        return self.index.x

    @property
    def y(self) -> int:
        return self.index.y

    @property
    def z(self) -> int:
        return self.index.z


@dataclass(frozen=True)
class TileGrid:
    """Placement of the tile rectangle around the center tile."""

    zoom: int
    center_x: int
    center_y: int
    offset_x: float
    """Fraction of a tile between the NW corner of the center tile and the query point (x)."""

    offset_y: float
    """Fraction of a tile between the NW corner of the center tile and the query point (y)."""

    x_tiles_below: int
    x_tiles_above: int
    y_tiles_below: int
    y_tiles_above: int

    @property
    def cols(self) -> int:
        return 1 + self.x_tiles_below + self.x_tiles_above

    @property
    def rows(self) -> int:
        return 1 + self.y_tiles_below + self.y_tiles_above

    @property
    def min_x(self) -> int:
        """Western-most column index before clamping."""
        return self.center_x - self.x_tiles_below

    @property
    def min_y(self) -> int:
        """Northern-most row index before clamping."""
        return self.center_y - self.y_tiles_below


@dataclass
class Mosaic:
    """Stitched raster and the metadata needed to place it in the world."""

    image: Optional[Image.Image]
    identity: str
    grid: TileGrid
    resolution: float
    """Meters per pixel."""

    image_path: Optional[Path] = None
    material_path: Optional[Path] = None
    tiles_loaded: int = 0

    @property
    def cols(self) -> int:
        return self.grid.cols

    @property
    def rows(self) -> int:
        return self.grid.rows

    @property
    def size_pixels(self) -> tuple[int, int]:
        return (self.cols * TILE_SIZE, self.rows * TILE_SIZE)

    @property
    def size_meters(self) -> tuple[float, float]:
        width_px, height_px = self.size_pixels
        return (width_px * self.resolution, height_px * self.resolution)

    def to_dict(self) -> dict[str, Any]:
        """Placement metadata as a JSON-serializable dict."""
        width_m, height_m = self.size_meters
        return {
            "identity": self.identity,
            "zoom": self.grid.zoom,
            "cols": self.cols,
            "rows": self.rows,
            "tile_size": TILE_SIZE,
            "resolution": self.resolution,
            "center_tile": [self.grid.center_x, self.grid.center_y],
            "origin_offset": [self.grid.offset_x, self.grid.offset_y],
            "tiles_below": [self.grid.x_tiles_below, self.grid.y_tiles_below],
            "tiles_above": [self.grid.x_tiles_above, self.grid.y_tiles_above],
            "width_meters": width_m,
            "height_meters": height_m,
            "tiles_loaded": self.tiles_loaded,
            "image": self.image_path.name if self.image_path else None,
            "material": self.material_path.name if self.material_path else None,
        }
