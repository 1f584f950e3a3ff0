"""Ground model creation: mosaic image, material script and placement metadata."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, Optional

from PIL import Image

from ..config import AppConfig, get_config
from ..models.query import GeoQuery
from ..models.tile import Mosaic
from ..utils.image_utils import save_image
from .material_service import write_material
from .mosaic_service import MosaicService
from .tile_loader import TileLoader

logger = logging.getLogger(__name__)


class ModelCreator:
    """Build (or reuse) the textured ground model for a query.

    Directory structure under the configured root::

        root/
          mapscache/<service hash>/      cached tiles
          materials/
            scripts/<identity>.material  one script per mosaic
            textures/<identity>.jpg      stitched mosaic
            textures/<identity>.json     placement metadata
    """

    def __init__(
        self,
        query: GeoQuery,
        config: Optional[AppConfig] = None,
        loader: Optional[TileLoader] = None,
        mosaic_service: Optional[MosaicService] = None,
    ):
        """
        Initialize the model creator.

        Args:
            query: Mosaic parameters
            config: Application configuration (global config if omitted)
            loader: Tile loader (built from the query if omitted)
            mosaic_service: Stitcher (default 256px tiles if omitted)

        Raises:
            InvalidParameter: If the query is out of range
        """
        self.query = query
        self.config = config or get_config()
        self.loader = loader or TileLoader.from_query(
            query,
            self.config.cache_dir,
            timeout=self.config.request_timeout,
            user_agent=self.config.user_agent,
            max_workers=self.config.max_workers,
        )
        self.mosaic_service = mosaic_service or MosaicService()

        self.config.ensure_directories()

        # The loader identity names every generated file
        self.identity = self.loader.identity()
        self.image_path = self.config.textures_dir / f"{self.identity}.jpg"
        self.material_path = self.config.scripts_dir / f"{self.identity}.material"
        self.metadata_path = self.config.textures_dir / f"{self.identity}.json"

    @property
    def is_cached(self) -> bool:
        """Whether both the mosaic and its material already exist."""
        return self.image_path.exists() and self.material_path.exists()

    def create(
        self,
        force: bool = False,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> Mosaic:
        """
        Create the mosaic image and material script if they do not exist.

        Args:
            force: Regenerate the image and script even if they exist
            progress_callback: Optional callback(done, total) per downloaded tile

        Returns:
            Mosaic with placement metadata (``image`` is None when reused)
        """
        image: Optional[Image.Image] = None
        if force or not self.image_path.exists():
            image = self._create_world_image(progress_callback)
        else:
            logger.info("Reusing mosaic %s", self.image_path.name)
            # No downloads needed, only the geographic information of each tile
            self.loader.load_tiles(download=False)

        if force or not self.material_path.exists():
            write_material(self.material_path, self.image_path)

        mosaic = Mosaic(
            image=image,
            identity=self.identity,
            grid=self.loader.grid,
            resolution=self.loader.resolution,
            image_path=self.image_path,
            material_path=self.material_path,
            tiles_loaded=len(self.loader.tiles),
        )
        self._write_metadata(mosaic)
        return mosaic

    def origin_lat_lon(self) -> tuple[float, float]:
        """Latitude/longitude of the model origin after applying the query shift."""
        return self.loader.origin_lat_lon(
            self.query.shift_x * self.query.width,
            self.query.shift_y * self.query.height,
        )

    def _create_world_image(
        self,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> Image.Image:
        """Download (or reuse cached) tiles, stitch them and save the mosaic."""
        num = self.loader.num_tiles_to_download()
        if num > 0:
            logger.info(
                "Downloading %d tiles around (%.6f, %.6f). This may take a minute.",
                num,
                self.query.latitude,
                self.query.longitude,
            )

        tiles = self.loader.load_tiles(download=True, progress_callback=progress_callback)
        cols, rows = self.loader.num_tiles()

        if len(tiles) < cols * rows:
            logger.warning(
                "Loaded %d of %d tiles; missing tiles are left blank in the mosaic",
                len(tiles),
                cols * rows,
            )
        else:
            logger.info("Loaded %d tiles", len(tiles))

        logger.info("Stitching together %d tiles (%dx%d)", cols * rows, cols, rows)
        image = self.mosaic_service.stitch(self.loader.tile_grid(), cols, rows)
        self._save_mosaic(image)
        return image

    def _save_mosaic(self, image: Image.Image) -> None:
        """Save the mosaic so that ``image_path`` only ever holds a complete JPEG."""
        fd, tmp_name = tempfile.mkstemp(
            dir=self.image_path.parent, prefix=f".{self.identity}.", suffix=".jpg"
        )
        os.close(fd)
        try:
            save_image(image, tmp_name, quality=self.query.quality)
            os.replace(tmp_name, self.image_path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _write_metadata(self, mosaic: Mosaic) -> Path:
        """Write placement metadata next to the mosaic image."""
        origin_lat, origin_lon = self.origin_lat_lon()
        data = mosaic.to_dict()
        data.update(
            {
                "name": self.query.name,
                "latitude": self.query.latitude,
                "longitude": self.query.longitude,
                "origin": [origin_lat, origin_lon],
                "tile_server": self.query.tile_server,
            }
        )
        self.metadata_path.write_text(json.dumps(data, indent=2))
        return self.metadata_path

    def close(self) -> None:
        self.loader.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
