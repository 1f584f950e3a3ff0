"""Tile set resolution: which tiles cover a footprint, and where their images live."""

import logging
import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

from ..errors import CacheWriteFailure, FetchFailure
from ..models.query import Extents, GeoQuery
from ..models.tile import MapTile, TileGrid, TileIndex
from ..utils.geo_utils import (
    TILE_SIZE,
    lat_lon_to_tile_coords,
    max_tile_index,
    tile_coords_to_lat_lon,
    zoom_to_resolution,
)
from ..utils.hashing import query_identity
from .cache_service import TileCache
from .fetch_service import TileFetcher

logger = logging.getLogger(__name__)


class TileLoader:
    """Resolve the tiles around a geographic point into cached image files.

    The loader computes the center tile and the sub-tile origin offset of the
    query point, works out how many tiles are needed on each side to cover
    the requested footprint, and loads each tile from the cache or the tile
    service. Tiles are always kept in row-major order (y outer, x inner),
    which is the order the mosaic is stitched in.
    """

    def __init__(
        self,
        cache_root: Union[str, Path],
        service: str,
        latitude: float,
        longitude: float,
        zoom: int,
        width: float,
        height: float,
        extents: Optional[Extents] = None,
        fetcher: Optional[TileFetcher] = None,
        timeout: float = 30.0,
        user_agent: Optional[str] = None,
        max_workers: int = 1,
    ):
        """
        Initialize the tile loader.

        Args:
            cache_root: Directory holding one cache bucket per tile service
            service: Tile URI template with {x}, {y}, {z} placeholders
            latitude: Latitude of the footprint center
            longitude: Longitude of the footprint center
            zoom: Tile zoom level
            width: Footprint width in meters
            height: Footprint height in meters
            extents: Optional per-edge override of the footprint
            fetcher: Tile fetcher (created on first download if not given)
            timeout: HTTP timeout used when creating a fetcher
            user_agent: User-Agent used when creating a fetcher
            max_workers: Number of concurrent downloads (1 = sequential)

        Raises:
            InvalidParameter: If latitude, longitude or zoom is out of range
        """
        # Validates the parameters before anything touches the disk
        x, y = lat_lon_to_tile_coords(latitude, longitude, zoom)

        self.service = service
        self.latitude = latitude
        self.longitude = longitude
        self.zoom = zoom
        self.width = width
        self.height = height
        self.extents = extents
        self.max_workers = max(1, max_workers)

        self.cache = TileCache(cache_root, service)

        self._fetcher = fetcher
        self._owns_fetcher = fetcher is None
        self._timeout = timeout
        self._user_agent = user_agent
        self._tiles: list[MapTile] = []

        self.grid = self._calculate_grid(x, y)

    @classmethod
    def from_query(
        cls,
        query: GeoQuery,
        cache_root: Union[str, Path],
        **kwargs,
    ) -> "TileLoader":
        """Create a loader for a :class:`GeoQuery`."""
        return cls(
            cache_root,
            query.tile_server,
            query.latitude,
            query.longitude,
            query.zoom,
            query.width,
            query.height,
            extents=query.extents,
            **kwargs,
        )

    def _calculate_grid(self, x: float, y: float) -> TileGrid:
        """Determine how many tiles around the center tile are needed."""
        center_x = math.floor(x)
        center_y = math.floor(y)
        offset_x = x - center_x
        offset_y = y - center_y

        extents = self.extents or Extents.symmetric(self.width, self.height)
        meters_per_tile = self.resolution * TILE_SIZE

        # Tile y grows southward, so north is "below" and south is "above"
        x_high = offset_x + extents.east / meters_per_tile
        x_low = offset_x - extents.west / meters_per_tile
        y_high = offset_y + extents.south / meters_per_tile
        y_low = offset_y - extents.north / meters_per_tile

        grid = TileGrid(
            zoom=self.zoom,
            center_x=center_x,
            center_y=center_y,
            offset_x=offset_x,
            offset_y=offset_y,
            x_tiles_below=abs(math.floor(x_low)),
            x_tiles_above=math.floor(x_high),
            y_tiles_below=abs(math.floor(y_low)),
            y_tiles_above=math.floor(y_high),
        )
        logger.debug(
            "Center tile (%d, %d), offset (%.4f, %.4f), grid %dx%d",
            center_x,
            center_y,
            offset_x,
            offset_y,
            grid.cols,
            grid.rows,
        )
        return grid

    @property
    def resolution(self) -> float:
        """Meters/pixel of the tiles at the query latitude."""
        return zoom_to_resolution(self.latitude, self.zoom)

    @property
    def center_tile_x(self) -> int:
        return self.grid.center_x

    @property
    def center_tile_y(self) -> int:
        return self.grid.center_y

    @property
    def origin_offset_x(self) -> float:
        return self.grid.offset_x

    @property
    def origin_offset_y(self) -> float:
        return self.grid.offset_y

    @property
    def service_hash(self) -> str:
        return self.cache.service_hash

    @property
    def cache_path(self) -> Path:
        """Bucket holding this service's cached tiles."""
        return self.cache.bucket

    @property
    def tiles(self) -> list[MapTile]:
        """Tiles resolved by the last :meth:`load_tiles` call."""
        return list(self._tiles)

    def num_tiles(self) -> tuple[int, int]:
        """Return (cols, rows) of the mosaic grid."""
        return (self.grid.cols, self.grid.rows)

    @property
    def total_tiles(self) -> int:
        return self.grid.cols * self.grid.rows

    def tile_range(self) -> tuple[int, int, int, int]:
        """
        Index rectangle to load, clamped to the valid tile range.

        Returns:
            (min_x, max_x, min_y, max_y), inclusive
        """
        max_index = max_tile_index(self.zoom)
        min_x = max(0, self.grid.min_x)
        min_y = max(0, self.grid.min_y)
        max_x = min(max_index, self.grid.center_x + self.grid.x_tiles_above)
        max_y = min(max_index, self.grid.center_y + self.grid.y_tiles_above)

        if (max_x - min_x + 1) * (max_y - min_y + 1) < self.total_tiles:
            logger.debug("Tile range clamped to x %d-%d, y %d-%d", min_x, max_x, min_y, max_y)

        return (min_x, max_x, min_y, max_y)

    def iter_indices(self) -> Iterator[TileIndex]:
        """Tile indices in range, in row-major order."""
        min_x, max_x, min_y, max_y = self.tile_range()
        for y in range(min_y, max_y + 1):
            for x in range(min_x, max_x + 1):
                yield TileIndex(z=self.zoom, y=y, x=x)

    def num_tiles_to_download(self) -> int:
        """Count the tiles in range that are not cached yet."""
        return sum(1 for index in self.iter_indices() if not self.cache.exists(index.x, index.y, index.z))

    def load_tiles(
        self,
        download: bool = True,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> list[MapTile]:
        """
        Resolve every tile in range to a cached image, downloading as needed.

        Tiles that fail to download or cannot be cached are logged and left
        out; they render as blank regions in the mosaic.

        Args:
            download: When False, never touch the network and assume every
                tile is (or will be) cached
            progress_callback: Optional callback(done, total) per download

        Returns:
            Resolved tiles in row-major order
        """
        # Discard the previous set of tiles
        self.abort()

        indices = list(self.iter_indices())
        resolved: list[Optional[MapTile]] = [None] * len(indices)
        pending: list[tuple[int, TileIndex]] = []

        for i, index in enumerate(indices):
            path = self.cache.path_for(index.x, index.y, index.z)
            if not download or path.exists():
                resolved[i] = MapTile(index=index, path=path)
            else:
                pending.append((i, index))

        if pending:
            self._get_fetcher()
            total = len(pending)
            done = 0
            if self.max_workers > 1 and total > 1:
                # Fetch order may vary; placement follows the tagged index
                with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                    futures = {pool.submit(self._download_tile, index): i for i, index in pending}
                    for future in as_completed(futures):
                        resolved[futures[future]] = future.result()
                        done += 1
                        if progress_callback:
                            progress_callback(done, total)
            else:
                for i, index in pending:
                    resolved[i] = self._download_tile(index)
                    done += 1
                    if progress_callback:
                        progress_callback(done, total)

        self._tiles = [tile for tile in resolved if tile is not None]
        return self.tiles

    def _download_tile(self, index: TileIndex) -> Optional[MapTile]:
        """Fetch and cache one tile, or return None if either step fails."""
        try:
            content = self._get_fetcher().fetch(index.x, index.y, index.z)
        except FetchFailure as exc:
            logger.warning("%s", exc)
            return None

        try:
            path = self.cache.store(index.x, index.y, index.z, content)
        except CacheWriteFailure as exc:
            logger.warning("Downloaded tile %s but could not cache it: %s", index, exc.reason)
            return None

        return MapTile(index=index, path=path)

    def _get_fetcher(self) -> TileFetcher:
        if self._fetcher is None:
            self._fetcher = TileFetcher(
                self.service,
                timeout=self._timeout,
                user_agent=self._user_agent,
            )
        return self._fetcher

    def tile_grid(self) -> list[Optional[MapTile]]:
        """
        The resolved tiles laid out cell by cell for stitching.

        Returns a list of exactly ``cols * rows`` entries in row-major order.
        Cells whose tile failed to load or lies outside the valid tile range
        hold ``None``.
        """
        by_position = {(tile.x, tile.y): tile for tile in self._tiles}
        grid = self.grid
        return [
            by_position.get((x, y))
            for y in range(grid.min_y, grid.min_y + grid.rows)
            for x in range(grid.min_x, grid.min_x + grid.cols)
        ]

    def abort(self) -> None:
        """Discard the current set of tiles."""
        self._tiles = []

    def inside_center_tile(self, lat: float, lon: float) -> bool:
        """Test if (lat, lon) falls inside the center tile."""
        x, y = lat_lon_to_tile_coords(lat, lon, self.zoom)
        return math.floor(x) == self.grid.center_x and math.floor(y) == self.grid.center_y

    def origin_lat_lon(self, shift_x: float = 0.0, shift_y: float = 0.0) -> tuple[float, float]:
        """
        Geographic coordinate of the query point shifted by a distance.

        Args:
            shift_x: Shift in meters along increasing tile x (east)
            shift_y: Shift in meters along increasing tile y (south)

        Returns:
            (latitude, longitude)
        """
        meters_per_tile = self.resolution * TILE_SIZE
        x = self.grid.center_x + self.grid.offset_x + shift_x / meters_per_tile
        y = self.grid.center_y + self.grid.offset_y + shift_y / meters_per_tile
        return tile_coords_to_lat_lon(x, y, self.zoom)

    def identity(self) -> str:
        """Unique identity of this loader's parameters."""
        return query_identity(
            self.service,
            self.latitude,
            self.longitude,
            self.zoom,
            self.width,
            self.height,
            self.extents.to_tuple() if self.extents is not None else None,
        )

    def close(self) -> None:
        """Close the tile fetcher if this loader created it."""
        if self._fetcher is not None and self._owns_fetcher:
            self._fetcher.close()
            self._fetcher = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
