"""On-disk cache of downloaded map tiles."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from ..errors import CacheWriteFailure
from ..utils.hashing import service_hash

logger = logging.getLogger(__name__)


class TileCache:
    """Permanent cache of tile images for one tile service.

    Tiles live in ``<root>/<service hash>/x<X>_y<Y>_z<Z>.jpg``, so tiles from
    different services never collide. Entries are never expired or evicted.
    """

    def __init__(self, root: Union[str, Path], service_uri: str) -> None:
        self.root = Path(root)
        self.service_uri = service_uri
        self.service_hash = service_hash(service_uri)
        self.bucket = (self.root / self.service_hash).absolute()
        self.bucket.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def name_for(x: int, y: int, z: int) -> str:
        """File name of a cached tile."""
        return f"x{x}_y{y}_z{z}.jpg"

    def path_for(self, x: int, y: int, z: int) -> Path:
        """Location of a cached tile, whether or not it exists yet."""
        return self.bucket / self.name_for(x, y, z)

    def exists(self, x: int, y: int, z: int) -> bool:
        """Whether the tile has already been cached."""
        return self.path_for(x, y, z).exists()

    def store(self, x: int, y: int, z: int, content: bytes) -> Path:
        """
        Persist downloaded tile bytes verbatim.

        The bytes are written to a temporary file in the bucket and renamed
        into place, so a reader never sees a partially written tile and two
        writers racing on the same tile both leave a complete file.

        Raises:
            CacheWriteFailure: If the tile cannot be written
        """
        path = self.path_for(x, y, z)
        try:
            self.bucket.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.bucket, suffix=".part")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(content)
                os.replace(tmp_name, path)
            except OSError:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise CacheWriteFailure(path, str(exc)) from exc

        logger.debug("Cached tile %s (%d bytes)", path.name, len(content))
        return path
