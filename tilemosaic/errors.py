"""Exception types raised while resolving, caching and stitching tiles."""

from pathlib import Path
from typing import Optional


class TileMosaicError(Exception):
    """Base class for all tile mosaic errors."""


class InvalidParameter(TileMosaicError, ValueError):
    """A query parameter (latitude, longitude, zoom, ...) is out of range."""


class FetchFailure(TileMosaicError):
    """A single tile could not be downloaded from the tile service."""

    def __init__(self, url: str, status_code: Optional[int] = None, reason: str = ""):
        self.url = url
        self.status_code = status_code
        self.reason = reason
        detail = f"code {status_code}" if status_code is not None else reason or "transport error"
        super().__init__(f"Failed loading {url} with {detail}")


class CacheWriteFailure(TileMosaicError):
    """A downloaded tile could not be persisted into the cache."""

    def __init__(self, path: Path, reason: str = ""):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed writing cached tile {path}: {reason}")


class PreconditionViolation(TileMosaicError):
    """An internal invariant between the tile list and the mosaic grid was broken."""
