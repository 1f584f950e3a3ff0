"""Configuration management for the tile mosaic builder."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from .models.query import DEFAULT_TILE_SERVER


class AppConfig(BaseModel):
    """Application-level configuration."""

    # Directories
    root_dir: Path = Field(
        default=Path.home() / ".cache" / "tilemosaic",
        description="Root for the tile cache and generated materials",
    )

    # Tile service
    tile_server: str = Field(
        default=DEFAULT_TILE_SERVER,
        description="Default tile URI template",
    )
    request_timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    user_agent: str = Field(default="tilemosaic/0.1.0", description="User-Agent header")
    max_workers: int = Field(
        default=1,
        ge=1,
        le=16,
        description="Concurrent tile downloads (1 = sequential)",
    )

    # Output defaults
    jpeg_quality: int = Field(default=90, ge=1, le=100, description="Default mosaic JPEG quality")

    @classmethod
    def load(cls) -> "AppConfig":
        """Load configuration from environment and defaults."""
        return cls(
            root_dir=Path(os.environ.get("TILEMOSAIC_ROOT_DIR", str(cls.model_fields["root_dir"].default))),
            tile_server=os.environ.get("TILEMOSAIC_TILE_SERVER", DEFAULT_TILE_SERVER),
            request_timeout=float(os.environ.get("TILEMOSAIC_TIMEOUT", "30")),
            user_agent=os.environ.get("TILEMOSAIC_USER_AGENT", "tilemosaic/0.1.0"),
            max_workers=int(os.environ.get("TILEMOSAIC_MAX_WORKERS", "1")),
            jpeg_quality=int(os.environ.get("TILEMOSAIC_JPEG_QUALITY", "90")),
        )

    @property
    def cache_dir(self) -> Path:
        """Root of the per-service tile buckets."""
        return self.root_dir / "mapscache"

    @property
    def materials_dir(self) -> Path:
        return self.root_dir / "materials"

    @property
    def textures_dir(self) -> Path:
        """Stitched mosaics, one per query identity."""
        return self.materials_dir / "textures"

    @property
    def scripts_dir(self) -> Path:
        """Material scripts, one per query identity."""
        return self.materials_dir / "scripts"

    def ensure_directories(self) -> None:
        """Create necessary directories."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.textures_dir.mkdir(parents=True, exist_ok=True)
        self.scripts_dir.mkdir(parents=True, exist_ok=True)


# Global config instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get or create global configuration."""
    global _config
    if _config is None:
        _config = AppConfig.load()
    return _config
