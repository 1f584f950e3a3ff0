"""Query configuration models."""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from ..utils.geo_utils import MAX_LATITUDE, MAX_ZOOM
from ..utils.hashing import query_identity

# Google satellite imagery, the service used when none is configured
DEFAULT_TILE_SERVER = "http://mt1.google.com/vt/lyrs=s&x={x}&y={y}&z={z}"


class Extents(BaseModel):
    """Asymmetric footprint: distance in meters from the center to each edge."""

    west: float = Field(..., ge=0, description="Meters from center to western edge")
    east: float = Field(..., ge=0, description="Meters from center to eastern edge")
    north: float = Field(..., ge=0, description="Meters from center to northern edge")
    south: float = Field(..., ge=0, description="Meters from center to southern edge")

    @classmethod
    def symmetric(cls, width: float, height: float) -> "Extents":
        """Extents centered on the query point."""
        return cls(west=width / 2, east=width / 2, north=height / 2, south=height / 2)

    def to_tuple(self) -> tuple[float, float, float, float]:
        """Return as (west, east, north, south)."""
        return (self.west, self.east, self.north, self.south)


class GeoQuery(BaseModel):
    """Parameters of one mosaic request.

    Latitude, longitude and zoom carry the projection's limits, so an
    out-of-range query is rejected before it is saved or used. A tile loader
    built from raw values checks the same limits and raises
    ``InvalidParameter``.
    """

    tile_server: str = Field(
        default=DEFAULT_TILE_SERVER,
        min_length=1,
        description="Tile URI template with {x}, {y} and {z} placeholders",
    )
    latitude: float = Field(
        ..., ge=-MAX_LATITUDE, le=MAX_LATITUDE, description="Center latitude in degrees"
    )
    longitude: float = Field(..., ge=-180, le=180, description="Center longitude in degrees")
    zoom: int = Field(..., ge=0, le=MAX_ZOOM, description="Tile zoom level")
    width: float = Field(..., gt=0, description="Ground width of the footprint in meters")
    height: float = Field(..., gt=0, description="Ground height of the footprint in meters")
    extents: Optional[Extents] = Field(
        default=None,
        description="Per-edge footprint override (defaults to width/height centered)",
    )
    shift_x: float = Field(default=0.0, description="Origin shift as a fraction of width")
    shift_y: float = Field(default=0.0, description="Origin shift as a fraction of height")
    name: str = Field(default="satellite_map", min_length=1, description="Output model name")
    quality: int = Field(default=90, ge=1, le=100, description="JPEG quality of the mosaic")

    @property
    def effective_extents(self) -> Extents:
        """Per-edge extents, symmetric unless overridden."""
        if self.extents is not None:
            return self.extents
        return Extents.symmetric(self.width, self.height)

    @property
    def identity(self) -> str:
        """Identity naming the mosaic generated for this query."""
        return query_identity(
            self.tile_server,
            self.latitude,
            self.longitude,
            self.zoom,
            self.width,
            self.height,
            self.extents.to_tuple() if self.extents is not None else None,
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "GeoQuery":
        """Load a query from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save the query to a YAML file."""
        data = self.model_dump(mode="json", exclude_none=True)
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
