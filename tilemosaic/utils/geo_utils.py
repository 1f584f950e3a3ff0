"""Web-Mercator (slippy map) projection utilities.

See https://wiki.openstreetmap.org/wiki/Slippy_map_tilenames for the
formulas used here.
"""

import math

from ..errors import InvalidParameter

# Pixel size of a square source tile
TILE_SIZE = 256

# Highest zoom level whose tile count still fits a 32-bit index
MAX_ZOOM = 31

# Latitude limit of the Web-Mercator projection
MAX_LATITUDE = 85.0511

# Ground resolution (m/px) of a 256px tile at zoom 0 on the equator
EQUATOR_RESOLUTION = 156543.034


def validate_coordinates(lat: float, lon: float, zoom: int) -> None:
    """Reject coordinates outside the projection's domain."""
    if zoom < 0 or zoom > MAX_ZOOM:
        raise InvalidParameter(f"Zoom level {zoom} too high")
    if lat < -MAX_LATITUDE or lat > MAX_LATITUDE:
        raise InvalidParameter(f"Latitude {lat} invalid")
    if lon < -180 or lon > 180:
        raise InvalidParameter(f"Longitude {lon} invalid")


def lat_lon_to_tile_coords(lat: float, lon: float, zoom: int) -> tuple[float, float]:
    """
    Convert latitude/longitude to fractional tile coordinates.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees
        zoom: Zoom level (0-31)

    Returns:
        (x, y) fractional tile coordinates

    Raises:
        InvalidParameter: If the zoom, latitude or longitude is out of range
    """
    validate_coordinates(lat, lon, zoom)

    lat_rad = math.radians(lat)
    n = 1 << zoom

    x = n * ((lon + 180) / 360.0)
    y = n * (1 - math.log(math.tan(lat_rad) + 1 / math.cos(lat_rad)) / math.pi) / 2

    return (x, y)


def tile_coords_to_lat_lon(x: float, y: float, zoom: int) -> tuple[float, float]:
    """
    Convert fractional tile coordinates to the lat/lon of their NW corner.

    Evaluating at (x + 0.5, y + 0.5) yields the center of tile (x, y).

    Returns:
        (latitude, longitude) in degrees
    """
    n = 1 << zoom
    lon = x / n * 360.0 - 180.0
    lat_rad = math.atan(math.sinh(math.pi - 2.0 * math.pi * y / n))
    return (math.degrees(lat_rad), lon)


def zoom_to_resolution(lat: float, zoom: int) -> float:
    """Ground resolution in meters/pixel at a latitude and zoom level."""
    return EQUATOR_RESOLUTION * math.cos(math.radians(lat)) / (1 << zoom)


def tile_bounds(x: int, y: int, zoom: int) -> tuple[float, float, float, float]:
    """Return (north, south, east, west) bounds of an integer tile."""
    north, west = tile_coords_to_lat_lon(x, y, zoom)
    south, east = tile_coords_to_lat_lon(x + 1, y + 1, zoom)
    return (north, south, east, west)


def max_tile_index(zoom: int) -> int:
    """Largest valid x/y tile index at a zoom level."""
    return (1 << zoom) - 1
