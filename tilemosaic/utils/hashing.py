"""Stable identities for tile services and mosaic queries."""

import hashlib
from typing import Optional, Sequence


def stable_hash(text: str) -> str:
    """Hex digest of ``text`` that is identical across runs and platforms."""
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


def service_hash(service_uri: str) -> str:
    """Cache bucket name for a tile service URI template."""
    return stable_hash(service_uri)


def query_identity(
    service_uri: str,
    lat: float,
    lon: float,
    zoom: int,
    width: float,
    height: float,
    extents: Optional[Sequence[float]] = None,
) -> str:
    """
    Identity of a mosaic query.

    Two queries with the same service, center, zoom and footprint share one
    identity and therefore one cached mosaic. Floats are rendered with a
    fixed precision so the identity does not depend on float formatting.

    Args:
        service_uri: Tile service URI template
        lat: Center latitude
        lon: Center longitude
        zoom: Zoom level
        width: Footprint width in meters
        height: Footprint height in meters
        extents: Optional (west, east, north, south) edge distances in meters

    Returns:
        Hex digest naming the mosaic
    """
    tokens = [
        service_hash(service_uri),
        f"{lat:.8f}",
        f"{lon:.8f}",
        str(int(zoom)),
        f"{width:.3f}",
        f"{height:.3f}",
    ]
    if extents is not None:
        tokens.extend(f"{value:.3f}" for value in extents)
    return stable_hash("|".join(tokens))
