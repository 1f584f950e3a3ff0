"""Tile download service."""

import logging
import re
from typing import Optional

import httpx

from ..errors import FetchFailure

logger = logging.getLogger(__name__)

_PLACEHOLDERS = {
    "x": re.compile(r"\{x\}", re.IGNORECASE),
    "y": re.compile(r"\{y\}", re.IGNORECASE),
    "z": re.compile(r"\{z\}", re.IGNORECASE),
}


def substitute_placeholders(template: str, x: int, y: int, z: int) -> str:
    """
    Fill the {x}, {y} and {z} tokens of a tile URI template.

    Tokens are matched case-insensitively. A token missing from the template
    is simply not substituted.

    Args:
        template: URI template, e.g. ``https://tile.example/{z}/{x}/{y}.png``
        x: Tile column
        y: Tile row
        z: Zoom level

    Returns:
        The URI of tile (x, y, z)
    """
    uri = template
    for token, value in (("x", x), ("y", y), ("z", z)):
        uri = _PLACEHOLDERS[token].sub(str(int(value)), uri)
    return uri


class TileFetcher:
    """Blocking HTTP client for a single tile service."""

    def __init__(
        self,
        uri_template: str,
        timeout: float = 30.0,
        user_agent: Optional[str] = None,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the tile fetcher.

        Args:
            uri_template: Tile URI template with {x}, {y}, {z} placeholders
            timeout: Request timeout in seconds
            user_agent: Optional User-Agent header
            client: Optional pre-configured httpx client (not closed by this object)
        """
        self.uri_template = uri_template
        self._owns_client = client is None
        if client is None:
            headers = {"User-Agent": user_agent} if user_agent else None
            client = httpx.Client(timeout=timeout, headers=headers, follow_redirects=True)
        self._client = client

    def uri_for(self, x: int, y: int, z: int) -> str:
        """URI of one tile."""
        return substitute_placeholders(self.uri_template, x, y, z)

    def fetch(self, x: int, y: int, z: int) -> bytes:
        """
        Download one tile.

        Returns:
            The raw response body (encoded image bytes)

        Raises:
            FetchFailure: On any non-200 status or transport error
        """
        url = self.uri_for(x, y, z)
        try:
            response = self._client.get(url)
        except httpx.HTTPError as exc:
            raise FetchFailure(url, reason=str(exc)) from exc

        if response.status_code != 200:
            raise FetchFailure(url, status_code=response.status_code)

        logger.debug("Fetched %s (%d bytes)", url, len(response.content))
        return response.content

    def close(self):
        """Close the HTTP client."""
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
