"""Shared test fixtures."""

from io import BytesIO

import httpx
import pytest
from PIL import Image

import tilemosaic.config as config_module
from tilemosaic.config import AppConfig
from tilemosaic.models.query import GeoQuery
from tilemosaic.services.fetch_service import TileFetcher
from tilemosaic.utils.geo_utils import tile_coords_to_lat_lon, zoom_to_resolution

TEMPLATE = "https://tiles.example.test/{z}/{x}/{y}.png"


def tile_png(color=(128, 64, 200), size=256) -> bytes:
    """Encoded PNG tile of a single color."""
    buffer = BytesIO()
    Image.new("RGB", (size, size), color).save(buffer, format="PNG")
    return buffer.getvalue()


def color_for(x: int, y: int) -> tuple[int, int, int]:
    """Distinct, deterministic color per tile index."""
    return ((x * 37) % 256, (y * 53) % 256, (x + y) % 256)


class RecordingTransport:
    """httpx transport handler serving one colored PNG per tile URL."""

    def __init__(self, fail=None, status_code=404):
        self.requests: list[str] = []
        self.fail = set(fail or [])
        self.status_code = status_code

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(str(request.url))
        z, x, y_png = request.url.path.strip("/").split("/")
        x, y = int(x), int(y_png.split(".")[0])
        if (x, y) in self.fail:
            return httpx.Response(self.status_code, content=b"not found")
        return httpx.Response(200, content=tile_png(color_for(x, y)))


@pytest.fixture(autouse=True)
def reset_global_config(monkeypatch, tmp_path):
    """Point the global config at a temporary root for every test."""
    monkeypatch.setenv("TILEMOSAIC_ROOT_DIR", str(tmp_path / "root"))
    monkeypatch.setattr(config_module, "_config", None)
    yield
    config_module._config = None


@pytest.fixture
def app_config(tmp_path):
    """Configuration rooted in a temporary directory."""
    return AppConfig(root_dir=tmp_path / "gzroot", tile_server=TEMPLATE)


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def fetcher(transport):
    """Tile fetcher whose HTTP client never leaves the process."""
    client = httpx.Client(transport=httpx.MockTransport(transport))
    fetcher = TileFetcher(TEMPLATE, client=client)
    yield fetcher
    client.close()


@pytest.fixture
def tile_center():
    """Lat/lon of the exact center of tile (300, 400) at zoom 10."""
    return tile_coords_to_lat_lon(300.5, 400.5, 10)


@pytest.fixture
def three_by_three_query(tile_center):
    """Query whose footprint needs one extra tile on every side."""
    lat, lon = tile_center
    meters_per_tile = zoom_to_resolution(lat, 10) * 256
    return GeoQuery(
        tile_server=TEMPLATE,
        latitude=lat,
        longitude=lon,
        zoom=10,
        width=1.5 * meters_per_tile,
        height=1.5 * meters_per_tile,
        name="three-by-three",
        quality=95,
    )


@pytest.fixture
def provo_query():
    """300 x 300 m footprint at zoom 22 over Provo, Utah."""
    return GeoQuery(
        tile_server="http://mt1.google.com/vt/lyrs=s&x={x}&y={y}&z={z}",
        latitude=40.267463,
        longitude=-111.635655,
        zoom=22,
        width=300,
        height=300,
    )


@pytest.fixture
def make_tile():
    """Factory for encoded single-color PNG tiles."""
    return tile_png


@pytest.fixture
def tile_color():
    """Color served by the mock tile service for a tile index."""
    return color_for
