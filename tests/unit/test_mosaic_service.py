"""Tests for mosaic stitching."""

import logging

import pytest
from PIL import Image

from tilemosaic.errors import PreconditionViolation
from tilemosaic.models.tile import MapTile, TileIndex
from tilemosaic.services.mosaic_service import MosaicService


@pytest.fixture
def write_tile(tmp_path, make_tile):
    """Write a single-color tile for index (x, y) and return it."""

    def _write(x, y, color, size=256):
        path = tmp_path / f"x{x}_y{y}_z5.jpg"
        path.write_bytes(make_tile(color, size))
        return MapTile(index=TileIndex(z=5, y=y, x=x), path=path)

    return _write


class TestStitch:
    """Test tile placement."""

    def test_output_size(self, write_tile):
        tiles = [write_tile(x, 0, (10, 10, 10)) for x in range(3)]
        image = MosaicService().stitch(tiles, 3, 1)
        assert image.size == (768, 256)
        assert image.mode == "RGB"

    def test_row_major_placement(self, write_tile):
        colors = {(0, 0): (255, 0, 0), (1, 0): (0, 255, 0), (0, 1): (0, 0, 255), (1, 1): (255, 255, 0)}
        tiles = [write_tile(x, y, colors[(x, y)]) for y in range(2) for x in range(2)]

        image = MosaicService().stitch(tiles, 2, 2)
        for (x, y), color in colors.items():
            assert image.getpixel((x * 256 + 128, y * 256 + 128)) == color
            assert image.getpixel((x * 256, y * 256)) == color
            assert image.getpixel((x * 256 + 255, y * 256 + 255)) == color

    def test_missing_tile_left_black(self, write_tile):
        tiles = [write_tile(0, 0, (200, 100, 50)), None]
        image = MosaicService().stitch(tiles, 2, 1)
        assert image.getpixel((128, 128)) == (200, 100, 50)
        assert image.getpixel((384, 128)) == (0, 0, 0)

    def test_unreadable_tile_left_black(self, tmp_path, write_tile, caplog):
        broken = tmp_path / "broken.jpg"
        broken.write_bytes(b"<html>rate limited</html>")
        tiles = [MapTile(index=TileIndex(z=5, y=0, x=0), path=broken), write_tile(1, 0, (9, 9, 9))]

        with caplog.at_level(logging.WARNING, logger="tilemosaic"):
            image = MosaicService().stitch(tiles, 2, 1)

        assert image.getpixel((10, 10)) == (0, 0, 0)
        assert image.getpixel((300, 10)) == (9, 9, 9)
        assert "Could not read tile 5/0/0" in caplog.text

    def test_odd_sized_tile_cropped(self, write_tile, caplog):
        tiles = [write_tile(0, 0, (50, 60, 70), size=300)]
        with caplog.at_level(logging.WARNING, logger="tilemosaic"):
            image = MosaicService().stitch(tiles, 1, 1)
        assert image.size == (256, 256)
        assert image.getpixel((255, 255)) == (50, 60, 70)
        assert "300x300" in caplog.text

    def test_custom_tile_size(self, write_tile):
        tiles = [write_tile(0, 0, (1, 2, 3), size=64), write_tile(0, 1, (4, 5, 6), size=64)]
        image = MosaicService(tile_size=64).stitch(tiles, 1, 2)
        assert image.size == (64, 128)
        assert image.getpixel((32, 96)) == (4, 5, 6)

    def test_result_is_pil_image(self, write_tile):
        assert isinstance(MosaicService().stitch([write_tile(0, 0, (1, 1, 1))], 1, 1), Image.Image)


class TestPreconditions:
    """Test grid/tile-count checks."""

    def test_too_few_tiles(self, write_tile):
        with pytest.raises(PreconditionViolation, match="4 cells but 3 tiles"):
            MosaicService().stitch([write_tile(0, 0, (0, 0, 0))] * 3, 2, 2)

    def test_too_many_tiles(self):
        with pytest.raises(PreconditionViolation):
            MosaicService().stitch([None] * 5, 2, 2)

    @pytest.mark.parametrize("cols,rows", [(0, 1), (1, 0), (-1, -1)])
    def test_empty_grid(self, cols, rows):
        with pytest.raises(PreconditionViolation):
            MosaicService().stitch([], cols, rows)
