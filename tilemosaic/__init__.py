"""Tile Mosaic - stitch cached web-mercator tiles into georeferenced ground textures."""

__version__ = "0.1.0"
