"""Material script generation for stitched mosaics."""

from pathlib import Path

MATERIAL_TEMPLATE = """material {name}
{{
  receive_shadows false
  technique
  {{
    lighting off
    pass
    {{
      texture_unit
      {{
        texture {texture}
        filtering bilinear
      }}
    }}
  }}
}}"""


def render_material(name: str, texture_filename: str) -> str:
    """Material script text applying ``texture_filename`` without shadows."""
    return MATERIAL_TEMPLATE.format(name=name, texture=texture_filename)


def write_material(path: Path, image_path: Path) -> Path:
    """
    Write the material script for a mosaic image.

    The material is named after the image stem so scene descriptions can
    reference it by the query identity.

    Args:
        path: Destination ``.material`` file
        image_path: Mosaic image the material textures with

    Returns:
        The written path
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_material(image_path.stem, image_path.name))
    return path
