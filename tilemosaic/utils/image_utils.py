"""Image loading and saving utilities."""

from pathlib import Path
from typing import Union

from PIL import Image


def load_image(path: Union[str, Path]) -> Image.Image:
    """Load an image from file as 8-bit RGB."""
    with Image.open(path) as image:
        return image.convert("RGB")


def save_image(image: Image.Image, path: Union[str, Path], quality: int = 95) -> None:
    """Save an image to file, creating parent directories as needed."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.suffix.lower() in (".jpg", ".jpeg"):
        # JPEG has no alpha channel
        if image.mode == "RGBA":
            background = Image.new("RGB", image.size, (0, 0, 0))
            background.paste(image, mask=image.split()[3])
            image = background
        elif image.mode != "RGB":
            image = image.convert("RGB")
        image.save(path, quality=quality)
    else:
        image.save(path)
