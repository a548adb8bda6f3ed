"""Read the pixel dimensions of an uploaded puzzle image."""

import io
from typing import Tuple

from PIL import Image, UnidentifiedImageError


def read_image_size(data: bytes) -> Tuple[int, int]:
    """Return (width, height) of an encoded image.

    Only the header is parsed; the pixel data is never decoded.

    Raises:
        ValueError: If the bytes are not a readable image, or declare more
            pixels than Pillow agrees to open.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            return image.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ValueError(f"Unreadable image: {e}") from e
