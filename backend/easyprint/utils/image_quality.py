from io import BytesIO
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError


def inspect_image(content: bytes) -> Optional[Tuple[str, Tuple[int, int]]]:
    """Return (format, (width, height)) for a readable image, else None."""
    try:
        img = Image.open(BytesIO(content))
        img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        return None
    return img.format, img.size
