"""
Decoding raw bytes into images.
"""

from __future__ import annotations

import io

from ..exceptions import DecodeError
from .dependencies import Image


def decode_image(data: bytes) -> Image.Image:
    """
    Decode raw bytes into an in-memory image.

    The image is fully loaded so truncated or corrupt files fail here
    rather than later, while hashing.

    Args:
        data: Encoded image bytes (JPEG, PNG, ...)

    Returns:
        Decoded PIL image

    Raises:
        DecodeError: If the bytes are not a decodable image
    """
    if not data:
        raise DecodeError("Empty image data")
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
        return img
    except Image.UnidentifiedImageError as e:
        raise DecodeError(f"Not a valid image file: {e}") from e
    except Exception as e:
        raise DecodeError(f"Corrupt or truncated image: {e}") from e


__all__ = ['decode_image']
