"""Image export utilities for rendered images.

The renderer produces a flat RGB8 byte buffer, row-major with the top row
first. This module reshapes such buffers and encodes them as PNG files.

Supported formats:
    - PNG (8-bit RGB via Pillow)

Example:
    >>> from pathtracer.preview.export import write_image
    >>>
    >>> pixels = bytearray(800 * 600 * 3)
    >>> write_image("output.png", pixels, (800, 600))
"""

from __future__ import annotations

import logging
import os

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)


def pixels_to_array(
    pixels: bytes | bytearray | memoryview,
    bounds: tuple[int, int],
) -> npt.NDArray[np.uint8]:
    """View an RGB8 byte buffer as an image array.

    Args:
        pixels: Buffer of width * height * 3 bytes, top row first.
        bounds: Image size as (width, height).

    Returns:
        uint8 array of shape (height, width, 3).

    Raises:
        ValueError: If the buffer length does not match the bounds.
    """
    width, height = bounds
    data = np.frombuffer(pixels, dtype=np.uint8)
    if data.size != width * height * 3:
        raise ValueError(
            f"Pixel buffer holds {data.size} bytes, expected {width * height * 3} "
            f"for {width}x{height}"
        )
    return data.reshape(height, width, 3)


def write_image(
    filename: str | os.PathLike[str],
    pixels: bytes | bytearray | memoryview,
    bounds: tuple[int, int],
) -> None:
    """Save an RGB8 byte buffer as a PNG file.

    The file is always PNG-encoded, whatever its extension.

    Args:
        filename: Output file path.
        pixels: Buffer of width * height * 3 bytes, top row first.
        bounds: Image size as (width, height).

    Raises:
        ValueError: If the buffer length does not match the bounds.
        OSError: If the file cannot be created or written.
    """
    image = pixels_to_array(pixels, bounds)

    # (height, width, 3) uint8 arrays map to mode "RGB"
    pil_image = PILImage.fromarray(image)
    pil_image.save(filename, format="PNG")
    logger.debug("wrote %dx%d PNG to %s", bounds[0], bounds[1], filename)
