"""Image export utilities for rendered images.

This module serializes finished 8-bit RGB images. The renderer applies gamma
correction and quantization before handing pixels over, so the encoders only
validate and write.

Supported formats:
    - PPM (plain-text P3, no dependencies)
    - PNG (8-bit RGB via Pillow)

A P3 file is the header line ``P3``, a ``<width> <height>`` line, the maximum
channel value ``255``, and then one ``r g b`` line per pixel in row-major
order starting at the top-left pixel.

Example:
    >>> import numpy as np
    >>> from src.pathtracer.output.export import encode_ppm
    >>> pixels = np.zeros((1, 2, 3), dtype=np.uint8)
    >>> print(encode_ppm(pixels), end="")
    P3
    2 1
    255
    0 0 0
    0 0 0
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

# Maximum channel value written in the PPM header
PPM_MAX_VALUE = 255


def _validate_pixels(pixels: npt.ArrayLike) -> npt.NDArray[np.uint8]:
    """Check that pixels form an (H, W, 3) image with values in [0, 255].

    Raises:
        ValueError: If the shape or values are invalid.
    """
    array = np.asarray(pixels)
    if array.ndim != 3 or array.shape[2] != 3:
        raise ValueError(f"Expected pixel array of shape (H, W, 3), got {array.shape}")
    if array.shape[0] == 0 or array.shape[1] == 0:
        raise ValueError(f"Image must not be empty, got shape {array.shape}")
    if not np.issubdtype(array.dtype, np.integer):
        if not np.all(np.isfinite(array)) or not np.all(array == np.floor(array)):
            raise ValueError("Pixel values must be integers")
    if array.min() < 0 or array.max() > PPM_MAX_VALUE:
        raise ValueError(
            f"Pixel values must be in [0, {PPM_MAX_VALUE}], "
            f"got range [{array.min()}, {array.max()}]"
        )
    return array.astype(np.uint8)


def encode_ppm(pixels: npt.ArrayLike) -> str:
    """Encode an 8-bit RGB image as plain-text PPM (P3).

    Args:
        pixels: Array of shape (height, width, 3), row 0 at the top.

    Returns:
        The complete PPM file contents.

    Raises:
        ValueError: If the array is not (H, W, 3) or holds values outside [0, 255].
    """
    image = _validate_pixels(pixels)
    height, width, _ = image.shape

    lines = ["P3", f"{width} {height}", str(PPM_MAX_VALUE)]
    lines.extend(f"{r} {g} {b}" for r, g, b in image.reshape(-1, 3).tolist())
    return "\n".join(lines) + "\n"


def write_ppm(pixels: npt.ArrayLike, destination: str | Path | TextIO) -> None:
    """Write an 8-bit RGB image as plain-text PPM (P3).

    Args:
        pixels: Array of shape (height, width, 3), row 0 at the top.
        destination: File path, or a writable text stream such as sys.stdout.

    Raises:
        ValueError: If the pixel array is invalid.
    """
    contents = encode_ppm(pixels)

    if isinstance(destination, (str, Path)):
        Path(destination).write_text(contents, encoding="ascii")
        logger.info(f"Wrote PPM image to {destination}")
    else:
        destination.write(contents)


def save_png_from_array(pixels: npt.ArrayLike, filepath: str | Path) -> None:
    """Save an 8-bit RGB image as a PNG file.

    Args:
        pixels: Array of shape (height, width, 3), row 0 at the top.
        filepath: Output file path (should end in .png).

    Raises:
        ValueError: If the pixel array is invalid.
    """
    image = _validate_pixels(pixels)

    # Save using Pillow
    pil_image = PILImage.fromarray(image)
    pil_image.save(filepath)
    logger.info(f"Wrote PNG image to {filepath}")
