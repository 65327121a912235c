"""Output module for writing rendered images.

Components:
    export: Plain-text PPM (P3) encoding and PNG export via Pillow

The encoders take finished 8-bit pixels of shape (height, width, 3), row 0
at the top, and never touch Taichi state.
"""

from .export import (
    PPM_MAX_VALUE,
    encode_ppm,
    save_png_from_array,
    write_ppm,
)

__all__ = [
    "PPM_MAX_VALUE",
    "encode_ppm",
    "write_ppm",
    "save_png_from_array",
]
