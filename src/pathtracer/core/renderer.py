"""Progressive renderer for iterative sample accumulation.

This module provides a convenient wrapper around the core integrator that supports:
- Progressive rendering that refines over time
- Batch rendering (multiple SPP in one call)
- Progress callbacks for CLI updates
- Easy reset and re-render functionality
- PPM and PNG output of the finished image

The Renderer class encapsulates the render target state and the bounce
budget, and hands finished pixels to the encoders in scanline order.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.core.renderer import Renderer
    >>> from src.pathtracer.scene.presets import create_three_spheres_scene
    >>> from src.pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_three_spheres_scene()
    >>> setup_camera(camera)
    >>>
    >>> renderer = Renderer(400, 225, max_depth=50)
    >>> renderer.render(100)  # Render 100 SPP
    >>> renderer.save_ppm("image.ppm")
"""

import logging
from collections.abc import Callable, Generator
from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt

from src.pathtracer.core.integrator import (
    MAX_DEPTH,
    clear_render_target,
    get_image_uint8,
    get_linear_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from src.pathtracer.output.export import save_png_from_array, write_ppm

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class Renderer:
    """A progressive renderer that accumulates samples over time.

    This class wraps the core integrator functions to provide a convenient
    interface for rendering with support for:
    - Incremental sample accumulation
    - Batch rendering (multiple SPP per call)
    - Progress callbacks
    - Reset functionality

    The renderer maintains its own state for width/height and delegates
    to the global integrator buffers (which are Taichi fields).

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Bounce budget used for every sample.
    """

    def __init__(self, width: int, height: int, max_depth: int = MAX_DEPTH) -> None:
        """Initialize the renderer.

        Args:
            width: Image width in pixels (2 to 2048).
            height: Image height in pixels (2 to 2048).
            max_depth: Bounce budget per sample. 0 renders a black image.

        Raises:
            ValueError: If dimensions are out of range or max_depth is negative.
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")
        self._width = width
        self._height = height
        self._max_depth = max_depth
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def max_depth(self) -> int:
        """Get the bounce budget."""
        return self._max_depth

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Reset the accumulator for a new render.

        Clears the color buffer and sample count, allowing a fresh render
        without changing the image dimensions.
        """
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset accumulator.

        Args:
            width: New image width in pixels.
            height: New image height in pixels.

        Raises:
            ValueError: If dimensions are out of range.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples with an optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
                A larger batch size reduces callback overhead but provides
                less frequent updates.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Stopping the iteration early leaves a valid image with fewer samples.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Raises:
            ValueError: If batch_size is not positive.
        """
        if num_samples <= 0:
            return
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        start_samples = self.sample_count
        target_samples = start_samples + num_samples
        logger.info(
            f"Rendering {self._width}x{self._height}, {num_samples} spp, "
            f"max_depth={self._max_depth}"
        )

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch, self._max_depth)
            remaining -= batch
            yield (self.sample_count, target_samples)

        logger.info(f"Render finished at {self.sample_count} spp")

    def get_image_numpy(self) -> npt.NDArray[np.float64]:
        """Get the averaged linear image as a NumPy array.

        Returns:
            NumPy array of shape (height, width, 3), row 0 at the top.
        """
        return get_linear_image_numpy()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the rendered image as gamma 2 corrected 8-bit RGB.

        Returns:
            NumPy array of shape (height, width, 3) with dtype uint8.
        """
        return get_image_uint8()

    def save_ppm(self, destination: str | Path | TextIO) -> None:
        """Write the rendered image as a plain-text (P3) PPM.

        Args:
            destination: File path or writable text stream.
        """
        write_ppm(self.get_image_uint8(), destination)

    def save_png(self, filepath: str | Path) -> None:
        """Save the rendered image as a PNG file.

        Args:
            filepath: Path to save the image (e.g., "output.png").
        """
        save_png_from_array(self.get_image_uint8(), filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"max_depth={self.max_depth}, samples={self.sample_count})"
        )
