"""Path tracing integrator and parallel render kernel.

This module implements the color integrator and the per-pixel sampling loop
that fills the image buffer.

The integrator follows a ray through the scene: at every hit the struck
material either absorbs the ray or scatters it, multiplying the path
throughput by its attenuation. A ray that escapes the scene picks up the sky
gradient; a path that runs out of bounces contributes nothing. This is the
loop form of the recursive definition

    color(ray, depth) = 0                                   if depth <= 0
                      = attenuation * color(scattered, depth - 1)  on scatter
                      = 0                                   on absorption
                      = sky(ray)                            on miss

and produces identical results without any recursion.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric)
    - Fixed bounce budget, no Russian roulette
    - Jittered sub-pixel sampling for anti-aliasing
    - Sum-and-count accumulation so renders can be continued
    - Gamma 2 correction and 8-bit quantization on readback

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.core.integrator import (
    ...     render_image, setup_render_target, get_image_uint8
    ... )
    >>> from src.pathtracer.scene.presets import create_three_spheres_scene
    >>> from src.pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_three_spheres_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(400, 225)
    >>> render_image(samples_per_pixel=100, max_depth=50)
    >>> pixels = get_image_uint8()
"""

import logging
import math

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.pathtracer.camera.thin_lens import get_ray
from src.pathtracer.core.ray import Ray, unit_vector
from src.pathtracer.geometry.sphere import HitRecord
from src.pathtracer.materials.dielectric import scatter_dielectric_by_id
from src.pathtracer.materials.lambertian import scatter_lambertian_by_id
from src.pathtracer.materials.material import (
    ScatterRecord,
    make_absorbed_record,
    scattered_ray,
)
from src.pathtracer.materials.metal import scatter_metal_by_id
from src.pathtracer.scene.intersection import intersect_scene
from src.pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Default maximum ray bounces (path length)
MAX_DEPTH = 50

# t_min and t_max for ray intersection; T_MIN keeps a scattered ray from
# re-hitting the surface it just left ("shadow acne")
T_MIN = 0.001
T_MAX = math.inf

# Sky gradient endpoints
SKY_HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = vec3(0.5, 0.7, 1.0)

# Largest channel value before 8-bit quantization
MAX_CHANNEL = 0.999

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Sum of all samples per pixel, indexed [i, j] with j = 0 at the bottom
_color_sum = ti.Vector.field(3, dtype=ti.f64, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel (preallocated to max size)
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.
    The buffers are preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT
    to avoid Taichi kernel recompilation issues.

    Args:
        width: Image width in pixels (2 to MAX_IMAGE_WIDTH).
        height: Image height in pixels (2 to MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions exceed maximum supported size or are
            smaller than 2 (pixel coordinates are divided by size - 1).
    """
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )
    if width < 2 or height < 2:
        raise ValueError(f"Image dimensions ({width}x{height}) must be at least 2x2")

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    # Clear buffers
    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_sum.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_sample_count() -> "ti.ScalarField":
    """Get the per-pixel sample count field.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _sample_count


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(ray_in: Ray, rec: HitRecord) -> ScatterRecord:
    """Dispatch to the scatter function of the struck material.

    Args:
        ray_in: The incoming ray.
        rec: The hit record; rec.material_id selects the material.

    Returns:
        The material's ScatterRecord. Unknown material IDs absorb the ray.
    """
    mat_type = get_material_type(rec.material_id)
    type_index = get_material_type_index(rec.material_id)

    record = make_absorbed_record()

    if mat_type == int(MaterialType.LAMBERTIAN):
        record = scatter_lambertian_by_id(type_index, ray_in, rec)

    elif mat_type == int(MaterialType.METAL):
        record = scatter_metal_by_id(type_index, ray_in, rec)

    elif mat_type == int(MaterialType.DIELECTRIC):
        record = scatter_dielectric_by_id(type_index, ray_in, rec)

    return record


# =============================================================================
# Integrator
# =============================================================================


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Background color for rays that leave the scene.

    Blends linearly from white at the bottom to sky blue at the top:
        t = 0.5 * (unit(direction).y + 1)
        color = (1 - t) * white + t * (0.5, 0.7, 1.0)
    """
    unit_direction = unit_vector(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * SKY_HORIZON_COLOR + t * SKY_ZENITH_COLOR


@ti.func
def ray_color(ray: Ray, max_depth: ti.i32) -> vec3:
    """Estimate the color seen along a ray.

    Args:
        ray: The ray to follow.
        max_depth: Bounce budget. A budget of 0 or less returns black.

    Returns:
        The product of attenuations along the path times the sky color if
        the path escapes within the budget, otherwise black.
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = ray

    # Active flag for path continuation
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(current, T_MIN, T_MAX)

            if rec.hit == 0:
                # Ray escaped - pick up the sky
                color = throughput * sky_color(current.direction)
                active = 0
            else:
                scatter = _scatter_material(current, rec)
                if scatter.did_scatter == 0:
                    # Ray was absorbed
                    active = 0
                else:
                    throughput *= scatter.attenuation
                    current = scattered_ray(scatter)

    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_samples(width: ti.i32, height: ti.i32, samples: ti.i32, max_depth: ti.i32):
    """Render samples for every pixel and add them to the buffers.

    The outermost loop runs in parallel, one task per pixel. Each pixel
    writes only its own buffer entries, so the completion order of tasks
    never affects the image.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        samples: Number of samples to add per pixel.
        max_depth: Bounce budget per sample.
    """
    for i, j in ti.ndrange(width, height):
        pixel_color = vec3(0.0, 0.0, 0.0)
        for _ in range(samples):
            s = (ti.cast(i, ti.f64) + ti.random(ti.f64)) / ti.cast(width - 1, ti.f64)
            t = (ti.cast(j, ti.f64) + ti.random(ti.f64)) / ti.cast(height - 1, ti.f64)
            pixel_color += ray_color(get_ray(s, t), max_depth)

        _color_sum[i, j] += pixel_color
        _sample_count[i, j] += samples


# =============================================================================
# Public Rendering API
# =============================================================================


def render_image(samples_per_pixel: int = 1, max_depth: int = MAX_DEPTH) -> None:
    """Render samples into the render target.

    Adds samples_per_pixel samples to every pixel. Can be called multiple
    times to keep refining the same image.

    Args:
        samples_per_pixel: Number of samples to add per pixel.
        max_depth: Bounce budget per sample.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    if samples_per_pixel <= 0:
        return

    width, height = get_image_dimensions()
    logger.debug(f"Rendering {samples_per_pixel} spp at {width}x{height}, max_depth={max_depth}")
    _render_samples(width, height, samples_per_pixel, max_depth)


def get_total_samples() -> int:
    """Get the number of samples per pixel rendered so far.

    Returns the sample count from pixel (0, 0), which is the same for all
    pixels after calling render_image().

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_linear_image_numpy() -> npt.NDArray[np.float64]:
    """Get the averaged linear image as a NumPy array.

    The array shape is (height, width, 3) and row 0 is the top scanline,
    i.e. the order in which an image file stores pixels. Pixels without
    samples are black.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    color_sum = _color_sum.to_numpy()[:width, :height, :]
    counts = _sample_count.to_numpy()[:width, :height].astype(np.float64)

    image = np.zeros_like(color_sum)
    np.divide(color_sum, counts[:, :, np.newaxis], out=image, where=counts[:, :, np.newaxis] > 0)

    # Transpose from (width, height, 3) to (height, width, 3) for standard image format
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (j = 0 is the bottom scanline, images start at the top)
    return np.flipud(image)


def gamma_correct_uint8(image: npt.NDArray[np.float64]) -> npt.NDArray[np.uint8]:
    """Apply gamma 2 correction and quantize to 8 bits.

    Each channel becomes floor(256 * clamp(sqrt(c), 0, 0.999)). NaN, -inf
    and negative values map to 0; +inf saturates like any bright value.

    Args:
        image: Linear image array of any shape.

    Returns:
        Array of the same shape with dtype uint8.
    """
    linear = np.nan_to_num(np.asarray(image, dtype=np.float64), nan=0.0, posinf=1.0, neginf=0.0)
    corrected = np.sqrt(np.maximum(linear, 0.0))
    clamped = np.clip(corrected, 0.0, MAX_CHANNEL)
    return np.floor(256.0 * clamped).astype(np.uint8)


def get_image_uint8() -> npt.NDArray[np.uint8]:
    """Get the rendered image as gamma-corrected 8-bit RGB.

    Returns:
        Array of shape (height, width, 3), row 0 at the top.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    return gamma_correct_uint8(get_linear_image_numpy())


# =============================================================================
# Single-Ray Helpers (Python-callable, for inspection and tests)
# =============================================================================

_traced_color = ti.Vector.field(3, dtype=ti.f64, shape=())


@ti.kernel
def _trace_ray_kernel(origin: ti.types.vector(3, ti.f64), direction: ti.types.vector(3, ti.f64), max_depth: ti.i32):
    _traced_color[None] = ray_color(Ray(origin=origin, direction=direction), max_depth)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = MAX_DEPTH,
) -> tuple[float, float, float]:
    """Estimate the color along a single ray from Python scope.

    Args:
        origin: Ray origin.
        direction: Ray direction (need not be normalized).
        max_depth: Bounce budget.

    Returns:
        Tuple of (R, G, B) linear color values.
    """
    _trace_ray_kernel(
        ti.Vector([origin[0], origin[1], origin[2]], dt=ti.f64),
        ti.Vector([direction[0], direction[1], direction[2]], dt=ti.f64),
        max_depth,
    )
    color = _traced_color[None]
    return (float(color[0]), float(color[1]), float(color[2]))
