"""Thin-lens camera model with depth of field.

This module implements a positionable camera that generates primary rays:
- Look-at positioning (lookfrom, lookat, vup)
- Vertical field of view specification
- Arbitrary aspect ratios
- Depth of field from a finite aperture focused at focus_dist

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport is placed at focus_dist along -w. Rays start at a random point
on a lens disk of radius aperture / 2 and pass through the viewport point,
so only geometry at focus_dist is sharp. An aperture of 0 gives a pinhole
camera.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.camera.thin_lens import ThinLensCamera, setup_camera
    >>>
    >>> camera = ThinLensCamera(
    ...     lookfrom=(13.0, 2.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=3.0 / 2.0,
    ...     aperture=0.1,
    ...     focus_dist=10.0,
    ... )
    >>> setup_camera(camera)
    >>> # Use get_ray(s, t) within a Taichi kernel
"""

import math
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np
import taichi as ti

from src.pathtracer.core.ray import Ray, make_ray, random_in_unit_disk

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class ThinLensCamera:
    """Configuration for a thin-lens (depth of field) camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 disables depth of field.
        focus_dist: Distance from lookfrom to the plane in perfect focus.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float
    aperture: float = 0.0
    focus_dist: float = 1.0

    def validate(self) -> None:
        """Check the view parameters.

        Raises:
            ValueError: If any parameter would produce a degenerate view.
        """
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.aperture < 0.0:
            raise ValueError(f"aperture must be non-negative, got {self.aperture}")
        if self.focus_dist <= 0.0:
            raise ValueError(f"focus_dist must be positive, got {self.focus_dist}")

        view = np.array(self.lookfrom, dtype=np.float64) - np.array(self.lookat, dtype=np.float64)
        if np.linalg.norm(view) < 1e-8:
            raise ValueError("lookfrom and lookat must be different points")
        if np.linalg.norm(np.cross(np.array(self.vup, dtype=np.float64), view)) < 1e-8:
            raise ValueError("vup must not be parallel to the view direction")

    def to_dict(self) -> dict[str, Any]:
        """Export the camera parameters as a JSON-friendly dictionary."""
        data = asdict(self)
        for key in ("lookfrom", "lookat", "vup"):
            data[key] = list(data[key])
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ThinLensCamera":
        """Build a camera from a dictionary produced by to_dict()."""
        return cls(
            lookfrom=tuple(float(x) for x in data["lookfrom"]),
            lookat=tuple(float(x) for x in data["lookat"]),
            vup=tuple(float(x) for x in data.get("vup", (0.0, 1.0, 0.0))),
            vfov=float(data["vfov"]),
            aspect_ratio=float(data["aspect_ratio"]),
            aperture=float(data.get("aperture", 0.0)),
            focus_dist=float(data.get("focus_dist", 1.0)),
        )


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

# Camera origin (position)
_camera_origin = ti.Vector.field(3, dtype=ti.f64, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f64, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f64, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f64, shape=())  # Backward (opposite view)

# Viewport vectors for ray computation
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f64, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=ti.f64, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=ti.f64, shape=())  # Lower-left of viewport

# Thin lens
_lens_radius = ti.field(dtype=ti.f64, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: ThinLensCamera) -> None:
    """Initialize camera state from configuration.

    Computes the camera's orthonormal basis (u, v, w), the viewport at
    focus_dist in front of the camera, and the lens radius. This must be
    called before rendering.

    Args:
        camera: Camera configuration with position, orientation, FOV and lens.

    Raises:
        ValueError: If the camera parameters are degenerate.
    """
    camera.validate()

    # Convert FOV from degrees to radians
    theta = math.radians(camera.vfov)
    h = math.tan(theta / 2.0)

    # Viewport dimensions at unit distance
    viewport_height = 2.0 * h
    viewport_width = camera.aspect_ratio * viewport_height

    # Build orthonormal basis using NumPy (Python-side computation)
    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    # w points from lookat toward lookfrom (backward)
    w = lookfrom - lookat
    w = w / np.linalg.norm(w)

    # u points right (perpendicular to w and vup)
    u = np.cross(vup, w)
    u = u / np.linalg.norm(u)

    # v points up in the camera's frame
    v = np.cross(w, u)

    # Viewport scaled out to the focus plane
    horizontal = camera.focus_dist * viewport_width * u
    vertical = camera.focus_dist * viewport_height * v
    lower_left = lookfrom - horizontal / 2.0 - vertical / 2.0 - camera.focus_dist * w

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = camera.aperture / 2.0


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def get_ray(s: ti.f64, t: ti.f64) -> Ray:
    """Generate a ray through normalized image coordinates (s, t).

    The coordinates are normalized:
    - s = 0: left edge, s = 1: right edge
    - t = 0: bottom edge, t = 1: top edge

    The ray origin is offset over the lens disk; the direction aims at the
    viewport point from that offset origin and is not normalized.

    Args:
        s: Horizontal coordinate in [0, 1] (left to right).
        t: Vertical coordinate in [0, 1] (bottom to top).

    Returns:
        A Ray from the (lens-offset) camera origin through the viewport.
    """
    rd = _lens_radius[None] * random_in_unit_disk()
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y

    origin = _camera_origin[None]
    direction = (
        _lower_left_corner[None]
        + s * _viewport_horizontal[None]
        + t * _viewport_vertical[None]
        - origin
        - offset
    )

    return make_ray(origin + offset, direction)


# =============================================================================
# Utility Functions
# =============================================================================


def _field_to_tuple(vector_field: Any) -> tuple[float, float, float]:
    value = vector_field[None]
    return (float(value[0]), float(value[1]), float(value[2]))


def get_camera_info() -> dict[str, Any]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        and lens_radius.
    """
    return {
        "origin": _field_to_tuple(_camera_origin),
        "u": _field_to_tuple(_camera_u),
        "v": _field_to_tuple(_camera_v),
        "w": _field_to_tuple(_camera_w),
        "horizontal": _field_to_tuple(_viewport_horizontal),
        "vertical": _field_to_tuple(_viewport_vertical),
        "lower_left": _field_to_tuple(_lower_left_corner),
        "lens_radius": float(_lens_radius[None]),
    }


# Scratch storage for sample_ray()
_sampled_origin = ti.Vector.field(3, dtype=ti.f64, shape=())
_sampled_direction = ti.Vector.field(3, dtype=ti.f64, shape=())


@ti.kernel
def _sample_ray_kernel(s: ti.f64, t: ti.f64):
    ray = get_ray(s, t)
    _sampled_origin[None] = ray.origin
    _sampled_direction[None] = ray.direction


def sample_ray(s: float, t: float) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
    """Generate one camera ray from Python scope.

    Useful for inspecting the camera outside a render.

    Returns:
        Tuple of (origin, direction) as float tuples.
    """
    _sample_ray_kernel(s, t)
    return _field_to_tuple(_sampled_origin), _field_to_tuple(_sampled_direction)
