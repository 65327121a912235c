"""Scene-level sphere storage and nearest-hit intersection.

This module stores the scene's spheres in Taichi fields and answers the
hittable contract for the whole scene: test a ray against every sphere and
return the nearest valid hit with its material ID.

Every sphere is tested on each query, so the order of the spheres never
changes the result.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.scene.intersection import add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, -1.0), 0.5, material_id=0)
    >>> # Use intersect_scene within a Taichi kernel
"""

import logging

import taichi as ti

from src.pathtracer.core.ray import Ray
from src.pathtracer.geometry.sphere import (
    HitRecord,
    Sphere,
    hit_sphere,
    make_miss_record,
)

logger = logging.getLogger(__name__)

# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f64, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f64, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all spheres from the scene.

    Resets the sphere count to zero. The actual field data is not
    cleared but will be overwritten when new spheres are added.
    """
    num_spheres[None] = 0


def add_sphere(
    center: tuple[float, float, float],
    radius: float,
    material_id: int = 0,
) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere as (x, y, z).
        radius: The radius of the sphere (must be positive).
        material_id: The material ID to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
        ValueError: If the radius is not positive.
    """
    if not radius > 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")

    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = [center[0], center[1], center[2]]
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def remove_sphere(index: int) -> None:
    """Remove the sphere at index.

    Later spheres move down one slot, keeping their relative order.

    Args:
        index: The index of the sphere to remove.

    Raises:
        IndexError: If no sphere exists at index.
    """
    count = num_spheres[None]
    if index < 0 or index >= count:
        raise IndexError(f"Sphere index {index} out of range (scene has {count} spheres)")

    for i in range(index, count - 1):
        sphere_centers[i] = sphere_centers[i + 1]
        sphere_radii[i] = sphere_radii[i + 1]
        sphere_material_ids[i] = sphere_material_ids[i + 1]
    num_spheres[None] = count - 1
    logger.debug(f"Removed sphere {index}, {count - 1} remaining")


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def get_sphere(index: ti.i32) -> Sphere:
    """Load the sphere stored at index."""
    return Sphere(
        center=sphere_centers[index],
        radius=sphere_radii[index],
        material_id=sphere_material_ids[index],
    )


@ti.func
def intersect_scene(ray: Ray, t_min: ti.f64, t_max: ti.f64) -> HitRecord:
    """Test a ray against every sphere in the scene.

    Keeps a running closest_so_far, starting at t_max, and passes it as the
    upper bound of each sphere test, so every accepted hit is nearer than
    all previous ones.

    Args:
        ray: The ray to test.
        t_min: Smallest accepted ray parameter (inclusive).
        t_max: Largest accepted ray parameter (inclusive).

    Returns:
        The HitRecord of the nearest hit, or a miss record if no sphere
        was hit.
    """
    closest_so_far = t_max
    result = make_miss_record()

    n_spheres = num_spheres[None]
    for i in range(n_spheres):
        rec = hit_sphere(ray, get_sphere(i), t_min, closest_so_far)
        if rec.hit == 1:
            closest_so_far = rec.t
            result = rec

    return result
