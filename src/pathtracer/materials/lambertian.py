"""Lambertian (ideal diffuse) material implementation.

A diffuse surface scatters the incoming ray toward the normal plus a random
unit vector, which produces a cosine-weighted distribution of outgoing
directions over the hemisphere. The surface color (albedo) attenuates every
bounce.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # record = scatter_lambertian(albedo, ray_in, hit_record)
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import Ray, near_zero, random_unit_vector
from src.pathtracer.geometry.sphere import HitRecord
from src.pathtracer.materials.material import (
    ScatterRecord,
    make_scatter_record,
    validate_albedo,
)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, ray_in: Ray, rec: HitRecord) -> ScatterRecord:
    """Scatter a ray off a diffuse surface.

    The scattered direction is normal + random_unit_vector(). When the two
    nearly cancel, the direction falls back to the normal so the scattered
    ray never has zero length.

    Args:
        albedo: The diffuse reflectance color.
        ray_in: The incoming ray (unused; diffuse scattering ignores it).
        rec: The hit record at the surface.

    Returns:
        A ScatterRecord that always scatters, starting exactly at rec.point
        with attenuation equal to albedo.
    """
    scatter_direction = rec.normal + random_unit_vector()

    # Catch degenerate scatter direction
    if near_zero(scatter_direction):
        scatter_direction = rec.normal

    return make_scatter_record(albedo, rec.point, scatter_direction)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 512

# Storage for Lambertian material properties
lambertian_albedos = ti.Vector.field(3, dtype=ti.f64, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.
            Each component should be in [0, 1] for energy conservation.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    validate_albedo(albedo)

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = [albedo[0], albedo[1], albedo[2]]
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a Lambertian material by index."""
    return lambertian_albedos[material_idx]


@ti.func
def scatter_lambertian_by_id(material_idx: ti.i32, ray_in: Ray, rec: HitRecord) -> ScatterRecord:
    """Scatter off a Lambertian material looked up by registry index."""
    albedo = get_lambertian_albedo(material_idx)
    return scatter_lambertian(albedo, ray_in, rec)
