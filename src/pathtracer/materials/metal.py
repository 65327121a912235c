"""Metal (glossy reflective) material implementation.

This module implements the metal material, which models mirror reflection
with optional fuzz. A perfect metal (fuzz = 0) reflects like a mirror, while
fuzzier metals perturb the reflected ray by a random point in a ball of
radius fuzz.

The reflection formula is:
    R = V - 2(V . N)N

where V is the unit incident direction and N is the surface normal.

A perturbed ray that ends up pointing into the surface is absorbed, which is
how very fuzzy metals darken at grazing angles.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # record = scatter_metal(albedo, fuzz, ray_in, hit_record)
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import (
    Ray,
    random_in_unit_sphere,
    reflect,
    unit_vector,
)
from src.pathtracer.geometry.sphere import HitRecord
from src.pathtracer.materials.material import (
    ScatterRecord,
    make_absorbed_record,
    make_scatter_record,
    validate_albedo,
)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_metal(albedo: vec3, fuzz: ti.f64, ray_in: Ray, rec: HitRecord) -> ScatterRecord:
    """Reflect a ray off a metal surface.

    Reflects the unit incident direction about the normal and, when fuzz is
    positive, adds fuzz * random_in_unit_sphere(). With fuzz == 0 no random
    number is drawn, so the result is the exact mirror direction.

    Args:
        albedo: The reflective color.
        fuzz: The fuzz radius in [0, 1].
        ray_in: The incoming ray.
        rec: The hit record at the surface.

    Returns:
        A ScatterRecord with attenuation equal to albedo if the reflected
        ray leaves the surface (dot(reflected, normal) > 0), otherwise an
        absorbed record.
    """
    reflected = reflect(unit_vector(ray_in.direction), rec.normal)

    if fuzz > 0.0:
        reflected += fuzz * random_in_unit_sphere()

    record = make_absorbed_record()
    if tm.dot(reflected, rec.normal) > 0.0:
        record = make_scatter_record(albedo, rec.point, reflected)

    return record


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 512

# Storage for metal material properties
metal_albedos = ti.Vector.field(3, dtype=ti.f64, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f64, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple.
            Each component should be in [0, 1].
        fuzz: The fuzz radius in [0, 1]. Default is 0 (perfect mirror).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
        ValueError: If fuzz is outside [0, 1].
    """
    validate_albedo(albedo)

    if fuzz < 0.0 or fuzz > 1.0:
        raise ValueError(
            f"Fuzz = {fuzz} is outside [0, 1]. "
            "Fuzz must be between 0 (perfect mirror) and 1 (maximum fuzz)."
        )

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_albedos[idx] = [albedo[0], albedo[1], albedo[2]]
    metal_fuzzes[idx] = fuzz
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a metal material by index."""
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f64:
    """Get the fuzz radius for a metal material by index."""
    return metal_fuzzes[material_idx]


@ti.func
def scatter_metal_by_id(material_idx: ti.i32, ray_in: Ray, rec: HitRecord) -> ScatterRecord:
    """Scatter off a metal material looked up by registry index.

    Convenience function that looks up the albedo and fuzz from the
    material registry and calls scatter_metal.
    """
    albedo = get_metal_albedo(material_idx)
    fuzz = get_metal_fuzz(material_idx)
    return scatter_metal(albedo, fuzz, ray_in, rec)
