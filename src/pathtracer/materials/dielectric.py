"""Dielectric (glass/water) material implementation.

This module implements the dielectric material, which models clear
transparent materials like glass and water with refraction and Fresnel
reflectance.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when (n1 / n2) * sin(theta1) > 1

The material randomly chooses between reflection and refraction based on
the Fresnel reflectance probability, which increases at grazing angles.
Clear glass never absorbs and does not tint: attenuation is always white.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # record = scatter_dielectric(ior, ray_in, hit_record)
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import (
    Ray,
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
)
from src.pathtracer.geometry.sphere import HitRecord
from src.pathtracer.materials.material import ScatterRecord, make_scatter_record

# Type alias for 3D vectors
vec3 = tm.vec3

# Refraction ratios this close to 1 are treated as an index-matched interface
MATCHED_INDEX_EPSILON = 1e-8


@ti.func
def refraction_ratio_for(ior: ti.f64, front_face: ti.i32) -> ti.f64:
    """Ratio n_incident / n_transmitted for the side the ray arrived from.

    Hitting from outside (front_face=1): 1 / ior (air to glass).
    Hitting from inside (front_face=0): ior (glass to air).
    """
    ratio = 1.0 / ior
    if front_face == 0:
        ratio = ior
    return ratio


@ti.func
def scatter_dielectric(ior: ti.f64, ray_in: Ray, rec: HitRecord) -> ScatterRecord:
    """Reflect or refract a ray at a dielectric surface.

    Reflection is chosen on total internal reflection, or with probability
    equal to the Schlick reflectance; otherwise the ray refracts. At an
    index-matched interface (refraction ratio of 1) nothing is reflected and
    the ray passes straight through.

    Args:
        ior: Index of refraction of the material.
        ray_in: The incoming ray.
        rec: The hit record at the surface (normal faces against ray_in).

    Returns:
        A ScatterRecord that always scatters, with white attenuation.
    """
    # Dielectrics don't absorb light - attenuation is white
    attenuation = vec3(1.0, 1.0, 1.0)

    refraction_ratio = refraction_ratio_for(ior, rec.front_face)

    unit_direction = unit_vector(ray_in.direction)
    cos_theta = tm.min(tm.dot(-unit_direction, rec.normal), 1.0)
    sin_theta = ti.sqrt(1.0 - cos_theta * cos_theta)

    cannot_refract = refraction_ratio * sin_theta > 1.0

    reflectance = schlick_reflectance(cos_theta, refraction_ratio)
    if ti.abs(refraction_ratio - 1.0) < MATCHED_INDEX_EPSILON:
        reflectance = 0.0

    direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract or reflectance > ti.random(ti.f64):
        direction = reflect(unit_direction, rec.normal)
    else:
        direction = refract(unit_direction, rec.normal, refraction_ratio)

    return make_scatter_record(attenuation, rec.point, direction)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 512

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=ti.f64, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass).
            Must be positive.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If IOR is not positive.
    """
    if ior <= 0.0:
        raise ValueError(
            f"Index of refraction = {ior} is not positive. "
            "IOR must be > 0 for a physically meaningful material."
        )

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f64:
    """Get the IOR for a dielectric material by index."""
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(material_idx: ti.i32, ray_in: Ray, rec: HitRecord) -> ScatterRecord:
    """Scatter off a dielectric material looked up by registry index."""
    ior = get_dielectric_ior(material_idx)
    return scatter_dielectric(ior, ray_in, rec)
