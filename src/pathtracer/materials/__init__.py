"""Materials module for light scattering models.

This module implements the material models a ray can bounce off:

Components:
    material: The shared scatter contract (ScatterRecord) and validation
    lambertian: Ideal diffuse reflection
    metal: Mirror reflection with optional fuzz
    dielectric: Glass-like materials with refraction (Schlick Fresnel)

Each material provides:
    - scatter_*(params, ray_in, hit_record) -> ScatterRecord
    - A registry in Taichi fields (add_*_material / clear_*_materials)
    - Getters and scatter_*_by_id for lookups by registry index

A ScatterRecord with did_scatter == 0 means the ray was absorbed. All
scattering runs as Taichi functions inside the render kernel.
"""

from .dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
    get_dielectric_ior,
    get_dielectric_material_count,
    scatter_dielectric,
    scatter_dielectric_by_id,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)
from .material import (
    ScatterRecord,
    make_absorbed_record,
    make_scatter_record,
    scattered_ray,
    validate_albedo,
)
from .metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)

__all__ = [
    # Scatter contract
    "ScatterRecord",
    "make_scatter_record",
    "make_absorbed_record",
    "scattered_ray",
    "validate_albedo",
    # Lambertian
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_albedo",
    "get_lambertian_material_count",
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    # Metal
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_albedo",
    "get_metal_fuzz",
    "get_metal_material_count",
    "scatter_metal",
    "scatter_metal_by_id",
    # Dielectric
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_ior",
    "get_dielectric_material_count",
    "scatter_dielectric",
    "scatter_dielectric_by_id",
]
