"""Scene module for scene storage, nearest-hit queries and preset scenes.

This module handles scene representation and ray-scene queries:

Components:
    intersection: Sphere storage and the nearest-hit scene query
    manager: Unified scene manager coordinating spheres and materials
    presets: Ready-made sphere scenes with matching cameras

The scene module manages:
    - Sphere storage in Taichi fields
    - Material ID assignment and lookup
    - Scene descriptions as JSON-friendly dictionaries and files

Scene data is organized for efficient parallel access:
    - Structure-of-Arrays layout for geometric data
    - Contiguous material ID arrays shared by any number of spheres
"""

from .intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
    remove_sphere,
)
from .manager import (
    MAX_MATERIALS,
    MATERIAL_DEFAULTS,
    Material,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
    make_material,
    material_type_indices,
    material_types,
    num_materials,
    reset_material_ids,
)
from .presets import PRESETS, create_random_spheres_scene, create_three_spheres_scene

__all__ = [
    # Intersection module
    "add_sphere",
    "remove_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "Material",
    "MATERIAL_DEFAULTS",
    "make_material",
    "reset_material_ids",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    "material_types",
    "material_type_indices",
    "num_materials",
    # Presets module
    "PRESETS",
    "create_three_spheres_scene",
    "create_random_spheres_scene",
]
