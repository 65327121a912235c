"""Core rendering module.

This module contains the fundamental building blocks for path tracing:

Components:
    ray: Ray data structure, vector math and random sampling utilities
    integrator: Material dispatch, the ray_color integrator, the render
        target buffers and the parallel per-pixel render kernel
    renderer: Progressive Renderer wrapper with progress callbacks and
        image output

The integrator follows rays through the scene until they are absorbed, miss
everything (and pick up the sky gradient) or run out of bounces. Each pixel
averages many jittered samples for anti-aliasing.

All compute-intensive operations use Taichi kernels for parallel execution.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_real,
    random_unit_vector,
    random_vec3,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
    vec3,
)

# Note: integrator and renderer are NOT imported here because they allocate
# Taichi fields at import time, which must happen after ti.init().
#
# For rendering, use:
#   from src.pathtracer.core.renderer import Renderer

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "unit_vector",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "random_real",
    "random_vec3",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
]
