"""Geometry module for shape primitives.

This module provides the intersectable primitives of the renderer:

Components:
    sphere: Sphere primitive, the HitRecord payload and ray-sphere
        intersection

Intersection routines are Taichi functions (@ti.func) so the render kernel
can test every primitive in parallel across pixels. A primitive answers the
hittable contract:
    record = hit_shape(ray, shape, t_min, t_max)
where record.hit == 0 means the ray missed.
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_miss_record, make_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "make_miss_record",
]
