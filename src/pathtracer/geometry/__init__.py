"""Geometry module for shape primitives.

This module provides the sphere primitive and its intersection routine:

Components:
    sphere: Sphere primitive, HitRecord and ray-sphere intersection

All intersection routines are implemented as Taichi functions (@ti.func).
Ray-object intersection follows the pattern:
    record = hit_shape(ray_origin, ray_direction, shape, t_min, t_max)
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_hit_record

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_hit_record",
]
