"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure, vector algebra and random sampling
    integrator: The path tracer (ray_color) and pixel accumulation kernels
    renderer: Scanline-by-scanline render driver with progress reporting

The core module estimates radiance per camera ray by following it through
material scattering events until it escapes to the sky or its bounce budget
runs out, then averages jittered samples per pixel for anti-aliasing.

All compute-intensive operations use Taichi kernels.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    random_in_range,
    random_in_unit_sphere,
    random_unit_vector,
    ray_at,
    reflect,
    reflectance,
    refract,
    unit_vector,
    vec3,
)

# Note: integrator and renderer are NOT imported here to avoid circular imports.
# Import directly from pathtracer.core.integrator or pathtracer.core.renderer.

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
    "reflectance",
    "near_zero",
    "random_in_range",
    "random_in_unit_sphere",
    "random_unit_vector",
]
