"""Taichi-based sphere path tracer.

This package renders scenes of spheres by tracing rays from a pinhole camera,
with support for:
- Recursive material scattering (Lambertian, metal, dielectric)
- Sky gradient lighting
- Jittered multi-sample anti-aliasing with gamma corrected output
- PPM and PNG export

Subpackages:
    core: Ray and vector utilities, the path tracer and the render driver
    geometry: Sphere primitive and intersection
    materials: Scattering models
    scene: Scene management, nearest-hit queries and built-in scenes
    camera: Pinhole camera with ray generation
    preview: Image encoding and export

Taichi must be initialized before importing the subpackages, since they
allocate Taichi fields at import time. Computation is in double precision;
initialize with ti.init(default_fp=ti.f64) so float literals in kernels match.
"""

__version__ = "0.1.0"
