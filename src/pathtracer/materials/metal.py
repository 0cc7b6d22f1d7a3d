"""Reflective metal scattering.

A metal mirrors the incoming direction about the normal, R = I - 2(I . N)N,
then perturbs it by a random point in a sphere of radius fuzz. Rays perturbed to or below the surface are absorbed, so a rough metal
is darker at grazing angles.

Example:
    >>> # Inside a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal
    >>> # )
"""

import taichi as ti

from pathtracer.core.ray import dot, random_in_unit_sphere, real, reflect, vec3
from pathtracer.materials.lambertian import check_albedo


@ti.func
def scatter_metal(albedo: vec3, fuzz: real, incident_direction: vec3, normal: vec3):
    """Scatter off a metal surface.

    Args:
        albedo: Reflectance per channel.
        fuzz: Radius of the perturbation sphere, 0 for a perfect mirror.
        incident_direction: Incoming ray direction, any length. It is
            reflected as is, so its length scales the mirror direction
            relative to the fuzz.
        normal: Unit normal facing the incoming ray.

    Returns:
        (scattered_direction, attenuation, did_scatter), with did_scatter 0
        when the perturbed reflection does not leave the surface.
    """
    mirrored = reflect(incident_direction, normal)
    scattered_direction = mirrored + fuzz * random_in_unit_sphere()

    did_scatter = 0
    if dot(scattered_direction, normal) > 0.0:
        did_scatter = 1
    return scattered_direction, albedo, did_scatter


def clamp_fuzz(fuzz: float) -> float:
    """Limit fuzz to [0, 1]."""
    return min(max(fuzz, 0.0), 1.0)


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------

MAX_METAL_MATERIALS = 256

metal_albedos = ti.Vector.field(3, dtype=real, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=real, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    num_metal_materials[None] = 0


def add_metal_material(albedo: tuple[float, float, float], fuzz: float = 0.0) -> int:
    """Store a metal's albedo and fuzz and return its slot.

    Fuzz outside [0, 1] is clamped rather than rejected.

    Raises:
        ValueError: If an albedo channel lies outside [0, 1].
        RuntimeError: If all MAX_METAL_MATERIALS slots are taken.
    """
    check_albedo(albedo)

    slot = num_metal_materials[None]
    if slot == MAX_METAL_MATERIALS:
        raise RuntimeError(f"All {MAX_METAL_MATERIALS} metal material slots are in use")

    metal_albedos[slot] = list(albedo)
    metal_fuzzes[slot] = clamp_fuzz(fuzz)
    num_metal_materials[None] = slot + 1
    return slot


def get_metal_material_count() -> int:
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> real:
    return metal_fuzzes[material_idx]


@ti.func
def scatter_metal_by_id(material_idx: ti.i32, incident_direction: vec3, normal: vec3):
    """scatter_metal with the albedo and fuzz stored in slot material_idx."""
    return scatter_metal(
        get_metal_albedo(material_idx),
        get_metal_fuzz(material_idx),
        incident_direction,
        normal,
    )
