"""Ideal diffuse (Lambertian) scattering.

Adding a random unit vector to the unit normal gives scattered directions
with a cos(theta) density around the normal, which is the Lambertian
distribution, without building a tangent frame.

The registry at the bottom of the module stores one albedo per diffuse
material; the scene manager hands out the slots.
"""

import taichi as ti

from pathtracer.core.ray import near_zero, random_unit_vector, real, vec3


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3):
    """Scatter off a diffuse surface.

    Args:
        albedo: Reflectance per channel.
        normal: Unit normal facing the incoming ray.

    Returns:
        (scattered_direction, attenuation, did_scatter). The direction is
        not normalized; when normal + random_unit_vector() nearly vanishes
        the normal itself is used. Attenuation is the albedo and did_scatter
        is always 1.
    """
    scattered_direction = normal + random_unit_vector()
    if near_zero(scattered_direction):
        scattered_direction = normal
    return scattered_direction, albedo, 1


def check_albedo(albedo: tuple[float, float, float]) -> None:
    """Raise ValueError unless every channel of albedo lies in [0, 1]."""
    for channel, value in zip("rgb", albedo):
        if not 0.0 <= value <= 1.0:
            raise ValueError(
                f"Albedo {channel} = {value} is outside [0, 1]; a surface "
                "cannot reflect more light than it receives"
            )


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------

MAX_LAMBERTIAN_MATERIALS = 256

lambertian_albedos = ti.Vector.field(3, dtype=real, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Store a diffuse albedo and return its slot.

    Raises:
        ValueError: If a channel lies outside [0, 1].
        RuntimeError: If all MAX_LAMBERTIAN_MATERIALS slots are taken.
    """
    check_albedo(albedo)

    slot = num_lambertian_materials[None]
    if slot == MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"All {MAX_LAMBERTIAN_MATERIALS} Lambertian material slots are in use"
        )

    lambertian_albedos[slot] = list(albedo)
    num_lambertian_materials[None] = slot + 1
    return slot


def get_lambertian_material_count() -> int:
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    return lambertian_albedos[material_idx]


@ti.func
def scatter_lambertian_by_id(material_idx: ti.i32, normal: vec3):
    """scatter_lambertian with the albedo stored in slot material_idx."""
    return scatter_lambertian(get_lambertian_albedo(material_idx), normal)
