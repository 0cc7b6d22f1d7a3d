"""Dielectric (glass/water) material implementation.

This module implements transparent materials like glass and water that both
reflect and refract light.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when the refraction ratio times sin(theta)
      exceeds 1

The material randomly chooses between reflection and refraction based on the
Fresnel reflectance probability, which increases at grazing angles. The medium
itself is perfectly clear: attenuation is always white.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(
    >>> #     refraction_index, incident_dir, normal, front_face
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import dot, real, reflect, reflectance, refract, unit_vector, vec3


@ti.func
def refraction_ratio_for(refraction_index: real, front_face: ti.i32) -> real:
    """Ratio of refractive indices for the side the ray arrives from.

    Entering the material (front face) the ratio is 1 / index, leaving it
    the ratio is the index itself.
    """
    ratio = refraction_index
    if front_face == 1:
        ratio = 1.0 / refraction_index
    return ratio


@ti.func
def scatter_dielectric(
    refraction_index: real,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Compute the scattered ray direction for a dielectric material.

    The ray reflects when total internal reflection occurs, or when a uniform
    random draw falls below the Schlick reflectance. Otherwise it refracts.

    Args:
        refraction_index: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The surface normal (unit length, facing against the ray).
        front_face: 1 if the ray hits the outside of the surface,
            0 if it travels inside the material.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The reflected or refracted direction.
        - attenuation: White (1, 1, 1).
        - did_scatter: Always 1, dielectrics never absorb.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    refraction_ratio = refraction_ratio_for(refraction_index, front_face)

    unit_direction = unit_vector(incident_direction)
    cos_theta = tm.min(dot(-unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(1.0 - cos_theta * cos_theta)

    cannot_refract = refraction_ratio * sin_theta > 1.0

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract or ti.random(real) < reflectance(cos_theta, refraction_ratio):
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, refraction_ratio)

    return scattered_direction, attenuation, 1


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------

MAX_DIELECTRIC_MATERIALS = 256

dielectric_refraction_indices = ti.field(dtype=real, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    num_dielectric_materials[None] = 0


def add_dielectric_material(refraction_index: float = 1.5) -> int:
    """Store a refraction index and return its slot.

    Args:
        refraction_index: Index relative to the surrounding medium: 1.33 for
            water, 1.5 for glass, 2.4 for diamond. Must be positive; values
            below 1.0 model a medium less dense than its surroundings (an
            air bubble in water).

    Returns:
        Slot of the material in the registry.

    Raises:
        ValueError: If the refraction index is not positive.
        RuntimeError: If all MAX_DIELECTRIC_MATERIALS slots are taken.
    """
    if refraction_index <= 0.0:
        raise ValueError(
            f"Index of refraction = {refraction_index} is not positive."
        )

    slot = num_dielectric_materials[None]
    if slot == MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"All {MAX_DIELECTRIC_MATERIALS} dielectric material slots are in use"
        )

    dielectric_refraction_indices[slot] = refraction_index
    num_dielectric_materials[None] = slot + 1
    return slot


def get_dielectric_material_count() -> int:
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_refraction_index(material_idx: ti.i32) -> real:
    return dielectric_refraction_indices[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """scatter_dielectric with the index stored in slot material_idx."""
    return scatter_dielectric(
        get_dielectric_refraction_index(material_idx),
        incident_direction,
        normal,
        front_face,
    )
