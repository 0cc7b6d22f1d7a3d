"""Materials module for light scattering models.

This module implements the three surface materials of the renderer:

Components:
    lambertian: Ideal diffuse reflection
    metal: Mirror reflection blurred by a fuzz factor
    dielectric: Glass-like materials with refraction (Schlick reflectance)

Each material provides a scatter function returning
(scattered_direction, attenuation, did_scatter): either a child ray direction
with its color attenuation, or did_scatter == 0 when the ray is absorbed.

Material parameters live in per-type Taichi fields; the scene manager maps
a unified material ID to (material type, index within that type).
"""

from .dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
    get_dielectric_material_count,
    get_dielectric_refraction_index,
    scatter_dielectric,
    scatter_dielectric_by_id,
)
from .lambertian import (
    add_lambertian_material,
    check_albedo,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)
from .metal import (
    add_metal_material,
    clamp_fuzz,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)

__all__ = [
    # Lambertian
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "check_albedo",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_albedo",
    # Metal
    "scatter_metal",
    "scatter_metal_by_id",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_fuzz",
    "clamp_fuzz",
    # Dielectric
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_refraction_index",
]
