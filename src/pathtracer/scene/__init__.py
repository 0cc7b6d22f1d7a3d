"""Scene module for scene management and hit records.

This module handles scene representation and ray-scene queries:

Components:
    intersection: Sphere storage and nearest-hit queries
    manager: Unified scene manager coordinating spheres and materials
    presets: Built-in scenes (two spheres, three materials, random showcase)

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for sphere data
    - Contiguous material ID arrays
    - A flat material table mapping IDs to (type, type-local index)
"""

from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialRecord,
    MaterialType,
    SceneManager,
    SphereRecord,
    clear_material_table,
    get_material_type,
    get_material_type_index,
    material_count,
    material_table,
)
from .presets import (
    SCENES,
    create_materials_scene,
    create_random_scene,
    create_scene,
    create_two_sphere_scene,
    default_camera,
)

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialRecord",
    "SphereRecord",
    "MAX_MATERIALS",
    "clear_material_table",
    "get_material_type",
    "get_material_type_index",
    "material_table",
    "material_count",
    # Presets module
    "SCENES",
    "create_scene",
    "create_two_sphere_scene",
    "create_materials_scene",
    "create_random_scene",
    "default_camera",
]
