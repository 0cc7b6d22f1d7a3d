"""Sphere storage and nearest-hit queries.

The scene is a flat list of spheres kept in structure-of-arrays Taichi
fields. Each sphere has a material ID that indexes the scene's material
table (see pathtracer.scene.manager); any number of spheres can share one.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.core.ray import vec3
    >>> from pathtracer.scene.intersection import add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
    >>> # intersect_scene() is then called from inside a kernel
"""

import taichi as ti

from pathtracer.core.ray import real, vec3
from pathtracer.geometry.sphere import Sphere, hit_sphere


@ti.dataclass
class SceneHitRecord:
    """Nearest hit of a ray against the whole scene.

    Same fields as geometry.sphere.HitRecord (hit, t, point, normal,
    front_face) plus material_id, which is -1 when nothing was hit.
    """

    hit: ti.i32
    t: real
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


MAX_SPHERES = 1024

sphere_centers = ti.Vector.field(3, dtype=real, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=real, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Drop all spheres. Old slots are overwritten by later add_sphere calls."""
    num_spheres[None] = 0


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Store a sphere and return its index.

    No validation happens here; SceneManager.add_sphere checks the radius
    and material ID before calling this.

    Raises:
        RuntimeError: If all MAX_SPHERES slots are taken.
    """
    index = num_spheres[None]
    if index == MAX_SPHERES:
        raise RuntimeError(f"Scene already holds the maximum of {MAX_SPHERES} spheres")

    sphere_centers[index] = center
    sphere_radii[index] = radius
    sphere_material_ids[index] = material_id
    num_spheres[None] = index + 1
    return index


def get_sphere_count() -> int:
    return int(num_spheres[None])


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: real,
    t_max: real,
) -> SceneHitRecord:
    """Nearest hit with t in (t_min, t_max] over every sphere in the scene.

    Each accepted hit lowers the upper bound for the spheres after it, so
    whatever survives the scan is the nearest hit whatever the storage
    order.
    """
    nearest = SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )
    upper = t_max

    for i in range(num_spheres[None]):
        rec = hit_sphere(
            ray_origin,
            ray_direction,
            Sphere(center=sphere_centers[i], radius=sphere_radii[i]),
            t_min,
            upper,
        )
        if rec.hit == 1:
            upper = rec.t
            nearest = SceneHitRecord(
                hit=1,
                t=rec.t,
                point=rec.point,
                normal=rec.normal,
                front_face=rec.front_face,
                material_id=sphere_material_ids[i],
            )

    return nearest
