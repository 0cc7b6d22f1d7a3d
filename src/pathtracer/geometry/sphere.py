"""Sphere primitive with ray-sphere intersection.

This module provides a Sphere dataclass, the HitRecord returned by primitive
intersection, and the intersection routine itself.

The intersection solves |origin + t * direction - center|^2 = radius^2 as the
quadratic a*t^2 + 2*half_b*t + c = 0 and accepts the nearest root in
(t_min, t_max].

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.core.ray import vec3
    >>> from pathtracer.geometry.sphere import Sphere, HitRecord, hit_sphere
    >>> sphere = Sphere(center=vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti

from pathtracer.core.ray import dot, length_squared, real, vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere. A negative radius keeps the same
            surface but turns the outward normal inward, which is how hollow
            glass shells are modeled.
    """

    center: vec3
    radius: real


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: 1 if the ray intersected the sphere, 0 otherwise.
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: The unit surface normal, always facing against the incoming
            ray. Only valid if hit == 1.
        front_face: 1 if the geometric outward normal already faced against
            the ray (the ray arrived from outside), 0 if it had to be flipped.
            Only valid if hit == 1.
    """

    hit: ti.i32
    t: real
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def make_hit_record(point: vec3, t: real, ray_direction: vec3, outward_normal: vec3) -> HitRecord:
    """Build a hit record, orienting the normal against the ray.

    Args:
        point: The intersection point.
        t: The ray parameter of the intersection.
        ray_direction: Direction of the incoming ray.
        outward_normal: Unit geometric normal pointing out of the surface.

    Returns:
        A HitRecord with hit == 1.
    """
    front_face = 1
    normal = outward_normal
    if dot(ray_direction, outward_normal) >= 0.0:
        front_face = 0
        normal = -outward_normal
    return HitRecord(hit=1, t=t, point=point, normal=normal, front_face=front_face)


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: real,
    t_max: real,
) -> HitRecord:
    """Test for ray-sphere intersection.

    Expanding |ray_origin + t * ray_direction - center|^2 = radius^2 gives:
        a*t^2 + 2*half_b*t + c = 0

    where:
        oc = origin - center
        a = dot(direction, direction)
        half_b = dot(oc, direction)
        c = dot(oc, oc) - radius^2

    A negative discriminant (half_b^2 - a*c) means the ray misses. Otherwise
    the smaller root is tried first, then the larger one; a root is accepted
    when t_min < t <= t_max.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to test intersection against.
        t_min: Hits at or before this parameter are ignored (avoids
            re-hitting the surface a scattered ray starts on).
        t_max: Hits beyond this parameter are ignored.

    Returns:
        A HitRecord. Check the hit field to determine if intersection occurred.
    """
    oc = ray_origin - sphere.center
    a = length_squared(ray_direction)
    half_b = dot(oc, ray_direction)
    c = length_squared(oc) - sphere.radius * sphere.radius

    discriminant = half_b * half_b - a * c

    # Taichi requires outer-scope declaration of the result
    result = HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
    )

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        # Nearest root first
        root = (-half_b - sqrt_d) / a
        valid = root > t_min and root <= t_max
        if not valid:
            root = (-half_b + sqrt_d) / a
            valid = root > t_min and root <= t_max

        if valid:
            hit_point = ray_origin + root * ray_direction
            outward_normal = (hit_point - sphere.center) / sphere.radius
            result = make_hit_record(hit_point, root, ray_direction, outward_normal)

    return result

