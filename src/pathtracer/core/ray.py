"""Ray data structure and vector utilities for the path tracer.

This module provides the fundamental Ray dataclass, the vector algebra used by
every other component, and the random sampling helpers that drive Monte Carlo
scattering. All operations are Taichi functions meant to be called from inside
kernels.

Randomness comes from Taichi's built-in generator (``ti.random``). Each Taichi
thread owns its own stream, so these helpers are safe to call from the parallel
pixel loops of the integrator. Seed it with ``ti.init(random_seed=...)``.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> origin = vec3(0.0, 0.0, 0.0)
    >>> direction = vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Scalar type of every ray, hit and color computation
real = ti.f64

# Points, directions and colors all share this type
vec3 = ti.types.vector(3, real)

# Components smaller than this are treated as zero by near_zero()
NEAR_ZERO_EPSILON = 1e-8

# Upper bound on rejection sampling attempts (acceptance rate is ~52%)
MAX_REJECTION_ATTEMPTS = 100


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). It does not need
            to be unit length; camera rays in particular are not normalized.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: real) -> vec3:
    """Compute the point along the ray at parameter t.

    Any finite t is accepted, including negative values (behind the origin).
    Callers constrain t to meaningful ranges.

    Args:
        ray: The ray to evaluate.
        t: The parameter value.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length_squared(v: vec3) -> real:
    """Compute the squared length of a vector."""
    return v.x * v.x + v.y * v.y + v.z * v.z


@ti.func
def length(v: vec3) -> real:
    """Compute the Euclidean length of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def dot(a: vec3, b: vec3) -> real:
    """Compute the dot product a . b."""
    return a.x * b.x + a.y * b.y + a.z * b.z


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return vec3(
        a.y * b.z - a.z * b.y,
        a.z * b.x - a.x * b.z,
        a.x * b.y - a.y * b.x,
    )


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Divide a vector by its length.

    Unlike ``tm.normalize`` there is no guard for the zero vector: a
    zero-length input produces non-finite components, which then propagate.
    Scene inputs are assumed to be well formed.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v.
    """
    return v / length(v)


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Reflect a vector about a normal.

    Computes v - 2 (v . n) n. The normal should be unit length.

    Args:
        v: The incoming direction vector (pointing toward the surface).
        n: The surface normal.

    Returns:
        The reflected direction vector.
    """
    return v - 2.0 * dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, eta_ratio: real) -> vec3:
    """Refract a unit vector through a surface using Snell's law.

    The refracted ray is split into a component perpendicular to the normal,
    eta_ratio * (uv + cos_theta * n), and a component parallel to it, whose
    length makes the sum a unit vector.

    Callers must rule out total internal reflection first; the absolute value
    under the square root only keeps the result finite in that case.

    Args:
        uv: The incoming direction (unit length).
        n: The surface normal, facing against uv (unit length).
        eta_ratio: Ratio of refractive indices, n_incident / n_transmitted.

    Returns:
        The refracted direction vector.
    """
    cos_theta = tm.min(dot(-uv, n), 1.0)
    r_out_perp = eta_ratio * (uv + cos_theta * n)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * n
    return r_out_perp + r_out_parallel


@ti.func
def reflectance(cosine: real, eta_ratio: real) -> real:
    """Compute Fresnel reflectance using Schlick's approximation.

    r0 = ((1 - eta) / (1 + eta))^2 is the same for eta and 1 / eta, so either
    the refraction index or the refraction ratio may be passed.

    Args:
        cosine: Cosine of the angle between the incoming ray and the normal.
        eta_ratio: Ratio of refractive indices.

    Returns:
        The probability of reflection in [0, 1].
    """
    r0 = (1.0 - eta_ratio) / (1.0 + eta_ratio)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Used to detect degenerate scatter directions.

    Args:
        v: The vector to check.

    Returns:
        1 if all components are below 1e-8 in magnitude, 0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_in_range(lo: real, hi: real) -> vec3:
    """Generate a vector with each component uniform in [lo, hi)."""
    return vec3(
        lo + (hi - lo) * ti.random(real),
        lo + (hi - lo) * ti.random(real),
        lo + (hi - lo) * ti.random(real),
    )


@ti.func
def random_in_unit_sphere() -> vec3:
    """Generate a random point inside the unit sphere.

    Rejection sampling: draw points from the cube [-1, 1)^3 and discard them
    until one falls strictly inside the unit sphere.

    Returns:
        A random point with length^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    # Taichi funcs cannot break out of loops, so iterate with a flag
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            p = random_in_range(-1.0, 1.0)
            if length_squared(p) < 1.0:
                found = True
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere.

    This is the normalized version of random_in_unit_sphere().

    Returns:
        A random unit vector.
    """
    return unit_vector(random_in_unit_sphere())
