"""Ray data structure and vector utilities for the sphere path tracer.

This module provides the Ray dataclass, the vector math used throughout the
renderer (points, directions and colors all share ``vec3``), and the random
sampling helpers that drive Monte Carlo scattering. Every function is a
Taichi function so it can be inlined into the parallel render kernel.

Random draws come from ``ti.random``, which keeps an independent generator
state per GPU/CPU thread. Seeding happens once in ``ti.init(random_seed=...)``
(see ``src.pathtracer.config.init_taichi``).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> # Inside a kernel: point = ray_at(ray, 5.0)
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Per-component tolerance for degenerate vectors
NEAR_ZERO_EPSILON = 1e-8

# Cap on rejection sampling rounds; each round accepts with p > 0.5
MAX_REJECTION_ROUNDS = 100


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to
            be unit length; scattered and camera rays are left unnormalized.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f64) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

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
def length(v: vec3) -> ti.f64:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f64:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Scale a vector to unit length.

    The caller must not pass a zero-length vector; every call site in the
    renderer guarantees a non-degenerate input (camera rays, reflected rays
    and the near_zero fallback in Lambertian scattering).

    Args:
        v: The input vector.

    Returns:
        v divided by its length.
    """
    return v / tm.length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f64:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Args:
        v: The vector to check.

    Returns:
        1 if every component is smaller than NEAR_ZERO_EPSILON in magnitude,
        0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Reflect a vector about a normal.

    Args:
        v: The incoming direction (pointing toward the surface).
        n: The surface normal (unit length).

    Returns:
        v - 2 * dot(v, n) * n
    """
    return v - 2.0 * tm.dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, etai_over_etat: ti.f64) -> vec3:
    """Refract a unit vector through a surface using Snell's law.

    The refracted direction is split into the part perpendicular to the
    normal and the part parallel to it. The cosine is clamped to 1 so that
    floating error on a unit vector never pushes it outside the domain.

    Args:
        uv: The incoming direction (unit length).
        n: The surface normal facing against uv (unit length).
        etai_over_etat: Ratio of refractive indices n_incident / n_transmitted.

    Returns:
        The refracted direction. The caller handles total internal
        reflection before calling this.
    """
    cos_theta = tm.min(tm.dot(-uv, n), 1.0)
    r_out_perp = etai_over_etat * (uv + cos_theta * n)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * n
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f64, ref_idx: ti.f64) -> ti.f64:
    """Compute Fresnel reflectance using Schlick's approximation.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ref_idx: Ratio of refractive indices.

    Returns:
        r0 + (1 - r0) * (1 - cosine)^5 with r0 = ((1 - ref_idx) / (1 + ref_idx))^2.
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_real(lo: ti.f64, hi: ti.f64) -> ti.f64:
    """Draw a uniform random real in [lo, hi)."""
    return lo + (hi - lo) * ti.random(ti.f64)


@ti.func
def random_vec3(lo: ti.f64, hi: ti.f64) -> vec3:
    """Draw a vector whose components are each uniform in [lo, hi)."""
    return vec3(random_real(lo, hi), random_real(lo, hi), random_real(lo, hi))


@ti.func
def random_in_unit_sphere() -> vec3:
    """Generate a random point inside the unit ball.

    Uses rejection sampling: draw uniformly in [-1, 1]^3 and accept the first
    point with squared length below 1.

    Returns:
        A random point with length < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    # Rejection sampling loop
    for _ in range(MAX_REJECTION_ROUNDS):
        if not found:
            p = random_vec3(-1.0, 1.0)
            if length_squared(p) < 1.0:
                found = True
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Generate a random unit vector (normalized unit-ball point)."""
    return unit_vector(random_in_unit_sphere())


@ti.func
def random_in_unit_disk() -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Used to sample ray origins over the camera lens for depth of field.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    # Rejection sampling loop
    for _ in range(MAX_REJECTION_ROUNDS):
        if not found:
            p = vec3(random_real(-1.0, 1.0), random_real(-1.0, 1.0), 0.0)
            if length_squared(p) < 1.0:
                found = True
    return p
