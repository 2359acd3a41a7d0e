"""Ray data structure and vector utilities.

This module provides the Ray dataclass and the vector helpers shared by the
camera, the geometry and the material models. All helpers are Taichi
functions, so they are only callable from inside kernels.

Vectors are ``ti.math.vec3`` values. The runtime is initialised with
``default_fp=ti.f64``, which makes every ``vec3`` a triple of 64-bit floats;
``Point3D`` is the same type, named for positions.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.core.ray import Ray, ray_at, vec3
    >>> @ti.kernel
    ... def point_on_ray() -> vec3:
    ...     ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -2.0))
    ...     return ray_at(ray, 0.5)  # (0, 0, -1)
"""

import taichi as ti
import taichi.math as tm

# Type aliases for 3D vectors using Taichi's math module
vec3 = tm.vec3
Point3D = tm.vec3


@ti.dataclass
class Ray:
    """A parametric line ``origin + t * direction``.

    Attributes:
        origin: The starting point of the ray.
        direction: The direction vector. Not required to be unit length;
            camera rays in particular are left unnormalized.
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
def normalize(v: vec3) -> vec3:
    """Return the unit vector pointing along v."""
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
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes ``v - 2 (v . n) n``. The result has the same length as the
    incident vector when the normal is unit length.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta: ti.f64) -> vec3:
    """Refract a unit incident vector through a surface.

    Implements ``eta * v + (eta * cos_i - sqrt(1 - eta^2 (1 - cos_i^2))) * n``
    with ``cos_i = min(-v . n, 1)``. If total internal reflection occurs the
    square root has no real solution and a zero vector is returned instead.

    Args:
        incident: The incoming direction vector (should be normalized).
        normal: The surface normal, facing against the incident vector.
        eta: The ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction vector, or zero vector on total internal
        reflection.
    """
    cos_i = tm.min(-tm.dot(incident, normal), 1.0)
    k = 1.0 - eta * eta * (1.0 - cos_i * cos_i)
    result = vec3(0.0, 0.0, 0.0)
    if k >= 0.0:
        result = eta * incident + (eta * cos_i - ti.sqrt(k)) * normal
    return result


@ti.func
def schlick_fresnel(cosine: ti.f64, ref_idx: ti.f64) -> ti.f64:
    """Compute Fresnel reflectance using Schlick's approximation.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ref_idx: Ratio of refractive indices.

    Returns:
        The approximate Fresnel reflectance coefficient.
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Returns:
        1 if every component is below 1e-8 in magnitude, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s
