"""Sphere primitive with ray-sphere intersection.

For a ray ``P(t) = O + t D`` and a sphere of center ``C`` and radius ``r`` the
intersection solves ``|P(t) - C|^2 = r^2``. With ``oc = O - C`` this is the
quadratic ``a t^2 + 2 h t + c = 0`` where

    a = D . D
    h = oc . D          (half of the usual b coefficient)
    c = oc . oc - r^2

The nearer root is tried first and the farther root second, and the first one
strictly inside (t_min, t_max) is reported. The returned normal always faces
against the ray; ``front_face`` tells whether the ray arrived from outside.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.geometry.sphere import Sphere, HitRecord, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f64


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: Whether the ray intersected the sphere (1 if hit, 0 if miss).
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The 3D point where the ray intersected the sphere.
            Only valid if hit == 1.
        normal: The unit surface normal at the intersection point, flipped
            so that it always opposes the ray direction.
            Only valid if hit == 1.
        front_face: 1 if the ray hit the outside of the sphere, 0 if it hit
            the inside. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f64
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f64,
    t_max: ti.f64,
) -> HitRecord:
    """Test for ray-sphere intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to test intersection against.
        t_min: Hits at or below this parameter are rejected (avoids
            self-intersection).
        t_max: Hits at or beyond this parameter are rejected.

    Returns:
        A HitRecord containing intersection information. Check the hit field
        to determine if intersection occurred.
    """
    oc = ray_origin - sphere.center

    a = tm.dot(ray_direction, ray_direction)
    half_b = tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        # Nearest root first, then the far one
        root = (-half_b - sqrt_d) / a
        valid = (root > t_min) and (root < t_max)
        if not valid:
            root = (-half_b + sqrt_d) / a
            valid = (root > t_min) and (root < t_max)

        if valid:
            did_hit = 1
            hit_t = root
            hit_point = ray_origin + root * ray_direction

            outward_normal = (hit_point - sphere.center) / sphere.radius
            if tm.dot(ray_direction, outward_normal) < 0.0:
                is_front_face = 1
                hit_normal = outward_normal
            else:
                # Ray is inside the sphere, hitting back face
                is_front_face = 0
                hit_normal = -outward_normal

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
    )


@ti.func
def make_sphere(center: vec3, radius: ti.f64) -> Sphere:
    """Create a sphere from center and radius."""
    return Sphere(center=center, radius=radius)
