"""Scene-level closest-hit queries over a flat list of spheres.

Spheres are stored in Taichi fields in insertion order, each with the unified
material ID of its surface. ``intersect_scene`` walks the whole list, shrinking
the search interval to the closest hit found so far, and returns that hit
together with its material ID. Insertion order only changes iteration order,
never the rendered result.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.core.ray import vec3
    >>> from pathtracer.scene.intersection import add_sphere, clear_scene, intersect_scene
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti

from pathtracer.core.ray import vec3
from pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Extends the basic HitRecord with material_id for scene-level queries.

    Attributes:
        hit: Whether the ray intersected any sphere (1 if hit, 0 if miss).
        t: The ray parameter of the closest intersection.
        point: The 3D point where the ray intersected the surface.
        normal: The unit surface normal, facing against the ray.
        front_face: Whether the ray hit the front face (1) or back face (0).
        material_id: The material ID of the hit sphere, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f64
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f64, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f64, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all spheres from the scene.

    Resets the sphere count to zero. The field data is overwritten when new
    spheres are added.
    """
    num_spheres[None] = 0


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Append a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere.
        material_id: The material ID to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
        ValueError: If the radius is not positive.
    """
    if radius <= 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")

    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def _hit_record_to_scene_hit_record(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    """Attach a material ID to a primitive hit record."""
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        material_id=material_id,
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f64,
    t_max: ti.f64,
) -> SceneHitRecord:
    """Find the closest sphere hit by a ray.

    Each sphere is queried with the closest t found so far as its upper
    bound, so a later sphere only replaces the current hit when it is
    strictly nearer.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A SceneHitRecord containing the closest intersection, or a miss
        record if no intersection was found.
    """
    closest_so_far = t_max
    result = _make_miss_record()

    for i in range(num_spheres[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, closest_so_far)
        if rec.hit == 1:
            closest_so_far = rec.t
            result = _hit_record_to_scene_hit_record(rec, sphere_material_ids[i])

    return result
