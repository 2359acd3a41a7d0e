"""Lambertian (ideal diffuse) material implementation.

A Lambertian surface scatters toward ``normal + random_unit_vector()``. The
sum of the unit normal and a uniform unit vector is distributed with density
proportional to cos(theta) over the hemisphere, so the attenuation of every
bounce is simply the albedo.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_lambertian(albedo, normal, stream)
"""

import taichi as ti

from pathtracer.core.ray import near_zero, vec3
from pathtracer.core.sampler import random_unit_vector


@ti.func
def _diffuse_direction(normal: vec3, offset: vec3) -> vec3:
    """Offset the normal, falling back to the normal when the sum is near zero."""
    direction = normal + offset
    # The random vector can cancel the normal almost exactly
    if near_zero(direction):
        direction = normal
    return direction


@ti.func
def scatter_lambertian(
    albedo: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Sample a scattered ray direction for Lambertian material.

    Args:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
        normal: The unit surface normal at the hit point.
        stream: The random stream to draw from.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: normal + random unit vector (not normalized).
        - attenuation: The albedo.
        - did_scatter: Always 1, diffuse surfaces never absorb.
    """
    scattered_direction = _diffuse_direction(normal, random_unit_vector(stream))

    did_scatter = 1
    return scattered_direction, albedo, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 256

# Storage for Lambertian material properties
lambertian_albedos = ti.Vector.field(3, dtype=ti.f64, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.
            Each component should be in [0, 1] for energy conservation.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = [albedo[0], albedo[1], albedo[2]]
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a Lambertian material by index."""
    return lambertian_albedos[material_idx]


@ti.func
def scatter_lambertian_by_id(
    material_idx: ti.i32,
    normal: vec3,
    stream: ti.i32,
):
    """Scatter off a registered Lambertian material.

    Looks up the albedo from the material registry and calls
    scatter_lambertian.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    albedo = get_lambertian_albedo(material_idx)
    return scatter_lambertian(albedo, normal, stream)
