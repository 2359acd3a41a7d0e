"""Metal (specular reflective) material implementation.

The incoming direction is normalized and mirrored about the surface normal:

    R = I - 2(I . N)N

A rough metal adds ``fuzz * random_in_unit_sphere()`` to the mirror direction,
blurring the reflection inside a cone. Perturbed directions that end up below
the surface are absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal, stream
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import normalize, reflect, vec3
from pathtracer.core.sampler import random_in_unit_sphere


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Compute scattered ray direction for metal material.

    Args:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: The perturbation radius in [0, 1]. 0 = perfect mirror.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing against the incoming ray.
        stream: The random stream to draw from.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The fuzzed reflection (not normalized).
        - attenuation: The albedo.
        - did_scatter: 1 if the direction leaves the surface, 0 if absorbed.
    """
    reflected = reflect(normalize(incident_direction), normal)
    scattered_direction = reflected + fuzz * random_in_unit_sphere(stream)

    did_scatter = 1
    if tm.dot(scattered_direction, normal) <= 0.0:
        did_scatter = 0

    return scattered_direction, albedo, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 256

# Storage for metal material properties
metal_albedos = ti.Vector.field(3, dtype=ti.f64, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f64, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials."""
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple.
            Each component should be in [0, 1].
        fuzz: The reflection blur radius in [0, 1]. Default is 0 (perfect mirror).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
        ValueError: If fuzz is outside [0, 1].
    """
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )

    if fuzz < 0.0 or fuzz > 1.0:
        raise ValueError(
            f"Fuzz = {fuzz} is outside [0, 1]. "
            "Fuzz must be between 0 (perfect mirror) and 1 (maximum blur)."
        )

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_albedos[idx] = [albedo[0], albedo[1], albedo[2]]
    metal_fuzzes[idx] = fuzz
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a metal material by index."""
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f64:
    """Get the fuzz radius for a metal material by index."""
    return metal_fuzzes[material_idx]


@ti.func
def scatter_metal_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Scatter off a registered metal material.

    Looks up the albedo and fuzz from the material registry and calls
    scatter_metal.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    albedo = get_metal_albedo(material_idx)
    fuzz = get_metal_fuzz(material_idx)
    return scatter_metal(albedo, fuzz, incident_direction, normal, stream)
