"""Dielectric (clear glass) material implementation.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when eta * sin(theta) > 1

When refraction is possible the material reflects with probability equal to
the Schlick reflectance and refracts otherwise. Clear glass never absorbs, so
the attenuation is always white.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face, stream
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import (
    normalize,
    reflect,
    refract,
    schlick_fresnel,
    vec3,
)
from pathtracer.core.sampler import random_f64


@ti.func
def _refraction_ratio(ior: ti.f64, front_face: ti.i32) -> ti.f64:
    """Return n_incident / n_transmitted for the side the ray arrives from."""
    # Entering the glass from air (front face) or leaving it (back face)
    ratio = 1.0 / ior
    if front_face == 0:
        ratio = ior
    return ratio


@ti.func
def scatter_dielectric(
    ior: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Compute scattered ray direction for dielectric material.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing against the incoming ray.
        front_face: 1 if the ray arrives from outside the surface,
            0 if it arrives from inside the material.
        stream: The random stream to draw from.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The reflected or refracted direction.
        - attenuation: White, clear glass absorbs nothing.
        - did_scatter: Always 1 for dielectrics.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    refraction_ratio = _refraction_ratio(ior, front_face)

    unit_direction = normalize(incident_direction)
    cos_theta = tm.min(-tm.dot(unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(1.0 - cos_theta * cos_theta)

    cannot_refract = refraction_ratio * sin_theta > 1.0

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract:
        scattered_direction = reflect(unit_direction, normal)
    elif schlick_fresnel(cos_theta, refraction_ratio) > random_f64(stream):
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, refraction_ratio)

    did_scatter = 1
    return scattered_direction, attenuation, did_scatter


@ti.func
def will_reflect(
    ior: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.i32:
    """Determine if total internal reflection will occur.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing against the incoming ray.
        front_face: 1 if hitting from outside, 0 if from inside.

    Returns:
        1 if the ray cannot refract, 0 otherwise.
    """
    refraction_ratio = _refraction_ratio(ior, front_face)
    cos_theta = tm.min(-tm.dot(normalize(incident_direction), normal), 1.0)
    sin_theta = ti.sqrt(1.0 - cos_theta * cos_theta)

    result = 0
    if refraction_ratio * sin_theta > 1.0:
        result = 1
    return result


@ti.func
def fresnel_reflectance(
    ior: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.f64:
    """Compute the Schlick reflectance for an incident direction.

    Returns:
        The Fresnel reflectance coefficient in [0, 1].
    """
    refraction_ratio = _refraction_ratio(ior, front_face)
    cos_theta = tm.min(-tm.dot(normalize(incident_direction), normal), 1.0)
    return schlick_fresnel(cos_theta, refraction_ratio)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 256

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=ti.f64, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass).
            Must be positive. Common values:
            - Water: 1.33
            - Glass: 1.5
            - Diamond: 2.4

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If IOR is not positive.
    """
    if ior <= 0.0:
        raise ValueError(f"Index of refraction = {ior} must be positive.")

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f64:
    """Get the IOR for a dielectric material by index."""
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Scatter off a registered dielectric material.

    Looks up the IOR from the material registry and calls scatter_dielectric.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    ior = get_dielectric_ior(material_idx)
    return scatter_dielectric(ior, incident_direction, normal, front_face, stream)
