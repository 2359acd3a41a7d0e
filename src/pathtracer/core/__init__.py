"""Core rendering module.

Components:
    ray: Ray data structure and vector helpers
    sampler: Seedable per-pixel random streams
    integrator: Path tracing kernels and the render target
    progressive: Sample passes, render settings and the buffer-filling render()

All compute-intensive operations use Taichi kernels.
"""

from .ray import (
    Point3D,
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    ray_at,
    reflect,
    refract,
    schlick_fresnel,
    vec3,
)

# Note: sampler, integrator and progressive allocate Taichi fields and are NOT
# imported here. Import them directly, e.g.:
#   from pathtracer.core.progressive import render

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "Point3D",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_fresnel",
    "near_zero",
]
