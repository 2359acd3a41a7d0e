"""Monte Carlo path tracer for spheres, built on Taichi.

This package renders spheres with diffuse, metal and glass materials under a
sky gradient, writing 8-bit RGB PNG images.

Subpackages:
    core: Vector utilities, random streams, the integrator and render loop
    geometry: Sphere primitive and ray-sphere intersection
    materials: Lambertian, metal and dielectric scattering
    scene: Sphere list, material registry and the default scene
    camera: Pinhole camera with ray generation
    preview: PNG export

Modules under core, geometry, materials, scene and camera allocate Taichi
fields when imported, so call ``ti.init(arch=ti.cpu, default_fp=ti.f64)``
before importing them.
"""

__version__ = "0.1.0"
