"""The built-in demo scene: three spheres resting on a large ground sphere.

Looking down -Z from the origin, the scene holds:
- A clear glass sphere on the left
- A blue diffuse sphere in the centre
- A rough gold metal sphere on the right
- A huge yellow-green diffuse sphere acting as the ground

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.scene.default_scene import create_default_scene
    >>> from pathtracer.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_default_scene(aspect_ratio=800 / 600)
    >>> setup_camera(camera)
"""

from pathtracer.camera.pinhole import Camera
from pathtracer.scene.manager import SceneManager

# =============================================================================
# Default Scene Constants
# =============================================================================

VIEWPORT_HEIGHT = 2.0
FOCAL_LENGTH = 1.0

SPHERE_RADIUS = 0.5

GLASS_CENTER = (-1.0, 0.0, -1.0)
GLASS_IOR = 3.0

DIFFUSE_CENTER = (0.0, 0.0, -1.0)
DIFFUSE_ALBEDO = (0.1, 0.2, 0.5)

METAL_CENTER = (1.0, 0.0, -1.0)
METAL_ALBEDO = (0.8, 0.6, 0.2)
METAL_FUZZ = 1.0

GROUND_CENTER = (0.0, -100.5, -1.0)
GROUND_RADIUS = 100.0
GROUND_ALBEDO = (0.8, 0.8, 0.0)


# =============================================================================
# Default Scene Factory
# =============================================================================


def create_default_scene(
    aspect_ratio: float,
    viewport_height: float = VIEWPORT_HEIGHT,
    focal_length: float = FOCAL_LENGTH,
) -> tuple[SceneManager, Camera]:
    """Create the demo scene and a camera framing it.

    Args:
        aspect_ratio: Image width divided by image height.
        viewport_height: Height of the camera viewport. Default is 2.0.
        focal_length: Distance from the camera to the viewport. Default is 1.0.

    Returns:
        A tuple of (SceneManager, Camera). The camera still has to be uploaded
        with setup_camera() before rendering.

    Example:
        >>> scene, camera = create_default_scene(4.0 / 3.0)
        >>> scene.sphere_count
        4
    """
    scene = SceneManager()

    glass_mat = scene.add_dielectric_material(ior=GLASS_IOR)
    diffuse_mat = scene.add_lambertian_material(albedo=DIFFUSE_ALBEDO)
    metal_mat = scene.add_metal_material(albedo=METAL_ALBEDO, fuzz=METAL_FUZZ)
    ground_mat = scene.add_lambertian_material(albedo=GROUND_ALBEDO)

    scene.add_sphere(GLASS_CENTER, SPHERE_RADIUS, glass_mat)
    scene.add_sphere(DIFFUSE_CENTER, SPHERE_RADIUS, diffuse_mat)
    scene.add_sphere(METAL_CENTER, SPHERE_RADIUS, metal_mat)
    scene.add_sphere(GROUND_CENTER, GROUND_RADIUS, ground_mat)

    camera = Camera.for_aspect_ratio(
        aspect_ratio,
        viewport_height=viewport_height,
        focal_length=focal_length,
    )

    return scene, camera
