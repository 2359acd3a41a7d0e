"""Scene storage, material table and the default scene.

Components:
    intersection: Flat sphere list and closest-hit queries
    manager: Tagged material table and the SceneManager builder
    default_scene: Three spheres on a ground sphere
"""

from .default_scene import create_default_scene
from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneManager,
    SphereInfo,
    lookup_material,
    reset_materials,
)

__all__ = [
    "MAX_MATERIALS",
    "MAX_SPHERES",
    "MaterialInfo",
    "MaterialType",
    "SceneHitRecord",
    "SceneManager",
    "SphereInfo",
    "add_sphere",
    "clear_scene",
    "create_default_scene",
    "get_sphere_count",
    "intersect_scene",
    "lookup_material",
    "reset_materials",
]
