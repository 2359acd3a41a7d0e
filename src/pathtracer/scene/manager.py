"""Scene builder tying spheres to a tagged material table.

Materials are a closed set of variants. Each registered material gets a
scene-wide ID, and the ID resolves to a pair ``(tag, slot)``: the
``MaterialType`` tag selects the scatter function and the slot indexes the
registry of that variant. Both halves live in one packed Taichi field so the
integrator needs a single lookup per bounce.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> blue = scene.add_lambertian_material(albedo=(0.1, 0.2, 0.5))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=blue)
    0
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import vec3
from pathtracer.materials import dielectric, lambertian, metal
from pathtracer.scene import intersection


class MaterialType(IntEnum):
    """Tag of the material variant, used for scatter dispatch."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# One registry per variant, each bounded by its own capacity
MAX_MATERIALS = (
    lambertian.MAX_LAMBERTIAN_MATERIALS
    + metal.MAX_METAL_MATERIALS
    + dielectric.MAX_DIELECTRIC_MATERIALS
)

# Row i holds (tag, slot) of material i
_material_table = ti.Vector.field(2, dtype=ti.i32, shape=MAX_MATERIALS)
_material_count = ti.field(dtype=ti.i32, shape=())

_REGISTRIES = {
    MaterialType.LAMBERTIAN: (
        lambertian.add_lambertian_material,
        lambertian.clear_lambertian_materials,
    ),
    MaterialType.METAL: (metal.add_metal_material, metal.clear_metal_materials),
    MaterialType.DIELECTRIC: (
        dielectric.add_dielectric_material,
        dielectric.clear_dielectric_materials,
    ),
}


def reset_materials() -> None:
    """Empty the material table and every variant registry."""
    for _add, clear in _REGISTRIES.values():
        clear()
    _material_count[None] = 0


@ti.func
def lookup_material(material_id: ti.i32) -> tm.ivec2:
    """Resolve a material ID to its (tag, slot) pair.

    Unknown IDs resolve to (-1, -1), which matches no variant.
    """
    entry = tm.ivec2(-1, -1)
    if 0 <= material_id < _material_count[None]:
        entry = _material_table[material_id]
    return entry


@dataclass
class MaterialInfo:
    """Host-side record of a registered material.

    Attributes:
        material_id: Scene-wide ID, as stored on spheres.
        material_type: Variant tag.
        type_index: Slot in the registry of the variant.
        params: Parameters the material was created with.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class SphereInfo:
    """Host-side record of a placed sphere."""

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


class SceneManager:
    """Builds a scene while keeping host-side records of what was added.

    Sphere and material storage are module-level Taichi fields, so there is
    one scene per process. Constructing a manager empties it.

    Attributes:
        materials: Records of the registered materials, indexed by ID.
        spheres: Records of the placed spheres, in insertion order.

    Example:
        >>> scene = SceneManager()
        >>> gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=1.0)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold)
        0
        >>> scene.add_sphere_with((-1, 0, -1), 0.5, MaterialType.DIELECTRIC, ior=3.0)
        (1, 1)
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.clear()

    def clear(self) -> None:
        """Remove every sphere and material."""
        intersection.clear_scene()
        reset_materials()
        self.materials = []
        self.spheres = []

    @property
    def material_count(self) -> int:
        return len(self.materials)

    @property
    def sphere_count(self) -> int:
        return intersection.get_sphere_count()

    # -------------------------------------------------------------------------
    # Materials
    # -------------------------------------------------------------------------

    def add_material(self, material_type: MaterialType, **params: Any) -> int:
        """Register a material of any variant.

        Args:
            material_type: Variant to create.
            **params: Keyword arguments of the variant's registry function:
                ``albedo`` for Lambertian, ``albedo`` and ``fuzz`` for metal,
                ``ior`` for dielectric.

        Returns:
            The scene-wide material ID.

        Raises:
            RuntimeError: If the registry of the variant is full.
            ValueError: If a parameter is out of range.
        """
        add, _clear = _REGISTRIES[MaterialType(material_type)]
        slot = add(**params)

        material_id = len(self.materials)
        _material_table[material_id] = [int(material_type), slot]
        _material_count[None] = material_id + 1
        self.materials.append(
            MaterialInfo(material_id, MaterialType(material_type), slot, dict(params))
        )
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Register a diffuse material. See add_material."""
        return self.add_material(MaterialType.LAMBERTIAN, albedo=albedo)

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Register a metal; fuzz 0 is a perfect mirror. See add_material."""
        return self.add_material(MaterialType.METAL, albedo=albedo, fuzz=fuzz)

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Register clear glass with the given refractive index. See add_material."""
        return self.add_material(MaterialType.DIELECTRIC, ior=ior)

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Return the record of a material, or None for an unknown ID."""
        if material_id < 0 or material_id >= len(self.materials):
            return None
        return self.materials[material_id]

    # -------------------------------------------------------------------------
    # Spheres
    # -------------------------------------------------------------------------

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Place a sphere made of an already registered material.

        Returns:
            Index of the sphere in insertion order.

        Raises:
            RuntimeError: If the sphere storage is full.
            ValueError: If the material ID is unknown or the radius is not
                positive.
        """
        if self.get_material_info(material_id) is None:
            raise ValueError(f"Invalid material_id: {material_id}")

        x, y, z = center
        index = intersection.add_sphere(vec3(x, y, z), radius, material_id)
        self.spheres.append(SphereInfo(index, tuple(center), radius, material_id))
        return index

    def add_sphere_with(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_type: MaterialType,
        **params: Any,
    ) -> tuple[int, int]:
        """Register a material and place a sphere made of it.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_material(material_type, **params)
        return self.add_sphere(center, radius, material_id), material_id
