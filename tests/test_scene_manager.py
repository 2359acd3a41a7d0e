"""Unit tests for the SceneManager and the material table."""

import pytest
import taichi as ti


@pytest.fixture
def scene():
    from pathtracer.scene.manager import SceneManager

    manager = SceneManager()
    yield manager
    manager.clear()


class TestMaterials:
    """Material registration and lookup."""

    def test_ids_are_shared_across_variants(self, scene):
        from pathtracer.scene.manager import MaterialType

        ids = (
            scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3)),
            scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3),
            scene.add_dielectric_material(ior=1.5),
            scene.add_lambertian_material(albedo=(0.1, 0.1, 0.1)),
        )

        assert ids == (0, 1, 2, 3)
        assert scene.material_count == 4

        info = scene.get_material_info(3)
        assert info.material_type == MaterialType.LAMBERTIAN
        assert info.type_index == 1
        assert info.params == {"albedo": (0.1, 0.1, 0.1)}
        assert scene.get_material_info(1).params == {"albedo": (0.8, 0.6, 0.2), "fuzz": 0.3}

    @pytest.mark.parametrize("material_id", [-1, 4, 99])
    def test_unknown_id_has_no_info(self, scene, material_id):
        scene.add_dielectric_material()
        assert scene.get_material_info(material_id) is None

    def test_add_material_by_tag(self, scene):
        from pathtracer.scene.manager import MaterialType

        material_id = scene.add_material(MaterialType.METAL, albedo=(0.5, 0.5, 0.5))

        info = scene.get_material_info(material_id)
        assert info.material_type == MaterialType.METAL
        assert info.params == {"albedo": (0.5, 0.5, 0.5)}

    def test_rejected_materials_take_no_id(self, scene):
        with pytest.raises(ValueError):
            scene.add_lambertian_material(albedo=(1.5, 0.5, 0.5))
        with pytest.raises(ValueError):
            scene.add_metal_material(albedo=(0.5, 0.5, 0.5), fuzz=2.0)
        with pytest.raises(ValueError):
            scene.add_dielectric_material(ior=0.0)

        assert scene.material_count == 0
        assert scene.add_dielectric_material() == 0

    def test_lookup_in_kernel(self, scene):
        from pathtracer.scene.manager import MaterialType, lookup_material

        scene.add_metal_material(albedo=(0.5, 0.5, 0.5))
        scene.add_dielectric_material(ior=1.5)
        scene.add_dielectric_material(ior=2.4)

        entries = ti.Vector.field(2, dtype=ti.i32, shape=4)

        @ti.kernel
        def test_kernel():
            for i in range(4):
                entries[i] = lookup_material(i)

        test_kernel()
        assert entries.to_numpy().tolist() == [
            [int(MaterialType.METAL), 0],
            [int(MaterialType.DIELECTRIC), 0],
            [int(MaterialType.DIELECTRIC), 1],
            [-1, -1],
        ]


class TestSpheres:
    """Placing spheres."""

    def test_add_sphere(self, scene):
        material_id = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))

        assert scene.add_sphere((0.0, 0.0, -1.0), 0.5, material_id) == 0
        assert scene.sphere_count == 1
        assert scene.spheres[0].center == (0.0, 0.0, -1.0)
        assert scene.spheres[0].material_id == material_id

    def test_unknown_material_rejected(self, scene):
        with pytest.raises(ValueError, match="Invalid material_id"):
            scene.add_sphere((0.0, 0.0, -1.0), 0.5, 0)
        assert scene.sphere_count == 0

    def test_non_positive_radius_rejected(self, scene):
        material_id = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        with pytest.raises(ValueError, match="radius"):
            scene.add_sphere((0.0, 0.0, -1.0), 0.0, material_id)

    def test_add_sphere_with(self, scene):
        from pathtracer.scene.manager import MaterialType

        first = scene.add_sphere_with(
            (0.0, 0.0, -1.0), 0.5, MaterialType.LAMBERTIAN, albedo=(0.1, 0.2, 0.5)
        )
        second = scene.add_sphere_with((-1.0, 0.0, -1.0), 0.5, MaterialType.DIELECTRIC, ior=3.0)

        assert first == (0, 0)
        assert second == (1, 1)
        assert scene.get_material_info(1).params == {"ior": 3.0}

    def test_clear(self, scene):
        from pathtracer.scene.manager import MaterialType

        scene.add_sphere_with((0.0, 0.0, -1.0), 0.5, MaterialType.METAL, albedo=(0.5, 0.5, 0.5))
        scene.clear()

        assert scene.sphere_count == 0
        assert scene.material_count == 0
        assert scene.materials == []
        assert scene.spheres == []

    def test_new_manager_empties_scene(self, scene):
        from pathtracer.scene.intersection import get_sphere_count
        from pathtracer.scene.manager import SceneManager

        scene.add_sphere(
            (0.0, 0.0, -1.0), 0.5, scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        )
        SceneManager()
        assert get_sphere_count() == 0
