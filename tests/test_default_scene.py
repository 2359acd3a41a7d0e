"""Tests for the built-in demo scene."""

import pytest


class TestDefaultScene:
    """Tests for create_default_scene."""

    def test_spheres_and_materials(self):
        from pathtracer.scene.default_scene import create_default_scene
        from pathtracer.scene.manager import MaterialType

        scene, _ = create_default_scene(800 / 600)

        assert scene.sphere_count == 4
        assert scene.material_count == 4

        centers = [sphere.center for sphere in scene.spheres]
        radii = [sphere.radius for sphere in scene.spheres]
        assert centers == [
            (-1.0, 0.0, -1.0),
            (0.0, 0.0, -1.0),
            (1.0, 0.0, -1.0),
            (0.0, -100.5, -1.0),
        ]
        assert radii == [0.5, 0.5, 0.5, 100.0]

        materials = [scene.get_material_info(s.material_id) for s in scene.spheres]
        assert [m.material_type for m in materials] == [
            MaterialType.DIELECTRIC,
            MaterialType.LAMBERTIAN,
            MaterialType.METAL,
            MaterialType.LAMBERTIAN,
        ]
        assert materials[0].params == {"ior": 3.0}
        assert materials[1].params == {"albedo": (0.1, 0.2, 0.5)}
        assert materials[2].params == {"albedo": (0.8, 0.6, 0.2), "fuzz": 1.0}
        assert materials[3].params == {"albedo": (0.8, 0.8, 0.0)}

    def test_camera_matches_aspect_ratio(self):
        from pathtracer.scene.default_scene import create_default_scene

        _, camera = create_default_scene(800 / 600)

        assert camera.origin == (0.0, 0.0, 0.0)
        assert camera.viewport_height == 2.0
        assert camera.viewport_width == pytest.approx(8.0 / 3.0)
        assert camera.focal_length == 1.0

    def test_rebuilding_replaces_previous_scene(self):
        from pathtracer.scene.default_scene import create_default_scene
        from pathtracer.scene.intersection import get_sphere_count

        create_default_scene(1.0)
        create_default_scene(1.0)
        assert get_sphere_count() == 4

    def test_centre_ray_hits_diffuse_sphere(self):
        import taichi as ti

        from pathtracer.scene.default_scene import create_default_scene
        from pathtracer.scene.intersection import intersect_scene, vec3

        scene, _ = create_default_scene(4.0 / 3.0)
        material_id = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                record = intersect_scene(
                    vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), 0.001, ti.math.inf
                )
                material_id[None] = record.material_id

        test_kernel()
        assert material_id[None] == scene.spheres[1].material_id
