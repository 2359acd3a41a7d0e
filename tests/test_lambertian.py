"""Unit tests for the Lambertian material module.

Tests cover:
- Scatter direction (normal plus a random unit vector)
- Attenuation equal to the albedo, never absorbing
- Cosine-weighted distribution of scattered directions
- Fallback to the normal for a degenerate direction
- Material registry operations
"""

import numpy as np
import pytest
import taichi as ti

SAMPLES = 4096


def _scatter_many(albedo, normal):
    from pathtracer.materials.lambertian import scatter_lambertian, vec3

    directions = ti.Vector.field(3, dtype=ti.f64, shape=SAMPLES)
    attenuations = ti.Vector.field(3, dtype=ti.f64, shape=SAMPLES)
    scattered = ti.field(dtype=ti.i32, shape=SAMPLES)
    ax, ay, az = albedo
    nx, ny, nz = normal

    @ti.kernel
    def test_kernel():
        for i in range(SAMPLES):
            direction, attenuation, did_scatter = scatter_lambertian(
                vec3(ax, ay, az), vec3(nx, ny, nz), i
            )
            directions[i] = direction
            attenuations[i] = attenuation
            scattered[i] = did_scatter

    test_kernel()
    return directions.to_numpy(), attenuations.to_numpy(), scattered.to_numpy()


class TestLambertianScatter:
    """Tests for the Lambertian scatter function."""

    def test_always_scatters_with_albedo(self):
        _, attenuations, scattered = _scatter_many((0.6, 0.4, 0.2), (0.0, 1.0, 0.0))
        assert np.all(scattered == 1)
        assert np.allclose(attenuations, [0.6, 0.4, 0.2])

    def test_direction_is_normal_plus_unit_vector(self):
        normal = np.array([0.0, 0.0, 1.0])
        directions, _, _ = _scatter_many((0.5, 0.5, 0.5), tuple(normal))
        offsets = directions - normal
        assert np.allclose(np.linalg.norm(offsets, axis=1), 1.0)

    def test_direction_in_hemisphere(self):
        normal = np.array([0.0, 1.0, 0.0])
        directions, _, _ = _scatter_many((0.5, 0.5, 0.5), tuple(normal))
        assert np.all(directions @ normal >= 0.0)

    def test_cosine_weighted_distribution(self):
        """Mean cosine of a cosine-weighted hemisphere is 2/3."""
        normal = np.array([1.0, 0.0, 0.0])
        directions, _, _ = _scatter_many((0.5, 0.5, 0.5), tuple(normal))
        cosines = (directions @ normal) / np.linalg.norm(directions, axis=1)
        assert abs(cosines.mean() - 2.0 / 3.0) < 0.02


class TestDiffuseDirection:
    """Tests for the direction step shared by every Lambertian scatter."""

    def _direction(self, normal, offset):
        from pathtracer.materials.lambertian import _diffuse_direction, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())
        nx, ny, nz = normal
        ox, oy, oz = offset

        @ti.kernel
        def test_kernel():
            result[None] = _diffuse_direction(vec3(nx, ny, nz), vec3(ox, oy, oz))

        test_kernel()
        return result[None].to_numpy()

    @pytest.mark.parametrize(
        "normal", [(0.0, 1.0, 0.0), (0.0, 0.0, -1.0), (0.6, 0.0, 0.8)]
    )
    def test_cancelling_offset_falls_back_to_normal(self, normal):
        offset = tuple(-c for c in normal)
        assert np.allclose(self._direction(normal, offset), normal)

    def test_nearly_cancelling_offset_falls_back_to_normal(self):
        direction = self._direction((0.0, 1.0, 0.0), (1e-9, -1.0 + 1e-9, -1e-9))
        assert np.allclose(direction, [0.0, 1.0, 0.0])

    def test_regular_offset_is_added(self):
        direction = self._direction((0.0, 1.0, 0.0), (1.0, 0.0, 0.0))
        assert np.allclose(direction, [1.0, 1.0, 0.0])


class TestLambertianMaterialRegistry:
    """Tests for material registry operations."""

    def test_add_and_get_material(self):
        """Test adding a material and retrieving its albedo."""
        from pathtracer.materials.lambertian import (
            add_lambertian_material,
            get_lambertian_albedo,
        )

        idx = add_lambertian_material((0.8, 0.2, 0.4))

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            result[None] = get_lambertian_albedo(mat_idx)

        test_kernel(idx)
        assert np.allclose(result[None].to_numpy(), [0.8, 0.2, 0.4])

    def test_material_count(self):
        """Test that material count is tracked correctly."""
        from pathtracer.materials.lambertian import (
            add_lambertian_material,
            clear_lambertian_materials,
            get_lambertian_material_count,
        )

        assert get_lambertian_material_count() == 0

        assert add_lambertian_material((0.5, 0.5, 0.5)) == 0
        assert add_lambertian_material((0.3, 0.3, 0.3)) == 1
        assert get_lambertian_material_count() == 2

        clear_lambertian_materials()
        assert get_lambertian_material_count() == 0

    @pytest.mark.parametrize("albedo", [(-0.1, 0.5, 0.5), (0.5, 1.1, 0.5)])
    def test_albedo_validation(self, albedo):
        """Albedo components outside [0, 1] are rejected."""
        from pathtracer.materials.lambertian import add_lambertian_material

        with pytest.raises(ValueError, match="outside"):
            add_lambertian_material(albedo)

    def test_scatter_by_id(self):
        """Test scattering using material index."""
        from pathtracer.materials.lambertian import (
            add_lambertian_material,
            scatter_lambertian_by_id,
        )

        add_lambertian_material((0.1, 0.1, 0.1))
        idx = add_lambertian_material((0.6, 0.4, 0.2))

        result_attenuation = ti.Vector.field(3, dtype=ti.f64, shape=())
        result_scatter = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            normal = ti.math.vec3(0.0, 1.0, 0.0)
            _, attenuation, did_scatter = scatter_lambertian_by_id(mat_idx, normal, 0)
            result_attenuation[None] = attenuation
            result_scatter[None] = did_scatter

        test_kernel(idx)
        assert np.allclose(result_attenuation[None].to_numpy(), [0.6, 0.4, 0.2])
        assert result_scatter[None] == 1
