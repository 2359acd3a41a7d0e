"""Unit tests for the Metal material module.

Tests cover:
- Perfect specular reflection (fuzz=0)
- Fuzzy reflection (fuzz>0)
- Ray absorption when scattered below surface
- Attenuation equal to the albedo
- Material registry operations
- Fuzz validation
"""

import math

import numpy as np
import pytest
import taichi as ti

SAMPLES = 2048


def _scatter_many(albedo, fuzz, incident, normal):
    from pathtracer.materials.metal import scatter_metal, vec3

    directions = ti.Vector.field(3, dtype=ti.f64, shape=SAMPLES)
    attenuations = ti.Vector.field(3, dtype=ti.f64, shape=SAMPLES)
    scattered = ti.field(dtype=ti.i32, shape=SAMPLES)
    ax, ay, az = albedo
    ix, iy, iz = incident
    nx, ny, nz = normal

    @ti.kernel
    def test_kernel():
        for i in range(SAMPLES):
            direction, attenuation, did_scatter = scatter_metal(
                vec3(ax, ay, az), fuzz, vec3(ix, iy, iz), vec3(nx, ny, nz), i
            )
            directions[i] = direction
            attenuations[i] = attenuation
            scattered[i] = did_scatter

    test_kernel()
    return directions.to_numpy(), attenuations.to_numpy(), scattered.to_numpy()


class TestPerfectReflection:
    """Tests for perfect specular reflection (fuzz=0)."""

    def test_normal_incidence(self):
        """A ray hitting the surface head-on comes straight back."""
        directions, _, scattered = _scatter_many(
            (1.0, 1.0, 1.0), 0.0, (0.0, -1.0, 0.0), (0.0, 1.0, 0.0)
        )
        assert np.allclose(directions, [0.0, 1.0, 0.0])
        assert np.all(scattered == 1)

    def test_45_degrees(self):
        s = math.sqrt(0.5)
        directions, _, scattered = _scatter_many(
            (1.0, 1.0, 1.0), 0.0, (1.0, -1.0, 0.0), (0.0, 1.0, 0.0)
        )
        assert np.allclose(directions, [s, s, 0.0])
        assert np.all(scattered == 1)

    def test_incident_direction_is_normalized_first(self):
        """The mirror direction is unit length even for long incident vectors."""
        directions, _, _ = _scatter_many(
            (1.0, 1.0, 1.0), 0.0, (0.0, -3.0, -4.0), (0.0, 1.0, 0.0)
        )
        assert np.allclose(directions, [0.0, 0.6, -0.8])


class TestFuzzyReflection:
    """Tests for fuzzy reflection (fuzz>0)."""

    def test_fuzz_perturbs_within_radius(self):
        fuzz = 0.3
        directions, _, _ = _scatter_many(
            (1.0, 1.0, 1.0), fuzz, (0.0, -1.0, 0.0), (0.0, 1.0, 0.0)
        )
        offsets = directions - np.array([0.0, 1.0, 0.0])
        distances = np.linalg.norm(offsets, axis=1)
        assert np.all(distances < fuzz + 1e-12)
        assert distances.std() > 0.0

    def test_grazing_fuzzy_reflection_may_absorb(self):
        directions, _, scattered = _scatter_many(
            (1.0, 1.0, 1.0), 1.0, (1.0, -0.05, 0.0), (0.0, 1.0, 0.0)
        )
        assert np.any(scattered == 0)
        assert np.any(scattered == 1)
        # Absorbed exactly when the direction does not leave the surface
        assert np.array_equal(scattered == 1, directions[:, 1] > 0.0)


class TestMetalAttenuation:
    """Tests for metal attenuation."""

    def test_attenuation_equals_albedo(self):
        _, attenuations, _ = _scatter_many(
            (0.8, 0.6, 0.2), 0.5, (0.0, -1.0, 0.0), (0.0, 1.0, 0.0)
        )
        assert np.allclose(attenuations, [0.8, 0.6, 0.2])


class TestMetalMaterialRegistry:
    """Tests for material registry operations."""

    def test_add_and_get_material(self):
        from pathtracer.materials.metal import (
            add_metal_material,
            get_metal_albedo,
            get_metal_fuzz,
        )

        idx = add_metal_material((0.8, 0.6, 0.2), fuzz=1.0)

        albedo = ti.Vector.field(3, dtype=ti.f64, shape=())
        fuzz = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            albedo[None] = get_metal_albedo(mat_idx)
            fuzz[None] = get_metal_fuzz(mat_idx)

        test_kernel(idx)
        assert np.allclose(albedo[None].to_numpy(), [0.8, 0.6, 0.2])
        assert fuzz[None] == 1.0

    def test_material_count_and_default_fuzz(self):
        from pathtracer.materials.metal import (
            add_metal_material,
            get_metal_fuzz,
            get_metal_material_count,
        )

        assert get_metal_material_count() == 0
        idx = add_metal_material((0.5, 0.5, 0.5))
        assert get_metal_material_count() == 1

        fuzz = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            fuzz[None] = get_metal_fuzz(mat_idx)

        test_kernel(idx)
        assert fuzz[None] == 0.0

    def test_scatter_by_id(self):
        from pathtracer.materials.metal import add_metal_material, scatter_metal_by_id

        idx = add_metal_material((0.9, 0.9, 0.9), fuzz=0.0)

        direction_result = ti.Vector.field(3, dtype=ti.f64, shape=())
        attenuation_result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            direction, attenuation, _ = scatter_metal_by_id(
                mat_idx, ti.math.vec3(1.0, -1.0, 0.0), ti.math.vec3(0.0, 1.0, 0.0), 0
            )
            direction_result[None] = direction
            attenuation_result[None] = attenuation

        test_kernel(idx)
        s = math.sqrt(0.5)
        assert np.allclose(direction_result[None].to_numpy(), [s, s, 0.0])
        assert np.allclose(attenuation_result[None].to_numpy(), [0.9, 0.9, 0.9])

    @pytest.mark.parametrize("albedo", [(-0.1, 0.5, 0.5), (0.5, 0.5, 1.5)])
    def test_albedo_validation(self, albedo):
        from pathtracer.materials.metal import add_metal_material

        with pytest.raises(ValueError, match="outside"):
            add_metal_material(albedo)

    @pytest.mark.parametrize("fuzz", [-0.1, 1.1])
    def test_fuzz_validation(self, fuzz):
        from pathtracer.materials.metal import add_metal_material

        with pytest.raises(ValueError, match="Fuzz"):
            add_metal_material((0.5, 0.5, 0.5), fuzz=fuzz)

    @pytest.mark.parametrize("fuzz", [0.0, 1.0])
    def test_fuzz_boundary_values_valid(self, fuzz):
        from pathtracer.materials.metal import add_metal_material

        assert add_metal_material((0.5, 0.5, 0.5), fuzz=fuzz) == 0
