"""Tests for the metal (specular) material.

Tests cover:
- Perfect mirror reflection (fuzz = 0)
- Fuzzed reflections stay within the fuzz sphere
- Absorption of rays scattered below the surface
- Fuzz clamping and registry validation
"""

import numpy as np
import pytest
import taichi as ti

N_SAMPLES = 2000


class TestScatterMetal:
    """Tests for scatter_metal."""

    def test_mirror_reflection(self):
        """With fuzz 0 the incoming direction is reflected as is, length included."""
        from pathtracer.core.ray import vec3
        from pathtracer.materials.metal import scatter_metal

        direction = ti.field(dtype=ti.math.vec3, shape=())
        attenuation = ti.field(dtype=ti.math.vec3, shape=())
        did = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            d, a, s = scatter_metal(
                vec3(0.8, 0.6, 0.2), 0.0, vec3(3.0, -3.0, 0.0), vec3(0.0, 1.0, 0.0)
            )
            direction[None] = d
            attenuation[None] = a
            did[None] = s

        test_kernel()
        d = direction[None]
        assert (d[0], d[1], d[2]) == pytest.approx((3.0, 3.0, 0.0), abs=1e-12)
        a = attenuation[None]
        assert (a[0], a[1], a[2]) == pytest.approx((0.8, 0.6, 0.2))
        assert did[None] == 1

    def test_fuzzed_direction_within_fuzz_sphere(self):
        from pathtracer.core.ray import length, reflect, vec3
        from pathtracer.materials.metal import scatter_metal

        offsets = ti.field(dtype=ti.f64, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            incoming = vec3(1.0, -2.0, 0.5)
            normal = vec3(0.0, 1.0, 0.0)
            mirror = reflect(incoming, normal)
            for i in range(N_SAMPLES):
                d, _atten, _did = scatter_metal(vec3(0.5, 0.5, 0.5), 0.3, incoming, normal)
                offsets[i] = length(d - mirror)

        test_kernel()
        values = offsets.to_numpy()
        assert values.max() < 0.3 + 1e-9
        assert values.max() > 0.0

    def test_grazing_fuzzed_rays_are_sometimes_absorbed(self):
        """Near-grazing reflections with full fuzz can dip below the surface."""
        from pathtracer.core.ray import dot, vec3
        from pathtracer.materials.metal import scatter_metal

        did = ti.field(dtype=ti.i32, shape=N_SAMPLES)
        dots = ti.field(dtype=ti.f64, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 1.0, 0.0)
            for i in range(N_SAMPLES):
                d, _atten, s = scatter_metal(vec3(0.5, 0.5, 0.5), 1.0, vec3(1.0, -0.05, 0.0), normal)
                did[i] = s
                dots[i] = dot(d, normal)

        test_kernel()
        scattered = did.to_numpy()
        cosines = dots.to_numpy()
        assert 0 < scattered.sum() < N_SAMPLES
        # Absorption happens exactly when the direction does not leave the surface
        assert ((cosines > 0.0) == (scattered == 1)).all()

    def test_long_incoming_direction_outweighs_fuzz(self):
        """Reflecting (10, -1, 0) gives (10, 1, 0); fuzz 0.5 cannot push y below 0.5."""
        from pathtracer.core.ray import dot, vec3
        from pathtracer.materials.metal import scatter_metal

        did = ti.field(dtype=ti.i32, shape=N_SAMPLES)
        dots = ti.field(dtype=ti.f64, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 1.0, 0.0)
            for i in range(N_SAMPLES):
                d, _atten, s = scatter_metal(vec3(0.5, 0.5, 0.5), 0.5, vec3(10.0, -1.0, 0.0), normal)
                did[i] = s
                dots[i] = dot(d, normal)

        test_kernel()
        assert did.to_numpy().sum() == N_SAMPLES
        assert np.min(dots.to_numpy()) > 0.5


class TestMetalRegistry:
    """Tests for the metal material registry."""

    @pytest.mark.parametrize(
        "fuzz, expected",
        [(-0.5, 0.0), (0.0, 0.0), (0.3, 0.3), (1.0, 1.0), (2.5, 1.0)],
    )
    def test_fuzz_is_clamped(self, fuzz, expected):
        from pathtracer.materials.metal import add_metal_material, get_metal_fuzz

        idx = add_metal_material((0.5, 0.5, 0.5), fuzz)

        result = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel(material_idx: ti.i32):
            result[None] = get_metal_fuzz(material_idx)

        test_kernel(idx)
        assert result[None] == pytest.approx(expected)

    def test_albedo_out_of_range_rejected(self):
        from pathtracer.materials.metal import add_metal_material

        with pytest.raises(ValueError):
            add_metal_material((0.5, 1.5, 0.5), 0.0)

    def test_count_and_clear(self):
        from pathtracer.materials.metal import (
            add_metal_material,
            clear_metal_materials,
            get_metal_material_count,
        )

        add_metal_material((0.1, 0.1, 0.1))
        add_metal_material((0.2, 0.2, 0.2), 0.5)
        assert get_metal_material_count() == 2
        clear_metal_materials()
        assert get_metal_material_count() == 0

    def test_scatter_by_id(self):
        from pathtracer.core.ray import vec3
        from pathtracer.materials.metal import add_metal_material, scatter_metal_by_id

        idx = add_metal_material((0.9, 0.1, 0.4), 0.0)

        direction = ti.field(dtype=ti.math.vec3, shape=())
        attenuation = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(material_idx: ti.i32):
            d, a, _did = scatter_metal_by_id(
                material_idx, vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0)
            )
            direction[None] = d
            attenuation[None] = a

        test_kernel(idx)
        d = direction[None]
        a = attenuation[None]
        assert (d[0], d[1], d[2]) == pytest.approx((0.0, 1.0, 0.0))
        assert (a[0], a[1], a[2]) == pytest.approx((0.9, 0.1, 0.4))
