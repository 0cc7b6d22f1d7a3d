"""Tests for the Lambertian (diffuse) material.

Tests cover:
- Scatter direction lies in the hemisphere around the normal
- Attenuation equals albedo and the ray is never absorbed
- Scattered directions are cosine weighted
- Material registry validation and lookup
"""

import numpy as np
import pytest
import taichi as ti

N_SAMPLES = 4000


class TestScatterLambertian:
    """Tests for scatter_lambertian."""

    def test_always_scatters_with_albedo(self):
        from pathtracer.core.ray import vec3
        from pathtracer.materials.lambertian import scatter_lambertian

        attenuation = ti.Vector.field(3, dtype=ti.f64, shape=N_SAMPLES)
        scattered = ti.field(dtype=ti.i32, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            for i in range(N_SAMPLES):
                _dir, atten, did = scatter_lambertian(vec3(0.2, 0.4, 0.6), vec3(0.0, 1.0, 0.0))
                attenuation[i] = atten
                scattered[i] = did

        test_kernel()
        assert (scattered.to_numpy() == 1).all()
        assert np.allclose(attenuation.to_numpy(), [0.2, 0.4, 0.6])

    def test_direction_in_normal_hemisphere(self):
        """normal + random unit vector never points below the surface."""
        from pathtracer.core.ray import dot, vec3
        from pathtracer.materials.lambertian import scatter_lambertian

        dots = ti.field(dtype=ti.f64, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 0.0, 1.0)
            for i in range(N_SAMPLES):
                direction, _atten, _did = scatter_lambertian(vec3(0.5, 0.5, 0.5), normal)
                dots[i] = dot(direction, normal)

        test_kernel()
        assert (dots.to_numpy() >= -1e-6).all()

    def test_cosine_weighted_distribution(self):
        """The mean cosine of a cosine-weighted hemisphere is 2/3."""
        from pathtracer.core.ray import dot, unit_vector, vec3
        from pathtracer.materials.lambertian import scatter_lambertian

        cosines = ti.field(dtype=ti.f64, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 1.0, 0.0)
            for i in range(N_SAMPLES):
                direction, _atten, _did = scatter_lambertian(vec3(0.5, 0.5, 0.5), normal)
                cosines[i] = dot(unit_vector(direction), normal)

        test_kernel()
        assert cosines.to_numpy().mean() == pytest.approx(2.0 / 3.0, abs=0.03)


class TestLambertianRegistry:
    """Tests for the Lambertian material registry."""

    def test_add_and_lookup(self):
        from pathtracer.materials.lambertian import (
            add_lambertian_material,
            get_lambertian_albedo,
            get_lambertian_material_count,
        )

        first = add_lambertian_material((0.1, 0.2, 0.3))
        second = add_lambertian_material((0.9, 0.8, 0.7))
        assert (first, second) == (0, 1)
        assert get_lambertian_material_count() == 2

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = get_lambertian_albedo(1)

        test_kernel()
        r = result[None]
        assert (r[0], r[1], r[2]) == pytest.approx((0.9, 0.8, 0.7))

    @pytest.mark.parametrize("albedo", [(1.1, 0.5, 0.5), (0.5, -0.1, 0.5)])
    def test_albedo_out_of_range_rejected(self, albedo):
        from pathtracer.materials.lambertian import add_lambertian_material

        with pytest.raises(ValueError, match="outside"):
            add_lambertian_material(albedo)

    def test_boundary_albedo_accepted(self):
        from pathtracer.materials.lambertian import add_lambertian_material

        assert add_lambertian_material((0.0, 1.0, 0.0)) == 0

    def test_scatter_by_id_uses_registered_albedo(self):
        from pathtracer.core.ray import vec3
        from pathtracer.materials.lambertian import (
            add_lambertian_material,
            scatter_lambertian_by_id,
        )

        add_lambertian_material((0.5, 0.5, 0.5))
        idx = add_lambertian_material((0.25, 0.75, 1.0))

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(material_idx: ti.i32):
            _dir, atten, _did = scatter_lambertian_by_id(material_idx, vec3(0.0, 1.0, 0.0))
            result[None] = atten

        test_kernel(idx)
        r = result[None]
        assert (r[0], r[1], r[2]) == pytest.approx((0.25, 0.75, 1.0))
