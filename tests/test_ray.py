"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and ray_at function
- Vector utility functions (dot, cross, unit_vector, length, reflect, refract)
- Schlick reflectance
- Random sampling functions for Monte Carlo
"""

import math

import pytest
import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_origin(self):
        """Test ray_at returns origin when t=0."""
        from src.pathtracer.core.ray import Ray, ray_at, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        r = result[None]
        assert r[0] == 1.0
        assert r[1] == 2.0
        assert r[2] == 3.0

    def test_ray_at_positive_t(self):
        """Test ray_at computes origin + t * direction."""
        from src.pathtracer.core.ray import Ray, ray_at, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 0.0, 0.0), direction=vec3(0.0, 2.0, 0.0))
            result[None] = ray_at(ray, 2.5)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-12
        assert abs(r[1] - 5.0) < 1e-12
        assert abs(r[2]) < 1e-12

    def test_ray_at_negative_t(self):
        """Test ray_at handles negative t (behind origin)."""
        from src.pathtracer.core.ray import make_ray, ray_at, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))
            result[None] = ray_at(ray, -3.0)

        test_kernel()
        assert abs(result[None][1] - (-3.0)) < 1e-12

    def test_make_ray_keeps_direction_unnormalized(self):
        """Test make_ray does not normalize the direction."""
        from src.pathtracer.core.ray import make_ray, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(3.0, 0.0, 4.0))
            result[None] = ray.direction

        test_kernel()
        r = result[None]
        assert r[0] == 3.0
        assert r[2] == 4.0


class TestVectorAlgebra:
    """Tests for the vector math helpers."""

    def test_dot_is_symmetric(self):
        """Test dot(a, b) == dot(b, a)."""
        from src.pathtracer.core.ray import dot, vec3

        result = ti.field(dtype=ti.f64, shape=2)

        @ti.kernel
        def test_kernel():
            a = vec3(1.5, -2.0, 0.25)
            b = vec3(-0.5, 3.0, 8.0)
            result[0] = dot(a, b)
            result[1] = dot(b, a)

        test_kernel()
        assert result[0] == result[1]
        assert abs(result[0] - (-0.75 - 6.0 + 2.0)) < 1e-12

    def test_cross_is_antisymmetric(self):
        """Test cross(a, b) == -cross(b, a)."""
        from src.pathtracer.core.ray import cross, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=2)

        @ti.kernel
        def test_kernel():
            a = vec3(1.0, 2.0, 3.0)
            b = vec3(-4.0, 0.5, 2.0)
            result[0] = cross(a, b)
            result[1] = cross(b, a)

        test_kernel()
        for k in range(3):
            assert abs(result[0][k] + result[1][k]) < 1e-12

    def test_cross_of_axes(self):
        """Test x cross y is z."""
        from src.pathtracer.core.ray import cross, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = cross(vec3(1.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert (r[0], r[1], r[2]) == (0.0, 0.0, 1.0)

    def test_length_and_length_squared(self):
        """Test length of a 3-4-0 vector."""
        from src.pathtracer.core.ray import length, length_squared, vec3

        result = ti.field(dtype=ti.f64, shape=2)

        @ti.kernel
        def test_kernel():
            v = vec3(3.0, 4.0, 0.0)
            result[0] = length(v)
            result[1] = length_squared(v)

        test_kernel()
        assert abs(result[0] - 5.0) < 1e-12
        assert abs(result[1] - 25.0) < 1e-12

    @pytest.mark.parametrize(
        "v",
        [
            (1.0, 2.0, 3.0),
            (-0.001, 0.0, 0.002),
            (1e6, -3e5, 2e4),
            (0.3, 0.3, -0.3),
        ],
    )
    def test_unit_vector_has_unit_length(self, v):
        """Test length(unit_vector(a)) is 1 within 1e-9."""
        from src.pathtracer.core.ray import length, unit_vector, vec3

        result = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel(x: ti.f64, y: ti.f64, z: ti.f64):
            result[None] = length(unit_vector(vec3(x, y, z)))

        test_kernel(*v)
        assert abs(result[None] - 1.0) < 1e-9

    def test_near_zero(self):
        """Test near_zero detects vectors below the per-component epsilon."""
        from src.pathtracer.core.ray import near_zero, vec3

        result = ti.field(dtype=ti.i32, shape=3)

        @ti.kernel
        def test_kernel():
            result[0] = near_zero(vec3(1e-9, -1e-9, 0.0))
            result[1] = near_zero(vec3(1e-9, 1e-3, 0.0))
            result[2] = near_zero(vec3(0.0, 0.0, 0.0))

        test_kernel()
        assert result[0] == 1
        assert result[1] == 0
        assert result[2] == 1


class TestReflectRefract:
    """Tests for reflect, refract and Schlick reflectance."""

    def test_reflect_flips_normal_component(self):
        """Test dot(reflect(v, n), n) == -dot(v, n)."""
        from src.pathtracer.core.ray import dot, reflect, unit_vector, vec3

        result = ti.field(dtype=ti.f64, shape=2)

        @ti.kernel
        def test_kernel():
            v = vec3(0.7, -1.3, 0.2)
            n = unit_vector(vec3(0.1, 1.0, -0.3))
            result[0] = dot(reflect(v, n), n)
            result[1] = dot(v, n)

        test_kernel()
        assert abs(result[0] + result[1]) < 1e-12

    def test_reflect_45_degrees(self):
        """Test reflection of a 45 degree incoming ray off a horizontal plane."""
        from src.pathtracer.core.ray import reflect, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-12
        assert abs(r[1] - 1.0) < 1e-12
        assert abs(r[2]) < 1e-12

    def test_refract_matched_index_passes_straight_through(self):
        """Test refract with ratio 1 returns the incoming direction."""
        from src.pathtracer.core.ray import refract, unit_vector, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            uv = unit_vector(vec3(0.6, -0.8, 0.0))
            result[None] = refract(uv, vec3(0.0, 1.0, 0.0), 1.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 0.6) < 1e-12
        assert abs(r[1] + 0.8) < 1e-12
        assert abs(r[2]) < 1e-12

    def test_refract_obeys_snell(self):
        """Test the refracted direction satisfies Snell's law."""
        from src.pathtracer.core.ray import refract, unit_vector, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            uv = unit_vector(vec3(1.0, -1.0, 0.0))
            result[None] = refract(uv, vec3(0.0, 1.0, 0.0), 1.0 / 1.5)

        test_kernel()
        r = result[None]
        sin_in = math.sqrt(0.5)
        norm = math.sqrt(r[0] ** 2 + r[1] ** 2 + r[2] ** 2)
        sin_out = abs(r[0]) / norm
        assert abs(sin_in - 1.5 * sin_out) < 1e-9
        assert abs(norm - 1.0) < 1e-9
        assert r[1] < 0.0

    def test_schlick_at_normal_incidence(self):
        """Test Schlick reflectance at cos=1 equals r0."""
        from src.pathtracer.core.ray import schlick_reflectance

        result = ti.field(dtype=ti.f64, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = schlick_reflectance(1.0, 1.5)
            result[1] = schlick_reflectance(0.0, 1.5)

        test_kernel()
        r0 = ((1.0 - 1.5) / (1.0 + 1.5)) ** 2
        assert abs(result[0] - r0) < 1e-12
        assert abs(result[1] - 1.0) < 1e-12


class TestRandomSampling:
    """Tests for random sampling helpers."""

    def test_random_real_in_range(self):
        """Test random_real stays within [lo, hi)."""
        from src.pathtracer.core.ray import random_real

        n = 1000
        result = ti.field(dtype=ti.f64, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                result[i] = random_real(-2.0, 3.0)

        test_kernel()
        values = result.to_numpy()
        assert values.min() >= -2.0
        assert values.max() < 3.0

    def test_random_in_unit_sphere(self):
        """Test samples lie strictly inside the unit ball."""
        from src.pathtracer.core.ray import length_squared, random_in_unit_sphere

        n = 1000
        result = ti.field(dtype=ti.f64, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                result[i] = length_squared(random_in_unit_sphere())

        test_kernel()
        assert result.to_numpy().max() < 1.0

    def test_random_unit_vector(self):
        """Test samples lie on the unit sphere."""
        from src.pathtracer.core.ray import length, random_unit_vector

        n = 1000
        result = ti.field(dtype=ti.f64, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                result[i] = length(random_unit_vector())

        test_kernel()
        values = result.to_numpy()
        assert abs(values - 1.0).max() < 1e-9

    def test_random_in_unit_disk(self):
        """Test samples lie in the unit disk with z = 0."""
        from src.pathtracer.core.ray import random_in_unit_disk

        n = 1000
        result = ti.Vector.field(3, dtype=ti.f64, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                result[i] = random_in_unit_disk()

        test_kernel()
        values = result.to_numpy()
        assert (values[:, 0] ** 2 + values[:, 1] ** 2).max() < 1.0
        assert abs(values[:, 2]).max() == 0.0
