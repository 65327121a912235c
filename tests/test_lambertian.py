"""Unit tests for the Lambertian material module.

Tests cover:
- Scatter always succeeds and starts at the hit point
- Scattered direction lies in the hemisphere of the normal
- Attenuation equals albedo
- Material registry operations and validation
"""

import pytest
import taichi as ti


def _make_hit_record_kernel_args():
    """Point and normal of a hit on the ground plane y = 0."""
    return (0.25, 0.0, -1.5), (0.0, 1.0, 0.0)


class TestLambertianScatter:
    """Tests for scatter_lambertian."""

    def test_always_scatters_from_hit_point(self):
        """Test every sample scatters, starting exactly at the hit point."""
        from src.pathtracer.core.ray import Ray, vec3
        from src.pathtracer.geometry.sphere import HitRecord
        from src.pathtracer.materials.lambertian import scatter_lambertian

        n = 2000
        did_scatter = ti.field(dtype=ti.i32, shape=n)
        origins = ti.Vector.field(3, dtype=ti.f64, shape=n)
        directions = ti.Vector.field(3, dtype=ti.f64, shape=n)
        (px, py, pz), (nx, ny, nz) = _make_hit_record_kernel_args()

        @ti.kernel
        def test_kernel():
            for i in range(n):
                ray_in = Ray(origin=vec3(0.0, 1.0, 0.0), direction=vec3(0.25, -1.0, -1.5))
                rec = HitRecord(
                    hit=1,
                    t=1.0,
                    point=vec3(px, py, pz),
                    normal=vec3(nx, ny, nz),
                    front_face=1,
                    material_id=0,
                )
                s = scatter_lambertian(vec3(0.5, 0.5, 0.5), ray_in, rec)
                did_scatter[i] = s.did_scatter
                origins[i] = s.origin
                directions[i] = s.direction

        test_kernel()
        assert did_scatter.to_numpy().min() == 1

        o = origins.to_numpy()
        assert (o[:, 0] == px).all()
        assert (o[:, 1] == py).all()
        assert (o[:, 2] == pz).all()

        # normal + unit vector never points below the surface
        d = directions.to_numpy()
        assert d[:, 1].min() >= 0.0
        assert (abs(d).sum(axis=1) > 0.0).all()

    def test_attenuation_equals_albedo(self):
        """Test the attenuation is the albedo unchanged."""
        from src.pathtracer.core.ray import Ray, vec3
        from src.pathtracer.geometry.sphere import HitRecord
        from src.pathtracer.materials.lambertian import scatter_lambertian

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            ray_in = Ray(origin=vec3(0.0, 1.0, 0.0), direction=vec3(0.0, -1.0, 0.0))
            rec = HitRecord(
                hit=1,
                t=1.0,
                point=vec3(0.0, 0.0, 0.0),
                normal=vec3(0.0, 1.0, 0.0),
                front_face=1,
                material_id=0,
            )
            result[None] = scatter_lambertian(vec3(0.8, 0.3, 0.1), ray_in, rec).attenuation

        test_kernel()
        r = result[None]
        assert (r[0], r[1], r[2]) == pytest.approx((0.8, 0.3, 0.1), abs=1e-15)

    def test_scatter_mean_direction_follows_normal(self):
        """Test the average scattered direction points along the normal."""
        from src.pathtracer.core.ray import Ray, unit_vector, vec3
        from src.pathtracer.geometry.sphere import HitRecord
        from src.pathtracer.materials.lambertian import scatter_lambertian

        n = 20000
        directions = ti.Vector.field(3, dtype=ti.f64, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                ray_in = Ray(origin=vec3(0.0, 0.0, 1.0), direction=vec3(0.0, 0.0, -1.0))
                rec = HitRecord(
                    hit=1,
                    t=1.0,
                    point=vec3(0.0, 0.0, 0.0),
                    normal=vec3(0.0, 0.0, 1.0),
                    front_face=1,
                    material_id=0,
                )
                directions[i] = unit_vector(scatter_lambertian(vec3(1.0, 1.0, 1.0), ray_in, rec).direction)

        test_kernel()
        mean = directions.to_numpy().mean(axis=0)
        assert abs(mean[0]) < 0.05
        assert abs(mean[1]) < 0.05
        # E[cos] for a cosine-weighted hemisphere is 2/3
        assert abs(mean[2] - 2.0 / 3.0) < 0.05


class TestLambertianRegistry:
    """Tests for the Lambertian material registry."""

    def test_add_and_count(self):
        from src.pathtracer.materials.lambertian import (
            add_lambertian_material,
            get_lambertian_material_count,
            lambertian_albedos,
        )

        assert add_lambertian_material((0.1, 0.2, 0.3)) == 0
        assert add_lambertian_material((0.4, 0.5, 0.6)) == 1
        assert get_lambertian_material_count() == 2
        assert tuple(lambertian_albedos[1]) == pytest.approx((0.4, 0.5, 0.6))

    def test_clear(self):
        from src.pathtracer.materials.lambertian import (
            add_lambertian_material,
            clear_lambertian_materials,
            get_lambertian_material_count,
        )

        add_lambertian_material((0.5, 0.5, 0.5))
        clear_lambertian_materials()
        assert get_lambertian_material_count() == 0

    @pytest.mark.parametrize(
        "albedo",
        [(1.5, 0.5, 0.5), (0.5, -0.1, 0.5), (0.5, 0.5)],
    )
    def test_invalid_albedo_rejected(self, albedo):
        from src.pathtracer.materials.lambertian import add_lambertian_material

        with pytest.raises(ValueError, match="Albedo"):
            add_lambertian_material(albedo)

    def test_boundary_albedo_accepted(self):
        from src.pathtracer.materials.lambertian import add_lambertian_material

        add_lambertian_material((0.0, 1.0, 0.0))

    def test_capacity_exceeded(self):
        from src.pathtracer.materials.lambertian import (
            MAX_LAMBERTIAN_MATERIALS,
            add_lambertian_material,
            num_lambertian_materials,
        )

        num_lambertian_materials[None] = MAX_LAMBERTIAN_MATERIALS
        with pytest.raises(RuntimeError):
            add_lambertian_material((0.5, 0.5, 0.5))

    def test_scatter_by_id_uses_registered_albedo(self):
        from src.pathtracer.core.ray import Ray, vec3
        from src.pathtracer.geometry.sphere import HitRecord
        from src.pathtracer.materials.lambertian import (
            add_lambertian_material,
            scatter_lambertian_by_id,
        )

        add_lambertian_material((0.9, 0.9, 0.9))
        idx = add_lambertian_material((0.2, 0.4, 0.6))
        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel(material_idx: ti.i32):
            ray_in = Ray(origin=vec3(0.0, 1.0, 0.0), direction=vec3(0.0, -1.0, 0.0))
            rec = HitRecord(
                hit=1,
                t=1.0,
                point=vec3(0.0, 0.0, 0.0),
                normal=vec3(0.0, 1.0, 0.0),
                front_face=1,
                material_id=material_idx,
            )
            result[None] = scatter_lambertian_by_id(material_idx, ray_in, rec).attenuation

        test_kernel(idx)
        assert tuple(result[None]) == pytest.approx((0.2, 0.4, 0.6))
