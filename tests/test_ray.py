"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and ray_at function
- Vector helpers (unit_vector, hadamard, near_zero)
- Reflection, refraction and Schlick reflectance
"""

import math

import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_origin(self):
        """Test ray_at returns origin when t=0."""
        from lumentrace.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 2.0) < 1e-6
        assert abs(r[2] - 3.0) < 1e-6

    def test_ray_at_unnormalized_direction(self):
        """Test ray_at scales by the direction's length, not a unit vector."""
        from lumentrace.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 1.0, 0.0), vec3(2.0, 0.0, 0.0))
            result[None] = ray_at(ray, 1.5)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 3.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6
        assert abs(r[2]) < 1e-6


class TestVectorHelpers:
    """Tests for vector utility functions."""

    def test_unit_vector(self):
        """Test unit_vector scales to length 1 and keeps direction."""
        from lumentrace.core.ray import unit_vector, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = unit_vector(vec3(3.0, 0.0, 4.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 0.6) < 1e-6
        assert abs(r[1]) < 1e-6
        assert abs(r[2] - 0.8) < 1e-6

    def test_hadamard(self):
        """Test hadamard multiplies component-wise."""
        from lumentrace.core.ray import hadamard, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = hadamard(vec3(0.5, 2.0, 1.0), vec3(0.4, 0.25, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 0.2) < 1e-6
        assert abs(r[1] - 0.5) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_near_zero(self):
        """Test near_zero detects tiny vectors only."""
        from lumentrace.core.ray import near_zero, vec3

        tiny = ti.field(dtype=ti.i32, shape=())
        small = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            tiny[None] = near_zero(vec3(1e-9, -1e-9, 0.0))
            small[None] = near_zero(vec3(1e-9, 1e-3, 0.0))

        test_kernel()
        assert tiny[None] == 1
        assert small[None] == 0


class TestReflectRefract:
    """Tests for reflect, refract and schlick_reflectance."""

    def test_reflect_45_degrees(self):
        """Test reflection of a 45-degree ray off a horizontal surface."""
        from lumentrace.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_refract_normal_incidence(self):
        """Test a ray hitting the surface head-on passes straight through."""
        from lumentrace.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = refract(vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1.0 / 1.5)

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1] + 1.0) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_refract_obeys_snells_law(self):
        """Test sin(theta_out) = eta * sin(theta_in) for an oblique ray."""
        from lumentrace.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())
        eta = 1.0 / 1.5
        theta_in = math.radians(30.0)

        @ti.kernel
        def test_kernel(sx: ti.f32, sy: ti.f32, ratio: ti.f32):
            result[None] = refract(vec3(sx, sy, 0.0), vec3(0.0, 1.0, 0.0), ratio)

        test_kernel(math.sin(theta_in), -math.cos(theta_in), eta)
        r = result[None]
        length = math.sqrt(r[0] ** 2 + r[1] ** 2 + r[2] ** 2)
        assert abs(length - 1.0) < 1e-5
        assert abs(r[0] / length - eta * math.sin(theta_in)) < 1e-5
        assert r[1] < 0.0

    def test_schlick_reflectance_endpoints(self):
        """Test Schlick gives r0 head-on and 1 at grazing incidence."""
        from lumentrace.core.ray import schlick_reflectance

        head_on = ti.field(dtype=ti.f32, shape=())
        grazing = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            head_on[None] = schlick_reflectance(1.0, 1.5)
            grazing[None] = schlick_reflectance(0.0, 1.5)

        test_kernel()
        assert abs(head_on[None] - 0.04) < 1e-6
        assert abs(grazing[None] - 1.0) < 1e-6
