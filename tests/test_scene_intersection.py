"""Tests for scene-level intersection.

Tests cover:
- Sphere storage and validation
- Nearest-hit selection regardless of insertion order
- Material id propagation into the hit record
"""

import pytest
import taichi as ti


def _intersect(origin, direction, t_min=0.001, t_max=1e10):
    from lumentrace.scene.intersection import intersect_scene, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    material_id = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(
        ox: ti.f32, oy: ti.f32, oz: ti.f32,
        dx: ti.f32, dy: ti.f32, dz: ti.f32,
        lo: ti.f32, hi: ti.f32,
    ):
        for _ in range(1):
            rec = intersect_scene(vec3(ox, oy, oz), vec3(dx, dy, dz), lo, hi)
            hit[None] = rec.hit
            t_val[None] = rec.t
            material_id[None] = rec.material_id

    test_kernel(*origin, *direction, t_min, t_max)
    return hit[None], t_val[None], material_id[None]


class TestSphereStorage:
    """Tests for adding spheres to the scene."""

    def test_add_sphere_returns_index(self):
        """Test indices are assigned in insertion order."""
        from lumentrace.scene.intersection import add_sphere, get_sphere_count, vec3

        assert add_sphere(vec3(0.0, 0.0, -1.0), 0.5, 0) == 0
        assert add_sphere(vec3(1.0, 0.0, -1.0), 0.5, 1) == 1
        assert get_sphere_count() == 2

    def test_non_positive_radius_rejected(self):
        """Test zero and negative radii raise ValueError."""
        from lumentrace.scene.intersection import add_sphere, vec3

        with pytest.raises(ValueError, match="radius"):
            add_sphere(vec3(0.0, 0.0, 0.0), 0.0, 0)
        with pytest.raises(ValueError, match="radius"):
            add_sphere(vec3(0.0, 0.0, 0.0), -0.5, 0)

    def test_clear_scene(self):
        """Test clear_scene empties the sphere list."""
        from lumentrace.scene.intersection import add_sphere, clear_scene, get_sphere_count, vec3

        add_sphere(vec3(0.0, 0.0, -1.0), 0.5, 0)
        clear_scene()
        assert get_sphere_count() == 0


class TestNearestHit:
    """Tests for intersect_scene."""

    def test_empty_scene_misses(self):
        """Test an empty scene reports a miss with material id -1."""
        hit, _, material_id = _intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 0
        assert material_id == -1

    def test_nearest_hit_far_sphere_added_first(self):
        """Test the closer sphere wins even when inserted second."""
        from lumentrace.scene.intersection import add_sphere, vec3

        add_sphere(vec3(0.0, 0.0, -10.0), 1.0, 7)
        add_sphere(vec3(0.0, 0.0, -3.0), 1.0, 3)

        hit, t, material_id = _intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert abs(t - 2.0) < 1e-5
        assert material_id == 3

    def test_nearest_hit_near_sphere_added_first(self):
        """Test the closer sphere wins when inserted first."""
        from lumentrace.scene.intersection import add_sphere, vec3

        add_sphere(vec3(0.0, 0.0, -3.0), 1.0, 3)
        add_sphere(vec3(0.0, 0.0, -10.0), 1.0, 7)

        hit, t, material_id = _intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert abs(t - 2.0) < 1e-5
        assert material_id == 3

    def test_t_max_excludes_far_spheres(self):
        """Test spheres beyond t_max are ignored."""
        from lumentrace.scene.intersection import add_sphere, vec3

        add_sphere(vec3(0.0, 0.0, -10.0), 1.0, 7)

        hit, _, _ = _intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), t_max=5.0)
        assert hit == 0

    def test_overlapping_spheres(self):
        """Test overlapping spheres report the first surface along the ray."""
        from lumentrace.scene.intersection import add_sphere, vec3

        add_sphere(vec3(0.0, 0.0, -5.0), 2.0, 1)
        add_sphere(vec3(0.0, 0.0, -4.0), 0.5, 2)

        hit, t, material_id = _intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert abs(t - 3.0) < 1e-5
        assert material_id == 1
