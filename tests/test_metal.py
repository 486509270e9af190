"""Tests for the metal material.

Tests cover:
- Perfect mirror reflection
- Fuzzed directions and absorption below the surface
- Fuzz clamping and registry validation
"""

import numpy as np
import pytest
import taichi as ti

N_SAMPLES = 500


class TestMetalScatter:
    """Tests for scatter_metal."""

    def test_perfect_mirror(self):
        """Test fuzz 0 reflects exactly and keeps the albedo."""
        from lumentrace.core.sampler import seed_stream
        from lumentrace.materials.metal import scatter_metal, vec3

        direction = ti.field(dtype=ti.math.vec3, shape=())
        attenuation = ti.field(dtype=ti.math.vec3, shape=())
        scattered = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                rng = seed_stream(ti.cast(1, ti.u32), 0, 0, 0)
                d, att, did, rng = scatter_metal(
                    vec3(0.8, 0.6, 0.2), 0.0, vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), rng
                )
                direction[None] = d
                attenuation[None] = att
                scattered[None] = did

        test_kernel()
        d = direction[None]
        s = 1.0 / np.sqrt(2.0)
        assert abs(d[0] - s) < 1e-5
        assert abs(d[1] - s) < 1e-5
        assert abs(d[2]) < 1e-5
        assert scattered[None] == 1
        assert abs(attenuation[None][1] - 0.6) < 1e-6

    def test_fuzz_stays_within_fuzz_ball(self):
        """Test fuzzed directions lie within fuzz of the mirror direction."""
        from lumentrace.core.sampler import seed_stream
        from lumentrace.materials.metal import scatter_metal, vec3

        directions = ti.Vector.field(3, dtype=ti.f32, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                rng = seed_stream(ti.cast(2, ti.u32), 0, 0, 0)
                for k in range(N_SAMPLES):
                    d, _att, _did, rng = scatter_metal(
                        vec3(0.5, 0.5, 0.5), 0.3, vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), rng
                    )
                    directions[k] = d

        test_kernel()
        offsets = directions.to_numpy() - np.array([0.0, 1.0, 0.0])
        assert np.linalg.norm(offsets, axis=1).max() <= 0.3 + 1e-5

    def test_grazing_fuzzed_rays_absorbed(self):
        """Test fuzz pushing a grazing reflection below the surface absorbs it."""
        from lumentrace.core.sampler import seed_stream
        from lumentrace.materials.metal import scatter_metal, vec3

        directions = ti.Vector.field(3, dtype=ti.f32, shape=N_SAMPLES)
        scattered = ti.field(dtype=ti.i32, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                rng = seed_stream(ti.cast(3, ti.u32), 0, 0, 0)
                for k in range(N_SAMPLES):
                    d, _att, did, rng = scatter_metal(
                        vec3(0.5, 0.5, 0.5), 1.0, vec3(1.0, -0.01, 0.0), vec3(0.0, 1.0, 0.0), rng
                    )
                    directions[k] = d
                    scattered[k] = did

        test_kernel()
        d = directions.to_numpy()
        flags = scattered.to_numpy()
        # Flag agrees with the side of the surface in every case
        np.testing.assert_array_equal(flags == 1, d[:, 1] > 0.0)
        assert np.any(flags == 0)
        assert np.any(flags == 1)


class TestMetalRegistry:
    """Tests for the metal material registry."""

    def test_clamp_fuzz(self):
        """Test clamp_fuzz limits to [0, 1]."""
        from lumentrace.materials.metal import clamp_fuzz

        assert clamp_fuzz(0.4) == 0.4
        assert clamp_fuzz(2.5) == 1.0
        assert clamp_fuzz(-1.0) == 0.0

    def test_registry_stores_clamped_fuzz(self):
        """Test the stored fuzz is clamped."""
        from lumentrace.materials.metal import (
            add_metal_material,
            get_metal_fuzz,
            get_metal_material_count,
        )

        add_metal_material((0.5, 0.5, 0.5), fuzz=5.0)
        assert get_metal_material_count() == 1

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = get_metal_fuzz(0)

        test_kernel()
        assert result[None] == 1.0

    def test_albedo_out_of_range(self):
        """Test albedo components outside [0, 1] are rejected."""
        from lumentrace.materials.metal import add_metal_material

        with pytest.raises(ValueError):
            add_metal_material((-0.1, 0.5, 0.5))
