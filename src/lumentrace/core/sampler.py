"""Explicit random streams for Monte Carlo sampling.

Every function that consumes entropy takes the current stream state and
returns the advanced state alongside its result, so each unit of work owns
its own stream and a render is reproducible for a given seed:

    value, rng = next_float(rng)

A stream is a 32-bit xorshift state. Streams are seeded by hashing the
render seed together with the pixel coordinates and the sample index, which
keeps pixels independent of the order in which Taichi schedules them.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> # Within a Taichi kernel:
    >>> # rng = seed_stream(seed, i, j, sample_index)
    >>> # direction, rng = random_unit_vector(rng)
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Rejection sampling gives up after this many tries; the acceptance rate is
# above 50% so the cap is never reached in practice.
MAX_REJECTION_TRIES = 64

# 2^-24: maps the top 24 bits of a state to a float in [0, 1)
_FLOAT_SCALE = 1.0 / 16777216.0


@ti.func
def _wang_hash(key: ti.u32) -> ti.u32:
    """Scramble a 32-bit key (Thomas Wang's integer hash)."""
    h = key
    h = (h ^ ti.cast(61, ti.u32)) ^ (h >> 16)
    h = h * ti.cast(9, ti.u32)
    h = h ^ (h >> 4)
    h = h * ti.cast(668265261, ti.u32)
    h = h ^ (h >> 15)
    return h


@ti.func
def seed_stream(seed: ti.u32, pixel_i: ti.i32, pixel_j: ti.i32, sample_index: ti.i32) -> ti.u32:
    """Derive the stream state for one sample of one pixel.

    Args:
        seed: The render seed.
        pixel_i: Pixel x-coordinate.
        pixel_j: Pixel y-coordinate.
        sample_index: Index of the sample within the pixel.

    Returns:
        A non-zero stream state.
    """
    state = _wang_hash(seed)
    state = _wang_hash(state ^ ti.cast(pixel_i, ti.u32))
    state = _wang_hash(state ^ ti.cast(pixel_j, ti.u32))
    state = _wang_hash(state ^ ti.cast(sample_index, ti.u32))
    # xorshift has a fixed point at zero
    if state == 0:
        state = ti.cast(0x2545F491, ti.u32)
    return state


@ti.func
def next_state(rng: ti.u32) -> ti.u32:
    """Advance a stream by one xorshift32 step."""
    state = rng
    state = state ^ (state << 13)
    state = state ^ (state >> 17)
    state = state ^ (state << 5)
    return state


@ti.func
def next_float(rng: ti.u32):
    """Draw a uniform float in [0, 1).

    Args:
        rng: The current stream state.

    Returns:
        A tuple of (value, rng) with the advanced stream state.
    """
    state = next_state(rng)
    value = ti.cast(state >> 8, ti.f32) * _FLOAT_SCALE
    return value, state


@ti.func
def next_float_range(rng: ti.u32, lo: ti.f32, hi: ti.f32):
    """Draw a uniform float in [lo, hi)."""
    value, state = next_float(rng)
    return lo + (hi - lo) * value, state


@ti.func
def random_in_unit_sphere(rng: ti.u32):
    """Generate a random point inside the unit sphere.

    Uses rejection sampling over the enclosing cube.

    Returns:
        A tuple of (point, rng) where point has length < 1.
    """
    state = rng
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    for _ in range(MAX_REJECTION_TRIES):
        if found == 0:
            x, state = next_float_range(state, -1.0, 1.0)
            y, state = next_float_range(state, -1.0, 1.0)
            z, state = next_float_range(state, -1.0, 1.0)
            candidate = vec3(x, y, z)
            if tm.dot(candidate, candidate) < 1.0:
                p = candidate
                found = 1
    return p, state


@ti.func
def random_unit_vector(rng: ti.u32):
    """Generate a random unit vector uniformly distributed on the sphere.

    Picks an azimuth in [0, 2pi) and a height z in [-1, 1); by Archimedes'
    hat-box theorem this is uniform over the sphere surface.

    Returns:
        A tuple of (direction, rng).
    """
    a, state = next_float_range(rng, 0.0, 2.0 * tm.pi)
    z, state = next_float_range(state, -1.0, 1.0)
    r = ti.sqrt(1.0 - z * z)
    return vec3(r * ti.cos(a), r * ti.sin(a), z), state


@ti.func
def random_in_unit_disk(rng: ti.u32):
    """Generate a random point inside the unit disk in the xy-plane.

    Used for thin-lens depth of field.

    Returns:
        A tuple of (point, rng) where point is (x, y, 0) with x^2 + y^2 < 1.
    """
    state = rng
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    for _ in range(MAX_REJECTION_TRIES):
        if found == 0:
            x, state = next_float_range(state, -1.0, 1.0)
            y, state = next_float_range(state, -1.0, 1.0)
            if x * x + y * y < 1.0:
                p = vec3(x, y, 0.0)
                found = 1
    return p, state
