"""Monte Carlo path tracing over the sphere scene.

This module implements the main rendering kernel: camera rays are traced
through the scene, bounce off surfaces according to their material, and pick
up the sky color when they escape. Each bounce multiplies a throughput
accumulator by the material's attenuation, so the estimate for a path is
``attenuation_1 * ... * attenuation_k * sky(direction)``.

Paths end when they escape the scene, when a material absorbs them, or when
the bounce budget (``max_depth``) runs out. The last two contribute black.

Every (pixel, sample) pair draws from its own random stream seeded from the
render seed and the pixel and sample indices, so the same seed always
reproduces the same image regardless of how Taichi schedules the pixels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumentrace.core.integrator import (
    ...     render_image, setup_render_target, get_image_numpy
    ... )
    >>> from lumentrace.scene.presets import create_three_spheres_scene
    >>> from lumentrace.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_three_spheres_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(400, 225)
    >>> render_image(num_samples=100, seed=7)
    >>> image = get_image_numpy()
"""

import logging
import math

import numpy as np
import taichi as ti
import taichi.math as tm

from lumentrace.camera.thin_lens import get_ray_jittered
from lumentrace.core.ray import hadamard, unit_vector
from lumentrace.core.sampler import seed_stream
from lumentrace.materials.dielectric import (
    get_dielectric_ior,
    scatter_dielectric,
)
from lumentrace.materials.lambertian import (
    get_lambertian_albedo,
    scatter_lambertian,
)
from lumentrace.materials.metal import (
    get_metal_albedo,
    get_metal_fuzz,
    scatter_metal,
)
from lumentrace.scene.intersection import intersect_scene
from lumentrace.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)
from lumentrace.settings import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_SKY_COLOR,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
)

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# -----------------------------------------------------------------------------
# Ray interval
# -----------------------------------------------------------------------------

# Accepted hit interval; T_MIN keeps scattered rays off their own surface
T_MIN = 0.001
T_MAX = tm.inf

# -----------------------------------------------------------------------------
# Sky
# -----------------------------------------------------------------------------

_sky_color = ti.Vector.field(3, dtype=ti.f32, shape=())


def set_sky_color(color: tuple[float, float, float] = DEFAULT_SKY_COLOR) -> None:
    """Set the color of the sky at the zenith.

    The background blends linearly from white at the horizon below the
    camera to this color straight up.

    Raises:
        ValueError: If any component is negative.
    """
    if len(color) != 3:
        raise ValueError(f"Sky color must have 3 components, got {len(color)}")
    if any(c < 0.0 for c in color):
        raise ValueError(f"Sky color components must be non-negative, got {tuple(color)}")
    _sky_color[None] = [float(color[0]), float(color[1]), float(color[2])]


def get_sky_color() -> tuple[float, float, float]:
    """Get the current sky color."""
    sky = _sky_color[None]
    return (float(sky[0]), float(sky[1]), float(sky[2]))


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky gradient seen by an escaping ray.

    Returns ``(1 - t) * white + t * sky`` with
    ``t = 0.5 * (unit_direction.y + 1)``.
    """
    t = 0.5 * (unit_vector(direction).y + 1.0)
    return (1.0 - t) * vec3(1.0, 1.0, 1.0) + t * _sky_color[None]


# -----------------------------------------------------------------------------
# Accumulation buffer
# -----------------------------------------------------------------------------

# Buffers are allocated at the maximum size; only the active
# (width, height) corner is rendered and read back.
_active_size = ti.Vector.field(2, dtype=ti.i32, shape=())
_color_sum = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))
_target_ready = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Select the output size and start from an empty buffer.

    Raises:
        ValueError: If a dimension is not positive or is larger than
            MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image size {width}x{height} is larger than the supported "
            f"{MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT}"
        )

    _active_size[None] = [width, height]
    _target_ready[None] = 1
    clear_render_target()


def clear_render_target() -> None:
    """Discard accumulated samples, keeping the size."""
    _color_sum.fill(0.0)
    _sample_count.fill(0)


def reset_render_target() -> None:
    """Discard samples and forget the size; rendering needs a new setup."""
    clear_render_target()
    _target_ready[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Active ``(width, height)``."""
    size = _active_size[None]
    return int(size[0]), int(size[1])


def _require_render_target() -> None:
    if not _target_ready[None]:
        raise RuntimeError("No render target; call setup_render_target() first")


# -----------------------------------------------------------------------------
# Scattering
# -----------------------------------------------------------------------------


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    rng: ti.u32,
):
    """Scatter off whichever material ``material_id`` names.

    Same contract as the per-material functions:
    ``(direction, attenuation, did_scatter, rng)``. Ids that are not
    registered absorb the path.
    """
    kind = get_material_type(material_id)
    slot = get_material_type_index(material_id)

    direction = vec3(0.0)
    attenuation = vec3(0.0)
    did_scatter = 0
    state = rng

    if kind == int(MaterialType.LAMBERTIAN):
        direction, attenuation, did_scatter, state = scatter_lambertian(
            get_lambertian_albedo(slot), normal, rng
        )
    elif kind == int(MaterialType.METAL):
        direction, attenuation, did_scatter, state = scatter_metal(
            get_metal_albedo(slot), get_metal_fuzz(slot), incident_direction, normal, rng
        )
    elif kind == int(MaterialType.DIELECTRIC):
        direction, attenuation, did_scatter, state = scatter_dielectric(
            get_dielectric_ior(slot), incident_direction, normal, front_face, rng
        )

    return direction, attenuation, did_scatter, state


# -----------------------------------------------------------------------------
# Paths
# -----------------------------------------------------------------------------


@ti.func
def trace_path(origin: vec3, direction: vec3, max_depth: ti.i32, rng: ti.u32):
    """Estimate the color carried back along a ray.

    Equivalent to the recursive definition
    ``color(ray, d) = attenuation * color(scattered, d - 1)`` with black for
    ``d == 0`` or absorption and the sky gradient on a miss, unrolled into a
    loop with a throughput accumulator.

    Args:
        origin: The ray origin.
        direction: The ray direction (any non-zero length).
        max_depth: Bounce budget. 0 returns black without tracing.
        rng: The current random stream state.

    Returns:
        A tuple of (color, rng).
    """
    ray_origin = origin
    ray_direction = direction
    state = rng

    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)

    # Taichi has no break inside ti.func loops
    active = 1

    for _ in range(max_depth):
        if active == 1:
            hit_record = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if hit_record.hit == 0:
                color = throughput * background_color(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter, state = _scatter_material(
                    hit_record.material_id,
                    ray_direction,
                    hit_record.normal,
                    hit_record.front_face,
                    state,
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput = hadamard(throughput, attenuation)
                    ray_origin = hit_record.point
                    ray_direction = scattered_direction

    # Still bouncing when the budget ran out: color stays black
    return color, state


@ti.func
def render_sample_impl(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    sample_index: ti.i32,
    seed: ti.u32,
    max_depth: ti.i32,
) -> vec3:
    """Trace one jittered camera sample for a pixel.

    Returns:
        The estimated color for this sample.
    """
    rng = seed_stream(seed, pixel_i, pixel_j, sample_index)
    ray, state = get_ray_jittered(pixel_i, pixel_j, width, height, rng)
    color, _ = trace_path(ray.origin, ray.direction, max_depth, state)
    return color


# -----------------------------------------------------------------------------
# Kernels
# -----------------------------------------------------------------------------


@ti.kernel
def _render_one_spp(
    width: ti.i32,
    height: ti.i32,
    sample_index: ti.i32,
    seed: ti.u32,
    max_depth: ti.i32,
):
    """Add sample ``sample_index`` to every active pixel."""
    for i, j in ti.ndrange(width, height):
        color = render_sample_impl(i, j, width, height, sample_index, seed, max_depth)

        # NaN and inf channels count as black
        for c in ti.static(range(3)):
            if not ti.abs(color[c]) < tm.inf:
                color[c] = 0.0

        _color_sum[i, j] += color
        _sample_count[i, j] += 1


# Output slot of the one-off kernels below
_single_result = ti.Vector.field(3, dtype=ti.f32, shape=())


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    sample_index: ti.i32,
    seed: ti.u32,
    max_depth: ti.i32,
):
    for _ in range(1):
        _single_result[None] = render_sample_impl(
            pixel_i, pixel_j, width, height, sample_index, seed, max_depth
        )


@ti.kernel
def _trace_single_ray(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    max_depth: ti.i32,
    seed: ti.u32,
):
    for _ in range(1):
        rng = seed_stream(seed, 0, 0, 0)
        color, _state = trace_path(vec3(ox, oy, oz), vec3(dx, dy, dz), max_depth, rng)
        _single_result[None] = color


# -----------------------------------------------------------------------------
# Python entry points
# -----------------------------------------------------------------------------


def _check_seed(seed: int) -> int:
    if seed < 0:
        raise ValueError(f"seed must be non-negative, got {seed}")
    return seed & 0xFFFFFFFF


def _check_max_depth(max_depth: int) -> None:
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")


def _as_color(value) -> tuple[float, float, float]:
    return (float(value[0]), float(value[1]), float(value[2]))


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = DEFAULT_MAX_DEPTH,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Linear color returned by one path starting at ``origin``.

    Works without a camera or render target, which makes it handy for
    probing a scene from tests.

    Raises:
        ValueError: If ``max_depth`` or ``seed`` is negative.
    """
    _check_max_depth(max_depth)
    seed_u32 = _check_seed(seed)
    _trace_single_ray(*origin, *direction, max_depth, seed_u32)
    return _as_color(_single_result[None])


def render_sample(
    pixel_i: int,
    pixel_j: int,
    sample_index: int = 0,
    seed: int = 0,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> tuple[float, float, float]:
    """Linear color of one sample of pixel (i, j), with j = 0 the bottom row.

    The value is exactly what render_image() accumulates into that pixel for
    the same ``sample_index`` and ``seed``.

    Raises:
        RuntimeError: If no render target is set up.
        ValueError: If ``max_depth`` or ``seed`` is negative.
    """
    _require_render_target()
    _check_max_depth(max_depth)
    seed_u32 = _check_seed(seed)

    width, height = get_image_dimensions()
    _render_single_pixel(pixel_i, pixel_j, width, height, sample_index, seed_u32, max_depth)
    return _as_color(_single_result[None])


def render_image(
    num_samples: int = 1,
    max_depth: int = DEFAULT_MAX_DEPTH,
    seed: int = 0,
) -> None:
    """Accumulate ``num_samples`` more samples into every pixel.

    Sample indices continue from get_total_samples(), so one call with 10
    samples and two calls with 5 produce the same buffer.

    Raises:
        RuntimeError: If no render target is set up.
        ValueError: If ``num_samples``, ``max_depth`` or ``seed`` is negative.
    """
    _require_render_target()
    if num_samples < 0:
        raise ValueError(f"num_samples must be non-negative, got {num_samples}")
    _check_max_depth(max_depth)
    seed_u32 = _check_seed(seed)

    width, height = get_image_dimensions()
    first = get_total_samples()
    logger.debug(
        "Rendering samples %d..%d at %dx%d (max_depth=%d, seed=%d)",
        first,
        first + num_samples,
        width,
        height,
        max_depth,
        seed,
    )
    for sample_index in range(first, first + num_samples):
        _render_one_spp(width, height, sample_index, seed_u32, max_depth)


def get_total_samples() -> int:
    """Samples per pixel accumulated since the buffer was last cleared.

    Raises:
        RuntimeError: If no render target is set up.
    """
    _require_render_target()
    return int(_sample_count[0, 0])


def get_image_numpy() -> np.ndarray:
    """Read back the image as float32, shape (height, width, 3), top row first.

    Each channel is ``sqrt(sum / samples)``: the mean with gamma 2 applied
    and no clamping. A pixel without samples reads as black.

    Raises:
        RuntimeError: If no render target is set up.
    """
    _require_render_target()
    width, height = get_image_dimensions()

    sums = _color_sum.to_numpy()[:width, :height]
    counts = np.maximum(_sample_count.to_numpy()[:width, :height], 1)
    mean = np.clip(sums / counts[..., np.newaxis], 0.0, None)

    # Buffers are indexed [x, y] with y = 0 at the bottom
    return np.sqrt(mean).swapaxes(0, 1)[::-1].astype(np.float32)


def color_to_rgb8(color: tuple[float, float, float]) -> tuple[int, int, int]:
    """8-bit channels ``floor(255.999 * c)`` of a gamma-corrected color.

    Nothing is clamped here; clamp to [0, 1] before calling.
    """
    return tuple(int(math.floor(255.999 * c)) for c in color)
