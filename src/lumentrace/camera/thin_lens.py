"""Look-at camera with a thin lens for depth of field.

``setup_camera`` turns a ``ThinLensCamera`` into an orthonormal frame
(u right, v up, w pointing back toward the viewer) and a viewport placed on
the plane of focus, ``focus_dist`` in front of the lens. Rays leave from a
random point of a disk of radius ``aperture / 2`` and aim at a point of
that viewport: objects on the focus plane stay sharp and everything else
blurs. A zero aperture gives an ideal pinhole.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumentrace.camera.thin_lens import ThinLensCamera, setup_camera
    >>> setup_camera(
    ...     ThinLensCamera(
    ...         lookfrom=(3.0, 3.0, 2.0),
    ...         lookat=(0.0, 0.0, -1.0),
    ...         vup=(0.0, 1.0, 0.0),
    ...         vfov=20.0,
    ...         aspect_ratio=16.0 / 9.0,
    ...         aperture=2.0,
    ...         focus_dist=5.2,
    ...     )
    ... )
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from lumentrace.core.ray import make_ray
from lumentrace.core.sampler import next_float, random_in_unit_disk


@dataclass
class ThinLensCamera:
    """View and lens parameters.

    Attributes:
        lookfrom: Eye position.
        lookat: Point the view is centered on.
        vup: World direction that should appear upward in the image.
        vfov: Vertical field of view in degrees, strictly between 0 and 180.
        aspect_ratio: Image width over height.
        aperture: Lens diameter; 0 disables defocus blur.
        focus_dist: Distance from the eye to the plane of sharp focus.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float
    aperture: float = 0.0
    focus_dist: float = 1.0


# Frame, viewport and lens as last passed to setup_camera(); the viewport is
# lower_left + s * horizontal + t * vertical for s, t in [0, 1].
_frame = ti.Vector.field(3, dtype=ti.f32, shape=4)  # origin, u, v, w
_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left = ti.Vector.field(3, dtype=ti.f32, shape=())
_lens_radius = ti.field(dtype=ti.f32, shape=())


def _validate_camera(camera: ThinLensCamera) -> None:
    if not 0.0 < camera.vfov < 180.0:
        raise ValueError(f"vfov must be in (0, 180) degrees, got {camera.vfov}")
    if camera.aspect_ratio <= 0.0:
        raise ValueError(f"aspect_ratio must be positive, got {camera.aspect_ratio}")
    if camera.aperture < 0.0:
        raise ValueError(f"aperture must be non-negative, got {camera.aperture}")
    if camera.focus_dist <= 0.0:
        raise ValueError(f"focus_dist must be positive, got {camera.focus_dist}")


def _normalized(v: np.ndarray, message: str) -> np.ndarray:
    norm = np.linalg.norm(v)
    if norm == 0.0:
        raise ValueError(message)
    return v / norm


def setup_camera(camera: ThinLensCamera) -> None:
    """Make ``camera`` the one used by get_ray() and the renderer.

    Raises:
        ValueError: If a parameter is out of range, ``lookfrom`` equals
            ``lookat``, or ``vup`` is parallel to the view direction.
    """
    _validate_camera(camera)

    eye = np.asarray(camera.lookfrom, dtype=np.float64)
    w = _normalized(
        eye - np.asarray(camera.lookat, dtype=np.float64),
        "lookfrom and lookat must be different points",
    )
    u = _normalized(
        np.cross(np.asarray(camera.vup, dtype=np.float64), w),
        "vup must not be parallel to the view direction",
    )
    v = np.cross(w, u)

    half_height = math.tan(math.radians(camera.vfov) / 2.0)
    vertical = (2.0 * half_height * camera.focus_dist) * v
    horizontal = (2.0 * half_height * camera.aspect_ratio * camera.focus_dist) * u

    for slot, vec in enumerate((eye, u, v, w)):
        _frame[slot] = vec.tolist()
    _horizontal[None] = horizontal.tolist()
    _vertical[None] = vertical.tolist()
    _lower_left[None] = (eye - 0.5 * horizontal - 0.5 * vertical - camera.focus_dist * w).tolist()
    _lens_radius[None] = 0.5 * camera.aperture


@ti.func
def get_ray(s: ti.f32, t: ti.f32, rng: ti.u32):
    """Camera ray through viewport coordinates (s, t).

    (0, 0) is the lower-left corner of the viewport and (1, 1) the upper
    right. The origin is a random lens point ``u * rd.x + v * rd.y`` away
    from the eye.

    Returns:
        ``(ray, rng)``; the ray direction is not normalized.
    """
    disk, state = random_in_unit_disk(rng)
    rd = _lens_radius[None] * disk
    origin = _frame[0] + _frame[1] * rd.x + _frame[2] * rd.y
    target = _lower_left[None] + s * _horizontal[None] + t * _vertical[None]
    return make_ray(origin, target - origin), state


@ti.func
def get_ray_jittered(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    rng: ti.u32,
):
    """Camera ray through a random point of pixel (i, j), j = 0 at the bottom.

    Maps to ``s = (i + xi_1) / (width - 1)`` and
    ``t = (j + xi_2) / (height - 1)``, with the denominators floored at 1
    for single-pixel rows and columns.

    Returns:
        ``(ray, rng)``.
    """
    xi_1, state = next_float(rng)
    xi_2, state_2 = next_float(state)

    s = (ti.cast(pixel_i, ti.f32) + xi_1) / ti.cast(ti.max(width - 1, 1), ti.f32)
    t = (ti.cast(pixel_j, ti.f32) + xi_2) / ti.cast(ti.max(height - 1, 1), ti.f32)
    return get_ray(s, t, state_2)


def _read(vec) -> tuple[float, float, float]:
    return (float(vec[0]), float(vec[1]), float(vec[2]))


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Snapshot of the active camera: origin, u, v, w, horizontal, vertical,
    lower_left and lens_radius."""
    info: dict[str, tuple[float, float, float] | float] = {
        name: _read(_frame[slot]) for slot, name in enumerate(("origin", "u", "v", "w"))
    }
    info["horizontal"] = _read(_horizontal[None])
    info["vertical"] = _read(_vertical[None])
    info["lower_left"] = _read(_lower_left[None])
    info["lens_radius"] = float(_lens_radius[None])
    return info
