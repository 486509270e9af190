"""JSON scene files.

A scene file describes the camera, the sky color, the materials and the
spheres of a scene:

.. code-block:: json

    {
        "camera": {
            "lookfrom": [3, 3, 2], "lookat": [0, 0, -1], "vup": [0, 1, 0],
            "vfov": 20, "aperture": 2.0, "focus_dist": 5.2
        },
        "sky": [0.5, 0.7, 1.0],
        "materials": {
            "ground": {"type": "lambertian", "albedo": [0.8, 0.8, 0.0]},
            "glass": {"type": "dielectric", "ior": 1.5}
        },
        "spheres": [
            {"center": [0, -100.5, -1], "radius": 100, "material": "ground"},
            {"center": [-1, 0, -1], "radius": 0.5, "material": "glass"}
        ]
    }

``materials`` may also be a list, in which case spheres refer to materials by
position with ``material_id``. The camera's ``aspect_ratio`` is optional and
normally follows the output image size.
"""

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from lumentrace.camera.thin_lens import ThinLensCamera
from lumentrace.scene.manager import SceneManager
from lumentrace.settings import DEFAULT_SKY_COLOR

logger = logging.getLogger(__name__)

DEFAULT_CAMERA: dict[str, Any] = {
    "lookfrom": (0.0, 0.0, 0.0),
    "lookat": (0.0, 0.0, -1.0),
    "vup": (0.0, 1.0, 0.0),
    "vfov": 90.0,
    "aperture": 0.0,
    "focus_dist": 1.0,
}


@dataclass
class SceneDescription:
    """A loaded scene with its camera and sky.

    Attributes:
        scene: The populated scene manager.
        camera: The camera configuration (not yet passed to setup_camera).
        sky_color: Sky color at the zenith.
    """

    scene: SceneManager
    camera: ThinLensCamera
    sky_color: tuple[float, float, float]


def _triple(value: Any, what: str) -> tuple[float, float, float]:
    try:
        x, y, z = value
        return (float(x), float(y), float(z))
    except (TypeError, ValueError):
        raise ValueError(f"{what} must be a list of 3 numbers, got {value!r}") from None


def parse_camera(data: dict[str, Any], aspect_ratio: float) -> ThinLensCamera:
    """Build a ThinLensCamera from the ``camera`` section of a scene file.

    Missing keys take their values from DEFAULT_CAMERA; ``aspect_ratio``
    is used unless the section sets its own.
    """
    if not isinstance(data, dict):
        raise ValueError(f"camera must be a JSON object, got {data!r}")
    params = {**DEFAULT_CAMERA, **data}
    unknown = set(params) - set(DEFAULT_CAMERA) - {"aspect_ratio"}
    if unknown:
        raise ValueError(f"Unknown camera keys: {', '.join(sorted(unknown))}")

    return ThinLensCamera(
        lookfrom=_triple(params["lookfrom"], "camera.lookfrom"),
        lookat=_triple(params["lookat"], "camera.lookat"),
        vup=_triple(params["vup"], "camera.vup"),
        vfov=float(params["vfov"]),
        aspect_ratio=float(params.get("aspect_ratio", aspect_ratio)),
        aperture=float(params["aperture"]),
        focus_dist=float(params["focus_dist"]),
    )


def parse_scene(data: dict[str, Any], aspect_ratio: float = 16.0 / 9.0) -> SceneDescription:
    """Build a scene from an already-decoded scene file.

    Replaces the current scene contents.

    Args:
        data: The decoded JSON object.
        aspect_ratio: Aspect ratio used when the camera does not set one.

    Returns:
        The loaded SceneDescription.

    Raises:
        ValueError: If the data is malformed or refers to unknown materials.
    """
    if not isinstance(data, dict):
        raise ValueError("Scene file must contain a JSON object")

    camera = parse_camera(data.get("camera", {}), aspect_ratio)
    sky_color = _triple(data.get("sky", DEFAULT_SKY_COLOR), "sky")

    scene = SceneManager()
    scene.from_dict(data)

    return SceneDescription(scene=scene, camera=camera, sky_color=sky_color)


def load_scene(path: str | Path, aspect_ratio: float = 16.0 / 9.0) -> SceneDescription:
    """Load a scene from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid JSON or describes an invalid scene.
    """
    path = Path(path)
    logger.debug("Loading scene file %s", path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in scene file {path}: {e}") from e

    description = parse_scene(data, aspect_ratio)
    logger.info(
        "Loaded %s: %d spheres, %d materials",
        path.name,
        description.scene.get_sphere_count(),
        description.scene.get_material_count(),
    )
    return description


def scene_to_dict(description: SceneDescription) -> dict[str, Any]:
    """Encode a scene description in the scene file layout."""
    camera = asdict(description.camera)
    for key in ("lookfrom", "lookat", "vup"):
        camera[key] = list(camera[key])
    return {
        "camera": camera,
        "sky": list(description.sky_color),
        **description.scene.to_dict(),
    }


def save_scene(description: SceneDescription, path: str | Path) -> None:
    """Write a scene description to a JSON file."""
    Path(path).write_text(json.dumps(scene_to_dict(description), indent=2) + "\n", encoding="utf-8")
