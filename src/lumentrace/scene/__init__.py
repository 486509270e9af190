"""Scene storage and construction.

Components:
    intersection: Sphere storage and nearest-hit search
    manager: SceneManager and the material arena
    presets: Built-in scenes
    loader: JSON scene files

Note: presets and loader are not imported here; import them from
lumentrace.scene.presets and lumentrace.scene.loader directly.
"""

from .intersection import SceneHitRecord, add_sphere, clear_scene, intersect_scene
from .manager import MaterialType, SceneManager

__all__ = [
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "intersect_scene",
    "MaterialType",
    "SceneManager",
]
