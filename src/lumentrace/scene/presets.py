"""Built-in scene configurations.

Each preset fills the scene with spheres and materials and returns a camera
framed for it. Presets are looked up by name through ``PRESETS`` so the
command line can render them without a scene file.

Available presets:
    three_spheres: A diffuse sphere flanked by glass and metal on a large
        ground sphere, seen head-on.
    random_spheres: The classic cover scene, a field of small random spheres
        around three large ones, rendered with a shallow depth of field.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumentrace.scene.presets import create_three_spheres_scene
    >>> from lumentrace.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_three_spheres_scene()
    >>> setup_camera(camera)
"""

import logging
from collections.abc import Callable

import numpy as np

from lumentrace.camera.thin_lens import ThinLensCamera
from lumentrace.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# A preset builds the scene and returns it with its camera
PresetFactory = Callable[..., tuple[SceneManager, ThinLensCamera]]

DEFAULT_ASPECT_RATIO = 16.0 / 9.0

# =============================================================================
# Three Spheres
# =============================================================================

GROUND_ALBEDO = (0.8, 0.8, 0.0)
CENTER_ALBEDO = (0.1, 0.2, 0.5)
RIGHT_METAL_ALBEDO = (0.8, 0.6, 0.2)
RIGHT_METAL_FUZZ = 0.0
GLASS_IOR = 1.5


def create_three_spheres_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the three-spheres scene.

    Contents:
    - Ground: huge yellowish diffuse sphere below the scene
    - Center: blue diffuse sphere at (0, 0, -1)
    - Left: glass sphere at (-1, 0, -1)
    - Right: gold mirror sphere at (1, 0, -1)

    Args:
        aspect_ratio: Width divided by height of the output image.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(GROUND_ALBEDO, name="ground")
    center = scene.add_lambertian_material(CENTER_ALBEDO, name="center")
    glass = scene.add_dielectric_material(GLASS_IOR, name="glass")
    gold = scene.add_metal_material(RIGHT_METAL_ALBEDO, RIGHT_METAL_FUZZ, name="gold")

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)

    camera = ThinLensCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
        aperture=0.0,
        focus_dist=1.0,
    )
    return scene, camera


# =============================================================================
# Random Spheres
# =============================================================================

SMALL_RADIUS = 0.2
LARGE_RADIUS = 1.0
GRID_EXTENT = 11

# Small spheres closer than this to the large metal sphere are skipped
CLEARANCE_POINT = np.array([4.0, 0.2, 0.0])
CLEARANCE = 0.9


def create_random_spheres_scene(
    seed: int = 0,
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the random-spheres cover scene.

    A grey ground sphere holds a grid of small spheres with jittered
    positions: about 80% diffuse with random albedo, 15% fuzzy metal and 5%
    glass. Three large spheres sit in the middle: glass, brown diffuse and
    a polished metal.

    Args:
        seed: Seed for the layout; the same seed always gives the same scene.
        aspect_ratio: Width divided by height of the output image.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    ground = scene.add_lambertian_material((0.5, 0.5, 0.5), name="ground")
    scene.add_sphere((0.0, -1000.0, 0.0), 1000.0, ground)

    # Small spheres share one glass material
    glass = scene.add_dielectric_material(GLASS_IOR, name="glass")

    for a in range(-GRID_EXTENT, GRID_EXTENT):
        for b in range(-GRID_EXTENT, GRID_EXTENT):
            choose_mat = rng.random()
            center = np.array([a + 0.9 * rng.random(), SMALL_RADIUS, b + 0.9 * rng.random()])

            if np.linalg.norm(center - CLEARANCE_POINT) <= CLEARANCE:
                continue

            if choose_mat < 0.8:
                albedo = rng.random(3) * rng.random(3)
                material_id = scene.add_lambertian_material(tuple(albedo.tolist()))
            elif choose_mat < 0.95:
                albedo = rng.uniform(0.5, 1.0, 3)
                fuzz = rng.uniform(0.0, 0.5)
                material_id = scene.add_metal_material(tuple(albedo.tolist()), float(fuzz))
            else:
                material_id = glass

            scene.add_sphere(tuple(center.tolist()), SMALL_RADIUS, material_id)

    brown = scene.add_lambertian_material((0.4, 0.2, 0.1), name="brown")
    steel = scene.add_metal_material((0.7, 0.6, 0.5), 0.0, name="steel")

    scene.add_sphere((0.0, 1.0, 0.0), LARGE_RADIUS, glass)
    scene.add_sphere((-4.0, 1.0, 0.0), LARGE_RADIUS, brown)
    scene.add_sphere((4.0, 1.0, 0.0), LARGE_RADIUS, steel)

    logger.debug(
        "Generated random spheres scene (seed=%d): %d spheres, %d materials",
        seed,
        scene.get_sphere_count(),
        scene.get_material_count(),
    )

    camera = ThinLensCamera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )
    return scene, camera


PRESETS: dict[str, PresetFactory] = {
    "three_spheres": create_three_spheres_scene,
    "random_spheres": create_random_spheres_scene,
}


def get_preset(name: str) -> PresetFactory:
    """Look up a preset factory by name.

    Raises:
        ValueError: If no preset has that name.
    """
    try:
        return PRESETS[name]
    except KeyError:
        available = ", ".join(sorted(PRESETS))
        raise ValueError(f"Unknown scene preset {name!r}; available: {available}") from None


def create_preset_scene(
    name: str,
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
    seed: int = 0,
) -> tuple[SceneManager, ThinLensCamera]:
    """Build a preset scene by name.

    The seed only affects presets with a random layout.
    """
    factory = get_preset(name)
    if name == "random_spheres":
        return factory(seed=seed, aspect_ratio=aspect_ratio)
    return factory(aspect_ratio=aspect_ratio)
