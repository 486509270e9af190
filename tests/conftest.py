"""Pytest configuration for lumentrace tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate every field declared by modules imported earlier.
    """
    ti.init(arch=ti.cpu)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene, material, sky and render target state around each test."""
    # Import here so Taichi is initialized before fields are declared
    from lumentrace.core.integrator import reset_render_target, set_sky_color
    from lumentrace.materials.dielectric import clear_dielectric_materials
    from lumentrace.materials.lambertian import clear_lambertian_materials
    from lumentrace.materials.metal import clear_metal_materials
    from lumentrace.scene.intersection import clear_scene
    from lumentrace.scene.manager import _clear_material_tracking

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        reset_render_target()
        set_sky_color()

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def fresh_scene():
    """Provide an empty SceneManager."""
    from lumentrace.scene.manager import SceneManager

    return SceneManager()


@pytest.fixture
def head_on_camera():
    """A pinhole camera at the origin looking down -z with a square image."""
    from lumentrace.camera.thin_lens import ThinLensCamera, setup_camera

    camera = ThinLensCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=1.0,
    )
    setup_camera(camera)
    return camera
