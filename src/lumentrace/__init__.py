"""Taichi-based Monte Carlo path tracer for sphere scenes.

This package renders scenes of spheres with diffuse, metal and glass
materials through a thin-lens camera:
- Nearest-hit ray/sphere intersection over a flat sphere list
- Material arena addressed by small integer ids
- Iterative path tracing with a bounce budget and a sky gradient
- Deterministic per-pixel random streams, so a seed reproduces an image

Modules that declare Taichi fields must be imported after ``ti.init()``.

Subpackages:
    core: Ray math, random streams, the integrator and progressive rendering
    geometry: Ray/sphere intersection
    materials: Lambertian, metal and dielectric scattering
    scene: Sphere storage, scene manager, presets and JSON scene files
    camera: Thin-lens camera
    preview: PPM and PNG export
"""

__version__ = "0.1.0"
