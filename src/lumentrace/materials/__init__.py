"""Surface materials.

Each material exposes a Taichi scatter function with the shared contract
``(scattered_direction, attenuation, did_scatter, rng)`` and a registry of
parameters stored in Taichi fields:

    lambertian: Ideal diffuse reflection
    metal: Mirror reflection perturbed by a fuzz factor
    dielectric: Glass-like refraction with Fresnel reflection
"""

from .dielectric import add_dielectric_material, scatter_dielectric
from .lambertian import add_lambertian_material, scatter_lambertian
from .metal import add_metal_material, scatter_metal

__all__ = [
    "scatter_lambertian",
    "scatter_metal",
    "scatter_dielectric",
    "add_lambertian_material",
    "add_metal_material",
    "add_dielectric_material",
]
