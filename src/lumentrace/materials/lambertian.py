"""Ideal diffuse (Lambertian) surfaces.

Scattering adds a uniform random unit vector to the surface normal. The
resulting directions are cosine-distributed about the normal, which is the
Lambertian BRDF times the cosine term, so a bounce attenuates by the albedo
alone.
"""

import taichi as ti
import taichi.math as tm

from lumentrace.core.ray import near_zero
from lumentrace.core.sampler import random_unit_vector

vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, rng: ti.u32):
    """Diffuse bounce off a surface with unit ``normal`` facing the ray.

    Returns:
        ``(direction, albedo, 1, rng)``. The direction is not normalized and
        a diffuse surface always scatters.
    """
    direction, state = random_unit_vector(rng)
    direction += normal

    # Degenerate when the random vector cancels the normal
    if near_zero(direction):
        direction = normal

    return direction, albedo, 1, state


MAX_LAMBERTIAN_MATERIALS = 1024

lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def check_albedo(albedo: tuple[float, float, float]) -> None:
    """Raise ValueError unless every component lies in [0, 1]."""
    for channel, value in zip("rgb", albedo):
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"Albedo {channel} = {value} is outside [0, 1]")


def clear_lambertian_materials() -> None:
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Store an albedo and return its index in the diffuse registry.

    Raises:
        ValueError: If a component of ``albedo`` is outside [0, 1].
        RuntimeError: If the registry is full.
    """
    check_albedo(albedo)

    index = num_lambertian_materials[None]
    if index >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[index] = albedo
    num_lambertian_materials[None] = index + 1
    return index


def get_lambertian_material_count() -> int:
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    return lambertian_albedos[material_idx]
