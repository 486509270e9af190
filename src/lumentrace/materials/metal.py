"""Reflective metals with an optional fuzz factor.

The incoming direction is mirrored about the normal, ``R = I - 2(I.N)N``,
and then pushed by a random point in a sphere of radius ``fuzz``. A fuzz of
0 is a perfect mirror. Directions pushed below the surface are absorbed.
"""

import taichi as ti
import taichi.math as tm

from lumentrace.core.ray import reflect, unit_vector
from lumentrace.core.sampler import random_in_unit_sphere
from lumentrace.materials.lambertian import check_albedo

vec3 = tm.vec3


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    rng: ti.u32,
):
    """Fuzzy mirror bounce.

    Args:
        albedo: Tint applied to the reflection.
        fuzz: Perturbation radius in [0, 1].
        incident_direction: Incoming direction, any length.
        normal: Unit normal facing the incoming ray.
        rng: Random stream state.

    Returns:
        ``(direction, albedo, did_scatter, rng)`` with ``did_scatter`` 0 when
        the fuzzed direction points into the surface.
    """
    mirrored = reflect(unit_vector(incident_direction), normal)
    jitter, state = random_in_unit_sphere(rng)
    direction = mirrored + fuzz * jitter

    did_scatter = 1 if tm.dot(direction, normal) > 0.0 else 0
    return direction, albedo, did_scatter, state


MAX_METAL_MATERIALS = 1024

metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    num_metal_materials[None] = 0


def clamp_fuzz(fuzz: float) -> float:
    return min(max(fuzz, 0.0), 1.0)


def add_metal_material(albedo: tuple[float, float, float], fuzz: float = 0.0) -> int:
    """Store a metal and return its index in the metal registry.

    ``fuzz`` is clamped into [0, 1] before it is stored.

    Raises:
        ValueError: If a component of ``albedo`` is outside [0, 1].
        RuntimeError: If the registry is full.
    """
    check_albedo(albedo)

    index = num_metal_materials[None]
    if index >= MAX_METAL_MATERIALS:
        raise RuntimeError(f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded")

    metal_albedos[index] = albedo
    metal_fuzzes[index] = clamp_fuzz(fuzz)
    num_metal_materials[None] = index + 1
    return index


def get_metal_material_count() -> int:
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    return metal_fuzzes[material_idx]
