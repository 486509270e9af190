"""Clear dielectrics such as glass and water.

At each hit the path either reflects or refracts. Refraction follows
Snell's law, and reflection is chosen with probability given by Schlick's
approximation of the Fresnel term, or always under total internal
reflection. Over many samples this averages to the Fresnel blend of real
glass. Dielectrics absorb nothing.
"""

import taichi as ti
import taichi.math as tm

from lumentrace.core.ray import (
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
)
from lumentrace.core.sampler import next_float

vec3 = tm.vec3


@ti.func
def refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """eta_in / eta_out: 1/ior entering the medium, ior leaving it."""
    ratio = ior
    if front_face == 1:
        ratio = 1.0 / ior
    return ratio


@ti.func
def _cos_theta(unit_direction: vec3, normal: vec3) -> ti.f32:
    return tm.min(-tm.dot(unit_direction, normal), 1.0)


@ti.func
def cannot_refract(ior: ti.f32, unit_direction: vec3, normal: vec3, front_face: ti.i32) -> ti.i32:
    """1 under total internal reflection (ratio * sin(theta) > 1), else 0."""
    cos_theta = _cos_theta(unit_direction, normal)
    sin_theta = ti.sqrt(1.0 - cos_theta * cos_theta)
    return 1 if refraction_ratio(ior, front_face) * sin_theta > 1.0 else 0


@ti.func
def dielectric_direction(
    ior: ti.f32,
    unit_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    draw: ti.f32,
) -> vec3:
    """Outgoing direction for a uniform ``draw`` in [0, 1).

    Reflects when refraction is impossible or ``draw`` is below the Schlick
    reflectance, and refracts otherwise. ``normal`` faces the incoming ray
    and ``front_face`` is 1 when the ray arrives from outside.
    """
    ratio = refraction_ratio(ior, front_face)
    reflectance = schlick_reflectance(_cos_theta(unit_direction, normal), ratio)

    out = refract(unit_direction, normal, ratio)
    if cannot_refract(ior, unit_direction, normal, front_face) == 1 or draw < reflectance:
        out = reflect(unit_direction, normal)
    return out


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    rng: ti.u32,
):
    """Reflect or refract an incoming ray of any length.

    Exactly one uniform draw is taken from ``rng`` even when total internal
    reflection decides the outcome.

    Returns:
        ``(direction, white, 1, rng)``.
    """
    draw, state = next_float(rng)
    direction = dielectric_direction(ior, unit_vector(incident_direction), normal, front_face, draw)
    return direction, vec3(1.0), 1, state


MAX_DIELECTRIC_MATERIALS = 1024

dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Store an index of refraction and return its index in the registry.

    Raises:
        ValueError: If ``ior`` is less than 1.0.
        RuntimeError: If the registry is full.
    """
    if ior < 1.0:
        raise ValueError(f"Index of refraction {ior} is less than 1.0")

    index = num_dielectric_materials[None]
    if index >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[index] = ior
    num_dielectric_materials[None] = index + 1
    return index


def get_dielectric_material_count() -> int:
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    return dielectric_iors[material_idx]
