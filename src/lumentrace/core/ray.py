"""Rays and the small vector helpers the renderer builds on.

Everything here is a ``ti.func`` operating on ``taichi.math.vec3`` values,
so it is callable from kernels only. Inputs are never modified.
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3


@ti.dataclass
class Ray:
    """Half-line ``origin + t * direction``.

    ``direction`` is not required to be unit length; normalize it where a
    unit vector is needed.
    """

    origin: vec3
    direction: vec3


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    return Ray(origin=origin, direction=direction)


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Point at parameter ``t``; positive ``t`` lies ahead of the origin."""
    return ray.origin + ray.direction * t


@ti.func
def length_squared(v: vec3) -> ti.f32:
    return tm.dot(v, v)


@ti.func
def unit_vector(v: vec3) -> vec3:
    """``v`` scaled to length 1. ``v`` must not be the zero vector."""
    return v / tm.length(v)


@ti.func
def hadamard(a: vec3, b: vec3) -> vec3:
    """Per-channel product, e.g. a color tinted by an attenuation."""
    return vec3(a.x * b.x, a.y * b.y, a.z * b.z)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """1 when every component has magnitude below 1e-8."""
    eps = 1e-8
    return ti.abs(v.x) < eps and ti.abs(v.y) < eps and ti.abs(v.z) < eps


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Mirror ``incident`` about a unit ``normal``: ``v - 2 (v.n) n``."""
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(unit_incident: vec3, normal: vec3, eta_ratio: ti.f32) -> vec3:
    """Snell refraction of a unit direction through a surface.

    ``normal`` is unit length and faces the incoming ray; ``eta_ratio`` is
    eta_incident / eta_transmitted. The result is the sum of a part
    perpendicular to the normal, ``eta_ratio * (uv + cos_theta * n)``, and a
    part along it, ``-sqrt(|1 - |r_perp|^2|) * n``. Callers rule out total
    internal reflection first; the absolute value only keeps the result
    finite when they do not.
    """
    cos_theta = tm.min(-tm.dot(unit_incident, normal), 1.0)
    perpendicular = eta_ratio * (unit_incident + cos_theta * normal)
    parallel = -ti.sqrt(ti.abs(1.0 - length_squared(perpendicular))) * normal
    return perpendicular + parallel


@ti.func
def schlick_reflectance(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Schlick's polynomial approximation of Fresnel reflectance.

    ``cosine`` is the cosine of the incidence angle and ``ref_idx`` the
    ratio of refractive indices across the surface.
    """
    r0 = ((1.0 - ref_idx) / (1.0 + ref_idx)) ** 2
    return r0 + (1.0 - r0) * (1.0 - cosine) ** 5
