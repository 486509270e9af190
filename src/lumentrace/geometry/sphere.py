"""Spheres and the ray-sphere hit test.

``hit_sphere`` solves the quadratic in its half-b form and returns the
smaller root lying strictly inside (t_min, t_max), falling back to the
larger one. Tangent rays (zero discriminant) miss.
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3


@ti.dataclass
class Sphere:
    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Result of ``hit_sphere``.

    The other members are meaningful only when ``hit`` is 1. ``normal`` is a
    unit vector pointing against the ray, and ``front_face`` records whether
    that is the outward normal (1) or its negation (0, ray inside).
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    return Sphere(center=center, radius=radius)


@ti.func
def set_face_normal(ray_direction: vec3, outward_normal: vec3):
    """Return ``(normal, front_face)`` with the normal facing the ray."""
    normal = outward_normal
    front_face = 1
    if tm.dot(ray_direction, outward_normal) > 0.0:
        normal = -outward_normal
        front_face = 0
    return normal, front_face


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Intersect a ray with one sphere.

    With ``oc = origin - center`` the hit parameters solve
    ``a t^2 + 2 half_b t + c = 0`` where ``a = d.d``, ``half_b = oc.d`` and
    ``c = oc.oc - r^2``. The direction need not be normalized. Bounds are
    exclusive; the integrator passes a small positive ``t_min`` so a
    bounced ray cannot hit the surface it left.
    """
    rec = HitRecord(hit=0, t=0.0, point=vec3(0.0), normal=vec3(0.0), front_face=0)

    to_origin = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    half_b = tm.dot(to_origin, ray_direction)
    c = tm.dot(to_origin, to_origin) - sphere.radius**2
    discriminant = half_b * half_b - a * c

    if discriminant > 0.0:
        root = ti.sqrt(discriminant)
        t = (-half_b - root) / a
        if not t_min < t < t_max:
            t = (-half_b + root) / a

        if t_min < t < t_max:
            rec.hit = 1
            rec.t = t
            rec.point = ray_origin + ray_direction * t
            normal, front_face = set_face_normal(
                ray_direction, (rec.point - sphere.center) / sphere.radius
            )
            rec.normal = normal
            rec.front_face = front_face

    return rec
