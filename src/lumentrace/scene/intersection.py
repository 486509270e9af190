"""Sphere storage and nearest-hit queries over the whole scene.

Spheres are kept in insertion order as parallel Taichi fields (centers,
radii, material ids). A sphere refers to its material by id only.

Every query walks all spheres, narrowing the accepted interval to the
closest hit found so far; there is no acceleration structure.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumentrace.scene.intersection import add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere(ti.math.vec3(0, 0, -1), 0.5, material_id=0)
"""

import taichi as ti
import taichi.math as tm

from lumentrace.geometry.sphere import hit_sphere, make_sphere

vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Nearest hit of a ray against the scene.

    ``hit`` is 0 on a miss, in which case ``material_id`` is -1 and the
    remaining members are zero. Otherwise ``normal`` is a unit vector facing
    the incoming ray and ``front_face`` is 1 when the ray came from outside.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


MAX_SPHERES = 2048

sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Drop every sphere; stale slots are overwritten by later adds."""
    num_spheres[None] = 0


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Append a sphere and return its index.

    Raises:
        ValueError: If ``radius`` is not positive.
        RuntimeError: If MAX_SPHERES spheres are already stored.
    """
    if radius <= 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")

    index = num_spheres[None]
    if index >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

    sphere_centers[index] = center
    sphere_radii[index] = radius
    sphere_material_ids[index] = material_id
    num_spheres[None] = index + 1
    return index


def get_sphere_count() -> int:
    return int(num_spheres[None])


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Closest sphere hit with t strictly inside (t_min, t_max).

    The winner is the smallest t, independent of the order spheres were
    added in.
    """
    nearest = SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0),
        normal=vec3(0.0),
        front_face=0,
        material_id=-1,
    )
    t_limit = t_max

    for i in range(num_spheres[None]):
        rec = hit_sphere(
            ray_origin,
            ray_direction,
            make_sphere(sphere_centers[i], sphere_radii[i]),
            t_min,
            t_limit,
        )
        if rec.hit == 1:
            t_limit = rec.t
            nearest.hit = 1
            nearest.t = rec.t
            nearest.point = rec.point
            nearest.normal = rec.normal
            nearest.front_face = rec.front_face
            nearest.material_id = sphere_material_ids[i]

    return nearest
