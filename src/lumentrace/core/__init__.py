"""Core rendering module.

Components:
    ray: Ray data structure and vector helpers
    sampler: Explicit per-path random streams
    integrator: Path tracing kernels and the render target
    progressive: Batched rendering with progress reporting
"""

from .ray import (
    Ray,
    hadamard,
    length_squared,
    make_ray,
    near_zero,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
    vec3,
)
from .sampler import (
    next_float,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    seed_stream,
)

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from lumentrace.core.integrator or lumentrace.core.progressive.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length_squared",
    "unit_vector",
    "hadamard",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "seed_stream",
    "next_float",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
]
