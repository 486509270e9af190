"""Scene construction on top of sphere storage and the material registries.

Materials live in an arena. Registering a material stores its parameters in
the registry for its type and hands back a ``material_id``, a small integer
that kernels translate into (type, index within that type's registry).
Spheres keep only the id, so any number of spheres can share a material.

Materials may be given a name; scene files refer to materials by name and
``SceneManager.to_dict``/``from_dict`` translate between names and ids.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumentrace.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> blue = scene.add_lambertian_material((0.1, 0.2, 0.5), name="blue")
    >>> scene.add_sphere((0.0, 0.0, -1.0), 0.5, blue)
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti
import taichi.math as tm

from lumentrace.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from lumentrace.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from lumentrace.materials.metal import (
    add_metal_material,
    clamp_fuzz,
    clear_metal_materials,
)
from lumentrace.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

logger = logging.getLogger(__name__)

vec3 = tm.vec3


class MaterialType(IntEnum):
    """Material kinds known to the integrator's scatter dispatch."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# One slot per entry of every per-type registry
MAX_MATERIALS = 3072

# Arena: material id -> MaterialType and id -> index in that type's registry
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Forget every material id (the per-type registries are left alone)."""
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """MaterialType value for an id, or -1 if the id is not registered."""
    kind = -1
    if 0 <= material_id < num_materials[None]:
        kind = material_types[material_id]
    return kind


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Index of an id's parameters in its type registry, or -1 if unregistered.

    For example the second metal registered gets index 1, whatever its
    material id is.
    """
    index = -1
    if 0 <= material_id < num_materials[None]:
        index = material_type_indices[material_id]
    return index


@dataclass
class MaterialInfo:
    """Python-side record of a registered material.

    Attributes:
        material_id: Id in the arena.
        material_type: Which registry holds the parameters.
        type_index: Position in that registry.
        params: Parameters as stored (metal fuzz already clamped).
        name: Name used by scene files, if any.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]
    name: str | None = None


@dataclass
class SphereInfo:
    """Python-side record of a sphere, in insertion order."""

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Plain-data form of a scene.

    Attributes:
        materials: One dict per material, in id order. Each has a ``type``
            key, the type's parameters and optionally a ``name``.
        spheres: One dict per sphere with ``center``, ``radius`` and either
            ``material_id`` or a ``material`` name.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


def _as_triple(values: Any, what: str) -> tuple[float, float, float]:
    if len(values) != 3:
        raise ValueError(f"{what} must have 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


class SceneManager:
    """Builds the scene the integrator renders.

    The sphere list and the registries are module-level Taichi fields, so
    there is a single scene per process. Creating a manager empties it.

    Attributes:
        materials: MaterialInfo for every registered material, by id.
        spheres: SphereInfo for every sphere, in insertion order.

    Example:
        >>> scene = SceneManager()
        >>> ground = scene.add_lambertian_material((0.8, 0.8, 0.0), name="ground")
        >>> glass = scene.add_dielectric_material(1.5)
        >>> scene.add_sphere((0, -100.5, -1), 100.0, ground)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self._names: dict[str, int] = {}
        self.clear()

    def clear(self) -> None:
        """Remove all spheres and materials, including their Taichi storage."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.spheres.clear()
        self._names.clear()

    # -------------------------------------------------------------------------
    # Materials
    # -------------------------------------------------------------------------

    def _check_name(self, name: str | None) -> None:
        if name is not None and name in self._names:
            raise ValueError(f"Duplicate material name: {name!r}")

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
        name: str | None,
    ) -> int:
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(MaterialInfo(material_id, material_type, type_index, params, name))
        if name is not None:
            self._names[name] = material_id
        return material_id

    def add_lambertian_material(
        self,
        albedo: tuple[float, float, float],
        name: str | None = None,
    ) -> int:
        """Register a diffuse material and return its id.

        Raises:
            ValueError: If an albedo component is outside [0, 1] or the name
                is taken.
            RuntimeError: If the registry is full.
        """
        self._check_name(name)
        type_index = add_lambertian_material(albedo)
        return self._register_material(
            MaterialType.LAMBERTIAN, type_index, {"albedo": tuple(albedo)}, name
        )

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
        name: str | None = None,
    ) -> int:
        """Register a metal and return its id.

        ``fuzz`` is clamped to [0, 1]; 0 is a perfect mirror.

        Raises:
            ValueError: If an albedo component is outside [0, 1] or the name
                is taken.
            RuntimeError: If the registry is full.
        """
        self._check_name(name)
        type_index = add_metal_material(albedo, fuzz)
        params = {"albedo": tuple(albedo), "fuzz": clamp_fuzz(fuzz)}
        return self._register_material(MaterialType.METAL, type_index, params, name)

    def add_dielectric_material(
        self,
        ior: float = 1.5,
        name: str | None = None,
    ) -> int:
        """Register a clear dielectric (1.5 is glass, 1.33 water) and return its id.

        Raises:
            ValueError: If ``ior`` is below 1 or the name is taken.
            RuntimeError: If the registry is full.
        """
        self._check_name(name)
        type_index = add_dielectric_material(ior)
        return self._register_material(MaterialType.DIELECTRIC, type_index, {"ior": ior}, name)

    def get_material_count(self) -> int:
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """MaterialInfo for an id, or None when the id is not registered."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_id(self, name: str) -> int:
        """Resolve a material name.

        Raises:
            ValueError: If no material has that name.
        """
        if name not in self._names:
            raise ValueError(f"Unknown material name: {name!r}")
        return self._names[name]

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """MaterialType of an id from Python; kernels use get_material_type()."""
        info = self.get_material_info(material_id)
        return None if info is None else info.material_type

    # -------------------------------------------------------------------------
    # Spheres
    # -------------------------------------------------------------------------

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Append a sphere that uses a registered material.

        Returns:
            The sphere's index in the scene.

        Raises:
            ValueError: If ``material_id`` is not registered or ``radius`` is
                not positive.
            RuntimeError: If the sphere storage is full.
        """
        if not 0 <= material_id < num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

        sphere_index = add_sphere(vec3(center[0], center[1], center[2]), radius, material_id)
        self.spheres.append(SphereInfo(sphere_index, tuple(center), radius, material_id))
        return sphere_index

    def get_sphere_count(self) -> int:
        return get_sphere_count()

    # Shorthands that give a sphere its own material; each returns
    # (sphere_index, material_id)

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_config(self) -> SceneConfig:
        """Describe the current scene as plain data."""
        config = SceneConfig()

        for info in self.materials:
            entry: dict[str, Any] = {"type": info.material_type.name.lower()}
            if info.name is not None:
                entry["name"] = info.name
            entry.update(
                (key, list(value) if isinstance(value, tuple) else value)
                for key, value in info.params.items()
            )
            config.materials.append(entry)

        config.spheres.extend(
            {"center": list(s.center), "radius": s.radius, "material_id": s.material_id}
            for s in self.spheres
        )
        return config

    def _add_material_from_config(self, entry: dict[str, Any], name: str | None) -> int:
        kind = str(entry.get("type", "")).lower()
        if kind == "lambertian":
            albedo = _as_triple(entry.get("albedo", [0.5, 0.5, 0.5]), "albedo")
            return self.add_lambertian_material(albedo, name=name)
        if kind == "metal":
            albedo = _as_triple(entry.get("albedo", [0.8, 0.8, 0.8]), "albedo")
            return self.add_metal_material(albedo, float(entry.get("fuzz", 0.0)), name=name)
        if kind == "dielectric":
            return self.add_dielectric_material(float(entry.get("ior", 1.5)), name=name)
        raise ValueError(f"Unknown material type: {kind!r}")

    def from_config(self, config: SceneConfig) -> None:
        """Replace the scene with the one described by ``config``.

        All materials are registered before any sphere, in list order, so a
        sphere's ``material_id`` is the position of its material in
        ``config.materials``.

        Raises:
            ValueError: For entries that are not dicts, unknown material
                types or names, or invalid parameters.
        """
        self.clear()

        for entry in config.materials:
            if not isinstance(entry, dict):
                raise ValueError(f"Material entry must be an object, got {entry!r}")
            self._add_material_from_config(entry, entry.get("name"))

        for entry in config.spheres:
            if not isinstance(entry, dict):
                raise ValueError(f"Sphere entry must be an object, got {entry!r}")
            if "material" in entry:
                material_id = self.get_material_id(entry["material"])
            else:
                material_id = int(entry.get("material_id", 0))
            self.add_sphere(
                _as_triple(entry.get("center", [0, 0, 0]), "center"),
                float(entry.get("radius", 1.0)),
                material_id,
            )

        logger.debug(
            "Loaded scene with %d materials and %d spheres",
            len(self.materials),
            len(self.spheres),
        )

    def to_dict(self) -> dict[str, Any]:
        """The scene as a JSON-ready dict with ``materials`` and ``spheres``."""
        config = self.to_config()
        return {"materials": config.materials, "spheres": config.spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Replace the scene from a dict such as a decoded scene file.

        ``materials`` is either a list or a mapping from name to parameters.
        """
        materials = data.get("materials", [])
        if isinstance(materials, dict):
            for name, params in materials.items():
                if not isinstance(params, dict):
                    raise ValueError(f"Material {name!r} must be an object, got {params!r}")
            materials = [{**params, "name": name} for name, params in materials.items()]
        self.from_config(SceneConfig(list(materials), list(data.get("spheres", []))))

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS
