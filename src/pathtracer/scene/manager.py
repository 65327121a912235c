"""Scene assembly over the sphere store and the material arena.

Materials live in one registry per kind (lambertian, metal, dielectric).
The manager hands out a unified material_id for each registry entry and
records, in kernel-visible fields, which kind and which registry slot the
id points at. Any number of spheres may share one material_id; materials
are only written between renders and are dropped only by clear(), together
with every sphere.

Scenes round-trip through plain dictionaries of the form

    {"materials": [{"type": "metal", "albedo": [0.8, 0.6, 0.2], "fuzz": 0.1}, ...],
     "spheres": [{"center": [0, 0, -1], "radius": 0.5, "material_id": 0}, ...]}

and through JSON files holding the same structure.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> glass = scene.add_material("dielectric", ior=1.5)
    >>> scene.add_sphere((0, 0, -1), 0.5, glass)
    0
"""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any

import taichi as ti

from src.pathtracer.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from src.pathtracer.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from src.pathtracer.materials.material import validate_albedo
from src.pathtracer.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from src.pathtracer.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
    remove_sphere,
)

logger = logging.getLogger(__name__)

Vec3Tuple = tuple[float, float, float]


class MaterialType(IntEnum):
    """Material kinds, as stored in material_types for kernel dispatch."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# 512 registry slots per kind
MAX_MATERIALS = 1536

# material_id -> MaterialType
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_id -> slot in that kind's registry
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def reset_material_ids() -> None:
    """Forget every unified material_id (registries are left untouched)."""
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """MaterialType of material_id, or -1 if the id is not registered."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Registry slot of material_id within its kind, or -1 if not registered."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


# Parameters each kind accepts, with the values used when one is left out
MATERIAL_DEFAULTS: dict[MaterialType, dict[str, Any]] = {
    MaterialType.LAMBERTIAN: {"albedo": (0.5, 0.5, 0.5)},
    MaterialType.METAL: {"albedo": (0.8, 0.8, 0.8), "fuzz": 0.0},
    MaterialType.DIELECTRIC: {"ior": 1.5},
}


@dataclass(frozen=True)
class Material:
    """A validated material description, one per unified material_id.

    Attributes:
        kind: Which scattering model the material uses.
        albedo: Reflectance for lambertian and metal materials.
        fuzz: Reflection blur for metal materials, in [0, 1].
        ior: Index of refraction for dielectric materials, > 0.
    """

    kind: MaterialType
    albedo: Vec3Tuple = (0.0, 0.0, 0.0)
    fuzz: float = 0.0
    ior: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        """Descriptor in the scene-file format."""
        data: dict[str, Any] = {"type": self.kind.name.lower()}
        for name in MATERIAL_DEFAULTS[self.kind]:
            value = getattr(self, name)
            data[name] = list(value) if isinstance(value, tuple) else value
        return data


def _material_kind(kind: MaterialType | str) -> MaterialType:
    if isinstance(kind, MaterialType):
        return kind
    try:
        return MaterialType[str(kind).upper()]
    except KeyError:
        raise ValueError(f"Unknown material type: {kind}") from None


def _as_triple(values: Any, name: str) -> Vec3Tuple:
    """Convert a 3-element sequence into a float tuple."""
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


def make_material(kind: MaterialType | str, /, **params: Any) -> Material:
    """Build and validate a Material without registering it.

    Args:
        kind: A MaterialType or its lowercase name ("lambertian", "metal",
            "dielectric").
        **params: albedo and fuzz for metal, albedo for lambertian, ior for
            dielectric. Missing parameters take the MATERIAL_DEFAULTS value.

    Raises:
        ValueError: For an unknown kind, an unexpected parameter, an albedo
            outside [0, 1], fuzz outside [0, 1] or an ior that is not positive.
    """
    kind = _material_kind(kind)
    defaults = MATERIAL_DEFAULTS[kind]
    unexpected = sorted(set(params) - set(defaults))
    if unexpected:
        raise ValueError(f"Unexpected {kind.name.lower()} parameters: {', '.join(unexpected)}")

    values = {**defaults, **params}
    if "albedo" in values:
        values["albedo"] = _as_triple(values["albedo"], "albedo")
        validate_albedo(values["albedo"])
    if "fuzz" in values:
        values["fuzz"] = float(values["fuzz"])
        if not 0.0 <= values["fuzz"] <= 1.0:
            raise ValueError(f"Fuzz = {values['fuzz']} is outside [0, 1]")
    if "ior" in values:
        values["ior"] = float(values["ior"])
        if not values["ior"] > 0.0:
            raise ValueError(f"Index of refraction = {values['ior']} is not positive")

    return Material(kind=kind, **values)


# Registry writer for each kind; returns the registry slot
_REGISTRIES: dict[MaterialType, Callable[[Material], int]] = {
    MaterialType.LAMBERTIAN: lambda m: add_lambertian_material(m.albedo),
    MaterialType.METAL: lambda m: add_metal_material(m.albedo, m.fuzz),
    MaterialType.DIELECTRIC: lambda m: add_dielectric_material(m.ior),
}


def _check_radius(radius: float) -> None:
    if not radius > 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")


def _check_material_id(material_id: int, material_count: int) -> None:
    if not 0 <= material_id < material_count:
        raise ValueError(f"Invalid material_id: {material_id}")


@dataclass
class SphereInfo:
    """Host-side copy of one stored sphere.

    Attributes:
        sphere_index: Slot in the sphere storage fields.
        center: Center of the sphere.
        radius: Radius of the sphere.
        material_id: Unified material ID of the sphere.
    """

    sphere_index: int
    center: Vec3Tuple
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Materials and spheres as scene-file descriptors."""

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


SphereEntry = tuple[Vec3Tuple, float, int]


def _parse_config(config: SceneConfig) -> tuple[list[Material], list[SphereEntry]]:
    """Validate every descriptor in config without touching scene state."""
    materials = []
    for descriptor in config.materials:
        params = dict(descriptor)
        kind = params.pop("type", "")
        materials.append(make_material(kind, **params))

    spheres = []
    for descriptor in config.spheres:
        center = _as_triple(descriptor.get("center", [0.0, 0.0, 0.0]), "center")
        radius = float(descriptor.get("radius", 1.0))
        material_id = int(descriptor.get("material_id", 0))
        _check_radius(radius)
        _check_material_id(material_id, len(materials))
        spheres.append((center, radius, material_id))

    if len(spheres) > MAX_SPHERES:
        raise RuntimeError(f"Scene has {len(spheres)} spheres, maximum is {MAX_SPHERES}")
    return materials, spheres


class SceneManager:
    """Builds the scene the next render will see.

    Sphere and material storage is global Taichi state, so there is one
    live scene at a time; constructing a SceneManager clears it.

    Attributes:
        materials: Material for each unified material_id, in id order.
        spheres: SphereInfo for each stored sphere, in storage order.

    Example:
        >>> scene = SceneManager()
        >>> gold = scene.add_material("metal", albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold)
        >>> scene.add_material_sphere((-1, 0, -1), 0.5, "dielectric", ior=1.5)
    """

    def __init__(self) -> None:
        self.materials: list[Material] = []
        self.spheres: list[SphereInfo] = []
        self.clear()

    def clear(self) -> None:
        """Drop every sphere and material, host side and Taichi side."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        reset_material_ids()
        self.materials.clear()
        self.spheres.clear()

    def _register(self, material: Material) -> int:
        material_id = len(self.materials)
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        type_index = _REGISTRIES[material.kind](material)
        material_types[material_id] = int(material.kind)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1
        self.materials.append(material)

        logger.debug(f"Registered material {material_id}: {material}")
        return material_id

    def add_material(self, kind: MaterialType | str, **params: Any) -> int:
        """Register a material and return its unified material_id.

        See make_material() for the accepted kinds and parameters.

        Raises:
            ValueError: If the parameters are invalid.
            RuntimeError: If the registry for this kind is full.
        """
        return self._register(make_material(kind, **params))

    def material_type(self, material_id: int) -> MaterialType | None:
        """Kind of a registered material, or None for an unknown id."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id].kind
        return None

    def get_material_count(self) -> int:
        return len(self.materials)

    def add_sphere(self, center: Vec3Tuple, radius: float, material_id: int) -> int:
        """Store a sphere that uses an already registered material.

        Returns:
            The sphere's index in storage.

        Raises:
            ValueError: If material_id is not registered or radius is not positive.
            RuntimeError: If sphere storage is full.
        """
        _check_material_id(material_id, len(self.materials))
        _check_radius(radius)

        sphere_index = add_sphere(center, radius, material_id)
        self.spheres.append(
            SphereInfo(sphere_index, (center[0], center[1], center[2]), radius, material_id)
        )
        return sphere_index

    def add_material_sphere(
        self,
        center: Vec3Tuple,
        radius: float,
        kind: MaterialType | str,
        **params: Any,
    ) -> tuple[int, int]:
        """Register a new material and store one sphere that uses it.

        Nothing is registered if the material or the radius is invalid.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material = make_material(kind, **params)
        _check_radius(radius)
        material_id = self._register(material)
        return self.add_sphere(center, radius, material_id), material_id

    def remove_sphere(self, sphere_index: int) -> None:
        """Remove a sphere; later spheres shift down one index.

        The sphere's material stays registered.

        Raises:
            IndexError: If no sphere exists at sphere_index.
        """
        remove_sphere(sphere_index)
        del self.spheres[sphere_index]
        for i in range(sphere_index, len(self.spheres)):
            self.spheres[i].sphere_index = i

    def get_sphere_count(self) -> int:
        return get_sphere_count()

    def to_config(self) -> SceneConfig:
        return SceneConfig(
            materials=[material.to_dict() for material in self.materials],
            spheres=[
                {"center": list(s.center), "radius": s.radius, "material_id": s.material_id}
                for s in self.spheres
            ],
        )

    def _load(self, materials: list[Material], spheres: list[SphereEntry]) -> None:
        self.clear()
        for material in materials:
            self._register(material)
        for center, radius, material_id in spheres:
            self.add_sphere(center, radius, material_id)

    def from_config(self, config: SceneConfig) -> None:
        """Replace the current scene with the one described by config.

        Every descriptor is validated before the current scene is cleared,
        and a load that still fails (a full material registry) puts the
        previous scene back, so an error never leaves a partial scene.

        Raises:
            ValueError: If a descriptor is invalid.
            RuntimeError: If the scene does not fit in storage.
        """
        materials, spheres = _parse_config(config)

        previous_materials = list(self.materials)
        previous_spheres = [(s.center, s.radius, s.material_id) for s in self.spheres]
        try:
            self._load(materials, spheres)
        except RuntimeError:
            self._load(previous_materials, previous_spheres)
            raise

        logger.info(
            f"Loaded scene with {len(self.materials)} materials and {len(self.spheres)} spheres"
        )

    def to_dict(self) -> dict[str, Any]:
        config = self.to_config()
        return {"materials": config.materials, "spheres": config.spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Replace the scene with a {"materials": [...], "spheres": [...]} dict."""
        self.from_config(
            SceneConfig(materials=data.get("materials", []), spheres=data.get("spheres", []))
        )

    def save_scene_file(self, filepath: str | Path) -> None:
        """Write the scene as JSON to filepath."""
        path = Path(filepath)
        path.write_text(json.dumps(self.to_dict(), indent=2))
        logger.info(f"Saved scene to {path}")

    def load_scene_file(self, filepath: str | Path) -> None:
        """Replace the scene with the JSON scene stored at filepath."""
        path = Path(filepath)
        self.from_dict(json.loads(path.read_text()))
