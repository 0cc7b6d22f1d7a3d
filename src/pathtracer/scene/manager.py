"""Scene building: spheres, a shared material table and scene files.

Each material type keeps its parameters in its own registry (see
pathtracer.materials). The scene gives every registered material a single
material ID and records, in a kernel-visible table, which registry and which
slot in it the ID refers to. Spheres carry only that ID.

Scenes can be written to and read from plain dictionaries or JSON files:

    {
        "materials": [{"type": "lambertian", "albedo": [0.5, 0.5, 0.5]}, ...],
        "spheres": [{"center": [0, 0, -1], "radius": 0.5, "material_id": 0}, ...],
        "camera": {"look_from": [...], "look_at": [...], "vup": [...],
                   "vfov": 90.0, "aspect_ratio": 1.78}
    }

Material IDs in "spheres" are positions in the "materials" list. The camera
object is optional.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> gray = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=gray)
    >>> scene.save_json("scene.json")
"""

import json
from dataclasses import asdict, dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any

import taichi as ti

from pathtracer.camera.pinhole import PinholeCamera
from pathtracer.core.ray import vec3
from pathtracer.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from pathtracer.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from pathtracer.materials.metal import (
    add_metal_material,
    clamp_fuzz,
    clear_metal_materials,
)
from pathtracer.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)


class MaterialType(IntEnum):
    """Kind of surface a material ID refers to; the integrator switches on it."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Three registries of 256 slots each
MAX_MATERIALS = 768

# Row i holds (MaterialType, slot in that type's registry) for material ID i
material_table = ti.Vector.field(2, dtype=ti.i32, shape=MAX_MATERIALS)
material_count = ti.field(dtype=ti.i32, shape=())


def clear_material_table() -> None:
    """Forget every material ID. The per-type registries are left alone."""
    material_count[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """MaterialType of a material ID, or -1 if the ID is not registered."""
    kind = -1
    if 0 <= material_id < material_count[None]:
        kind = material_table[material_id][0]
    return kind


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Slot of a material ID in its type's registry, or -1 if unregistered.

    The slot indexes the per-type parameter fields, for example
    metal_fuzzes[slot].
    """
    slot = -1
    if 0 <= material_id < material_count[None]:
        slot = material_table[material_id][1]
    return slot


@dataclass
class MaterialRecord:
    """Python-side copy of a registered material.

    Attributes:
        material_id: Scene-wide material ID.
        material_type: Which registry holds the parameters.
        type_index: Slot in that registry.
        params: Parameters as stored, e.g. {"albedo": (r, g, b), "fuzz": f}.
            Metal fuzz appears here after clamping.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereRecord:
    """Python-side copy of a sphere added to the scene."""

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


def _vector3(values: Any, name: str) -> tuple[float, float, float]:
    """Read a 3-vector from a scene document."""
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(values)}")
    x, y, z = values
    return (float(x), float(y), float(z))


def _camera_from_dict(data: dict[str, Any]) -> PinholeCamera:
    """Build a PinholeCamera from a scene document's "camera" object."""
    return PinholeCamera(
        look_from=_vector3(data.get("look_from", [0, 0, 0]), "look_from"),
        look_at=_vector3(data.get("look_at", [0, 0, -1]), "look_at"),
        vup=_vector3(data.get("vup", [0, 1, 0]), "vup"),
        vfov=float(data.get("vfov", 90.0)),
        aspect_ratio=float(data.get("aspect_ratio", 16.0 / 9.0)),
    )


class SceneManager:
    """Builds the scene the integrator renders.

    The sphere and material fields are module-level Taichi fields, so there
    is one scene per process. Creating a SceneManager (or calling clear())
    empties it.

    Attributes:
        materials: MaterialRecord per material ID, in ID order.
        spheres: SphereRecord per sphere, in insertion order.
        camera: Camera saved along with the scene, or None. Storing a camera
            here does not activate it; pass it to setup_camera() for that.

    Example:
        >>> scene = SceneManager()
        >>> glass = scene.add_dielectric_material(refraction_index=1.5)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
        >>> scene.add_sphere((-1, 0, -1), -0.45, glass)  # hollow shell
        >>> scene.add_metal_sphere((1, 0, -1), 0.5, albedo=(0.8, 0.6, 0.2), fuzz=0.3)
    """

    def __init__(self) -> None:
        self.materials: list[MaterialRecord] = []
        self.spheres: list[SphereRecord] = []
        self.camera: PinholeCamera | None = None
        self.clear()

    def clear(self) -> None:
        """Remove all spheres, materials and the stored camera."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        clear_material_table()
        self.materials = []
        self.spheres = []
        self.camera = None

    # -------------------------------------------------------------------------
    # Materials
    # -------------------------------------------------------------------------

    def _assign_material_id(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        material_id = len(self.materials)
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Scene already holds the maximum of {MAX_MATERIALS} materials")

        material_table[material_id] = [int(material_type), type_index]
        material_count[None] = material_id + 1
        self.materials.append(MaterialRecord(material_id, material_type, type_index, params))
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Register a diffuse material and return its material ID.

        Raises:
            ValueError: If an albedo component lies outside [0, 1].
            RuntimeError: If the Lambertian registry or the scene is full.
        """
        slot = add_lambertian_material(albedo)
        return self._assign_material_id(
            MaterialType.LAMBERTIAN, slot, {"albedo": tuple(albedo)}
        )

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Register a metal material and return its material ID.

        A fuzz outside [0, 1] is clamped into it; 0 gives a perfect mirror.

        Raises:
            ValueError: If an albedo component lies outside [0, 1].
            RuntimeError: If the metal registry or the scene is full.
        """
        slot = add_metal_material(albedo, fuzz)
        return self._assign_material_id(
            MaterialType.METAL,
            slot,
            {"albedo": tuple(albedo), "fuzz": clamp_fuzz(fuzz)},
        )

    def add_dielectric_material(self, refraction_index: float = 1.5) -> int:
        """Register a glass-like material and return its material ID.

        Raises:
            ValueError: If the refraction index is not positive.
            RuntimeError: If the dielectric registry or the scene is full.
        """
        slot = add_dielectric_material(refraction_index)
        return self._assign_material_id(
            MaterialType.DIELECTRIC, slot, {"refraction_index": refraction_index}
        )

    def get_material_count(self) -> int:
        return len(self.materials)

    def get_material_info(self, material_id: int) -> MaterialRecord | None:
        """Record of a material ID, or None if no such material exists."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def material_type_of(self, material_id: int) -> MaterialType | None:
        """MaterialType of a material ID, or None if no such material exists.

        Kernels use get_material_type() instead.
        """
        record = self.get_material_info(material_id)
        return None if record is None else record.material_type

    # -------------------------------------------------------------------------
    # Spheres
    # -------------------------------------------------------------------------

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere using an already registered material.

        Several spheres may share one material. A negative radius is
        allowed: it makes the normals point inward, which is how the hollow
        inside of a glass ball is modeled.

        Returns:
            Index of the sphere in the scene.

        Raises:
            ValueError: If radius is zero or material_id is not registered.
            RuntimeError: If the sphere table is full.
        """
        if radius == 0.0:
            raise ValueError("Sphere radius must be non-zero")
        if self.get_material_info(material_id) is None:
            raise ValueError(
                f"Invalid material_id: {material_id} "
                f"(scene has {len(self.materials)} materials)"
            )

        x, y, z = center
        sphere_index = add_sphere(vec3(x, y, z), radius, material_id)
        self.spheres.append(SphereRecord(sphere_index, (x, y, z), radius, material_id))
        return sphere_index

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with its own new diffuse material.

        Returns:
            (sphere_index, material_id)
        """
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Add a sphere with its own new metal material.

        Returns:
            (sphere_index, material_id)
        """
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        refraction_index: float = 1.5,
    ) -> tuple[int, int]:
        """Add a sphere with its own new dielectric material.

        Returns:
            (sphere_index, material_id)
        """
        material_id = self.add_dielectric_material(refraction_index)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        return get_sphere_count()

    def set_camera(self, camera: PinholeCamera) -> None:
        """Remember the camera this scene is meant to be viewed through."""
        self.camera = camera

    # -------------------------------------------------------------------------
    # Scene documents
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Describe the scene as a JSON-compatible dictionary."""
        materials = []
        for record in self.materials:
            entry: dict[str, Any] = {"type": record.material_type.name.lower()}
            for key, value in record.params.items():
                entry[key] = list(value) if isinstance(value, tuple) else value
            materials.append(entry)

        data: dict[str, Any] = {
            "materials": materials,
            "spheres": [
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
                for sphere in self.spheres
            ],
        }

        if self.camera is not None:
            camera = asdict(self.camera)
            for key in ("look_from", "look_at", "vup"):
                camera[key] = list(camera[key])
            data["camera"] = camera

        return data

    def _add_material_from_dict(self, entry: dict[str, Any]) -> int:
        kind = str(entry.get("type", "")).lower()
        if kind == "lambertian":
            return self.add_lambertian_material(
                _vector3(entry.get("albedo", [0.5, 0.5, 0.5]), "albedo")
            )
        if kind == "metal":
            return self.add_metal_material(
                _vector3(entry.get("albedo", [0.8, 0.8, 0.8]), "albedo"),
                float(entry.get("fuzz", 0.0)),
            )
        if kind == "dielectric":
            return self.add_dielectric_material(float(entry.get("refraction_index", 1.5)))
        raise ValueError(f"Unknown material type: {kind!r}")

    def from_dict(self, data: dict[str, Any]) -> None:
        """Replace the scene with the one described by a dictionary.

        Materials are registered first, in list order, so a sphere's
        material_id is its material's position in the "materials" list.

        Raises:
            ValueError: If the document describes an invalid scene.
        """
        self.clear()

        for entry in data.get("materials", []):
            self._add_material_from_dict(entry)

        for entry in data.get("spheres", []):
            self.add_sphere(
                _vector3(entry.get("center", [0, 0, 0]), "center"),
                float(entry.get("radius", 1.0)),
                int(entry.get("material_id", 0)),
            )

        if data.get("camera") is not None:
            self.camera = _camera_from_dict(data["camera"])

    def save_json(self, filepath: str | Path) -> None:
        Path(filepath).write_text(json.dumps(self.to_dict(), indent=2))

    def load_json(self, filepath: str | Path) -> None:
        """Replace the scene with the one stored in a JSON file.

        Raises:
            ValueError: If the file is not valid JSON or describes an
                invalid scene.
        """
        try:
            data = json.loads(Path(filepath).read_text())
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid scene file {filepath}: {e}") from e
        self.from_dict(data)

    # -------------------------------------------------------------------------
    # Capacity
    # -------------------------------------------------------------------------

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS
