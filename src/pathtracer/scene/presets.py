"""Built-in sphere scenes.

This module provides factory functions for the standard test scenes. Each
factory builds a fresh SceneManager (clearing any previous scene) and
returns it together with a PinholeCamera framed for that scene. The camera
is also stored on the scene so it survives JSON serialization.

Scenes:
    two_spheres: A diffuse sphere resting on a huge ground sphere
    materials: Ground, diffuse center, hollow glass left and metal right
    random: A ground plane covered with small random spheres around three
        large ones (glass, diffuse, metal)

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.scene.presets import create_scene
    >>> from pathtracer.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_scene("materials")
    >>> setup_camera(camera)
    >>> # Now render using the scene and camera
"""

from collections.abc import Callable

import numpy as np

from pathtracer.camera.pinhole import PinholeCamera
from pathtracer.scene.manager import SceneManager

# =============================================================================
# Scene Constants
# =============================================================================

DEFAULT_ASPECT_RATIO = 16.0 / 9.0

# Ground is a huge sphere whose top touches y = -0.5
GROUND_CENTER = (0.0, -100.5, -1.0)
GROUND_RADIUS = 100.0

# Small spheres sit in front of the camera at z = -1
SPHERE_RADIUS = 0.5

GROUND_ALBEDO = (0.8, 0.8, 0.0)
CENTER_ALBEDO = (0.1, 0.2, 0.5)
GRAY_ALBEDO = (0.5, 0.5, 0.5)
METAL_ALBEDO = (0.8, 0.6, 0.2)
GLASS_IOR = 1.5

# Radius of the inner shell of the hollow glass sphere (negative: inward normals)
HOLLOW_INNER_RADIUS = -0.45

# Random scene layout
# 14 x 14 grid keeps the per-type material tables under their capacity
RANDOM_GRID_EXTENT = 7
RANDOM_SMALL_RADIUS = 0.2
RANDOM_SCENE_SEED = 0


def default_camera(aspect_ratio: float) -> PinholeCamera:
    """Camera at the origin looking down -z with a 90 degree vertical FOV.

    With this camera the viewport is 2 units high at z = -1, so the small
    spheres of the built-in scenes fill the middle of the frame.
    """
    return PinholeCamera(
        look_from=(0.0, 0.0, 0.0),
        look_at=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
    )


# =============================================================================
# Scene Factories
# =============================================================================


def create_two_sphere_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, PinholeCamera]:
    """Create a diffuse sphere sitting on a diffuse ground sphere.

    Args:
        aspect_ratio: Aspect ratio for the returned camera.

    Returns:
        A tuple of (SceneManager, PinholeCamera).

    Example:
        >>> scene, camera = create_two_sphere_scene()
        >>> scene.get_sphere_count()
        2
    """
    scene = SceneManager()

    diffuse = scene.add_lambertian_material(albedo=GRAY_ALBEDO)
    scene.add_sphere(center=(0.0, 0.0, -1.0), radius=SPHERE_RADIUS, material_id=diffuse)
    scene.add_sphere(center=GROUND_CENTER, radius=GROUND_RADIUS, material_id=diffuse)

    camera = default_camera(aspect_ratio)
    scene.set_camera(camera)
    return scene, camera


def create_materials_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, PinholeCamera]:
    """Create the three-material scene.

    Spheres in a row at z = -1 on a yellowish ground: hollow glass on the
    left (an outer shell and an inner shell with negative radius), blue
    diffuse in the center and gold metal on the right.

    Args:
        aspect_ratio: Aspect ratio for the returned camera.

    Returns:
        A tuple of (SceneManager, PinholeCamera).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=GROUND_ALBEDO)
    center = scene.add_lambertian_material(albedo=CENTER_ALBEDO)
    glass = scene.add_dielectric_material(refraction_index=GLASS_IOR)
    metal = scene.add_metal_material(albedo=METAL_ALBEDO, fuzz=0.0)

    scene.add_sphere(center=GROUND_CENTER, radius=GROUND_RADIUS, material_id=ground)
    scene.add_sphere(center=(0.0, 0.0, -1.0), radius=SPHERE_RADIUS, material_id=center)
    scene.add_sphere(center=(-1.0, 0.0, -1.0), radius=SPHERE_RADIUS, material_id=glass)
    scene.add_sphere(center=(-1.0, 0.0, -1.0), radius=HOLLOW_INNER_RADIUS, material_id=glass)
    scene.add_sphere(center=(1.0, 0.0, -1.0), radius=SPHERE_RADIUS, material_id=metal)

    camera = default_camera(aspect_ratio)
    scene.set_camera(camera)
    return scene, camera


def create_random_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
    seed: int = RANDOM_SCENE_SEED,
) -> tuple[SceneManager, PinholeCamera]:
    """Create the showcase scene of many small random spheres.

    Small spheres are placed on a jittered grid over the ground; each picks a
    diffuse (80%), metal (15%) or glass (5%) material. Three large spheres sit
    in the middle. The layout depends only on the seed.

    Args:
        aspect_ratio: Aspect ratio for the returned camera.
        seed: Seed for the layout generator.

    Returns:
        A tuple of (SceneManager, PinholeCamera).
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=GRAY_ALBEDO)
    scene.add_sphere(center=(0.0, -1000.0, 0.0), radius=1000.0, material_id=ground)

    glass = scene.add_dielectric_material(refraction_index=GLASS_IOR)
    clearance_point = np.array([4.0, RANDOM_SMALL_RADIUS, 0.0])

    for a in range(-RANDOM_GRID_EXTENT, RANDOM_GRID_EXTENT):
        for b in range(-RANDOM_GRID_EXTENT, RANDOM_GRID_EXTENT):
            choose_mat = rng.random()
            center = np.array(
                [a + 0.9 * rng.random(), RANDOM_SMALL_RADIUS, b + 0.9 * rng.random()]
            )

            # Keep the area around the large metal sphere clear
            if np.linalg.norm(center - clearance_point) <= 0.9:
                continue

            position = (float(center[0]), float(center[1]), float(center[2]))
            if choose_mat < 0.8:
                albedo = rng.random(3) * rng.random(3)
                scene.add_lambertian_sphere(position, RANDOM_SMALL_RADIUS, tuple(albedo.tolist()))
            elif choose_mat < 0.95:
                albedo = rng.uniform(0.5, 1.0, 3)
                fuzz = float(rng.uniform(0.0, 0.5))
                scene.add_metal_sphere(position, RANDOM_SMALL_RADIUS, tuple(albedo.tolist()), fuzz)
            else:
                scene.add_sphere(position, RANDOM_SMALL_RADIUS, glass)

    scene.add_sphere(center=(0.0, 1.0, 0.0), radius=1.0, material_id=glass)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, (0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, (0.7, 0.6, 0.5), 0.0)

    camera = PinholeCamera(
        look_from=(13.0, 2.0, 3.0),
        look_at=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
    )
    scene.set_camera(camera)
    return scene, camera


# Registry of built-in scenes by name
SCENES: dict[str, Callable[..., tuple[SceneManager, PinholeCamera]]] = {
    "two_spheres": create_two_sphere_scene,
    "materials": create_materials_scene,
    "random": create_random_scene,
}


def create_scene(
    name: str,
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
    seed: int = RANDOM_SCENE_SEED,
) -> tuple[SceneManager, PinholeCamera]:
    """Create a built-in scene by name.

    Args:
        name: One of the keys of SCENES.
        aspect_ratio: Aspect ratio for the returned camera.
        seed: Layout seed, used by the random scene only.

    Returns:
        A tuple of (SceneManager, PinholeCamera).

    Raises:
        ValueError: If the name is not a built-in scene.
    """
    if name not in SCENES:
        raise ValueError(f"Unknown scene '{name}'. Available: {', '.join(SCENES)}")
    if name == "random":
        return create_random_scene(aspect_ratio=aspect_ratio, seed=seed)
    return SCENES[name](aspect_ratio=aspect_ratio)
