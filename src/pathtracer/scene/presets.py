"""Ready-made sphere scenes.

This module provides factory functions for the standard sphere test scenes.
Each factory fills a fresh SceneManager and returns it together with a
camera that frames the scene.

Scenes:
    three_spheres: A diffuse sphere between a glass sphere and a metal sphere,
        resting on a large diffuse ground sphere.
    random_spheres: A field of small random spheres around three large ones
        (glass, diffuse, metal), seen through a lens with depth of field.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.scene.presets import create_three_spheres_scene
    >>> from src.pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_three_spheres_scene()
    >>> setup_camera(camera)
    >>> # Now render using the scene and camera
"""

import logging

import numpy as np

from src.pathtracer.camera.thin_lens import ThinLensCamera
from src.pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Grid half-extent of the random scene (small spheres at a, b in [-11, 11))
RANDOM_GRID_EXTENT = 11

# Small spheres closer than this to the metal sphere's base are skipped
RANDOM_CLEARANCE = 0.9


def create_three_spheres_scene(aspect_ratio: float = 16.0 / 9.0) -> tuple[SceneManager, ThinLensCamera]:
    """Create the three-spheres scene.

    Args:
        aspect_ratio: Width over height of the target image.

    Returns:
        A tuple of (SceneManager, ThinLensCamera). The camera looks down -z
        from (-2, 2, 1) toward the middle sphere.
    """
    scene = SceneManager()

    ground = scene.add_material("lambertian", albedo=(0.8, 0.8, 0.0))
    center = scene.add_material("lambertian", albedo=(0.1, 0.2, 0.5))
    left = scene.add_material("dielectric", ior=1.5)
    right = scene.add_material("metal", albedo=(0.8, 0.6, 0.2), fuzz=0.0)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, left)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, right)

    camera = ThinLensCamera(
        lookfrom=(-2.0, 2.0, 1.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.0,
        focus_dist=float(np.linalg.norm(np.array([-2.0, 2.0, 2.0]))),
    )

    return scene, camera


def create_random_spheres_scene(
    seed: int = 0,
    aspect_ratio: float = 3.0 / 2.0,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the random spheres scene.

    Small spheres of radius 0.2 sit on a grid with random jitter; each picks
    a diffuse (80%), metal (15%) or glass (5%) material. Three large spheres
    of radius 1 sit in the middle.

    Args:
        seed: Seed for the scene layout. The same seed gives the same scene.
        aspect_ratio: Width over height of the target image.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    ground = scene.add_material("lambertian", albedo=(0.5, 0.5, 0.5))
    scene.add_sphere((0.0, -1000.0, 0.0), 1000.0, ground)

    # Small spheres share one glass material
    glass = scene.add_material("dielectric", ior=1.5)

    anchor = np.array([4.0, 0.2, 0.0])
    for a in range(-RANDOM_GRID_EXTENT, RANDOM_GRID_EXTENT):
        for b in range(-RANDOM_GRID_EXTENT, RANDOM_GRID_EXTENT):
            choose_mat = rng.random()
            center = np.array([a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random()])

            if np.linalg.norm(center - anchor) <= RANDOM_CLEARANCE:
                continue

            position = (float(center[0]), float(center[1]), float(center[2]))
            if choose_mat < 0.8:
                albedo = rng.random(3) * rng.random(3)
                scene.add_material_sphere(position, 0.2, "lambertian", albedo=tuple(albedo.tolist()))
            elif choose_mat < 0.95:
                albedo = rng.uniform(0.5, 1.0, 3)
                fuzz = float(rng.uniform(0.0, 0.5))
                scene.add_material_sphere(position, 0.2, "metal", albedo=tuple(albedo.tolist()), fuzz=fuzz)
            else:
                scene.add_sphere(position, 0.2, glass)

    scene.add_sphere((0.0, 1.0, 0.0), 1.0, glass)
    scene.add_material_sphere((-4.0, 1.0, 0.0), 1.0, "lambertian", albedo=(0.4, 0.2, 0.1))
    scene.add_material_sphere((4.0, 1.0, 0.0), 1.0, "metal", albedo=(0.7, 0.6, 0.5), fuzz=0.0)

    logger.debug(
        f"Random scene (seed={seed}): {scene.get_sphere_count()} spheres, "
        f"{scene.get_material_count()} materials"
    )

    camera = ThinLensCamera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )

    return scene, camera


PRESETS = {
    "three": create_three_spheres_scene,
    "random": create_random_spheres_scene,
}
