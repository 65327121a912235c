"""Render configuration and Taichi initialization.

Render settings, camera and scene can be described together in one JSON file:

    {
        "render": {"width": 400, "height": 225, "samples_per_pixel": 100,
                   "max_depth": 50, "seed": 0, "arch": "cpu"},
        "camera": {"lookfrom": [13, 2, 3], "lookat": [0, 0, 0],
                   "vup": [0, 1, 0], "vfov": 20, "aspect_ratio": 1.7778,
                   "aperture": 0.1, "focus_dist": 10},
        "scene": {"materials": [...], "spheres": [...]}
    }

Every section is optional. The "scene" section uses the format written by
SceneManager.to_dict().
"""

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import taichi as ti

logger = logging.getLogger(__name__)

# Taichi backends selectable by name
ARCHS = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
    "cuda": ti.cuda,
    "vulkan": ti.vulkan,
    "metal": ti.metal,
}


@dataclass
class RenderSettings:
    """Image and sampling settings for one render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Samples averaged per pixel.
        max_depth: Bounce budget per sample.
        seed: Seed for Taichi's random number streams.
        arch: Taichi backend name (see ARCHS).
    """

    width: int = 400
    height: int = 225
    samples_per_pixel: int = 100
    max_depth: int = 50
    seed: int = 0
    arch: str = "cpu"

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def validate(self) -> None:
        """Check the settings.

        Raises:
            ValueError: If a setting is out of range.
        """
        if self.width < 2 or self.height < 2:
            raise ValueError(f"Image must be at least 2x2 pixels, got {self.width}x{self.height}")
        if self.samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.arch not in ARCHS:
            raise ValueError(f"Unknown arch {self.arch!r}, expected one of {sorted(ARCHS)}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderSettings":
        """Build settings from a dictionary, ignoring unknown keys.

        Raises:
            ValueError: If the resulting settings are invalid.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown render settings: {sorted(unknown)}")
        settings = cls(**{key: value for key, value in data.items() if key in known})
        settings.validate()
        return settings


def init_taichi(arch: str = "cpu", seed: int = 0) -> None:
    """Initialize Taichi for rendering.

    Uses 64-bit floats by default so vector math keeps double precision.
    Must be called before importing modules that allocate Taichi fields
    (camera, scene, materials, integrator).

    Args:
        arch: Taichi backend name (see ARCHS).
        seed: Seed for the per-thread random number streams.

    Raises:
        ValueError: If arch is unknown.
    """
    if arch not in ARCHS:
        raise ValueError(f"Unknown arch {arch!r}, expected one of {sorted(ARCHS)}")
    ti.init(arch=ARCHS[arch], default_fp=ti.f64, random_seed=seed)
    logger.debug(f"Taichi initialized (arch={arch}, seed={seed})")


def load_render_config(filepath: str | Path) -> dict[str, Any]:
    """Load a render configuration file.

    Args:
        filepath: Path to a JSON configuration file.

    Returns:
        Dictionary with keys "render" (RenderSettings), "camera" (dict or
        None) and "scene" (dict or None). Camera and scene stay plain
        dictionaries so this can run before Taichi is initialized.

    Raises:
        ValueError: If the file is not a JSON object or settings are invalid.
    """
    data = json.loads(Path(filepath).read_text())
    if not isinstance(data, dict):
        raise ValueError(f"Render config must be a JSON object: {filepath}")

    return {
        "render": RenderSettings.from_dict(data.get("render", {})),
        "camera": data.get("camera"),
        "scene": data.get("scene"),
    }
