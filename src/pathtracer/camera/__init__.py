"""Camera module for view and ray generation.

This module provides the camera model for generating primary rays:

Components:
    thin_lens: Look-at perspective camera with thin-lens depth of field

Camera responsibilities:
    - Transform (s, t) image coordinates to world-space rays
    - Support look-at positioning with up vector
    - Compute the viewport from vertical field of view and aspect ratio
    - Sample ray origins over the lens aperture for defocus blur

Ray generation uses normalized image coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image

Note: importing this module allocates Taichi fields, so call ti.init()
first (see src.pathtracer.config.init_taichi).
"""

from .thin_lens import (
    ThinLensCamera,
    get_camera_info,
    get_ray,
    sample_ray,
    setup_camera,
)

__all__ = [
    "ThinLensCamera",
    "setup_camera",
    "get_ray",
    "sample_ray",
    "get_camera_info",
]
