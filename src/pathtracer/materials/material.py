"""Shared scattering contract for all materials.

Every material answers the same question: given the incoming ray and the
hit record, how does the ray continue and how much light survives? The
answer is a ScatterRecord. A record with did_scatter == 0 means the ray was
absorbed and the path ends.
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import Ray

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.dataclass
class ScatterRecord:
    """Result of a material scatter query.

    Attributes:
        did_scatter: 1 if the ray continues, 0 if it was absorbed.
        attenuation: Per-channel fraction of light that survives the bounce.
        origin: Origin of the scattered ray (the hit point).
        direction: Direction of the scattered ray (not normalized).
    """

    did_scatter: ti.i32
    attenuation: vec3
    origin: vec3
    direction: vec3


@ti.func
def make_scatter_record(attenuation: vec3, origin: vec3, direction: vec3) -> ScatterRecord:
    """Create a record for a ray that continues from origin along direction."""
    return ScatterRecord(
        did_scatter=1,
        attenuation=attenuation,
        origin=origin,
        direction=direction,
    )


@ti.func
def make_absorbed_record() -> ScatterRecord:
    """Create a record for a ray that was absorbed."""
    return ScatterRecord(
        did_scatter=0,
        attenuation=vec3(0.0, 0.0, 0.0),
        origin=vec3(0.0, 0.0, 0.0),
        direction=vec3(0.0, 0.0, 0.0),
    )


@ti.func
def scattered_ray(record: ScatterRecord) -> Ray:
    """Build the continuing ray described by a scatter record."""
    return Ray(origin=record.origin, direction=record.direction)


def validate_albedo(albedo: tuple[float, float, float]) -> None:
    """Check that every albedo component lies in [0, 1].

    Raises:
        ValueError: If the albedo does not have three components or any
            component is outside [0, 1].
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
