"""Monte Carlo sphere path tracer built on Taichi.

This package renders scenes of spheres with physically motivated materials,
following many random light paths per pixel, with support for:
- Diffuse (Lambertian), metal and dielectric (glass) materials
- A positionable thin-lens camera with depth of field
- Parallel per-pixel rendering with progressive accumulation
- Plain-text PPM and PNG output

Subpackages:
    core: Ray and vector utilities, the integrator and the renderer
    geometry: Sphere primitive and hit records
    materials: Scattering models and their material registries
    scene: Scene storage, scene manager and preset scenes
    camera: Thin-lens camera with ray generation
    output: Image encoders

Modules that allocate Taichi fields must be imported after
src.pathtracer.config.init_taichi() (or ti.init()) has been called.
"""

__version__ = "0.1.0"
