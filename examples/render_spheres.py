#!/usr/bin/env python3
"""Render a sphere scene to a PPM or PNG image.

This script demonstrates end-to-end rendering with the path tracer. It
builds a preset scene (or loads one from a config file), sets up the
camera, renders with progressive refinement and writes the image.

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH           Image width in pixels (default: 400)
    --height HEIGHT         Image height in pixels (default: width / aspect)
    --samples SAMPLES       Number of samples per pixel (default: 100)
    --max-depth DEPTH       Maximum bounces per path (default: 50)
    --scene {three,random}  Preset scene (default: random)
    --config FILE           JSON render config (overrides --scene)
    --seed SEED             Random seed for sampling and scene layout (default: 0)
    --arch ARCH             Taichi backend (default: cpu)
    --output OUTPUT         Output file, .ppm or .png; "-" writes PPM to stdout
                            (default: image.ppm)
    --batch-size SIZE       Samples per progress update (default: 10)
    --quiet                 Suppress progress output

Example:
    python -m examples.render_spheres --scene three --width 400 --samples 50
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import TextIO

from src.pathtracer.config import ARCHS, RenderSettings, init_taichi, load_render_config


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a sphere scene with the path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=None,
        help="Image height in pixels (default: width divided by the scene's aspect ratio)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Maximum bounces per path (default: 50)",
    )
    parser.add_argument(
        "--scene",
        choices=["three", "random"],
        default="random",
        help="Preset scene to render (default: random)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON render config with render/camera/scene sections",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Random seed (default: 0)",
    )
    parser.add_argument(
        "--arch",
        choices=sorted(ARCHS),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="image.ppm",
        help='Output file path, .ppm or .png; "-" writes PPM to stdout (default: image.ppm)',
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def _settings_from_args(args: argparse.Namespace, aspect_ratio: float) -> RenderSettings:
    height = args.height if args.height is not None else int(args.width / aspect_ratio)
    settings = RenderSettings(
        width=args.width,
        height=height,
        samples_per_pixel=args.samples,
        max_depth=args.max_depth,
        seed=args.seed,
        arch=args.arch,
    )
    settings.validate()
    return settings


def render_spheres(args: argparse.Namespace, log: TextIO = sys.stdout) -> Path | None:
    """Render the requested scene and save it.

    Args:
        args: Parsed command-line arguments.
        log: Stream for progress messages.

    Returns:
        Path to the saved image file, or None when writing to stdout.
    """
    quiet = args.quiet

    if args.config is not None:
        config = load_render_config(args.config)
        settings = config["render"]
    else:
        config = None
        # Preset cameras are built for the image's aspect ratio
        default_aspect = 16.0 / 9.0 if args.scene == "three" else 3.0 / 2.0
        settings = _settings_from_args(args, default_aspect)

    init_taichi(settings.arch, settings.seed)

    # Lazy imports to allow Taichi initialization first
    from src.pathtracer.camera.thin_lens import ThinLensCamera, setup_camera
    from src.pathtracer.core.renderer import Renderer
    from src.pathtracer.scene.manager import SceneManager
    from src.pathtracer.scene.presets import PRESETS

    if config is not None:
        if config["camera"] is None:
            raise ValueError(f"Config file has no camera section: {args.config}")
        scene = SceneManager()
        if config["scene"] is not None:
            scene.from_dict(config["scene"])
        camera = ThinLensCamera.from_dict(config["camera"])
        scene_name = Path(args.config).name
    elif args.scene == "random":
        scene, camera = PRESETS["random"](seed=settings.seed, aspect_ratio=settings.aspect_ratio)
        scene_name = "random"
    else:
        scene, camera = PRESETS["three"](aspect_ratio=settings.aspect_ratio)
        scene_name = "three"

    if not quiet:
        print(
            f"Creating {scene_name} scene ({settings.width}x{settings.height}, "
            f"{scene.get_sphere_count()} spheres)...",
            file=log,
        )

    setup_camera(camera)

    renderer = Renderer(settings.width, settings.height, max_depth=settings.max_depth)

    if not quiet:
        print(f"Rendering {settings.samples_per_pixel} samples per pixel...", file=log)

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
                file=log,
            )

    renderer.render(
        num_samples=settings.samples_per_pixel,
        batch_size=args.batch_size,
        callback=progress_callback,
    )

    if not quiet:
        print(file=log)  # Newline after progress

    total_time = time.time() - start_time

    if args.output == "-":
        renderer.save_ppm(sys.stdout)
        output_file = None
    else:
        output_file = Path(args.output)
        if output_file.suffix.lower() == ".png":
            renderer.save_png(output_file)
        else:
            renderer.save_ppm(output_file)

    if not quiet:
        if output_file is not None:
            print(f"Saved to: {output_file.absolute()}", file=log)
        print(f"Total time: {total_time:.2f}s", file=log)

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Keep stdout clean for the image when streaming it
    log = sys.stderr if args.output == "-" else sys.stdout

    try:
        render_spheres(args, log=log)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
