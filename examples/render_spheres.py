#!/usr/bin/env python3
"""Render a sphere scene to a PPM or PNG image.

This script demonstrates end-to-end rendering with the pathtracer package.
It builds a built-in scene (or loads one from JSON), sets up the camera,
renders the image scanline by scanline and writes it out.

Usage:
    python examples/render_spheres.py [options]

Options:
    --width WIDTH           Image width in pixels (default: 400)
    --aspect-ratio RATIO    Width / height (default: 1.7778)
    --samples SAMPLES       Samples per pixel (default: 100)
    --max-depth DEPTH       Bounce budget per ray (default: 50)
    --scene NAME            Built-in scene: two_spheres, materials, random
    --scene-file PATH       Load the scene from a JSON file instead
    --seed SEED             Random seed for sampling and the random scene
    --arch ARCH             Taichi backend: cpu or gpu (default: gpu)
    --output OUTPUT         .ppm or .png path, or - for PPM on stdout
    --quiet                 Suppress progress output

Example:
    python examples/render_spheres.py --scene materials --samples 50 --output spheres.png
    python examples/render_spheres.py --output - > image.ppm
"""

from __future__ import annotations

import argparse
import dataclasses
import os
import sys
import time
from pathlib import Path

# Keep stdout clean for PPM output
os.environ.setdefault("ENABLE_TAICHI_HEADER_PRINT", "False")

import taichi as ti  # noqa: E402

SCENE_NAMES = ("two_spheres", "materials", "random")


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
        "--aspect-ratio",
        type=float,
        default=16.0 / 9.0,
        help="Image width divided by height (default: 16/9)",
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
        help="Maximum number of bounces per ray (default: 50)",
    )
    parser.add_argument(
        "--scene",
        choices=SCENE_NAMES,
        default="two_spheres",
        help="Built-in scene to render (default: two_spheres)",
    )
    parser.add_argument(
        "--scene-file",
        type=str,
        default=None,
        help="JSON scene file to render instead of a built-in scene",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Random seed for sampling and the random scene (default: 0)",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="gpu",
        help="Taichi backend (default: gpu, falls back to cpu)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="spheres.ppm",
        help="Output path ending in .ppm or .png, or - for PPM on stdout "
        "(default: spheres.ppm)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def init_taichi(arch: str, seed: int, quiet: bool) -> None:
    """Initialize Taichi on the requested backend."""
    # Taichi logs to stdout; keep it quiet so PPM output is not corrupted
    log_level = ti.WARN if not quiet else ti.ERROR
    if arch == "cpu":
        ti.init(arch=ti.cpu, random_seed=seed, default_fp=ti.f64, log_level=log_level)
        return

    try:
        ti.init(arch=ti.gpu, random_seed=seed, default_fp=ti.f64, log_level=log_level)
    except Exception:
        ti.init(arch=ti.cpu, random_seed=seed, default_fp=ti.f64, log_level=log_level)
        if not quiet:
            print("GPU backend unavailable, using CPU", file=sys.stderr)


def render_spheres(
    width: int = 400,
    aspect_ratio: float = 16.0 / 9.0,
    samples_per_pixel: int = 100,
    max_depth: int = 50,
    scene_name: str = "two_spheres",
    scene_file: str | None = None,
    seed: int = 0,
    output_path: str = "spheres.ppm",
    quiet: bool = False,
) -> Path | None:
    """Render a scene and write the image.

    Args:
        width: Image width in pixels.
        aspect_ratio: Image width divided by height.
        samples_per_pixel: Number of samples per pixel.
        max_depth: Bounce budget per ray.
        scene_name: Built-in scene name, used when scene_file is None.
        scene_file: Optional JSON scene file.
        seed: Layout seed for the random scene.
        output_path: Output file path, or "-" for PPM on stdout.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file, or None when writing to stdout.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.camera.pinhole import setup_camera
    from pathtracer.core.renderer import Renderer, RenderSettings
    from pathtracer.scene.manager import SceneManager
    from pathtracer.scene.presets import create_scene, default_camera

    settings = RenderSettings(
        image_width=width,
        aspect_ratio=aspect_ratio,
        samples_per_pixel=samples_per_pixel,
        max_depth=max_depth,
    )

    if scene_file is not None:
        scene = SceneManager()
        scene.load_json(scene_file)
        camera = scene.camera if scene.camera is not None else default_camera(aspect_ratio)
        # The image shape decides the viewport shape
        camera = dataclasses.replace(camera, aspect_ratio=settings.aspect_ratio)
        scene_label = scene_file
    else:
        scene, camera = create_scene(scene_name, aspect_ratio=aspect_ratio, seed=seed)
        scene_label = scene_name

    setup_camera(camera)

    if not quiet:
        print(
            f"Rendering '{scene_label}' ({scene.get_sphere_count()} spheres) at "
            f"{settings.image_width}x{settings.image_height}, "
            f"{settings.samples_per_pixel} spp, max depth {settings.max_depth}",
            file=sys.stderr,
        )

    renderer = Renderer(settings)
    start_time = time.time()

    def progress_callback(rows_done: int, total_rows: int) -> None:
        if not quiet:
            print(
                f"\rScanlines remaining: {total_rows - rows_done} ",
                end="",
                file=sys.stderr,
                flush=True,
            )

    renderer.render(callback=progress_callback)

    if not quiet:
        print(file=sys.stderr)  # Newline after progress

    if output_path == "-":
        renderer.write_ppm(sys.stdout)
        sys.stdout.flush()
        output_file = None
    else:
        output_file = Path(output_path)
        renderer.save_image(output_file)

    total_time = time.time() - start_time
    if not quiet:
        if output_file is not None:
            print(f"Saved to: {output_file.absolute()}", file=sys.stderr)
        print(f"Elapsed time: {total_time:.2f}s", file=sys.stderr)

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    init_taichi(args.arch, args.seed, args.quiet)

    try:
        render_spheres(
            width=args.width,
            aspect_ratio=args.aspect_ratio,
            samples_per_pixel=args.samples,
            max_depth=args.max_depth,
            scene_name=args.scene,
            scene_file=args.scene_file,
            seed=args.seed,
            output_path=args.output,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
