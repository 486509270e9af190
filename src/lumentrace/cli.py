"""Command-line renderer.

Renders a built-in preset or a JSON scene file and writes the result as PPM
or PNG, depending on the output file extension.

Usage:
    lumentrace [options]

Options:
    --scene SCENE       Preset name or path to a JSON scene file
                        (default: three_spheres)
    --width WIDTH       Image width in pixels (default: 400)
    --height HEIGHT     Image height in pixels (default: 225)
    --samples SAMPLES   Number of samples per pixel (default: 100)
    --max-depth DEPTH   Maximum bounces per path (default: 50)
    --seed SEED         Seed for sampling and random scene layouts (default: 0)
    --output OUTPUT     Output file path, .ppm or .png (default: image.ppm)
    --batch-size SIZE   Samples per progress update (default: 10)
    --arch ARCH         Taichi backend: cpu or gpu (default: cpu)
    --quiet             Suppress progress output
    --verbose           Enable debug logging

Example:
    lumentrace --scene random_spheres --width 1200 --height 675 --samples 500 \\
        --output cover.png
"""

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti

from lumentrace.settings import RenderSettings

logger = logging.getLogger(__name__)

ARCHES = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="lumentrace",
        description="Render a sphere scene with Monte Carlo path tracing.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        type=str,
        default="three_spheres",
        help="Preset name or path to a JSON scene file (default: three_spheres)",
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
        default=225,
        help="Image height in pixels (default: 225)",
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
        "--seed",
        type=int,
        default=0,
        help="Seed for sampling and random scene layouts (default: 0)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="image.ppm",
        help="Output file path, .ppm or .png (default: image.ppm)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--arch",
        choices=sorted(ARCHES),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def _is_scene_file(scene: str) -> bool:
    return scene.endswith(".json") or Path(scene).is_file()


def check_scene_argument(scene: str) -> None:
    """Check that --scene names a preset or an existing file.

    Taichi must already be initialized.

    Raises:
        ValueError: For an unknown preset name.
        FileNotFoundError: For a missing scene file.
    """
    from lumentrace.scene.presets import PRESETS

    if _is_scene_file(scene):
        if not Path(scene).is_file():
            raise FileNotFoundError(f"Scene file not found: {scene}")
    elif scene not in PRESETS:
        available = ", ".join(sorted(PRESETS))
        raise ValueError(f"Unknown scene preset {scene!r}; available: {available}")


def render_scene(
    scene: str,
    settings: RenderSettings,
    output_path: str = "image.ppm",
    batch_size: int = 10,
    quiet: bool = False,
) -> Path:
    """Render a preset or scene file and save the image.

    Taichi must already be initialized.

    Args:
        scene: Preset name or path to a JSON scene file.
        settings: Image size, sample count, bounce budget and seed.
        output_path: Output file path (.ppm or .png).
        batch_size: Number of samples to render between progress updates.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports so Taichi is initialized before any field is declared
    from lumentrace.camera.thin_lens import setup_camera
    from lumentrace.core.integrator import set_sky_color
    from lumentrace.core.progressive import ProgressiveRenderer
    from lumentrace.scene.loader import load_scene
    from lumentrace.scene.presets import create_preset_scene

    if _is_scene_file(scene):
        description = load_scene(scene, aspect_ratio=settings.aspect_ratio)
        camera = description.camera
        set_sky_color(description.sky_color)
    else:
        _, camera = create_preset_scene(
            scene, aspect_ratio=settings.aspect_ratio, seed=settings.seed
        )
        set_sky_color()

    setup_camera(camera)

    if not quiet:
        print(f"Rendering {scene} ({settings.width}x{settings.height})...")

    renderer = ProgressiveRenderer.from_settings(settings)
    started = time.perf_counter()

    for done, target in renderer.render_iter(settings.samples_per_pixel, batch_size):
        if not quiet:
            rate = done / max(time.perf_counter() - started, 1e-9)
            print(
                f"\r  Progress: {done}/{target} samples "
                f"({100.0 * done / target:.1f}%), {rate:.1f} spp/s",
                end="",
                flush=True,
            )
    if not quiet:
        print()

    output_file = Path(output_path)
    renderer.save_image(output_file)

    elapsed = time.perf_counter() - started
    logger.debug("Render finished in %.2fs", elapsed)
    if not quiet:
        print(f"Wrote {output_file.resolve()} in {elapsed:.2f}s")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    try:
        settings = RenderSettings(
            width=args.width,
            height=args.height,
            samples_per_pixel=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
        )
        if args.batch_size <= 0:
            raise ValueError(f"--batch-size must be positive, got {args.batch_size}")
        if Path(args.output).suffix.lower() not in (".ppm", ".png"):
            raise ValueError(f"Output must be a .ppm or .png file, got {args.output}")
        ti.init(arch=ARCHES[args.arch])
        check_scene_argument(args.scene)

        render_scene(
            scene=args.scene,
            settings=settings,
            output_path=args.output,
            batch_size=args.batch_size,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        logger.debug("Render failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
