"""Command line program rendering the default scene to a PNG file.

Usage:
    pathtracer <output_file> [options]

Options:
    --samples SAMPLES   Number of samples per pixel (default: 6)
    --seed SEED         Seed for reproducible renders (default: random)
    --quiet             Only log warnings and errors

The image is always 800x600. With a missing or extra output path the program
prints a usage line and exits successfully without rendering.
Arguments are parsed by argparse, so an unrecognized option such as
``--bogus`` is an argparse error (exit status 2) rather than an output path.
A single path that starts with a dash must follow ``--``.

Example:
    pathtracer spheres.png --samples 100 --seed 42
"""

from __future__ import annotations

import argparse
import logging
import sys
import time

import taichi as ti

logger = logging.getLogger(__name__)

IMAGE_WIDTH = 800
IMAGE_HEIGHT = 600
DEFAULT_SAMPLES = 6

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="pathtracer",
        description="Render three spheres on a ground plane to a PNG file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "output",
        nargs="*",
        help="Output PNG file path",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=DEFAULT_SAMPLES,
        help=f"Number of samples per pixel (default: {DEFAULT_SAMPLES})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for reproducible renders (default: random)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors",
    )
    return parser


def init_taichi() -> None:
    """Initialize Taichi for rendering.

    Double precision is required by the vector types of the engine, which the
    CPU backend supports everywhere.
    """
    ti.init(arch=ti.cpu, default_fp=ti.f64)


def render_to_file(
    output_path: str,
    num_samples: int = DEFAULT_SAMPLES,
    seed: int | None = None,
) -> None:
    """Render the default scene and save it as a PNG file.

    Args:
        output_path: Output file path.
        num_samples: Number of samples per pixel.
        seed: Seed for the random streams. None seeds non-deterministically.

    Raises:
        ValueError: If num_samples is not positive.
        OSError: If the output file cannot be written.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.core.progressive import RenderSettings, render
    from pathtracer.preview.export import write_image

    settings = RenderSettings(
        width=IMAGE_WIDTH,
        height=IMAGE_HEIGHT,
        samples_per_pixel=num_samples,
        seed=seed,
    )
    pixels = bytearray(IMAGE_WIDTH * IMAGE_HEIGHT * 3)

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        logger.info("sample %d/%d (%.1fs)", current, target, time.time() - start_time)

    render(pixels, (IMAGE_WIDTH, IMAGE_HEIGHT), settings, callback=progress_callback)
    write_image(output_path, pixels, (IMAGE_WIDTH, IMAGE_HEIGHT))
    logger.info("saved %s in %.2fs", output_path, time.time() - start_time)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    print(f"raytracer {IMAGE_WIDTH}x{IMAGE_HEIGHT}")

    if len(args.output) != 1:
        print(f"Usage: {parser.prog} <output_file>")
        return 0

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format=LOG_FORMAT,
    )

    init_taichi()

    try:
        render_to_file(args.output[0], num_samples=args.samples, seed=args.seed)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
