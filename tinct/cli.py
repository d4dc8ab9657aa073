# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""Command-line interface for tinct."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Optional

from loguru import logger

from tinct import extract_colors, load_image, pick_color
from tinct.errors import ExtractionError
from tinct.quantize import available_methods, method_name
from tinct.schema import DEFAULT_COLORS, ColorResult, ExtractionResponse

EXIT_OK = 0
EXIT_UNRECOVERABLE = 1
EXIT_BAD_INPUT = 2


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    methods = [spec.method.value for spec in available_methods()]
    parser = argparse.ArgumentParser(
        prog="tinct",
        description="Extract a ranked color palette from an image",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tinct photo.jpg
  tinct photo.jpg -k 8 -m median
  tinct photo.jpg --offload --timeout 5 --json
  tinct photo.jpg --at 120,45
        """,
    )

    parser.add_argument("image", help="Input image file path")

    parser.add_argument(
        "-k",
        "--colors",
        dest="k",
        type=int,
        default=DEFAULT_COLORS,
        help=f"Number of colors, 1-20 (default: {DEFAULT_COLORS})",
    )

    parser.add_argument(
        "-m",
        "--method",
        choices=methods,
        default="kmeans",
        help="Quantization method (default: kmeans)",
    )

    parser.add_argument(
        "--offload",
        action="store_true",
        help="Run extraction in a worker process with local fallback",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=15.0,
        help="Seconds to wait for the worker before running locally (default: 15)",
    )

    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible k-means")

    parser.add_argument(
        "--at",
        type=parse_point,
        metavar="X,Y",
        help="Print the exact color of the pixel at X,Y instead of a palette",
    )

    parser.add_argument("--json", action="store_true", help="Print the response as JSON")

    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug output to stderr"
    )

    return parser


def parse_point(text: str) -> tuple[int, int]:
    """Parse an ``X,Y`` pixel coordinate."""
    try:
        x, y = (int(part) for part in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected X,Y integers, got {text!r}") from None
    if x < 0 or y < 0:
        raise argparse.ArgumentTypeError(f"coordinates must be non-negative, got {text!r}")
    return x, y


def configure_logging(verbose: bool) -> None:
    """Route tinct's loguru records to stderr."""
    logger.remove()
    logger.add(
        sys.stderr,
        format="{time:HH:mm:ss} | {level} | {message}",
        level="DEBUG" if verbose else "WARNING",
    )
    logger.enable("tinct")


def format_color(color: ColorResult) -> str:
    """Render one picked color."""
    return f"{color.hex}  rgb({color.r}, {color.g}, {color.b})"


def format_palette(response: ExtractionResponse) -> str:
    """Render a response as one line per color plus a summary line."""
    lines = [
        f"{c.hex}  rgb({c.r}, {c.g}, {c.b})  {c.percentage:6.2f}%"
        for c in response.colors
    ]
    summary = (
        f"{len(response.colors)} colors via {method_name(response.method)} "
        f"({response.executor}, {response.processing_time:.1f} ms)"
    )
    if response.fell_back:
        summary += f"; requested {method_name(response.requested_method)}"
    lines.append(summary)
    return "\n".join(lines)


def main(args: Optional[list] = None) -> int:
    """Main entry point for CLI.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 success, 1 unrecoverable failure, 2 unreadable input)
    """
    parser = create_parser()
    parsed = parser.parse_args(args)
    configure_logging(parsed.verbose)

    if parsed.at is not None:
        return _pick(parsed)

    try:
        response = extract_colors(
            parsed.image,
            k=parsed.k,
            method=parsed.method,
            offload=parsed.offload,
            timeout=parsed.timeout,
            seed=parsed.seed,
        )
    except (ExtractionError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_BAD_INPUT

    if parsed.json:
        print(response.to_json())
    else:
        print(format_palette(response))
        if response.notice:
            print(f"Note: {response.notice}", file=sys.stderr)

    return EXIT_OK if response.success else EXIT_UNRECOVERABLE


def _pick(parsed: argparse.Namespace) -> int:
    x, y = parsed.at
    try:
        # Full resolution so the answer is the exact source pixel
        color = pick_color(load_image(parsed.image, max_dimension=0), x, y)
    except (ExtractionError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_BAD_INPUT

    if parsed.json:
        print(json.dumps({"x": x, "y": y, **color.to_dict()}))
    else:
        print(format_color(color))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
