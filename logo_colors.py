#!/usr/bin/env python3
"""
Print the dominant colors of the PNG embedded in a logo SVG.

Usage:
    logo-colors [PATH] [--top N] [--log-level LEVEL]

PATH may be an SVG carrying a data:image/png;base64 URI, or a PNG file.
"""

import argparse
import os
import sys
import zlib

from color_rank import TOP_N, analyze_png, format_report
from logging_config import get_logger, setup_logging
from svg_source import load_png_bytes

DEFAULT_SVG = "public/logo.svg"

logger = get_logger("cli")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="logo-colors",
        description="Rank the most frequent colors of a logo's embedded PNG",
    )
    parser.add_argument(
        "path", nargs="?",
        default=os.environ.get("LOGO_SVG", DEFAULT_SVG),
        help="SVG or PNG file (default: $LOGO_SVG or %(default)s)",
    )
    parser.add_argument("--top", type=int, default=TOP_N,
                        help="number of colors to list (default: %(default)s)")
    parser.add_argument("--log-level", default=None,
                        help="DEBUG, INFO, WARNING... (default: $LOG_LEVEL or INFO)")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        png_bytes = load_png_bytes(args.path)
        report = analyze_png(png_bytes, limit=max(1, args.top))
    except (ValueError, zlib.error) as e:
        logger.debug("failed on %s", args.path, exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(format_report(report))
    return 0


if __name__ == "__main__":
    sys.exit(main())
