"""
Command Line Interface Module

Parses command-line arguments for the takeoff pipeline.
"""

import argparse
import math
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from .constants import (
    DEFAULT_CANVAS_DPI,
    DEFAULT_CURRENCY,
    MIN_CANVAS_DPI,
    MAX_CANVAS_DPI,
    MIN_MARKUP_PERCENT,
    MAX_MARKUP_PERCENT,
    OUTPUT_FORMATS,
)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the pipeline."""
    parser = argparse.ArgumentParser(
        prog="takeoff",
        description="Compute an itemized cost estimate from annotations on a construction drawing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m takeoff.cli -i takeoff.json -o ./output
  python -m takeoff.cli -i takeoff.json -o ./output --drawing plans.pdf --dpi 96
  python -m takeoff.cli -i takeoff.json -o ./output --calib "100,200:300,200=5m" --markup 10
  python -m takeoff.cli -i output/takeoff_snapshot.json -o ./output --format csv
        """
    )

    # Required arguments
    parser.add_argument(
        "-i", "--input",
        required=True,
        help="Takeoff JSON file or saved snapshot"
    )

    parser.add_argument(
        "-o", "--output",
        required=True,
        help="Output directory path"
    )

    # Optional arguments
    parser.add_argument(
        "--drawing",
        help="Drawing PDF; page sizes give the canvas for annotations without one"
    )

    parser.add_argument(
        "--dpi",
        type=int,
        default=DEFAULT_CANVAS_DPI,
        help=f"DPI the drawing was displayed at when annotated (default: {DEFAULT_CANVAS_DPI})"
    )

    parser.add_argument(
        "--calib",
        help="Two-point calibration in canvas pixels ('x1,y1:x2,y2=5m')"
    )

    parser.add_argument(
        "--markup",
        type=float,
        help=f"Markup percentage ({MIN_MARKUP_PERCENT:g}-{MAX_MARKUP_PERCENT:g}, overrides the input file)"
    )

    parser.add_argument(
        "--currency",
        default=DEFAULT_CURRENCY,
        help=f"Currency code used in the report (default: {DEFAULT_CURRENCY})"
    )

    parser.add_argument(
        "--format",
        dest="formats",
        action="append",
        choices=OUTPUT_FORMATS,
        help="Output to write; repeat for several (default: all)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    return parser


def validate_args(args: argparse.Namespace) -> Tuple[bool, str]:
    """
    Validate parsed arguments.

    Args:
        args: Parsed arguments

    Returns:
        Tuple of (is_valid, error_message)
    """
    input_path = Path(args.input)
    if not input_path.exists():
        return False, f"Input file not found: {args.input}"

    if not input_path.suffix.lower() == ".json":
        return False, f"Input file must be JSON: {args.input}"

    if args.drawing:
        drawing_path = Path(args.drawing)
        if not drawing_path.exists():
            return False, f"Drawing not found: {args.drawing}"
        if not drawing_path.suffix.lower() == ".pdf":
            return False, f"Drawing must be a PDF: {args.drawing}"

    output_path = Path(args.output)
    try:
        output_path.mkdir(parents=True, exist_ok=True)
    except Exception as e:
        return False, f"Cannot create output directory: {e}"

    if args.dpi < MIN_CANVAS_DPI or args.dpi > MAX_CANVAS_DPI:
        return False, f"DPI must be between {MIN_CANVAS_DPI} and {MAX_CANVAS_DPI}: {args.dpi}"

    if args.markup is not None:
        if not math.isfinite(args.markup) or not MIN_MARKUP_PERCENT <= args.markup <= MAX_MARKUP_PERCENT:
            return False, (
                f"Markup must be between {MIN_MARKUP_PERCENT:g} and "
                f"{MAX_MARKUP_PERCENT:g} percent: {args.markup:g}"
            )

    return True, ""


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse and validate command-line arguments.

    Args:
        args: Optional list of arguments (uses sys.argv if None)

    Returns:
        Parsed and validated arguments
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    is_valid, error_msg = validate_args(parsed)
    if not is_valid:
        parser.error(error_msg)

    return parsed


def main(argv: Optional[List[str]] = None):
    """Main entry point for CLI."""
    args = parse_args(argv)

    from .pipeline import run_pipeline

    try:
        run_pipeline(args)
    except KeyboardInterrupt:
        print("\nProcessing cancelled by user")
        sys.exit(1)
    except Exception as e:
        print(f"\nError: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
