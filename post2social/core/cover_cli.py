"""
CLI for generating article covers
"""
import argparse
import json
import sys

from .cli import setup_logging
from .cover_generator import CoverOptions, generate_cover


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser"""
    parser = argparse.ArgumentParser(
        description="Generate a gradient cover image with the article title"
    )
    parser.add_argument("--title", required=True, help="Article title")
    parser.add_argument("--output", required=True, help="Output image path (e.g. cover.jpg)")
    parser.add_argument("--width", type=int, default=900, help="Image width")
    parser.add_argument("--height", type=int, default=500, help="Image height")
    parser.add_argument("--gradient-start", default="#667eea", help="Gradient start color")
    parser.add_argument("--gradient-end", default="#764ba2", help="Gradient end color")
    parser.add_argument("--text-color", default="white", help="Title color")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    return parser


def main(argv=None):
    """Main CLI entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        result = generate_cover(
            CoverOptions(
                title=args.title,
                output=args.output,
                width=args.width,
                height=args.height,
                gradient_start=args.gradient_start,
                gradient_end=args.gradient_end,
                text_color=args.text_color,
            )
        )
    except Exception as exc:
        if args.verbose:
            raise
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(result.to_dict(), indent=2))


if __name__ == "__main__":
    main()
