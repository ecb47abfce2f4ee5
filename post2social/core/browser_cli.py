"""
CLI for browser publishing (X posts and articles, WeChat browser mode)

The browser is driven by an external script; this command prepares the
content and writes the hand-off file that script reads.
"""
import argparse
import sys
from pathlib import Path

from .cli import setup_logging
from .config import load_settings
from .publisher import BrowserPublisher, PublishOptions
from .themes import list_themes
from .ui_driver import ManifestUIDriver


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser"""
    parser = argparse.ArgumentParser(
        description="Prepare posts and articles for browser publishing"
    )
    parser.add_argument(
        "--handoff",
        default="post2social-handoff.json",
        help="Where to write the hand-off JSON for the browser script"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    post = subparsers.add_parser("x-post", help="Short post with up to 4 images")
    post.add_argument("text", help="Post text")
    post.add_argument(
        "--image",
        action="append",
        default=[],
        help="Image path or URL (repeatable)"
    )
    post.add_argument("--submit", action="store_true", help="Submit instead of leaving a preview")

    article = subparsers.add_parser("article", help="Long-form article from markdown or HTML")
    article.add_argument("input", help="Markdown (.md) or HTML (.html) file")
    article.add_argument("--title", help="Override title")
    article.add_argument("--author", help="Author name")
    article.add_argument("--summary", help="Article summary")
    article.add_argument("--cover", help="Cover image path or URL")
    article.add_argument("--theme", choices=list_themes(), help="Theme for markdown input")
    article.add_argument("--inline-css", action="store_true", help="Inline the <style> rules of HTML input")
    article.add_argument("--auto-cover", action="store_true", help="Generate a cover when none is found")
    article.add_argument("--submit", action="store_true", help="Submit instead of saving a draft")

    return parser


def main(argv=None):
    """Main CLI entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings()
        publisher = BrowserPublisher(ManifestUIDriver(Path(args.handoff)), settings)

        if args.command == "x-post":
            post = publisher.post_short(args.text, images=args.image, submit=args.submit)
            print(f"[ok] Post prepared with {len(post.images)} images: {args.handoff}")
        else:
            options = PublishOptions(
                title=args.title,
                author=args.author,
                summary=args.summary,
                cover=args.cover,
                theme=args.theme,
                inline_css=args.inline_css,
                auto_cover=args.auto_cover,
            )
            handoff = publisher.publish_article(Path(args.input), options, submit=args.submit)
            print(f"[ok] Article prepared: {handoff.title}")
            print(f"[ok] Content images: {len(handoff.content_images)}")
            print(f"[ok] Hand-off written: {args.handoff}")
    except Exception as exc:
        if args.verbose:
            raise
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
