"""
CLI for publishing to the WeChat Official Account draft box
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from .config import load_settings
from .publisher import PublishOptions, WeChatApiPublisher
from .themes import list_themes
from .wechat_client import ARTICLE_TYPES, WeChatClient


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser"""
    parser = argparse.ArgumentParser(
        description="Publish a markdown or HTML article to the WeChat Official Account draft box"
    )

    parser.add_argument(
        "input",
        help="Markdown (.md) or HTML (.html) file"
    )

    parser.add_argument(
        "--type",
        dest="article_type",
        choices=list(ARTICLE_TYPES),
        default="news",
        help="Article type: news (article) or newspic (image post)"
    )

    parser.add_argument("--title", help="Override title")
    parser.add_argument("--author", help="Author name")
    parser.add_argument("--summary", help="Article summary/digest")

    parser.add_argument(
        "--theme",
        choices=list_themes(),
        help="Theme for markdown input (default from POST2SOCIAL_THEME, else default)"
    )

    parser.add_argument(
        "--cover",
        help="Cover image path or URL"
    )

    parser.add_argument(
        "--inline-css",
        action="store_true",
        help="Inline the <style> rules of HTML input"
    )

    parser.add_argument(
        "--auto-cover",
        action="store_true",
        help="Generate a cover from the title when none is found"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and render only, don't publish"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )

    return parser


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(name)s] %(message)s",
        stream=sys.stderr,
    )


def main(argv=None):
    """Main CLI entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        path = Path(args.input).expanduser().resolve()
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")

        settings = load_settings()
        publisher = WeChatApiPublisher(WeChatClient(timeout=settings.http_timeout), settings)
        options = PublishOptions(
            article_type=args.article_type,
            title=args.title,
            author=args.author,
            summary=args.summary,
            theme=args.theme,
            cover=args.cover,
            inline_css=args.inline_css,
            auto_cover=args.auto_cover,
            dry_run=args.dry_run,
        )
        result = publisher.run(path, options)
    except Exception as exc:
        if args.verbose:
            raise
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(result, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
