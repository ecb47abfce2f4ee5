"""
Publishing workflows

WeChatApiPublisher drives the Official Account HTTP API end to end.
BrowserPublisher prepares the same content and hands it to a UI driver.
"""
from __future__ import annotations

import hashlib
import html
import logging
import mimetypes
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import requests

from .config import Settings
from .context import RunContext
from .cover_generator import CoverOptions, generate_cover
from .css_inliner import CSSInliner
from .errors import ContentError, PublishError, UploadError
from .fallback import Unavailable, run_chain
from .frontmatter import build_document
from .html_source import load_html_source
from .image_resolver import ImageResolver, select_cover
from .jpeg_sanitizer import needs_sanitizing, sanitize_file, sanitize_jpeg
from .markdown_converter import MarkdownConverter, replace_placeholders
from .models import DraftArticle, Document, ImageReference, PublishResult, UploadedImage
from .themes import load_theme
from .ui_driver import ArticleHandoff, ShortPost, UIDriver
from .wechat_client import ARTICLE_TYPES, WeChatClient

logger = logging.getLogger(__name__)

HTML_SUFFIXES = (".html", ".htm")


@dataclass
class PublishOptions:
    """Per-run choices, mostly straight from the command line"""
    article_type: str = "news"
    title: Optional[str] = None
    author: Optional[str] = None
    summary: Optional[str] = None
    theme: Optional[str] = None
    cover: Optional[str] = None
    inline_css: bool = False
    auto_cover: bool = False
    dry_run: bool = False


@dataclass
class PreparedArticle:
    """
    Converted content waiting for its images

    html holds one placeholder token per entry in images. For markdown input
    each token sits alone in a paragraph and becomes a whole <img> tag; for
    HTML input the token is the src value and becomes the bare URL.
    """
    document: Document
    html: str
    images: List[ImageReference] = field(default_factory=list)
    options: PublishOptions = field(default_factory=PublishOptions)
    cover_uri: Optional[str] = None
    cover_reference: Optional[ImageReference] = None
    inliner: Optional[CSSInliner] = None
    src_only: bool = False

    @property
    def title(self) -> str:
        return self.document.title

    def image_markup(self, url: str) -> str:
        if self.src_only:
            return html.escape(url)
        tag = f'<img src="{html.escape(url)}">'
        if self.inliner is not None:
            return self.inliner.apply(tag)
        return tag

    def render(self, urls: Dict[str, str]) -> str:
        """HTML with each placeholder replaced by its uploaded image"""
        return replace_placeholders(
            self.html,
            {placeholder: self.image_markup(url) for placeholder, url in urls.items()},
        )

    def summary(self) -> dict:
        payload = {
            "articleType": self.options.article_type,
            "title": self.title,
            "author": self.document.author or None,
            "digest": self.document.summary or None,
            "source": str(self.document.source_path) if self.document.source_path else None,
            "cover": self.cover_uri,
            "images": [image.source_uri for image in self.images],
            "contentLength": len(self.html),
        }
        return {key: value for key, value in payload.items() if value is not None}


def prepare_article(path: Path, options: PublishOptions, settings: Settings) -> PreparedArticle:
    """
    Parse a markdown or HTML file into publishable HTML with placeholders

    Args:
        path: Source file
        options: Overrides and rendering choices
        settings: Runtime settings (default theme)

    Returns:
        PreparedArticle; nothing has been downloaded or uploaded yet
    """
    if options.article_type not in ARTICLE_TYPES:
        raise ValueError(f"article type must be one of {', '.join(ARTICLE_TYPES)}, got {options.article_type}")

    path = Path(path).expanduser().resolve()
    if path.suffix.lower() in HTML_SUFFIXES:
        source = load_html_source(path, inline_css=options.inline_css)
        hosted_cover = source.hosted_cover
        document = source.to_document(
            title=options.title,
            author=options.author,
            summary=options.summary,
            cover=options.cover,
        )
        prepared = PreparedArticle(
            document=document,
            html=source.html,
            images=source.images,
            options=options,
            src_only=True,
        )
        logger.info("Using HTML file: %s", path)
    else:
        hosted_cover = None
        text = path.read_text(encoding="utf-8")
        document = build_document(
            text,
            title=options.title,
            author=options.author,
            summary=options.summary,
            cover=options.cover,
            source_path=path,
            fallback_title=path.stem,
        )
        converted = MarkdownConverter().convert(document.body_markdown)
        theme = options.theme or settings.theme
        inliner = CSSInliner(load_theme(theme))
        prepared = PreparedArticle(
            document=document,
            html=inliner.apply(converted.html),
            images=converted.images,
            options=options,
            inliner=inliner,
        )
        logger.info("Rendered %s with theme %s", path.name, theme)

    prepared.cover_uri, prepared.cover_reference = select_cover(prepared.document, prepared.images, hosted_cover)
    logger.info("Title: %s (%d images)", prepared.title, len(prepared.images))
    return prepared


def content_type_for(path: Path) -> str:
    guessed, _ = mimetypes.guess_type(str(path))
    return guessed or "image/jpeg"


class WeChatApiPublisher:
    """Publish an article to the Official Account draft box"""

    def __init__(
        self,
        client: WeChatClient,
        settings: Settings,
        session: Optional[requests.Session] = None,
    ):
        self.client = client
        self.settings = settings
        self.session = session or getattr(client, "session", None)

    def prepare(self, path: Path, options: PublishOptions) -> PreparedArticle:
        return prepare_article(path, options, self.settings)

    def run(self, path: Path, options: PublishOptions, context: Optional[RunContext] = None) -> dict:
        """
        Prepare and publish one file

        Returns:
            The dry-run summary, or the PublishResult as a dict
        """
        prepared = self.prepare(path, options)
        if options.dry_run:
            return prepared.summary()

        context = context or RunContext(self.settings, base_dir=prepared.document.base_dir)
        return self.publish(prepared, context).to_dict()

    def publish(self, prepared: PreparedArticle, context: RunContext) -> PublishResult:
        """
        Upload images and cover, then create the draft

        Args:
            prepared: Output of prepare()
            context: Run context holding the token and scratch directory

        Returns:
            PublishResult with the draft media_id
        """
        article_type = prepared.options.article_type
        if article_type == "newspic" and not prepared.images:
            raise ContentError("newspic requires at least one image in content.", operation="publish_draft")
        if article_type == "news" and not prepared.cover_uri and not prepared.options.auto_cover:
            raise ContentError(
                "No cover image. Provide via --cover, frontmatter featureImage, "
                "or include an image in content.",
                operation="publish_draft",
            )

        app_id, app_secret = self.settings.require_wechat_credentials()
        resolver = ImageResolver(context, session=self.session)
        resolver.resolve_all(prepared.images)

        logger.info("Fetching access token...")
        token = context.access_token(lambda: self.client.fetch_token(app_id, app_secret))

        logger.info("Uploading %d images...", len(prepared.images))
        uploaded = self._upload_all(prepared.images, token)
        urls = {image.placeholder: result.url for image, result in zip(prepared.images, uploaded)}
        content = prepared.render(urls)

        thumb_media_id = self._cover_media_id(prepared, uploaded, resolver, context, token)
        if article_type == "news" and not thumb_media_id:
            raise ContentError("No cover image could be uploaded.", operation="publish_draft")

        article = DraftArticle(
            title=prepared.title,
            content=content,
            thumb_media_id=thumb_media_id,
            article_type=article_type,
            author=prepared.document.author,
            digest=prepared.document.summary,
            image_media_ids=[result.media_id for result in uploaded] if article_type == "newspic" else [],
        )
        logger.info("Publishing to draft...")
        media_id = self.client.publish_draft(article, token)
        logger.info("Published successfully, media_id: %s", media_id)
        return PublishResult(media_id=media_id, title=prepared.title, article_type=article_type)

    def upload_file(self, path: Path, token: str) -> UploadedImage:
        """
        Upload one local image, sanitizing JPEG metadata first

        When the platform answers 40113 (unsupported file type), the upload is
        retried exactly once with sanitation forced on. Any failure of that
        second attempt is final.
        """
        path = Path(path)
        data = path.read_bytes()
        content_type = content_type_for(path)
        return run_chain(
            [
                ("upload", lambda: self._attempt_upload(data, path.name, content_type, token, force=False)),
                ("upload_sanitized", lambda: self._attempt_upload(data, path.name, content_type, token, force=True)),
            ]
        )

    def _attempt_upload(
        self,
        data: bytes,
        filename: str,
        content_type: str,
        token: str,
        force: bool,
    ) -> Union[UploadedImage, Unavailable]:
        payload = data
        if needs_sanitizing(filename, content_type, force=force):
            payload = sanitize_jpeg(data, force=force)
        try:
            return self.client.upload_image(payload, filename, content_type, token)
        except UploadError as exc:
            if force or not exc.is_unsupported_file_type:
                raise
            logger.warning("Upload of %s rejected as unsupported file type, retrying with forced sanitation", filename)
            return Unavailable(str(exc))

    def _upload_all(self, images: Sequence[ImageReference], token: str) -> List[UploadedImage]:
        workers = min(self.settings.max_workers, len(images))
        paths = [image.resolved_local_path for image in images]
        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                return list(pool.map(lambda path: self.upload_file(path, token), paths))
        return [self.upload_file(path, token) for path in paths]

    def _cover_media_id(
        self,
        prepared: PreparedArticle,
        uploaded: List[UploadedImage],
        resolver: ImageResolver,
        context: RunContext,
        token: str,
    ) -> str:
        if prepared.cover_reference is not None and uploaded:
            logger.info("Using first content image as cover")
            return uploaded[0].media_id

        cover_path = resolve_cover_path(prepared, resolver, context)
        if cover_path is None:
            return ""
        logger.info("Uploading cover: %s", cover_path)
        return self.upload_file(cover_path, token).media_id


def resolve_cover_path(prepared: PreparedArticle, resolver: ImageResolver, context: RunContext) -> Optional[Path]:
    """Local cover file: the chosen source, else a generated one when auto_cover is set"""
    if prepared.cover_reference is not None and prepared.cover_reference.is_resolved:
        return Path(prepared.cover_reference.resolved_local_path)
    if prepared.cover_uri:
        return resolver.resolve_uri(prepared.cover_uri, name="cover")
    if not prepared.options.auto_cover:
        return None

    result = generate_cover(CoverOptions(title=prepared.title, output=context.subdir("cover") / "cover.jpg"))
    if result.method == "svg":
        raise ContentError("Generated cover is SVG, which cannot be uploaded as a thumbnail.", operation="generate_cover")
    logger.info("Generated cover %s", result.output)
    return result.output


class BrowserPublisher:
    """Hand prepared content to a browser UI driver"""

    def __init__(self, driver: UIDriver, settings: Settings, session: Optional[requests.Session] = None):
        self.driver = driver
        self.settings = settings
        self.session = session

    def post_short(
        self,
        text: str,
        images: Sequence[str] = (),
        submit: bool = False,
        context: Optional[RunContext] = None,
    ) -> ShortPost:
        """
        Post text with up to driver.max_images images

        Args:
            text: Post text
            images: Local paths or URLs
            submit: Submit instead of leaving the post for review

        Returns:
            The ShortPost handed to the driver
        """
        if len(images) > self.driver.max_images:
            raise ContentError(
                f"at most {self.driver.max_images} images per post, got {len(images)}",
                operation="post_short",
            )
        if not text.strip() and not images:
            raise ContentError("nothing to post", operation="post_short")

        context = context or RunContext(self.settings)
        resolver = ImageResolver(context, session=self.session)
        paths = [
            self._sanitized(resolver.resolve_uri(uri, name=f"post-{index:03d}"), context)
            for index, uri in enumerate(images, start=1)
        ]

        post = ShortPost(text=text, images=paths, submit=submit)
        if not self.driver.post_short(post):
            raise PublishError("UI driver reported failure", operation="post_short")
        return post

    def publish_article(
        self,
        path: Path,
        options: Optional[PublishOptions] = None,
        submit: bool = False,
        context: Optional[RunContext] = None,
    ) -> ArticleHandoff:
        """
        Prepare an article and hand it to the driver

        Content images are listed highest placeholder number first, the order
        the driver replaces them in.
        """
        prepared = prepare_article(path, options or PublishOptions(), self.settings)
        context = context or RunContext(self.settings, base_dir=prepared.document.base_dir)
        resolver = ImageResolver(context, session=self.session)
        resolver.resolve_all(prepared.images)

        cover = resolve_cover_path(prepared, resolver, context)
        handoff = ArticleHandoff(
            title=prepared.title,
            html=prepared.html,
            cover=self._sanitized(cover, context) if cover else None,
            content_images=[
                (image.placeholder, self._sanitized(Path(image.resolved_local_path), context))
                for image in sorted(prepared.images, key=lambda image: image.number, reverse=True)
            ],
            author=prepared.document.author,
            summary=prepared.document.summary,
            submit=submit,
        )
        if not self.driver.publish_article(handoff):
            raise PublishError("UI driver reported failure", operation="publish_article")
        return handoff

    @staticmethod
    def _sanitized(path: Path, context: RunContext) -> Path:
        if not needs_sanitizing(path.name):
            return path
        digest = hashlib.sha1(str(path.resolve()).encode("utf-8")).hexdigest()[:10]
        target = context.subdir("sanitized") / f"{digest}-{path.name}"
        return sanitize_file(path, target)
