"""
Pre-rendered HTML input
"""
from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .css_inliner import clean_html_whitespace, extract_stylesheets, inline_css as inline_stylesheet
from .errors import ContentError, ResourceNotFoundError
from .frontmatter import SUMMARY_KEYS, first_value, frontmatter_cover, parse_frontmatter
from .models import Document, ImageReference, make_placeholder
from .wechat_client import is_wechat_hosted

logger = logging.getLogger(__name__)

_OUTPUT_DIV = re.compile(r'<div id="output">(.*?)</div>\s*</body>', re.IGNORECASE | re.DOTALL)
_BODY = re.compile(r"<body[^>]*>(.*?)</body>", re.IGNORECASE | re.DOTALL)
_TITLE = re.compile(r"<title>([^<]+)</title>", re.IGNORECASE)
_H1 = re.compile(r"<h1[^>]*>(.*?)</h1>", re.IGNORECASE | re.DOTALL)
_TAG = re.compile(r"<[^>]+>")
_IMG = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
_LOCAL_PATH_ATTR = re.compile(r"""\sdata-local-path\s*=\s*(?:"([^"]*)"|'([^']*)')""", re.IGNORECASE)
_SRC_ATTR = re.compile(r"""(?<![\w-])src\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))""", re.IGNORECASE)
_ALT_ATTR = re.compile(r"""(?<![\w-])alt\s*=\s*(?:"([^"]*)"|'([^']*)')""", re.IGNORECASE)


@dataclass
class HtmlSource:
    """
    Body content of an HTML file, ready for publishing

    Image tags keep their attributes, but each src holds a placeholder token
    instead of the original location, so the token is replaced by a bare URL.
    Images have no content block, their block_index is -1.
    hosted_cover is a WeChat CDN image that comes before every other image;
    it stays in the body but is the default cover.
    """
    path: Path
    html: str
    title: str = ""
    images: List[ImageReference] = field(default_factory=list)
    frontmatter: Dict[str, str] = field(default_factory=dict)
    hosted_cover: str = ""

    def to_document(
        self,
        title: Optional[str] = None,
        author: Optional[str] = None,
        summary: Optional[str] = None,
        cover: Optional[str] = None,
    ) -> Document:
        header = self.frontmatter
        resolved_title = first_value([title, header.get("title"), self.title])
        if not resolved_title:
            raise ContentError(
                f"No title found in {self.path}. Provide via --title, frontmatter, or <title> tag.",
                operation="load_html",
            )
        return Document(
            title=resolved_title,
            body_markdown="",
            author=first_value([author, header.get("author")]) or "",
            summary=first_value([summary, *(header.get(key) for key in SUMMARY_KEYS)]) or "",
            cover_image=frontmatter_cover(header, override=cover),
            frontmatter=header,
            source_path=self.path,
        )


def load_html_source(path: Path, inline_css: bool = False) -> HtmlSource:
    """
    Read an HTML file and extract its publishable content

    Args:
        path: HTML file
        inline_css: Copy the file's own <style> rules into style attributes

    Returns:
        HtmlSource with placeholder-tagged images
    """
    path = Path(path).expanduser().resolve()
    if not path.is_file():
        raise ResourceNotFoundError(str(path), operation="load_html")
    raw = path.read_text(encoding="utf-8")

    processed = raw
    if inline_css:
        css = extract_stylesheets(raw)
        if css.strip():
            logger.info("Inlining CSS styles from %s", path.name)
            processed = inline_stylesheet(raw, css)

    content = extract_body(processed)
    hosted_cover = leading_hosted_image(content)
    content, images = extract_html_images(content)

    frontmatter: Dict[str, str] = {}
    sidecar = path.with_suffix(".md")
    if sidecar.is_file():
        frontmatter, _ = parse_frontmatter(sidecar.read_text(encoding="utf-8"))
        logger.debug("Read frontmatter from %s", sidecar)

    return HtmlSource(
        path=path,
        html=content,
        title=extract_html_title(raw),
        images=images,
        frontmatter=frontmatter,
        hosted_cover=hosted_cover,
    )


def extract_body(html_text: str) -> str:
    """Content of <div id="output">, else of <body>, else the whole text"""
    match = _OUTPUT_DIV.search(html_text)
    if not match:
        match = _BODY.search(html_text)
    content = match.group(1).strip() if match else html_text
    return clean_html_whitespace(content)


def extract_html_title(html_text: str) -> str:
    match = _TITLE.search(html_text)
    if match:
        return html.unescape(match.group(1)).strip()
    match = _H1.search(html_text)
    if match:
        return html.unescape(_TAG.sub("", match.group(1))).strip()
    return ""


def extract_html_images(html_text: str) -> Tuple[str, List[ImageReference]]:
    """
    Swap image sources for placeholder tokens

    data-local-path wins over src. Images already on the WeChat CDN and
    images without any source are left as they are.
    """
    images: List[ImageReference] = []

    def _replace(match: re.Match) -> str:
        tag = match.group(0)
        local = _LOCAL_PATH_ATTR.search(tag)
        src = _SRC_ATTR.search(tag)
        source = _attr_value(local) or _attr_value(src)
        if not source or is_wechat_hosted(source):
            return tag

        placeholder = make_placeholder(len(images) + 1)
        images.append(
            ImageReference(
                placeholder=placeholder,
                source_uri=html.unescape(source),
                block_index=-1,
                alt=html.unescape(_attr_value(_ALT_ATTR.search(tag)) or ""),
            )
        )
        if local:
            tag = tag[: local.start()] + tag[local.end():]
            src = _SRC_ATTR.search(tag)
        if src:
            return tag[: src.start()] + f'src="{placeholder}"' + tag[src.end():]
        closing = "/>" if tag.endswith("/>") else ">"
        return f'{tag[: -len(closing)].rstrip()} src="{placeholder}"{closing}'

    return _IMG.sub(_replace, html_text), images


def leading_hosted_image(html_text: str) -> str:
    """src of the first image if it is already on the WeChat CDN, else empty"""
    for match in _IMG.finditer(html_text):
        tag = match.group(0)
        source = _attr_value(_LOCAL_PATH_ATTR.search(tag)) or _attr_value(_SRC_ATTR.search(tag))
        if not source:
            continue
        source = html.unescape(source)
        return source if is_wechat_hosted(source) else ""
    return ""


def _attr_value(match: Optional[re.Match]) -> str:
    if not match:
        return ""
    return next((group for group in match.groups() if group is not None), "").strip()
