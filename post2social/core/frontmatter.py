"""
Frontmatter parsing and document metadata resolution
"""
from __future__ import annotations

import re
import warnings
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from .errors import MalformedInputWarning
from .markdown_converter import MarkdownConverter, plain_text
from .models import Document


DELIMITER = "---"
SUMMARY_KEYS = ("digest", "summary", "description")
COVER_KEYS = ("cover", "coverImage", "featureImage", "image")
DEFAULT_TITLE_LENGTH = 64

_LINE_MARKER = re.compile(r"^(#{1,6}|>|[-*+]|\d+[.)])\s+")
_SENTENCE_END = re.compile(r"[.!?](?=\s|$)|[。！？]")


def parse_frontmatter(text: str) -> Tuple[Dict[str, str], str]:
    """
    Split a document into its header map and body

    Args:
        text: Raw document text

    Returns:
        (header map, body text after the closing delimiter)
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != DELIMITER:
        return {}, text

    closing = None
    for idx in range(1, len(lines)):
        if lines[idx].rstrip("\r\n") == DELIMITER:
            closing = idx
            break
    if closing is None:
        return {}, text

    header: Dict[str, str] = {}
    for line in lines[1:closing]:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        key, sep, value = stripped.partition(":")
        key = key.strip()
        if not sep or not key:
            warnings.warn(
                f"ignoring frontmatter line without key: {stripped!r}",
                MalformedInputWarning,
                stacklevel=2,
            )
            continue
        header[key] = _strip_quotes(value)

    return header, "".join(lines[closing + 1:])


def build_document(
    text: str,
    title: Optional[str] = None,
    author: Optional[str] = None,
    summary: Optional[str] = None,
    cover: Optional[str] = None,
    source_path: Optional[Path] = None,
    fallback_title: Optional[str] = None,
) -> Document:
    """
    Parse a document and resolve its metadata

    Explicit arguments (CLI overrides) win over frontmatter fields, which win
    over values derived from the body.
    """
    header, body = parse_frontmatter(text)

    resolved_title = (
        first_value([title, header.get("title")])
        or extract_h1(body)
        or default_title(body)
        or (fallback_title or "").strip()
        or "Untitled"
    )

    return Document(
        title=resolved_title,
        body_markdown=body,
        author=first_value([author, header.get("author")]) or "",
        summary=first_value([summary, *(header.get(key) for key in SUMMARY_KEYS)]) or "",
        cover_image=frontmatter_cover(header, override=cover),
        frontmatter=header,
        source_path=Path(source_path).expanduser().resolve() if source_path else None,
    )


def frontmatter_cover(header: Dict[str, str], override: Optional[str] = None) -> Optional[str]:
    return first_value([override, *(header.get(key) for key in COVER_KEYS)])


def extract_h1(body: str) -> Optional[str]:
    return MarkdownConverter.find_title(body)


def default_title(body: str, max_chars: int = DEFAULT_TITLE_LENGTH) -> str:
    """First sentence of the body's plain text, cut to max_chars"""
    for line in body.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(("```", "~~~", "<")):
            continue
        text = plain_text(_LINE_MARKER.sub("", stripped))
        if not text:
            continue
        match = _SENTENCE_END.search(text)
        sentence = text[: match.start()].strip() if match else text
        return (sentence or text)[:max_chars].strip()
    return ""


def first_value(values: Iterable[Optional[str]]) -> Optional[str]:
    for value in values:
        if value is not None and value.strip():
            return value.strip()
    return None


def _strip_quotes(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and ((value[0] == value[-1] == '"') or (value[0] == value[-1] == "'")):
        return value[1:-1]
    return value
