"""
Markdown to HTML conversion with image placeholders
"""
from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Union

from .models import (
    BlockKind,
    ContentBlock,
    ConvertedContent,
    ImageReference,
    PLACEHOLDER_PATTERN,
    make_placeholder,
    placeholder_number,
)


FENCE_PATTERN = re.compile(r"^\s*(```|~~~)")
HEADING_PATTERN = re.compile(r"^\s{0,3}(#{1,6})[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$")
QUOTE_PATTERN = re.compile(r"^\s*>\s?(.*)$")
UNORDERED_PATTERN = re.compile(r"^\s*[-*+][ \t]+(.*)$")
ORDERED_PATTERN = re.compile(r"^\s*\d+[.)][ \t]+(.*)$")
HTML_LINE_PATTERN = re.compile(r"^\s*<(?:[A-Za-z][\w-]*(?:[\s/>]|$)|/[A-Za-z]|!--)")
IMAGE_PATTERN = re.compile(
    r"!\[([^\]]*)\]\(\s*<?([^)\s>]+)>?(?:\s+[\"'][^\"']*[\"'])?\s*\)"
)

_INLINE_TOKEN = re.compile(r"`([^`]+)`|\[([^\]]+)\]\(([^)\s]+)(?:\s+\"[^\"]*\")?\)")
_BOLD = re.compile(r"\*\*(?!\s)(.+?)(?<!\s)\*\*")
_ITALIC = re.compile(r"(?<!\*)\*(?![\s*])(.+?)(?<![\s*])\*(?!\*)")


@dataclass
class _ImageToken:
    alt: str
    src: str


def render_inline(text: str) -> str:
    """Render bold, italic, code and link spans; everything else is escaped"""
    parts: List[str] = []
    pos = 0
    for match in _INLINE_TOKEN.finditer(text):
        parts.append(_emphasis(html.escape(text[pos:match.start()], quote=False)))
        if match.group(1) is not None:
            parts.append(f"<code>{html.escape(match.group(1), quote=False)}</code>")
        else:
            label = _emphasis(html.escape(match.group(2), quote=False))
            href = match.group(3).replace('"', "&quot;")
            parts.append(f'<a href="{href}">{label}</a>')
        pos = match.end()
    parts.append(_emphasis(html.escape(text[pos:], quote=False)))
    return "".join(parts)


def plain_text(text: str) -> str:
    """Strip inline markdown markup, keeping the readable text"""
    text = IMAGE_PATTERN.sub("", text)
    text = re.sub(r"\[([^\]]*)\]\([^)]*\)", r"\1", text)
    text = re.sub(r"[*`]", "", text)
    return re.sub(r"\s+", " ", text).strip()


def find_placeholders(content: str) -> List[str]:
    return [match.group(0) for match in PLACEHOLDER_PATTERN.finditer(content or "")]


def replace_placeholders(content: str, replacements: Dict[str, str]) -> str:
    """
    Substitute placeholder tokens, highest number first

    Args:
        content: HTML or text containing placeholder tokens
        replacements: placeholder -> replacement markup
    """
    ordered = sorted(replacements.items(), key=lambda item: placeholder_number(item[0]), reverse=True)
    for placeholder, replacement in ordered:
        content = content.replace(placeholder, replacement)
    return content


def _emphasis(escaped: str) -> str:
    escaped = _BOLD.sub(r"<strong>\1</strong>", escaped)
    return _ITALIC.sub(r"<em>\1</em>", escaped)


class _BlockBuilder:
    def __init__(self):
        self.title: Optional[str] = None
        self.blocks: List[ContentBlock] = []
        self.images: List[ImageReference] = []
        self._kind: Optional[BlockKind] = None
        self._ordered = False
        self._lines: List[str] = []

    def extend(self, kind: BlockKind, line: str, ordered: bool = False) -> None:
        if self._kind is not kind or (kind is BlockKind.LIST and ordered != self._ordered):
            self.flush()
            self._kind = kind
            self._ordered = ordered
        self._lines.append(line)

    def flush(self) -> None:
        kind, lines = self._kind, self._lines
        self._kind, self._lines = None, []
        if kind is None:
            return

        if kind is BlockKind.PARAGRAPH:
            text = " ".join(line.strip() for line in lines)
            self._emit(kind, f"<p>{render_inline(text)}</p>", text=text)
        elif kind is BlockKind.BLOCKQUOTE:
            content = [line.strip() for line in lines if line.strip()]
            if not content:
                return
            body = "<br>".join(render_inline(line) for line in content)
            self._emit(kind, f"<blockquote><p>{body}</p></blockquote>", text="\n".join(content))
        elif kind is BlockKind.LIST:
            tag = "ol" if self._ordered else "ul"
            items = tuple(line.strip() for line in lines)
            body = "".join(f"<li>{render_inline(item)}</li>" for item in items)
            self._emit(
                kind,
                f"<{tag}>{body}</{tag}>",
                text="\n".join(items),
                ordered=self._ordered,
                items=items,
            )
        else:
            text = "\n".join(lines)
            self._emit(kind, text, text=text)

    def add_heading(self, level: int, text: str) -> None:
        self.flush()
        self._emit(
            BlockKind.HEADING,
            f"<h{level}>{render_inline(text)}</h{level}>",
            text=plain_text(text),
            level=level,
        )

    def add_code(self, lines: List[str]) -> None:
        self.flush()
        if not any(line.strip() for line in lines):
            return
        body = "<br>".join(html.escape(line, quote=False) for line in lines)
        self._emit(
            BlockKind.BLOCKQUOTE,
            f"<blockquote><p>{body}</p></blockquote>",
            text="\n".join(lines),
        )

    def add_image(self, token: _ImageToken) -> None:
        self.flush()
        placeholder = make_placeholder(len(self.images) + 1)
        block = self._emit(
            BlockKind.IMAGE_PLACEHOLDER,
            f"<p>{placeholder}</p>",
            text=token.alt,
            placeholder=placeholder,
        )
        self.images.append(
            ImageReference(
                placeholder=placeholder,
                source_uri=token.src,
                block_index=block.index,
                alt=token.alt,
            )
        )

    def _emit(self, kind: BlockKind, markup: str, **fields) -> ContentBlock:
        block = ContentBlock(kind=kind, index=len(self.blocks), html=markup, **fields)
        self.blocks.append(block)
        return block


class MarkdownConverter:
    """Convert markdown body text into content blocks and HTML"""

    def convert(self, body: str) -> ConvertedContent:
        """
        Convert a markdown body

        Args:
            body: Markdown text without frontmatter

        Returns:
            ConvertedContent with title, blocks and image references
        """
        builder = _BlockBuilder()
        fence: Optional[List[str]] = None
        fence_marker = ""

        for raw_line in (body or "").splitlines():
            if fence is not None:
                if raw_line.strip().startswith(fence_marker):
                    builder.add_code(fence)
                    fence = None
                else:
                    fence.append(raw_line)
                continue

            fence_match = FENCE_PATTERN.match(raw_line)
            if fence_match:
                builder.flush()
                fence = []
                fence_marker = fence_match.group(1)
                continue

            for line in self._split_images(raw_line):
                self._consume(builder, line)

        if fence is not None:
            builder.add_code(fence)
        builder.flush()

        return ConvertedContent(title=builder.title, blocks=builder.blocks, images=builder.images)

    @staticmethod
    def find_title(body: str) -> Optional[str]:
        """Text of the first level-1 heading outside code fences"""
        in_fence = False
        for line in (body or "").splitlines():
            if FENCE_PATTERN.match(line):
                in_fence = not in_fence
                continue
            if in_fence:
                continue
            match = HEADING_PATTERN.match(line)
            if match and len(match.group(1)) == 1:
                return plain_text(match.group(2)) or None
        return None

    @staticmethod
    def _split_images(line: str) -> Iterator[Union[str, _ImageToken]]:
        matches = list(IMAGE_PATTERN.finditer(line))
        if not matches:
            yield line
            return

        pos = 0
        for order, match in enumerate(matches):
            before = line[pos:match.start()]
            if _has_content(before):
                yield before if order == 0 else before.strip()
            yield _ImageToken(alt=match.group(1).strip(), src=match.group(2).strip())
            pos = match.end()
        after = line[pos:]
        if after.strip():
            yield after.strip()

    @staticmethod
    def _consume(builder: _BlockBuilder, line: Union[str, _ImageToken]) -> None:
        if isinstance(line, _ImageToken):
            builder.add_image(line)
            return
        if not line.strip():
            builder.flush()
            return

        heading = HEADING_PATTERN.match(line)
        if heading:
            level = len(heading.group(1))
            text = heading.group(2).strip()
            if level == 1:
                if builder.title is None:
                    builder.flush()
                    builder.title = plain_text(text)
                    return
                level = 2
            builder.add_heading(level, text)
            return

        quote = QUOTE_PATTERN.match(line)
        if quote:
            builder.extend(BlockKind.BLOCKQUOTE, quote.group(1))
            return

        unordered = UNORDERED_PATTERN.match(line)
        if unordered:
            builder.extend(BlockKind.LIST, unordered.group(1), ordered=False)
            return

        ordered = ORDERED_PATTERN.match(line)
        if ordered:
            builder.extend(BlockKind.LIST, ordered.group(1), ordered=True)
            return

        if HTML_LINE_PATTERN.match(line):
            builder.extend(BlockKind.RAW_HTML, line)
            return

        builder.extend(BlockKind.PARAGRAPH, line)


def _has_content(segment: str) -> bool:
    """True when a split-off segment holds more than a bare list/quote marker"""
    stripped = segment.strip()
    if not stripped:
        return False
    return not re.fullmatch(r"(>|[-*+]|\d+[.)])", stripped)
