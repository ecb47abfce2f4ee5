"""
Data models for post2social
"""
from dataclasses import dataclass, field
import re
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple


PLACEHOLDER_TEMPLATE = "[[IMAGE_PLACEHOLDER_{}]]"
PLACEHOLDER_PATTERN = re.compile(r"\[\[IMAGE_PLACEHOLDER_(\d+)\]\]")


def make_placeholder(number: int) -> str:
    if number < 1:
        raise ValueError(f"placeholder numbers start at 1, got {number}")
    return PLACEHOLDER_TEMPLATE.format(number)


def placeholder_number(placeholder: str) -> int:
    match = PLACEHOLDER_PATTERN.fullmatch(placeholder)
    if not match:
        raise ValueError(f"not an image placeholder: {placeholder!r}")
    return int(match.group(1))


@dataclass
class Document:
    """Parsed source document with its resolved metadata"""
    title: str
    body_markdown: str
    author: str = ""
    summary: str = ""
    cover_image: Optional[str] = None
    frontmatter: Dict[str, str] = field(default_factory=dict)
    source_path: Optional[Path] = None

    @property
    def base_dir(self) -> Path:
        """Directory that relative image paths are resolved against"""
        if self.source_path is None:
            return Path.cwd()
        return self.source_path.parent

    def __str__(self):
        return f"{self.title} by {self.author or 'Unknown'}"


class BlockKind(str, Enum):
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    LIST = "list"
    BLOCKQUOTE = "blockquote"
    IMAGE_PLACEHOLDER = "image_placeholder"
    RAW_HTML = "raw_html"


@dataclass(frozen=True)
class ContentBlock:
    """One converted unit of output, in source order"""
    kind: BlockKind
    index: int
    html: str
    text: str = ""
    level: int = 0
    ordered: bool = False
    items: Tuple[str, ...] = ()
    placeholder: Optional[str] = None


@dataclass
class ImageReference:
    """An image found in the document, replaced by a placeholder token"""
    placeholder: str
    source_uri: str
    block_index: int
    alt: str = ""
    resolved_local_path: Optional[Path] = None

    @property
    def number(self) -> int:
        return placeholder_number(self.placeholder)

    @property
    def is_remote(self) -> bool:
        return is_remote_uri(self.source_uri)

    @property
    def is_resolved(self) -> bool:
        return self.resolved_local_path is not None

    def mark_resolved(self, path: Path) -> None:
        """Record the local path; allowed once, repeats must agree."""
        path = Path(path)
        if self.resolved_local_path is not None:
            if Path(self.resolved_local_path) != path:
                raise ValueError(
                    f"{self.placeholder} already resolved to {self.resolved_local_path}"
                )
            return
        self.resolved_local_path = path

    def __str__(self):
        return f"{self.placeholder} -> {self.resolved_local_path or self.source_uri}"


@dataclass
class StyleRule:
    """A single-selector stylesheet rule"""
    selector: str
    declarations: Dict[str, str] = field(default_factory=dict)


@dataclass
class ConvertedContent:
    """Output of the markdown converter"""
    title: Optional[str]
    blocks: List[ContentBlock] = field(default_factory=list)
    images: List[ImageReference] = field(default_factory=list)

    @property
    def html(self) -> str:
        return "\n".join(block.html for block in self.blocks)

    def block_for(self, image: ImageReference) -> ContentBlock:
        return self.blocks[image.block_index]


@dataclass
class UploadedImage:
    """Platform response for one uploaded image"""
    media_id: str
    url: str


@dataclass
class DraftArticle:
    """Payload for the draft box"""
    title: str
    content: str
    thumb_media_id: str = ""
    article_type: str = "news"
    author: str = ""
    digest: str = ""
    image_media_ids: List[str] = field(default_factory=list)


@dataclass
class PublishResult:
    media_id: str
    title: str
    article_type: str

    def to_dict(self) -> dict:
        return {
            "success": True,
            "media_id": self.media_id,
            "title": self.title,
            "articleType": self.article_type,
        }


def is_remote_uri(uri: str) -> bool:
    lowered = (uri or "").strip().lower()
    return lowered.startswith("http://") or lowered.startswith("https://")
