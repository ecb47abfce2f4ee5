"""
Browser automation hand-off

The browser itself is driven by an external tool. This module defines what the
publishers hand over to it.
"""
from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class ShortPost:
    """A short-form post (text plus a few images)"""
    text: str
    images: List[Path] = field(default_factory=list)
    submit: bool = False

    def to_dict(self) -> dict:
        return {
            "kind": "short_post",
            "text": self.text,
            "images": [str(path) for path in self.images],
            "submit": self.submit,
        }


@dataclass
class ArticleHandoff:
    """
    A long-form article for a browser editor

    content_images is ordered by placeholder number, highest first, which is
    the order the driver should replace placeholders in.
    """
    title: str
    html: str
    cover: Optional[Path] = None
    content_images: List[Tuple[str, Path]] = field(default_factory=list)
    author: str = ""
    summary: str = ""
    submit: bool = False

    def to_dict(self) -> dict:
        return {
            "kind": "article",
            "title": self.title,
            "author": self.author,
            "summary": self.summary,
            "cover": str(self.cover) if self.cover else None,
            "html": self.html,
            "contentImages": [
                {"placeholder": placeholder, "localPath": str(path)}
                for placeholder, path in self.content_images
            ],
            "submit": self.submit,
        }


class UIDriver(ABC):
    """Something that can type content into a platform's web editor"""

    max_images = 4

    @abstractmethod
    def post_short(self, post: ShortPost) -> bool:
        """Returns True when the platform accepted the post"""

    @abstractmethod
    def publish_article(self, article: ArticleHandoff) -> bool:
        """Returns True when the article was filled in (and submitted if asked)"""


class ManifestUIDriver(UIDriver):
    """Write the hand-off as JSON for an external browser script to pick up"""

    def __init__(self, output_path: Path):
        self.output_path = Path(output_path)

    def post_short(self, post: ShortPost) -> bool:
        return self._write(post.to_dict())

    def publish_article(self, article: ArticleHandoff) -> bool:
        return self._write(article.to_dict())

    def _write(self, payload: dict) -> bool:
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        logger.info("Wrote browser hand-off to %s", self.output_path)
        return True
