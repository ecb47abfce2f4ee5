"""
Image reference resolution - download remote images, verify local ones
"""
from __future__ import annotations

import hashlib
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Tuple
from urllib.parse import urlparse

import requests

from .context import RunContext
from .errors import ResourceFetchError, ResourceNotFoundError
from .models import Document, ImageReference, is_remote_uri

logger = logging.getLogger(__name__)

CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/bmp": ".bmp",
}
KNOWN_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp")


class ImageResolver:
    """Resolve image references to local files inside the run's scratch dir"""

    def __init__(self, context: RunContext, session: Optional[requests.Session] = None):
        """
        Initialize resolver

        Args:
            context: Run context (base dir, scratch dir, timeout)
            session: HTTP session, a new one by default
        """
        self.context = context
        self.session = session or requests.Session()
        self.timeout = context.settings.http_timeout

    def resolve_all(self, images: List[ImageReference]) -> List[ImageReference]:
        """
        Resolve every reference

        Args:
            images: References in document order

        Returns:
            The same references, in document order, each with a local path
        """
        workers = min(self.context.settings.max_workers, len(images))
        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                # map() yields in submission order, whatever order tasks finish in
                return list(pool.map(self.resolve, images))
        return [self.resolve(image) for image in images]

    def resolve(self, image: ImageReference) -> ImageReference:
        if image.is_resolved and Path(image.resolved_local_path).exists():
            return image
        path = self.resolve_uri(image.source_uri, name=f"img-{image.number:03d}")
        image.mark_resolved(path)
        return image

    def resolve_uri(self, uri: str, name: str = "image") -> Path:
        """Local path for a URI, downloading remote sources into scratch"""
        uri = (uri or "").strip()
        if is_remote_uri(uri):
            return self._download(uri, name)
        return self._resolve_local(uri)

    def _resolve_local(self, uri: str) -> Path:
        path = Path(uri).expanduser()
        if not path.is_absolute():
            path = (self.context.base_dir / path).resolve()
        if not path.exists() or not path.is_file():
            raise ResourceNotFoundError(str(path))
        if path.stat().st_size == 0:
            raise ResourceNotFoundError(str(path), reason="local image is empty")
        return path

    def _download(self, uri: str, name: str) -> Path:
        image_dir = self.context.subdir("images")
        stem = f"{name}-{hashlib.sha1(uri.encode('utf-8')).hexdigest()[:10]}"

        for existing in sorted(image_dir.glob(f"{stem}.*")):
            if existing.stat().st_size > 0:
                logger.debug("Reusing downloaded image %s for %s", existing, uri)
                return existing

        data, content_type = self._http_get(uri)
        extension = detect_image_extension(data, content_type=content_type, name_hint=urlparse(uri).path)
        target = image_dir / f"{stem}{extension}"
        target.write_bytes(data)
        logger.info("Downloaded %s -> %s (%d bytes)", uri, target, len(data))
        return target

    def _http_get(self, uri: str) -> Tuple[bytes, str]:
        headers = {"User-Agent": self.context.settings.user_agent}
        try:
            response = self.session.get(uri, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise ResourceFetchError(uri, operation="download_image", reason=str(exc)) from exc

        data = response.content
        if not data:
            raise ResourceFetchError(uri, operation="download_image", reason="remote image is empty")
        return data, response.headers.get("Content-Type", "")


def select_cover(
    document: Document,
    images: List[ImageReference],
    hosted_cover: Optional[str] = None,
) -> Tuple[Optional[str], Optional[ImageReference]]:
    """
    Pick the cover source

    Args:
        document: Parsed document; cover_image already holds any override
        images: Content images in document order
        hosted_cover: Image already on the WeChat CDN that leads the body

    Returns:
        (uri, reference) where reference is set when the cover is the first
        content image, so its resolved file and upload can be reused
    """
    if document.cover_image:
        return document.cover_image, None
    if hosted_cover:
        return hosted_cover, None
    if images:
        return images[0].source_uri, images[0]
    return None, None


def detect_image_extension(data: bytes, content_type: str = "", name_hint: str = "") -> str:
    header = data[:12]
    if header.startswith(b"\x89PNG\r\n\x1a\n"):
        return ".png"
    if header.startswith(b"\xff\xd8\xff"):
        return ".jpg"
    if header[:6] in (b"GIF87a", b"GIF89a"):
        return ".gif"
    if header.startswith(b"RIFF") and header[8:12] == b"WEBP":
        return ".webp"
    if header.startswith(b"BM"):
        return ".bmp"

    mime = (content_type or "").split(";")[0].strip().lower()
    if mime in CONTENT_TYPE_EXTENSIONS:
        return CONTENT_TYPE_EXTENSIONS[mime]

    suffix = Path(name_hint or "").suffix.lower()
    if suffix in KNOWN_SUFFIXES:
        return ".jpg" if suffix == ".jpeg" else suffix
    return ".jpg"
