"""
JPEG metadata sanitizer

Some image generators embed provenance metadata in vendor APP segments
(APP11-APP15). The WeChat material API rejects such files with errcode 40113
("unsupported file type"), so those segments are cut out before upload.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

SOI = b"\xff\xd8"
MARKER_PREFIX = 0xFF
PADDING = 0x00
DETECTION_WINDOW = 2048
PROVENANCE_SIGNATURES = ("AIGC{", "Coze")

# APP11..APP15
VENDOR_SEGMENTS = frozenset(range(0xEB, 0xF0))
# APP0..APP9, DQT, SOF0, SOF2, DHT
IMAGE_DATA_SEGMENTS = frozenset(range(0xE0, 0xEA)) | {0xDB, 0xC0, 0xC2, 0xC4}

JPEG_SUFFIXES = (".jpg", ".jpeg")


def is_jpeg(data: bytes) -> bool:
    return len(data) >= 2 and data[:2] == SOI


def has_provenance_metadata(data: bytes) -> bool:
    header = data[:DETECTION_WINDOW].decode("latin-1")
    return any(signature in header for signature in PROVENANCE_SIGNATURES)


def find_cut_point(data: bytes) -> Optional[int]:
    """Offset of the first segment that starts real image data, if any"""
    pos = 2
    length = len(data)
    while pos < length - 1:
        if data[pos] == MARKER_PREFIX:
            marker = data[pos + 1]
            if marker == PADDING:
                pos += 2
                continue
            if marker in VENDOR_SEGMENTS and pos + 3 < length:
                segment_length = (data[pos + 2] << 8) | data[pos + 3]
                pos += 2 + segment_length
                continue
            if marker in IMAGE_DATA_SEGMENTS:
                return pos
        pos += 1
    return None


def sanitize_jpeg(data: bytes, force: bool = False) -> bytes:
    """
    Remove vendor metadata segments from a JPEG buffer

    Args:
        data: Image bytes
        force: Clean even when no known provenance signature is found

    Returns:
        Cleaned bytes, or the input unchanged when it is not a JPEG, carries no
        known metadata, or has no recognizable image segment
    """
    if not is_jpeg(data):
        return data
    if not force and not has_provenance_metadata(data):
        return data

    cut = find_cut_point(data)
    if cut is None:
        logger.warning("No image data segment found in %d byte JPEG, leaving it unchanged", len(data))
        return data

    cleaned = data[:2] + data[cut:]
    if len(cleaned) != len(data):
        logger.info("Cleaned JPEG metadata: %d -> %d bytes", len(data), len(cleaned))
    return cleaned


def needs_sanitizing(filename: str, content_type: str = "", force: bool = False) -> bool:
    if force:
        return True
    if (content_type or "").split(";")[0].strip().lower() == "image/jpeg":
        return True
    return Path(filename or "").suffix.lower() in JPEG_SUFFIXES


def sanitize_file(source: Path, target: Path, force: bool = False) -> Path:
    """
    Write a sanitized copy of source to target when cleaning changes it

    Returns:
        The path to use afterwards (target if rewritten, else source)
    """
    data = Path(source).read_bytes()
    cleaned = sanitize_jpeg(data, force=force)
    if cleaned == data:
        return Path(source)
    target = Path(target)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(cleaned)
    return target
