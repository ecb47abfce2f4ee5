"""
post2social - Publish markdown articles to WeChat and X

This is the main public API module.
"""

from .core.models import Document, ImageReference, PublishResult
from .core.publisher import BrowserPublisher, PublishOptions, WeChatApiPublisher

__version__ = "0.1.0"
__all__ = [
    "BrowserPublisher",
    "Document",
    "ImageReference",
    "PublishOptions",
    "PublishResult",
    "WeChatApiPublisher",
]
