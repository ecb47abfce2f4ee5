"""
post2social core

Markdown conversion with image placeholders, CSS inlining, JPEG metadata
cleaning, and the publishers that send the result to WeChat (HTTP API) or to
a browser automation driver.
"""

__version__ = "0.1.0"
__author__ = "OSInsight"
__license__ = "MIT"

from .css_inliner import inline_css
from .jpeg_sanitizer import sanitize_jpeg
from .markdown_converter import MarkdownConverter
from .models import ConvertedContent, Document, ImageReference
from .publisher import BrowserPublisher, PublishOptions, WeChatApiPublisher

__all__ = [
    "BrowserPublisher",
    "ConvertedContent",
    "Document",
    "ImageReference",
    "MarkdownConverter",
    "PublishOptions",
    "WeChatApiPublisher",
    "inline_css",
    "sanitize_jpeg",
]
