"""
Error types raised by the publishing pipeline
"""
from __future__ import annotations

from typing import Optional


UNSUPPORTED_FILE_TYPE = 40113


class Post2SocialError(RuntimeError):
    """Base class for fatal pipeline errors."""

    def __init__(self, message: str, operation: str = ""):
        super().__init__(message)
        self.operation = operation

    def __str__(self) -> str:
        message = super().__str__()
        if self.operation:
            return f"{self.operation}: {message}"
        return message


class ResourceNotFoundError(Post2SocialError):
    """A local file referenced by the document does not exist."""

    def __init__(self, path: str, operation: str = "resolve_image", reason: str = "not found"):
        super().__init__(f"{reason}: {path}", operation=operation)
        self.path = path


class ResourceFetchError(Post2SocialError):
    """A remote resource could not be downloaded."""

    def __init__(self, uri: str, operation: str = "fetch", reason: str = ""):
        message = f"failed to fetch {uri}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, operation=operation)
        self.uri = uri


class _CodedError(Post2SocialError):
    default_operation = ""

    def __init__(self, message: str, code: Optional[int] = None, operation: str = ""):
        super().__init__(message, operation=operation or self.default_operation)
        self.code = code


class AuthError(_CodedError):
    """Access token retrieval failed or credentials are missing."""

    default_operation = "fetch_token"


class UploadError(_CodedError):
    """The platform rejected an image upload."""

    default_operation = "upload_image"

    @property
    def is_unsupported_file_type(self) -> bool:
        return self.code == UNSUPPORTED_FILE_TYPE


class PublishError(_CodedError):
    """The platform rejected the draft, or the UI driver reported failure."""

    default_operation = "publish_draft"


class ContentError(Post2SocialError):
    """The document cannot be published as requested (no title, no cover...)."""


class MalformedInputWarning(UserWarning):
    """Non-fatal: part of the input was ignored while parsing."""
