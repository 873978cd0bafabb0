"""Error taxonomy for preview generation."""
from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    INVALID_KEY = "invalid_key"
    METADATA_NOT_FOUND = "metadata_not_found"
    NETWORK_ERROR = "network_error"
    THUMBNAIL_UNAVAILABLE = "thumbnail_unavailable"
    EMPTY_GLYPHS = "empty_glyphs"
    SEGMENTER_BUILD_ERROR = "segmenter_build_error"
    CACHE_STORE_UNAVAILABLE = "cache_store_unavailable"


_NON_FATAL = {ErrorKind.THUMBNAIL_UNAVAILABLE, ErrorKind.CACHE_STORE_UNAVAILABLE}

_STATUS_CODES = {
    ErrorKind.INVALID_KEY: 400,
    ErrorKind.METADATA_NOT_FOUND: 404,
    ErrorKind.NETWORK_ERROR: 502,
}


class PreviewError(RuntimeError):
    """Base class for every failure raised while producing a preview.

    Subclasses carry structured fields so callers can branch on ``kind``
    rather than on message text.
    """

    kind: ErrorKind

    @property
    def is_fatal(self) -> bool:
        return self.kind not in _NON_FATAL

    @property
    def status_code(self) -> int:
        return _STATUS_CODES.get(self.kind, 500)


class InvalidKey(PreviewError):
    kind = ErrorKind.INVALID_KEY

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"invalid request key {key!r}: {reason}")
        self.key = key
        self.reason = reason


class MetadataNotFound(PreviewError):
    kind = ErrorKind.METADATA_NOT_FOUND

    def __init__(self, url: str, field: str) -> None:
        super().__init__(f"{field} is not found in {url}")
        self.url = url
        self.field = field


class NetworkError(PreviewError):
    kind = ErrorKind.NETWORK_ERROR

    def __init__(self, url: str, status: int | None = None, reason: str | None = None) -> None:
        detail = f"status {status}" if status is not None else (reason or "request failed")
        super().__init__(f"failed to fetch {url}: {detail}")
        self.url = url
        self.status = status
        self.reason = reason


class ThumbnailUnavailable(PreviewError):
    kind = ErrorKind.THUMBNAIL_UNAVAILABLE

    def __init__(self, url: str, reason: str | None = None) -> None:
        super().__init__(f"thumbnail {url} unavailable: {reason or 'unknown error'}")
        self.url = url
        self.reason = reason


class EmptyGlyphs(PreviewError):
    kind = ErrorKind.EMPTY_GLYPHS

    def __init__(self, text: str) -> None:
        super().__init__(f"font produced no glyphs for {text!r}")
        self.text = text


class SegmenterBuildError(PreviewError):
    kind = ErrorKind.SEGMENTER_BUILD_ERROR

    def __init__(self, source: str, line: int | None = None, reason: str | None = None) -> None:
        where = f" line {line}" if line is not None else ""
        super().__init__(f"cannot build segmenter from {source}{where}: {reason or 'invalid content'}")
        self.source = source
        self.line = line
        self.reason = reason


class CacheStoreUnavailable(PreviewError):
    kind = ErrorKind.CACHE_STORE_UNAVAILABLE

    def __init__(self, operation: str, key: str | None = None, reason: str | None = None) -> None:
        super().__init__(f"blob store {operation} failed for {key!r}: {reason or 'unavailable'}")
        self.operation = operation
        self.key = key
        self.reason = reason
