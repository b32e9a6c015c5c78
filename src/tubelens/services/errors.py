"""Exception hierarchy for caption and metadata retrieval."""

from __future__ import annotations

from typing import Optional

from tubelens.models.transcript import TranscriptOptions


class TranscriptError(RuntimeError):
    """Base error for transcript retrieval, carrying the request context for diagnostics."""

    def __init__(
        self,
        message: str,
        *,
        video_id: str,
        options: Optional[TranscriptOptions] = None,
        original_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.video_id = video_id
        self.options = options
        self.original_error = original_error


class CaptionUnavailableError(TranscriptError):
    """No transcript exists for the requested video and language. Never retried."""


class SourceError(TranscriptError):
    """Transport or parse failure while fetching captions."""


class MetadataNotFoundError(LookupError):
    """Raised when a video cannot be found by the metadata provider."""

    def __init__(self, video_id: str) -> None:
        super().__init__(f"Video with ID {video_id} not found.")
        self.video_id = video_id


class MetadataLookupError(RuntimeError):
    """Raised when the metadata provider fails for reasons other than a missing video."""


__all__ = [
    "CaptionUnavailableError",
    "MetadataLookupError",
    "MetadataNotFoundError",
    "SourceError",
    "TranscriptError",
]
