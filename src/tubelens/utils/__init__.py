"""Utility helpers shared across tubelens modules."""

from tubelens.utils.validation import (
    InvalidTranscriptOptionsError,
    InvalidYouTubeURLError,
    extract_video_id,
    parse_options,
)

__all__ = ["InvalidTranscriptOptionsError", "InvalidYouTubeURLError", "extract_video_id", "parse_options"]
