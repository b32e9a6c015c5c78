"""Validation helpers for YouTube identifiers and transcript request options."""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional, Sequence, Union
from urllib.parse import parse_qs, urlparse

from pydantic import ValidationError

from tubelens.config.settings import TranscriptDefaults
from tubelens.models.transcript import TranscriptOptions


class InvalidYouTubeURLError(ValueError):
    """Raised when a provided URL is not a valid YouTube video link."""


class InvalidTranscriptOptionsError(ValueError):
    """Raised when transcript options are malformed. Always raised before any I/O."""


_VIDEO_ID_PATTERN = re.compile(r"^[0-9A-Za-z_-]{11}$")

OptionsInput = Union[TranscriptOptions, Mapping[str, Any], None]


def extract_video_id(url: str) -> str:
    """Extract and validate a YouTube video ID from a URL or raw ID string."""

    stripped = url.strip()
    if _VIDEO_ID_PATTERN.fullmatch(stripped):
        return stripped

    parsed = urlparse(stripped)
    if parsed.netloc in {"youtu.be"}:
        candidate = parsed.path.lstrip("/")
        if _VIDEO_ID_PATTERN.fullmatch(candidate):
            return candidate

    if parsed.netloc.endswith("youtube.com"):
        # Handle standard watch URLs, shorts and embedded formats.
        if parsed.path == "/watch":
            candidate_list = parse_qs(parsed.query).get("v", [])
            if candidate_list and _VIDEO_ID_PATTERN.fullmatch(candidate_list[0]):
                return candidate_list[0]
        else:
            embedded_match = re.search(r"/(?:embed|shorts|live)/([0-9A-Za-z_-]{11})", parsed.path)
            if embedded_match:
                return embedded_match.group(1)

    raise InvalidYouTubeURLError(f"Invalid YouTube URL or video ID: {url!r}")


def normalize_video_ids(video_ids: Union[str, Sequence[str]]) -> list[str]:
    """Return the video IDs for one or many inputs, deduplicated in first-seen order.

    Raises
    ------
    InvalidTranscriptOptionsError
        If no video IDs were supplied.
    InvalidYouTubeURLError
        If any entry is neither a video ID nor a recognised YouTube URL.
    """

    raw_ids = [video_ids] if isinstance(video_ids, str) else list(video_ids)
    if not raw_ids:
        raise InvalidTranscriptOptionsError("At least one video ID is required.")

    seen: dict[str, None] = {}
    for raw in raw_ids:
        seen.setdefault(extract_video_id(raw), None)
    return list(seen)


def parse_options(options: OptionsInput, defaults: Optional[TranscriptDefaults] = None) -> TranscriptOptions:
    """Coerce request options into a validated :class:`TranscriptOptions`.

    Parameters
    ----------
    options:
        An existing options instance (returned unchanged), a mapping as received from a
        request layer, or ``None`` for all defaults.
    defaults:
        Configured defaults filled into a mapping where the caller left fields unset.

    Raises
    ------
    InvalidTranscriptOptionsError
        If the mapping fails validation, e.g. an empty search query or an inverted time range.
    """

    if isinstance(options, TranscriptOptions):
        return options

    payload: dict[str, Any] = dict(options or {})
    if defaults is not None:
        payload.setdefault("format", defaults.format)
        search = payload.get("search")
        if isinstance(search, Mapping) and "context_lines" not in search:
            payload["search"] = {**search, "context_lines": defaults.search.context_lines}

    try:
        return TranscriptOptions.model_validate(payload)
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'options'}: {error['msg']}" for error in exc.errors()
        )
        raise InvalidTranscriptOptionsError(f"Invalid transcript options: {details}") from exc


__all__ = [
    "InvalidTranscriptOptionsError",
    "InvalidYouTubeURLError",
    "extract_video_id",
    "normalize_video_ids",
    "parse_options",
]
