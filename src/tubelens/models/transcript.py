"""Pydantic models for caption cues, transcript options, and formatted output."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from tubelens.models.base import FrozenModel, TubeLensBaseModel
from tubelens.models.video import VideoMetadata


class TranscriptFormat(str, Enum):
    """Output representations supported by the formatter."""

    RAW = "raw"
    TIMESTAMPED = "timestamped"
    MERGED = "merged"


class SegmentMethod(str, Enum):
    """Available segmentation strategies."""

    EQUAL = "equal"
    SMART = "smart"


class Cue(FrozenModel):
    """One timed caption unit. Times are integer milliseconds from the start of the video."""

    text: str
    offset: int = Field(ge=0)
    duration: int = Field(ge=0)
    video_id: Optional[str] = None

    @property
    def end(self) -> int:
        return self.offset + self.duration

    @property
    def start_seconds(self) -> float:
        return self.offset / 1000

    @property
    def end_seconds(self) -> float:
        return self.end / 1000

    def tagged(self, video_id: str) -> "Cue":
        """Return a copy of the cue attributed to ``video_id``."""

        return self.model_copy(update={"video_id": video_id})


class TimeRange(FrozenModel):
    """Optional window in seconds; either bound may be omitted."""

    start: Optional[float] = Field(default=None, ge=0.0)
    end: Optional[float] = Field(default=None, ge=0.0)

    @model_validator(mode="after")
    def _check_order(self) -> "TimeRange":
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError(f"time range start ({self.start}) must not exceed end ({self.end})")
        return self


class SearchSpec(FrozenModel):
    """Substring search with surrounding context cues."""

    query: str
    case_sensitive: bool = False
    context_lines: int = Field(default=0, ge=0)

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("search query must not be empty")
        return value


class SegmentSpec(FrozenModel):
    """Requested segmentation method and maximum number of segments."""

    method: SegmentMethod = SegmentMethod.EQUAL
    count: int = Field(ge=1)


class TranscriptOptions(FrozenModel):
    """Per-request transcript processing options. Constructed once and never shared."""

    language: Optional[str] = Field(default=None, min_length=1)
    time_range: Optional[TimeRange] = None
    search: Optional[SearchSpec] = None
    segment: Optional[SegmentSpec] = None
    format: TranscriptFormat = TranscriptFormat.TIMESTAMPED
    include_metadata: bool = False

    @classmethod
    def for_language(cls, language: Optional[str]) -> "TranscriptOptions":
        """Shorthand for requests that only choose a caption language."""

        return cls(language=language)


class Segment(FrozenModel):
    """Time-bounded group of cues produced by segmentation."""

    start_time: str
    end_time: str
    start_ms: int = Field(ge=0)
    end_ms: int = Field(ge=0)
    cues: List[Cue]


class FormattedTranscript(TubeLensBaseModel):
    """Rendered transcript for one or more videos.

    ``total_segments`` counts cues (not segments) and ``duration`` is expressed in seconds.
    ``text`` is populated for the timestamped and merged formats only.
    """

    cues: List[Cue] = Field(default_factory=list)
    segments: Optional[List[Segment]] = None
    total_segments: int = Field(ge=0)
    duration: float = Field(ge=0.0)
    format: TranscriptFormat
    text: Optional[str] = None
    metadata: Optional[List[VideoMetadata]] = None

    @property
    def is_empty(self) -> bool:
        return self.total_segments == 0


class ResultErrorType(str, Enum):
    """Failure categories reported for individual videos in a multi-video request."""

    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    NO_TRANSCRIPT = "no_transcript"
    FAILED = "failed"


class VideoTranscriptResult(TubeLensBaseModel):
    """Outcome for one requested video: either a transcript payload or an error."""

    video_id: str
    transcript: Optional[FormattedTranscript] = None
    metadata: Optional[VideoMetadata] = None
    error: Optional[str] = None
    error_type: Optional[ResultErrorType] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


__all__ = [
    "Cue",
    "FormattedTranscript",
    "ResultErrorType",
    "SearchSpec",
    "Segment",
    "SegmentMethod",
    "SegmentSpec",
    "TimeRange",
    "TranscriptFormat",
    "TranscriptOptions",
    "VideoTranscriptResult",
]
