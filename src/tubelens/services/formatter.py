"""Render cue sequences and segments into the supported transcript formats."""

from __future__ import annotations

from itertools import groupby
from typing import Iterable, List, Optional, Sequence

from tubelens.models.transcript import Cue, FormattedTranscript, Segment, TranscriptFormat, TranscriptOptions
from tubelens.models.video import VideoMetadata


def format_timestamp(milliseconds: int) -> str:
    """Format a millisecond offset as ``MM:SS``, flooring to whole seconds."""

    total_seconds = max(0, int(milliseconds)) // 1000
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


def transcript_duration(cues: Sequence[Cue]) -> float:
    """Covered time in seconds: end of the last cue minus start of the first.

    Cues concatenated from several videos are measured per video and summed, since offsets
    restart at zero for each video.
    """

    total_ms = 0
    for _, group in groupby(cues, key=lambda cue: cue.video_id):
        run = list(group)
        total_ms += max(cue.end for cue in run) - run[0].offset
    return total_ms / 1000


def render_timestamped(cues: Iterable[Cue]) -> str:
    return "\n".join(f"[{format_timestamp(cue.offset)}] {cue.text}" for cue in cues)


def render_merged(cues: Iterable[Cue]) -> str:
    return " ".join(cue.text for cue in cues)


def segment_header(segment: Segment) -> str:
    return f"Segment {segment.start_time} - {segment.end_time}"


def _render(cues: Sequence[Cue], segments: Optional[Sequence[Segment]], output_format: TranscriptFormat) -> str:
    renderer = render_timestamped if output_format is TranscriptFormat.TIMESTAMPED else render_merged
    if segments is None:
        return renderer(cues)
    return "\n\n".join(f"{segment_header(segment)}\n{renderer(segment.cues)}" for segment in segments)


def format_transcript(
    cues: Sequence[Cue],
    options: TranscriptOptions,
    *,
    segments: Optional[Sequence[Segment]] = None,
    metadata: Optional[Iterable[Optional[VideoMetadata]]] = None,
) -> FormattedTranscript:
    """Build a :class:`FormattedTranscript` for ``cues``.

    Parameters
    ----------
    cues:
        The filtered flat cue sequence, in output order.
    options:
        Request options; ``format`` selects the rendering and ``include_metadata`` controls
        whether ``metadata`` is attached.
    segments:
        Segmentation of ``cues`` when segmentation was requested. Text output then groups
        cues under a ``Segment <start> - <end>`` header per segment.
    metadata:
        One snapshot per distinct video. ``None`` entries (deleted or private videos) are dropped.
    """

    text: Optional[str] = None
    if options.format is not TranscriptFormat.RAW:
        text = _render(cues, segments, options.format)

    metadata_list: Optional[List[VideoMetadata]] = None
    if options.include_metadata:
        metadata_list = [item for item in (metadata or []) if item is not None]

    return FormattedTranscript(
        cues=list(cues),
        segments=list(segments) if segments is not None else None,
        total_segments=len(cues),
        duration=transcript_duration(cues),
        format=options.format,
        text=text,
        metadata=metadata_list,
    )


__all__ = [
    "format_timestamp",
    "format_transcript",
    "render_merged",
    "render_timestamped",
    "segment_header",
    "transcript_duration",
]
