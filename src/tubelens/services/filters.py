"""Pure transcript filters: time windows, search with context, and segmentation.

Every function takes a cue sequence and returns a new one; inputs are never mutated.
When several filters are requested they run in a fixed order: time range, then search,
then segmentation. Segmentation is terminal because it restructures the flat sequence.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Protocol, Sequence

from tubelens.models.transcript import (
    Cue,
    SearchSpec,
    Segment,
    SegmentMethod,
    SegmentSpec,
    TimeRange,
    TranscriptOptions,
)
from tubelens.services.formatter import format_timestamp

MIN_PAUSE_THRESHOLD_MS = 1000
PAUSE_GAP_MULTIPLIER = 3


def filter_by_time_range(cues: Sequence[Cue], time_range: Optional[TimeRange]) -> List[Cue]:
    """Keep cues lying entirely inside ``time_range``; straddling cues are dropped, not truncated."""

    if not cues:
        return []
    if time_range is None:
        return list(cues)

    start = time_range.start or 0.0
    end = time_range.end
    return [
        cue
        for cue in cues
        if cue.start_seconds >= start and (end is None or cue.end_seconds <= end)
    ]


def search_cues(cues: Sequence[Cue], search: Optional[SearchSpec]) -> List[Cue]:
    """Return matching cues plus ``context_lines`` neighbours on each side, in original order.

    No match yields an empty list rather than the unfiltered input.
    """

    if not cues:
        return []
    if search is None:
        return list(cues)

    if search.case_sensitive:
        query = search.query
        matches = [index for index, cue in enumerate(cues) if query in cue.text]
    else:
        query = search.query.casefold()
        matches = [index for index, cue in enumerate(cues) if query in cue.text.casefold()]

    included: set[int] = set()
    last = len(cues) - 1
    for index in matches:
        included.update(range(max(0, index - search.context_lines), min(last, index + search.context_lines) + 1))
    return [cues[index] for index in sorted(included)]


def apply_filters(cues: Sequence[Cue], options: TranscriptOptions) -> List[Cue]:
    """Run the flat-sequence filters: time range, then search."""

    return search_cues(filter_by_time_range(cues, options.time_range), options.search)


class SegmentationStrategy(Protocol):
    """Splits a chronological cue sequence into at most ``count`` consecutive groups."""

    def split(self, cues: Sequence[Cue], count: int) -> List[List[Cue]]:
        ...


class EqualTimeSegmenter:
    """Divide the covered time span into ``count`` windows of equal duration.

    Each cue lands in the window containing its start offset. Windows without cues are
    dropped, so fewer than ``count`` groups may be returned.
    """

    def split(self, cues: Sequence[Cue], count: int) -> List[List[Cue]]:
        if not cues:
            return []
        if count <= 1:
            return [list(cues)]

        span_start = cues[0].offset
        span = max(cue.end for cue in cues) - span_start
        if span <= 0:
            return [list(cues)]

        window = span / count
        buckets: List[List[Cue]] = [[] for _ in range(count)]
        for cue in cues:
            index = min(int((cue.offset - span_start) / window), count - 1)
            buckets[index].append(cue)
        return [bucket for bucket in buckets if bucket]


class PauseSegmenter:
    """Heuristic pause detector used for the ``smart`` method.

    The threshold is three times the average positive gap between cues, never below one
    second. A new group starts after each gap above the threshold until ``count - 1``
    breaks have been made; the last group absorbs the remainder.
    """

    def split(self, cues: Sequence[Cue], count: int) -> List[List[Cue]]:
        if not cues:
            return []
        if count <= 1:
            return [list(cues)]

        gaps = [cues[index].offset - cues[index - 1].end for index in range(1, len(cues))]
        positive = [gap for gap in gaps if gap > 0]
        average_gap = sum(positive) / len(positive) if positive else 0.0
        threshold = max(PAUSE_GAP_MULTIPLIER * average_gap, MIN_PAUSE_THRESHOLD_MS)

        groups: List[List[Cue]] = [[cues[0]]]
        for cue, gap in zip(cues[1:], gaps):
            if gap > threshold and len(groups) < count:
                groups.append([cue])
            else:
                groups[-1].append(cue)
        return groups


SEGMENTATION_STRATEGIES: Dict[SegmentMethod, SegmentationStrategy] = {
    SegmentMethod.EQUAL: EqualTimeSegmenter(),
    SegmentMethod.SMART: PauseSegmenter(),
}


def build_segment(cues: Sequence[Cue]) -> Segment:
    """Wrap a non-empty cue group, bounding it by its first start and its last end."""

    start_ms = cues[0].offset
    end_ms = max(cue.end for cue in cues)
    return Segment(
        start_time=format_timestamp(start_ms),
        end_time=format_timestamp(end_ms),
        start_ms=start_ms,
        end_ms=end_ms,
        cues=list(cues),
    )


def segment_cues(
    cues: Sequence[Cue],
    spec: SegmentSpec,
    *,
    strategy: Optional[SegmentationStrategy] = None,
) -> List[Segment]:
    """Group ``cues`` into segments with the strategy registered for ``spec.method``."""

    if not cues:
        return []
    splitter = strategy or SEGMENTATION_STRATEGIES[spec.method]
    return [build_segment(group) for group in splitter.split(cues, spec.count) if group]


def flatten_segments(segments: Sequence[Segment]) -> List[Cue]:
    return [cue for segment in segments for cue in segment.cues]


KeyMomentScorer = Callable[[Segment], float]


def text_length_score(segment: Segment) -> float:
    """Default key-moment score: total characters of text in the segment."""

    return float(sum(len(cue.text) for cue in segment.cues))


def rank_key_moments(
    segments: Sequence[Segment],
    limit: int,
    *,
    scorer: KeyMomentScorer = text_length_score,
) -> List[Segment]:
    """Pick the ``limit`` highest scoring segments and return them chronologically.

    The default scorer is a length heuristic, not content understanding; pass another
    ``scorer`` to rank segments differently.
    """

    if limit <= 0 or not segments:
        return []
    ranked = sorted(range(len(segments)), key=lambda index: scorer(segments[index]), reverse=True)
    return [segments[index] for index in sorted(ranked[:limit])]


__all__ = [
    "EqualTimeSegmenter",
    "KeyMomentScorer",
    "PauseSegmenter",
    "SEGMENTATION_STRATEGIES",
    "SegmentationStrategy",
    "apply_filters",
    "build_segment",
    "filter_by_time_range",
    "flatten_segments",
    "rank_key_moments",
    "search_cues",
    "segment_cues",
    "text_length_score",
]
