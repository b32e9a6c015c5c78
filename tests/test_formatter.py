import pytest

from conftest import make_cues
from tubelens.models.transcript import SegmentMethod, SegmentSpec, TranscriptFormat, TranscriptOptions
from tubelens.models.video import VideoMetadata
from tubelens.services.filters import segment_cues
from tubelens.services.formatter import format_timestamp, format_transcript, transcript_duration


@pytest.mark.parametrize(
    ("milliseconds", "expected"),
    [(0, "00:00"), (999, "00:00"), (5000, "00:05"), (65_432, "01:05"), (3_600_000, "60:00"), (6_000_000, "100:00")],
)
def test_format_timestamp(milliseconds, expected):
    assert format_timestamp(milliseconds) == expected


def test_duration_is_span_of_cues(sample_cues):
    assert transcript_duration(sample_cues) == 31.5
    assert transcript_duration([]) == 0.0


def test_duration_sums_spans_per_video():
    first = [cue.tagged("aaaaaaaaaaa") for cue in make_cues(("a", 1000, 1000), ("b", 5000, 1000))]
    second = [cue.tagged("bbbbbbbbbbb") for cue in make_cues(("c", 0, 2000))]

    assert transcript_duration(first + second) == 7.0


def test_timestamped_format(sample_cues):
    result = format_transcript(sample_cues[:2], TranscriptOptions(format=TranscriptFormat.TIMESTAMPED))

    assert result.text == "[00:00] Welcome to the show\n[00:02] today we talk about Python"
    assert result.total_segments == 2
    assert result.duration == 4.5
    assert result.format is TranscriptFormat.TIMESTAMPED
    assert result.segments is None
    assert result.metadata is None


def test_merged_format_is_plain_concatenation(sample_cues):
    result = format_transcript(sample_cues, TranscriptOptions(format=TranscriptFormat.MERGED))

    assert result.text == " ".join(cue.text for cue in sample_cues)
    assert "[" not in result.text


def test_raw_format_has_no_text(sample_cues):
    result = format_transcript(sample_cues, TranscriptOptions(format=TranscriptFormat.RAW))

    assert result.text is None
    assert result.cues == sample_cues
    assert result.total_segments == len(sample_cues)


def test_segmented_timestamped_output(sample_cues):
    segments = segment_cues(sample_cues, SegmentSpec(method=SegmentMethod.EQUAL, count=3))

    result = format_transcript(sample_cues, TranscriptOptions(), segments=segments)

    blocks = result.text.split("\n\n")
    assert len(blocks) == 3
    assert blocks[0].splitlines()[0] == "Segment 00:00 - 00:07"
    assert blocks[1] == "Segment 00:12 - 00:17\n[00:12] first, a short history\n[00:14] Python was released in 1991"
    assert result.segments == segments
    assert result.total_segments == len(sample_cues)


def test_segmented_merged_output(sample_cues):
    segments = segment_cues(sample_cues, SegmentSpec(method=SegmentMethod.EQUAL, count=3))

    result = format_transcript(sample_cues, TranscriptOptions(format=TranscriptFormat.MERGED), segments=segments)

    assert result.text.split("\n\n")[2] == "Segment 00:30 - 00:31\nthanks for watching"


def test_metadata_is_filtered_and_only_attached_when_requested(sample_cues):
    found = VideoMetadata(id="aaaaaaaaaaa", title="A")

    with_metadata = format_transcript(
        sample_cues, TranscriptOptions(include_metadata=True), metadata=[found, None]
    )
    without_metadata = format_transcript(sample_cues, TranscriptOptions(), metadata=[found])

    assert with_metadata.metadata == [found]
    assert without_metadata.metadata is None


def test_empty_transcript(sample_cues):
    result = format_transcript([], TranscriptOptions())

    assert result.is_empty
    assert result.text == ""
    assert result.duration == 0.0
