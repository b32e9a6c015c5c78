import pytest

from tubelens.config.settings import SearchDefaults, TranscriptDefaults
from tubelens.models.transcript import SegmentMethod, TranscriptFormat, TranscriptOptions
from tubelens.utils.validation import (
    InvalidTranscriptOptionsError,
    InvalidYouTubeURLError,
    extract_video_id,
    normalize_video_ids,
    parse_options,
)

VIDEO_ID = "dQw4w9WgXcQ"


@pytest.mark.parametrize(
    "reference",
    [
        VIDEO_ID,
        f"  {VIDEO_ID}  ",
        f"https://www.youtube.com/watch?v={VIDEO_ID}&t=42",
        f"https://youtu.be/{VIDEO_ID}",
        f"https://www.youtube.com/embed/{VIDEO_ID}",
        f"https://youtube.com/shorts/{VIDEO_ID}",
    ],
)
def test_extract_video_id(reference):
    assert extract_video_id(reference) == VIDEO_ID


@pytest.mark.parametrize("reference", ["", "short", "https://example.com/watch?v=dQw4w9WgXcQ", "https://www.youtube.com/watch"])
def test_extract_video_id_rejects_invalid(reference):
    with pytest.raises(InvalidYouTubeURLError):
        extract_video_id(reference)


def test_normalize_video_ids_deduplicates_in_order():
    other = "jNQXAC9IVRw"

    assert normalize_video_ids(VIDEO_ID) == [VIDEO_ID]
    assert normalize_video_ids([other, f"https://youtu.be/{VIDEO_ID}", other]) == [other, VIDEO_ID]
    with pytest.raises(InvalidTranscriptOptionsError):
        normalize_video_ids([])


def test_parse_options_passes_instances_through():
    options = TranscriptOptions.for_language("fr")

    assert parse_options(options) is options
    assert options.language == "fr"
    assert parse_options(None) == TranscriptOptions()


def test_parse_options_builds_nested_models():
    options = parse_options(
        {
            "language": "en",
            "time_range": {"start": 5, "end": 60},
            "search": {"query": "hello", "case_sensitive": True},
            "segment": {"method": "smart", "count": 3},
            "format": "merged",
            "include_metadata": True,
        }
    )

    assert options.time_range.end == 60
    assert options.search.context_lines == 0
    assert options.segment.method is SegmentMethod.SMART
    assert options.format is TranscriptFormat.MERGED


def test_parse_options_applies_configured_defaults():
    defaults = TranscriptDefaults(format="raw", search=SearchDefaults(context_lines=5))

    options = parse_options({"search": {"query": "hello"}}, defaults)
    explicit = parse_options({"format": "merged", "search": {"query": "hello", "context_lines": 0}}, defaults)

    assert options.format is TranscriptFormat.RAW
    assert options.search.context_lines == 5
    assert explicit.format is TranscriptFormat.MERGED
    assert explicit.search.context_lines == 0


@pytest.mark.parametrize(
    "payload",
    [
        {"search": {"query": ""}},
        {"search": {"query": "ok", "context_lines": -1}},
        {"time_range": {"start": 10, "end": 1}},
        {"time_range": {"start": -1}},
        {"segment": {"method": "equal", "count": 0}},
        {"segment": {"method": "semantic", "count": 2}},
        {"format": "html"},
        {"unknown": True},
    ],
)
def test_parse_options_rejects_malformed_payloads(payload):
    with pytest.raises(InvalidTranscriptOptionsError):
        parse_options(payload)


def test_options_are_immutable():
    options = TranscriptOptions()

    with pytest.raises(Exception):
        options.include_metadata = True
