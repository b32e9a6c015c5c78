import asyncio
import io
from typing import Dict, List, Optional, Sequence, Tuple, Union

import pytest
from rich.console import Console

from tubelens.config.settings import Settings
from tubelens.models.transcript import Cue
from tubelens.models.video import VideoMetadata
from tubelens.services.cache import CueCache
from tubelens.services.transcript import TranscriptService

VIDEO_A = "aaaaaaaaaaa"
VIDEO_B = "bbbbbbbbbbb"
VIDEO_C = "ccccccccccc"


def make_cues(*items: Tuple[str, int, int]) -> List[Cue]:
    return [Cue(text=text, offset=offset, duration=duration) for text, offset, duration in items]


class FakeCaptionSource:
    def __init__(self, transcripts: Dict[str, Union[Sequence[Cue], Exception]]):
        self.transcripts = transcripts
        self.calls: List[Tuple[str, Optional[str]]] = []
        self.gate: Optional[asyncio.Event] = None

    async def fetch(self, video_id: str, language: Optional[str] = None) -> List[Cue]:
        self.calls.append((video_id, language))
        if self.gate is not None:
            await self.gate.wait()
        result = self.transcripts[video_id]
        if isinstance(result, Exception):
            raise result
        return list(result)


class FakeMetadataProvider:
    def __init__(self, known: Dict[str, Union[VideoMetadata, Exception]]):
        self.known = known
        self.calls: List[str] = []

    async def get_video_details(self, video_id: str) -> Optional[VideoMetadata]:
        self.calls.append(video_id)
        result = self.known.get(video_id)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def settings():
    return Settings(_env_file=None, youtube_api_key=None, log_level="DEBUG")


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=200)


@pytest.fixture
def sample_cues():
    return make_cues(
        ("Welcome to the show", 0, 2000),
        ("today we talk about Python", 2500, 2000),
        ("and why asyncio matters", 5000, 2500),
        ("first, a short history", 12000, 2000),
        ("Python was released in 1991", 14500, 3000),
        ("thanks for watching", 30000, 1500),
    )


@pytest.fixture
def caption_source(sample_cues):
    return FakeCaptionSource(
        {
            VIDEO_A: sample_cues,
            VIDEO_B: make_cues(("second video intro", 0, 1000), ("more about python here", 4000, 1000)),
        }
    )


@pytest.fixture
def metadata_provider():
    return FakeMetadataProvider(
        {
            VIDEO_A: VideoMetadata(id=VIDEO_A, title="Video A", channel_title="Channel", view_count="10"),
            VIDEO_B: VideoMetadata(id=VIDEO_B, title="Video B", channel_title="Channel", view_count="20"),
        }
    )


@pytest.fixture
def clock():
    class Clock:
        now = 1000.0

        def __call__(self) -> float:
            return self.now

    return Clock()


@pytest.fixture
def service(settings, console, caption_source, metadata_provider, clock):
    return TranscriptService(
        settings=settings,
        console=console,
        caption_source=caption_source,
        metadata_provider=metadata_provider,
        cache=CueCache(ttl_seconds=settings.transcript_cache_ttl_seconds, clock=clock),
    )
