"""Caption source adapters that fetch raw cue sequences."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Iterable, List, Mapping, Optional, Protocol

from rich.console import Console
from youtube_transcript_api import YouTubeTranscriptApi
from youtube_transcript_api._errors import NoTranscriptFound, TranscriptsDisabled, VideoUnavailable

from tubelens.models.transcript import Cue
from tubelens.services.errors import CaptionUnavailableError, SourceError

CAPTION_RETRY_ATTEMPTS = 3
CAPTION_RETRY_BACKOFF_SECONDS = 1.5
CAPTION_RETRY_MAX_DELAY_SECONDS = 10.0

Sleeper = Callable[[float], Awaitable[None]]


class CaptionSource(Protocol):
    """Fetches the complete, unfiltered cue sequence for one video and language."""

    async def fetch(self, video_id: str, language: Optional[str] = None) -> List[Cue]:
        """Return cues in chronological order.

        Raises ``CaptionUnavailableError`` when no captions exist and ``SourceError`` for
        transport or parse failures.
        """


def cues_from_raw_data(video_id: str, items: Iterable[Mapping[str, Any]]) -> List[Cue]:
    """Convert caption entries with ``start``/``duration`` in seconds into millisecond cues."""

    cues: List[Cue] = []
    try:
        for item in items:
            start = float(item["start"])
            duration = float(item.get("duration", 0.0))
            cues.append(
                Cue(
                    text=str(item["text"]),
                    offset=max(0, round(start * 1000)),
                    duration=max(0, round(duration * 1000)),
                )
            )
    except (KeyError, TypeError, ValueError) as exc:
        raise SourceError(
            f"Malformed caption data for video {video_id}: {exc}", video_id=video_id, original_error=exc
        ) from exc
    cues.sort(key=lambda cue: cue.offset)
    return cues


class YouTubeCaptionSource:
    """Fetch captions with ``youtube-transcript-api``, retrying transient failures."""

    def __init__(
        self,
        *,
        default_language: str = "en",
        console: Optional[Console] = None,
        retry_attempts: Optional[int] = None,
        transcript_api: Optional[YouTubeTranscriptApi] = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._default_language = default_language
        self._console = console or Console()
        self._attempts = max(1, retry_attempts or CAPTION_RETRY_ATTEMPTS)
        self._transcript_api = transcript_api or YouTubeTranscriptApi()
        self._sleep = sleep

    async def fetch(self, video_id: str, language: Optional[str] = None) -> List[Cue]:
        """Fetch caption cues for ``video_id``.

        Parameters
        ----------
        video_id:
            The canonical 11-character YouTube video identifier.
        language:
            Caption language code; the configured default language when omitted.

        Raises
        ------
        CaptionUnavailableError
            If captions are disabled, missing for the language, or the video is unavailable.
        SourceError
            If every attempt failed for any other reason.
        """

        languages = (language or self._default_language,)
        attempt = 0
        while True:
            attempt += 1
            try:
                fetched = await asyncio.to_thread(self._transcript_api.fetch, video_id, languages=languages)
                break
            except (TranscriptsDisabled, NoTranscriptFound, VideoUnavailable) as exc:
                self._console.log(
                    f"[yellow]No captions available[/yellow] (video_id={video_id}, language={languages[0]})"
                )
                raise CaptionUnavailableError(
                    f"Transcript not available for video ID {video_id} in language '{languages[0]}'.",
                    video_id=video_id,
                    original_error=exc,
                ) from exc
            except Exception as exc:
                if attempt >= self._attempts:
                    self._console.log(
                        f"[red]Caption fetch failed after {attempt} attempts:[/red] {exc} (video_id={video_id})"
                    )
                    raise SourceError(
                        f"Failed to fetch captions for video {video_id}: {exc}",
                        video_id=video_id,
                        original_error=exc,
                    ) from exc
                delay = min(CAPTION_RETRY_BACKOFF_SECONDS * attempt, CAPTION_RETRY_MAX_DELAY_SECONDS)
                self._console.log(
                    f"[yellow]Caption fetch attempt {attempt} failed:[/yellow] {exc}; "
                    f"retrying in {delay:.1f}s (video_id={video_id})"
                )
                await self._sleep(delay)

        return cues_from_raw_data(video_id, fetched.to_raw_data())


__all__ = ["CaptionSource", "YouTubeCaptionSource", "cues_from_raw_data"]
