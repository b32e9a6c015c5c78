"""Video metadata providers used to enrich transcripts and validate video IDs."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Protocol

import httpx
import yt_dlp
from rich.console import Console
from yt_dlp.utils import DownloadError

from tubelens.config.settings import Settings, get_settings
from tubelens.models.video import VideoMetadata
from tubelens.services.errors import MetadataLookupError

_UNAVAILABLE_MARKERS = ("video unavailable", "private video", "has been removed", "does not exist")


class MetadataProvider(Protocol):
    """Looks up a single video's metadata snapshot."""

    async def get_video_details(self, video_id: str) -> Optional[VideoMetadata]:
        """Return the metadata, or ``None`` when the video is deleted, private or unknown."""


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _upload_date_iso(upload_date: Optional[str]) -> Optional[str]:
    if not upload_date:
        return None
    try:
        return datetime.strptime(upload_date, "%Y%m%d").strftime("%Y-%m-%dT00:00:00Z")
    except (TypeError, ValueError):
        return None


def iso8601_duration(total_seconds: Optional[float]) -> Optional[str]:
    """Render seconds in the ISO 8601 form used by the YouTube Data API (``PT1H2M3S``)."""

    if total_seconds is None:
        return None
    remaining = int(total_seconds)
    hours, remaining = divmod(remaining, 3600)
    minutes, seconds = divmod(remaining, 60)
    parts = "".join(f"{value}{unit}" for value, unit in ((hours, "H"), (minutes, "M")) if value)
    if seconds or not parts:
        parts += f"{seconds}S"
    return f"PT{parts}"


class YouTubeDataApiProvider:
    """Fetch video metadata from the YouTube Data API v3 ``videos`` endpoint."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://www.googleapis.com/youtube/v3",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
        console: Optional[Console] = None,
    ) -> None:
        if not api_key:
            raise ValueError("A YouTube Data API key is required.")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client
        self._console = console or Console()

    async def get_video_details(self, video_id: str) -> Optional[VideoMetadata]:
        """Look up ``video_id``; an empty ``items`` list means the video is absent.

        Raises
        ------
        MetadataLookupError
            On HTTP errors, network failures or a non-JSON response.
        """

        data = await self._request(
            "videos", {"part": "snippet,contentDetails,statistics", "id": video_id}
        )
        items = data.get("items") or []
        if not items:
            return None
        return self.parse_video(items[0], video_id)

    @staticmethod
    def parse_video(item: Mapping[str, Any], video_id: str) -> VideoMetadata:
        """Build a :class:`VideoMetadata` from one ``videos.list`` item."""

        snippet = item.get("snippet") or {}
        statistics = item.get("statistics") or {}
        content_details = item.get("contentDetails") or {}
        return VideoMetadata(
            id=item.get("id") or video_id,
            title=snippet.get("title"),
            channel_id=snippet.get("channelId"),
            channel_title=snippet.get("channelTitle"),
            published_at=snippet.get("publishedAt"),
            duration=content_details.get("duration"),
            view_count=_optional_str(statistics.get("viewCount")),
            like_count=_optional_str(statistics.get("likeCount")),
        )

    async def _request(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        query = {**params, "key": self._api_key}
        url = f"{self._base_url}/{endpoint}"
        try:
            if self._client is not None:
                response = await self._client.get(url, params=query, timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(url, params=query)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            self._console.log(f"[red]YouTube API error ({status})[/red] for {endpoint}")
            raise MetadataLookupError(f"YouTube API error ({status}): {exc.response.text}") from exc
        except httpx.RequestError as exc:
            self._console.log(f"[red]Network error contacting YouTube API:[/red] {exc}")
            raise MetadataLookupError(f"Network error connecting to YouTube API: {exc}") from exc
        except ValueError as exc:
            raise MetadataLookupError(f"Malformed response from YouTube API: {exc}") from exc


class YtDlpMetadataProvider:
    """Retrieve metadata with ``yt-dlp`` without downloading media. Needs no API key."""

    def __init__(self, *, console: Optional[Console] = None) -> None:
        self._console = console or Console()

    async def get_video_details(self, video_id: str) -> Optional[VideoMetadata]:
        try:
            info = await asyncio.to_thread(self._extract_info, video_id)
        except DownloadError as exc:
            message = str(exc).lower()
            if any(marker in message for marker in _UNAVAILABLE_MARKERS):
                self._console.log(f"[yellow]Video {video_id} is unavailable[/yellow]")
                return None
            raise MetadataLookupError(f"yt-dlp failed to extract metadata for {video_id}: {exc}") from exc
        if not info:
            return None
        return self.parse_info(info, video_id)

    @staticmethod
    def parse_info(info: Mapping[str, Any], video_id: str) -> VideoMetadata:
        """Map a ``yt-dlp`` info dict onto the Data API shaped :class:`VideoMetadata`."""

        return VideoMetadata(
            id=info.get("id") or video_id,
            title=info.get("title"),
            channel_id=info.get("channel_id"),
            channel_title=info.get("channel") or info.get("uploader"),
            published_at=_upload_date_iso(info.get("upload_date")),
            duration=iso8601_duration(info.get("duration")),
            view_count=_optional_str(info.get("view_count")),
            like_count=_optional_str(info.get("like_count")),
        )

    @staticmethod
    def _extract_info(video_id: str) -> Optional[Dict[str, Any]]:
        url = f"https://www.youtube.com/watch?v={video_id}"
        ydl_opts = {"quiet": True, "no_warnings": True, "skip_download": True}
        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            return ydl.extract_info(url, download=False)


def build_metadata_provider(
    settings: Optional[Settings] = None, *, console: Optional[Console] = None
) -> MetadataProvider:
    """Prefer the Data API when a key is configured, otherwise fall back to ``yt-dlp``."""

    settings = settings or get_settings()
    if settings.youtube_api_key is not None:
        return YouTubeDataApiProvider(
            settings.youtube_api_key.get_secret_value(),
            base_url=settings.youtube_api_base_url,
            timeout=settings.metadata_timeout_seconds,
            console=console,
        )
    return YtDlpMetadataProvider(console=console)


__all__ = [
    "MetadataProvider",
    "YouTubeDataApiProvider",
    "YtDlpMetadataProvider",
    "build_metadata_provider",
    "iso8601_duration",
]
