from unittest.mock import patch

import httpx
import pytest
from yt_dlp.utils import DownloadError

from tubelens.config.settings import Settings
from tubelens.services.errors import MetadataLookupError
from tubelens.services.metadata import (
    YouTubeDataApiProvider,
    YtDlpMetadataProvider,
    build_metadata_provider,
    iso8601_duration,
)

VIDEO_ID = "aaaaaaaaaaa"

VIDEO_ITEM = {
    "id": VIDEO_ID,
    "snippet": {
        "title": "A talk",
        "channelId": "UC123",
        "channelTitle": "Talks",
        "publishedAt": "2024-01-02T03:04:05Z",
    },
    "contentDetails": {"duration": "PT4M13S"},
    "statistics": {"viewCount": "1200", "likeCount": "34"},
}


def _provider(handler, console):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return YouTubeDataApiProvider("test-key", client=client, console=console)


@pytest.mark.asyncio
async def test_data_api_parses_video(console):
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        seen["path"] = request.url.path
        return httpx.Response(200, json={"items": [VIDEO_ITEM]})

    metadata = await _provider(handler, console).get_video_details(VIDEO_ID)

    assert seen["path"].endswith("/youtube/v3/videos")
    assert seen["params"]["key"] == "test-key"
    assert seen["params"]["id"] == VIDEO_ID
    assert metadata.title == "A talk"
    assert metadata.channel_title == "Talks"
    assert metadata.duration == "PT4M13S"
    assert metadata.view_count == "1200"
    assert metadata.like_count == "34"


@pytest.mark.asyncio
async def test_data_api_missing_video_returns_none(console):
    provider = _provider(lambda request: httpx.Response(200, json={"items": []}), console)

    assert await provider.get_video_details(VIDEO_ID) is None


@pytest.mark.asyncio
async def test_data_api_http_error_raises_lookup_error(console):
    provider = _provider(lambda request: httpx.Response(403, json={"error": {"message": "quota"}}), console)

    with pytest.raises(MetadataLookupError, match="403"):
        await provider.get_video_details(VIDEO_ID)


@pytest.mark.asyncio
async def test_data_api_network_error_raises_lookup_error(console):
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(MetadataLookupError, match="Network error"):
        await _provider(handler, console).get_video_details(VIDEO_ID)


def test_data_api_requires_key():
    with pytest.raises(ValueError):
        YouTubeDataApiProvider("")


def test_yt_dlp_info_is_mapped():
    metadata = YtDlpMetadataProvider.parse_info(
        {
            "id": VIDEO_ID,
            "title": "A talk",
            "channel_id": "UC123",
            "channel": "Talks",
            "upload_date": "20240102",
            "duration": 253,
            "view_count": 1200,
            "like_count": None,
        },
        VIDEO_ID,
    )

    assert metadata.published_at == "2024-01-02T00:00:00Z"
    assert metadata.duration == "PT4M13S"
    assert metadata.view_count == "1200"
    assert metadata.like_count is None


@pytest.mark.parametrize("upload_date", ["NA", "2024-01-02", 20240102])
def test_yt_dlp_unparseable_upload_date_is_dropped(upload_date):
    metadata = YtDlpMetadataProvider.parse_info({"id": VIDEO_ID, "upload_date": upload_date}, VIDEO_ID)

    assert metadata.id == VIDEO_ID
    assert metadata.published_at is None


@pytest.mark.asyncio
async def test_yt_dlp_unavailable_video_returns_none(console):
    provider = YtDlpMetadataProvider(console=console)
    with patch.object(YtDlpMetadataProvider, "_extract_info", side_effect=DownloadError("ERROR: Video unavailable")):
        assert await provider.get_video_details(VIDEO_ID) is None


@pytest.mark.asyncio
async def test_yt_dlp_other_failures_raise(console):
    provider = YtDlpMetadataProvider(console=console)
    with patch.object(YtDlpMetadataProvider, "_extract_info", side_effect=DownloadError("ERROR: timed out")):
        with pytest.raises(MetadataLookupError):
            await provider.get_video_details(VIDEO_ID)


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(None, None), (0, "PT0S"), (59, "PT59S"), (60, "PT1M"), (3723, "PT1H2M3S"), (7200, "PT2H")],
)
def test_iso8601_duration(seconds, expected):
    assert iso8601_duration(seconds) == expected


def test_build_metadata_provider_prefers_data_api():
    with_key = Settings(_env_file=None, youtube_api_key="secret")
    without_key = Settings(_env_file=None, youtube_api_key=None)

    assert isinstance(build_metadata_provider(with_key), YouTubeDataApiProvider)
    assert isinstance(build_metadata_provider(without_key), YtDlpMetadataProvider)
