"""Pydantic models describing YouTube video metadata."""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from tubelens.models.base import FrozenModel


class VideoMetadata(FrozenModel):
    """Denormalised snapshot of a video, fetched once per video per request.

    Counts are kept as strings because the YouTube Data API reports them that way and
    some videos hide their like count entirely.
    """

    id: str = Field(min_length=1)
    title: Optional[str] = None
    channel_id: Optional[str] = None
    channel_title: Optional[str] = None
    published_at: Optional[str] = None
    duration: Optional[str] = None
    view_count: Optional[str] = None
    like_count: Optional[str] = None


__all__ = ["VideoMetadata"]
