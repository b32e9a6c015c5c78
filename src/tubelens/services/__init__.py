"""Service layer for tubelens: caption sources, metadata providers, filters and orchestration."""

from tubelens.services.transcript import TranscriptService

__all__ = ["TranscriptService"]
