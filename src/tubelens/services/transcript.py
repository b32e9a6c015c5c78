"""Transcript service: cached caption retrieval, filtering, formatting and multi-video fan-out."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence, Tuple, Union

from rich.console import Console

from tubelens.config.settings import Settings, get_settings
from tubelens.models.transcript import (
    Cue,
    FormattedTranscript,
    ResultErrorType,
    Segment,
    TranscriptOptions,
    VideoTranscriptResult,
)
from tubelens.models.video import VideoMetadata
from tubelens.services.cache import CacheKey, CueCache, cache_key
from tubelens.services.captions import CaptionSource, YouTubeCaptionSource
from tubelens.services.errors import (
    CaptionUnavailableError,
    MetadataLookupError,
    MetadataNotFoundError,
    SourceError,
    TranscriptError,
)
from tubelens.services.filters import apply_filters, segment_cues
from tubelens.services.formatter import format_transcript
from tubelens.services.metadata import MetadataProvider, build_metadata_provider
from tubelens.utils.validation import (
    InvalidTranscriptOptionsError,
    InvalidYouTubeURLError,
    OptionsInput,
    extract_video_id,
    normalize_video_ids,
    parse_options,
)

PipelineOutput = Tuple[List[Cue], Optional[List[Segment]]]


class TranscriptService:
    """Serve filtered and formatted transcripts for one or many videos."""

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        console: Optional[Console] = None,
        caption_source: Optional[CaptionSource] = None,
        metadata_provider: Optional[MetadataProvider] = None,
        cache: Optional[CueCache] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._console = console or Console()
        self._caption_source = caption_source or YouTubeCaptionSource(
            default_language=self._settings.default_language,
            console=self._console,
            retry_attempts=self._settings.caption_retry_attempts,
        )
        self._metadata_provider = metadata_provider or build_metadata_provider(self._settings, console=self._console)
        self._cache = (
            cache
            if cache is not None
            else CueCache(
                ttl_seconds=self._settings.transcript_cache_ttl_seconds,
                max_entries=self._settings.transcript_cache_max_entries,
            )
        )
        self._inflight: Dict[CacheKey, asyncio.Future[List[Cue]]] = {}

    @property
    def cache(self) -> CueCache:
        return self._cache

    # ------------------------------------------------------------------ #
    # Single video                                                       #
    # ------------------------------------------------------------------ #
    async def get_transcript(self, video_id: str, language: Optional[str] = None) -> List[Cue]:
        """Return the raw cue sequence for ``video_id``, served from cache when fresh.

        Concurrent misses for the same video and language share one fetch. The cache only
        ever receives a complete sequence, so a cancelled caller cannot leave partial data.

        Raises
        ------
        CaptionUnavailableError
            If the video has no captions for ``language`` (or an empty caption track).
        SourceError
            If the caption source failed to fetch or parse the captions.
        """

        cached = self._cache.get(video_id, language)
        if cached is not None:
            if self._settings.debug:
                self._console.log(f"Transcript cache hit (video_id={video_id}, language={language or 'default'})")
            return cached

        key = cache_key(video_id, language)
        fetch = self._inflight.get(key)
        if fetch is None:
            if self._settings.debug:
                self._console.log(f"Transcript cache miss (video_id={video_id}, language={language or 'default'})")
            fetch = asyncio.ensure_future(self._fetch_and_store(video_id, language))
            self._inflight[key] = fetch
            fetch.add_done_callback(lambda done: self._release_inflight(key, done))
        return list(await asyncio.shield(fetch))

    async def _fetch_and_store(self, video_id: str, language: Optional[str]) -> List[Cue]:
        cues = await self._caption_source.fetch(video_id, language)
        if not cues:
            raise CaptionUnavailableError(
                f"Transcript for video ID {video_id} is empty.", video_id=video_id
            )
        self._cache.put(video_id, language, cues)
        return cues

    def _release_inflight(self, key: CacheKey, done: "asyncio.Future[List[Cue]]") -> None:
        if self._inflight.get(key) is done:
            del self._inflight[key]
        if not done.cancelled():
            # Mark the exception as retrieved; waiters that were cancelled never will.
            done.exception()

    # ------------------------------------------------------------------ #
    # Combined transcript                                                #
    # ------------------------------------------------------------------ #
    async def get_enhanced_transcript(
        self,
        video_ids: Union[str, Sequence[str]],
        options: OptionsInput = None,
    ) -> FormattedTranscript:
        """Build one combined transcript across ``video_ids``.

        Parameters
        ----------
        video_ids:
            A single video ID or URL, or several. Duplicates are processed once and the
            combined output follows the caller's order.
        options:
            :class:`TranscriptOptions` or an equivalent mapping.

        Returns
        -------
        FormattedTranscript
            Filtered, optionally segmented transcript. When more than one video is requested
            every cue carries its ``video_id``. An empty result means nothing matched.

        Raises
        ------
        InvalidTranscriptOptionsError, InvalidYouTubeURLError
            Before any I/O, for malformed options or video references.
        CaptionUnavailableError, SourceError
            If any requested video's transcript cannot be fetched.
        """

        parsed = self._parse_options(options)
        ids = normalize_video_ids(video_ids)
        tag = len(ids) > 1

        outputs = await asyncio.gather(
            *(self._run_pipeline(video_id, parsed, tag=tag) for video_id in ids), return_exceptions=True
        )
        cues: List[Cue] = []
        segments: Optional[List[Segment]] = [] if parsed.segment is not None else None
        for video_id, output in zip(ids, outputs):
            if isinstance(output, BaseException):
                self._console.log(f"[red]Transcript retrieval failed:[/red] {output} (video_id={video_id})")
                raise output
            video_cues, video_segments = output
            cues.extend(video_cues)
            if segments is not None and video_segments is not None:
                segments.extend(video_segments)

        if not cues:
            self._console.log(f"[yellow]{self._empty_message(parsed)}[/yellow] (video_ids={', '.join(ids)})")

        metadata: List[Optional[VideoMetadata]] = []
        if parsed.include_metadata:
            metadata = list(await asyncio.gather(*(self._lookup_metadata(video_id) for video_id in ids)))

        return format_transcript(cues, parsed, segments=segments, metadata=metadata)

    # ------------------------------------------------------------------ #
    # Per-video results                                                  #
    # ------------------------------------------------------------------ #
    async def process_multi_video(
        self,
        video_ids: Union[str, Sequence[str]],
        options: OptionsInput = None,
    ) -> List[VideoTranscriptResult]:
        """Process each requested video independently.

        Exactly one result is returned per input entry, in input order. A failing video
        yields a result with ``error`` and ``error_type`` set and never affects the others.

        Raises
        ------
        InvalidTranscriptOptionsError
            If ``options`` are malformed or no video IDs were supplied.
        """

        parsed = self._parse_options(options)
        raw_ids = [video_ids] if isinstance(video_ids, str) else list(video_ids)
        if not raw_ids:
            raise InvalidTranscriptOptionsError("At least one video ID is required.")

        tag = len(raw_ids) > 1
        semaphore = asyncio.Semaphore(self._settings.max_concurrent_videos)

        async def run(raw_id: str) -> VideoTranscriptResult:
            async with semaphore:
                return await self._process_one(raw_id, parsed, tag=tag)

        return list(await asyncio.gather(*(run(raw_id) for raw_id in raw_ids)))

    async def _process_one(self, raw_id: str, options: TranscriptOptions, *, tag: bool) -> VideoTranscriptResult:
        try:
            video_id = extract_video_id(raw_id)
        except InvalidYouTubeURLError as exc:
            return self._error_result(raw_id, ResultErrorType.INVALID_INPUT, str(exc))

        try:
            metadata = await self._metadata_provider.get_video_details(video_id)
        except MetadataLookupError as exc:
            return self._error_result(video_id, ResultErrorType.FAILED, f"Error fetching video details: {exc}")
        except Exception as exc:  # noqa: BLE001
            return self._error_result(
                video_id, ResultErrorType.FAILED, f"Unexpected error fetching video details: {exc}"
            )
        if metadata is None:
            return self._error_result(video_id, ResultErrorType.NOT_FOUND, str(MetadataNotFoundError(video_id)))

        try:
            cues, segments = await self._run_pipeline(video_id, options, tag=tag)
        except CaptionUnavailableError as exc:
            return self._error_result(video_id, ResultErrorType.NO_TRANSCRIPT, str(exc))
        except SourceError as exc:
            return self._error_result(video_id, ResultErrorType.FAILED, f"Error fetching transcript: {exc}")
        except Exception as exc:  # noqa: BLE001
            return self._error_result(video_id, ResultErrorType.FAILED, f"Unexpected error: {exc}")

        transcript = format_transcript(cues, options, segments=segments, metadata=[metadata])
        return VideoTranscriptResult(
            video_id=video_id,
            transcript=transcript,
            metadata=metadata if options.include_metadata else None,
            message=None if cues else self._empty_message(options),
        )

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #
    async def _run_pipeline(self, video_id: str, options: TranscriptOptions, *, tag: bool) -> PipelineOutput:
        try:
            raw = await self.get_transcript(video_id, options.language)
        except TranscriptError as exc:
            if exc.options is None:
                exc.options = options
            raise

        filtered = apply_filters(raw, options)
        if tag:
            filtered = [cue.tagged(video_id) for cue in filtered]
        segments = segment_cues(filtered, options.segment) if options.segment is not None else None
        return filtered, segments

    async def _lookup_metadata(self, video_id: str) -> Optional[VideoMetadata]:
        try:
            metadata = await self._metadata_provider.get_video_details(video_id)
        except MetadataLookupError as exc:
            self._console.log(f"[yellow]Metadata lookup failed:[/yellow] {exc} (video_id={video_id})")
            return None
        if metadata is None:
            self._console.log(f"[yellow]{MetadataNotFoundError(video_id)}[/yellow]")
        return metadata

    def _parse_options(self, options: OptionsInput) -> TranscriptOptions:
        return parse_options(options, self._settings.transcript_defaults)

    def _error_result(self, video_id: str, error_type: ResultErrorType, message: str) -> VideoTranscriptResult:
        self._console.log(f"[red]{error_type.value}:[/red] {message} (video_id={video_id})")
        return VideoTranscriptResult(video_id=video_id, error=message, error_type=error_type)

    @staticmethod
    def _empty_message(options: TranscriptOptions) -> str:
        if options.search is not None:
            return f"No cues matched search query '{options.search.query}'."
        if options.time_range is not None:
            return "No cues fall within the requested time range."
        return "Transcript contains no cues."


__all__ = ["TranscriptService"]
