"""CLI command for fetching, filtering and formatting video transcripts."""

from __future__ import annotations

import asyncio
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional

import typer
from rich.console import Console

from tubelens.models.transcript import FormattedTranscript, SegmentMethod, TranscriptFormat, VideoTranscriptResult
from tubelens.services.errors import CaptionUnavailableError, SourceError
from tubelens.services.transcript import TranscriptService
from tubelens.utils.validation import InvalidTranscriptOptionsError, InvalidYouTubeURLError

ServiceFactory = Callable[[], TranscriptService]


class TranscriptExitCode:
    """Mapping of meaningful CLI exit codes."""

    SUCCESS = 0
    INVALID_INPUT = 1
    NO_TRANSCRIPT = 2
    SOURCE_ERROR = 3


def build_options_payload(
    *,
    language: Optional[str],
    start: Optional[float],
    end: Optional[float],
    search: Optional[str],
    case_sensitive: bool,
    context_lines: Optional[int],
    segments: Optional[int],
    segment_method: SegmentMethod,
    output_format: Optional[TranscriptFormat],
    include_metadata: bool,
) -> Dict[str, Any]:
    """Translate CLI flags into an options mapping; unset flags fall back to configured defaults."""

    payload: Dict[str, Any] = {"include_metadata": include_metadata}
    if language:
        payload["language"] = language
    if output_format is not None:
        payload["format"] = output_format.value
    if start is not None or end is not None:
        payload["time_range"] = {"start": start, "end": end}
    if search is not None:
        payload["search"] = {"query": search, "case_sensitive": case_sensitive}
        if context_lines is not None:
            payload["search"]["context_lines"] = context_lines
    if segments is not None:
        payload["segment"] = {"method": segment_method.value, "count": segments}
    return payload


def register(app: typer.Typer, console: Console, *, service_factory: Optional[ServiceFactory] = None) -> None:
    """Register the ``transcript`` command."""

    @lru_cache(maxsize=1)
    def get_transcript_service() -> TranscriptService:
        if service_factory is not None:
            return service_factory()
        return TranscriptService(console=Console(stderr=True))

    def print_transcript(transcript: FormattedTranscript, as_json: bool) -> None:
        if as_json or transcript.text is None:
            console.print_json(transcript.model_dump_json())
            return
        if transcript.is_empty:
            console.print("[yellow]No cues matched the requested filters.[/yellow]")
            return
        console.print(transcript.text, markup=False, highlight=False, soft_wrap=True)

    def print_results(results: List[VideoTranscriptResult]) -> None:
        console.print_json(data=[result.model_dump(mode="json") for result in results])

    @app.command("transcript")
    def transcript_command(
        video_ids: List[str] = typer.Argument(..., help="One or more YouTube video IDs or URLs."),
        language: Optional[str] = typer.Option(None, "--language", "-l", help="Caption language code."),
        start: Optional[float] = typer.Option(None, "--start", min=0.0, help="Window start in seconds."),
        end: Optional[float] = typer.Option(None, "--end", min=0.0, help="Window end in seconds."),
        search: Optional[str] = typer.Option(None, "--search", "-s", help="Only keep cues containing this text."),
        case_sensitive: bool = typer.Option(False, "--case-sensitive", help="Match search text case-sensitively."),
        context_lines: Optional[int] = typer.Option(
            None, "--context-lines", min=0, help="Cues kept around each search match."
        ),
        segments: Optional[int] = typer.Option(None, "--segments", min=1, help="Split into at most N segments."),
        segment_method: SegmentMethod = typer.Option(
            SegmentMethod.EQUAL, "--segment-method", help="Segmentation strategy."
        ),
        output_format: Optional[TranscriptFormat] = typer.Option(None, "--format", "-f", help="Output format."),
        include_metadata: bool = typer.Option(False, "--metadata", help="Attach video metadata."),
        per_video: bool = typer.Option(False, "--per-video", help="Report each video separately as JSON."),
        as_json: bool = typer.Option(False, "--json", help="Print the combined transcript as JSON."),
    ) -> None:
        """Fetch, filter and format transcripts for one or more videos."""

        payload = build_options_payload(
            language=language,
            start=start,
            end=end,
            search=search,
            case_sensitive=case_sensitive,
            context_lines=context_lines,
            segments=segments,
            segment_method=segment_method,
            output_format=output_format,
            include_metadata=include_metadata,
        )
        service = get_transcript_service()

        try:
            if per_video:
                print_results(asyncio.run(service.process_multi_video(video_ids, payload)))
                return
            transcript = asyncio.run(service.get_enhanced_transcript(video_ids, payload))
        except (InvalidTranscriptOptionsError, InvalidYouTubeURLError) as exc:
            console.print(f"[red]Invalid input:[/red] {exc}")
            raise typer.Exit(code=TranscriptExitCode.INVALID_INPUT) from exc
        except CaptionUnavailableError as exc:
            console.print(f"[yellow]{exc}[/yellow]")
            raise typer.Exit(code=TranscriptExitCode.NO_TRANSCRIPT) from exc
        except SourceError as exc:
            console.print(f"[red]Error fetching transcript:[/red] {exc}")
            raise typer.Exit(code=TranscriptExitCode.SOURCE_ERROR) from exc

        print_transcript(transcript, as_json)


__all__ = ["ServiceFactory", "TranscriptExitCode", "build_options_payload", "register"]
