"""Background video analysis: transcribe, build cues and rough cuts, persist a sidecar."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from clipsense.analysis.models import VideoAnalysisResult
from clipsense.analysis.pipeline import BuildVideoAnalysisInput, build_video_analysis_result
from clipsense.analysis.queue import AnalysisJobQueue, AnalysisJobStatus
from clipsense.base.exceptions import AnalysisError, InvalidAnalysisInputError
from clipsense.config import get_section
from clipsense.transcription.failures import NO_SPEECH_DETECTED, format_transcription_failure
from clipsense.transcription.native import NativeTranscriber, TranscriptionBackend
from clipsense.transcription.payload import TranscriptionFailure

__all__ = [
    "StartVideoAnalysisInput",
    "VideoAnalysisService",
    "resolve_analysis_sidecar_path",
    "read_analysis_sidecar",
    "write_analysis_sidecar",
]

logger = logging.getLogger(__name__)

ANALYSIS_SIDECAR_SUFFIX = ".analysis.json"
SIDECAR_VERSION = 1

DEFAULT_LOCALE = "en-US"
DEFAULT_VIDEO_WIDTH = 1920
MIN_VIDEO_WIDTH = 320
DEFAULT_SUBTITLE_WIDTH_RATIO = 0.82


@dataclass(frozen=True)
class StartVideoAnalysisInput:
    """Request to analyze one recording.

    Attributes:
        video_path: Path to the video file. The sidecar is written next to it.
        locale: Recognition locale. None means the configured default locale.
        duration_ms: Video duration in milliseconds.
        video_width: Rendering width in pixels.
        subtitle_width_ratio: Share of the width subtitles may occupy.
    """

    video_path: str | Path
    locale: str | None = None
    duration_ms: float = 0
    video_width: float | None = None
    subtitle_width_ratio: float | None = None


def resolve_analysis_sidecar_path(video_path: str | Path) -> Path:
    """`/dir/clip.mp4` -> `/dir/clip.analysis.json`."""
    path = Path(video_path)
    return path.with_name(f"{path.stem}{ANALYSIS_SIDECAR_SUFFIX}")


def write_analysis_sidecar(video_path: str | Path, analysis: VideoAnalysisResult) -> Path:
    sidecar_path = resolve_analysis_sidecar_path(video_path)
    payload = {"version": SIDECAR_VERSION, "analysis": analysis.to_dict()}
    sidecar_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info("Wrote analysis sidecar %s", sidecar_path)
    return sidecar_path


def read_analysis_sidecar(video_path: str | Path) -> VideoAnalysisResult | None:
    """Load a previously written analysis, or None if missing or unreadable.

    Both the versioned envelope and a bare analysis object are accepted.
    """
    sidecar_path = resolve_analysis_sidecar_path(video_path)
    try:
        parsed = json.loads(sidecar_path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None

    if not isinstance(parsed, dict):
        return None
    analysis = parsed.get("analysis")
    if analysis is None:
        analysis = parsed
    if (
        not isinstance(analysis, dict)
        or not isinstance(analysis.get("transcript"), dict)
        or not isinstance(analysis.get("subtitleCues"), list)
        or not isinstance(analysis.get("roughCutSuggestions"), list)
    ):
        return None

    try:
        return VideoAnalysisResult.from_dict(analysis)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logger.warning("Ignoring malformed analysis sidecar %s: %s", sidecar_path, e)
        return None


def _finite(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class VideoAnalysisService:
    """Schedules analysis jobs and exposes their status and results.

    Jobs run on an `AnalysisJobQueue`. A job transcribes the video, builds the
    analysis and writes the sidecar file; any failure marks the job failed with
    a message suitable for display.
    """

    def __init__(
        self,
        backend: TranscriptionBackend | None = None,
        queue: AnalysisJobQueue[StartVideoAnalysisInput, VideoAnalysisResult] | None = None,
    ):
        self._backend = backend
        self.queue: AnalysisJobQueue[StartVideoAnalysisInput, VideoAnalysisResult] = queue or AnalysisJobQueue()

    @property
    def backend(self) -> TranscriptionBackend:
        if self._backend is None:
            self._backend = NativeTranscriber()
        return self._backend

    def _normalize_input(self, request: StartVideoAnalysisInput) -> StartVideoAnalysisInput:
        video_path = str(request.video_path or "").strip()
        if not video_path:
            raise InvalidAnalysisInputError("Video path is required.")

        config = get_section("analysis")
        if request.locale is None:
            locale = str(config.get("default_locale", DEFAULT_LOCALE)).strip()
        else:
            locale = str(request.locale).strip()
        if not locale:
            raise InvalidAnalysisInputError("Locale is required.")

        duration_ms = _finite(request.duration_ms) or 0.0
        video_width = _finite(request.video_width) or DEFAULT_VIDEO_WIDTH
        ratio = _finite(request.subtitle_width_ratio)
        if ratio is None:
            ratio = _finite(config.get("subtitle_width_ratio")) or DEFAULT_SUBTITLE_WIDTH_RATIO

        return StartVideoAnalysisInput(
            video_path=video_path,
            locale=locale,
            duration_ms=max(0, math.floor(duration_ms + 0.5)),
            video_width=max(MIN_VIDEO_WIDTH, math.floor(video_width + 0.5)),
            subtitle_width_ratio=ratio,
        )

    def start(self, request: StartVideoAnalysisInput) -> str:
        """Validate the request and schedule a job, returning its id.

        Raises:
            InvalidAnalysisInputError: If the video path or locale is empty.
        """
        job_input = self._normalize_input(request)
        job = self.queue.enqueue_with_id(job_input, self._run_job)
        logger.info("Queued analysis job %s for %s", job.id, job_input.video_path)
        return job.id

    def _run_job(self, job_input: StartVideoAnalysisInput) -> VideoAnalysisResult:
        assert job_input.locale is not None
        transcription = self.backend.transcribe(job_input.video_path, job_input.locale)
        if isinstance(transcription, TranscriptionFailure):
            raise AnalysisError(format_transcription_failure(transcription.code, transcription.message))
        if not transcription.words:
            raise AnalysisError(format_transcription_failure(NO_SPEECH_DETECTED, None))

        analysis = build_video_analysis_result(
            transcription.words,
            BuildVideoAnalysisInput(
                duration_ms=int(job_input.duration_ms),
                video_width=int(job_input.video_width or DEFAULT_VIDEO_WIDTH),
                subtitle_width_ratio=float(job_input.subtitle_width_ratio or DEFAULT_SUBTITLE_WIDTH_RATIO),
                locale=job_input.locale,
            ),
        )
        write_analysis_sidecar(job_input.video_path, analysis)
        return analysis

    def status(self, job_id: str) -> AnalysisJobStatus | None:
        return self.queue.get_status(job_id)

    def result(self, job_id: str) -> VideoAnalysisResult | None:
        return self.queue.get_result(job_id)
