"""Compose transcript words into one `VideoAnalysisResult`."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Iterable

from clipsense.analysis.models import (
    RoughCutOptions,
    SubtitleGenerationOptions,
    VideoAnalysisResult,
    default_rough_cut_options,
    default_subtitle_generation_options,
)
from clipsense.analysis.rough_cut import generate_rough_cut_suggestions
from clipsense.analysis.subtitles import build_subtitle_cues_from_words
from clipsense.base.text.layout import estimate_max_chars_per_line
from clipsense.base.text.transcription import TranscriptData, TranscriptWord, normalize_words

__all__ = ["BuildVideoAnalysisInput", "build_video_analysis_result"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildVideoAnalysisInput:
    """Video properties the engines need.

    Attributes:
        duration_ms: Video duration, used to clamp rough-cut suggestions.
        video_width: Rendering width in pixels, drives the subtitle line budget.
        subtitle_width_ratio: Share of the width subtitles may occupy.
        locale: Recognition locale tag, e.g. "en-US".
    """

    duration_ms: int
    video_width: int
    subtitle_width_ratio: float
    locale: str


def _now_ms() -> int:
    return int(time.time() * 1000)


def build_video_analysis_result(
    words: Iterable[TranscriptWord],
    config: BuildVideoAnalysisInput,
    *,
    subtitle_options: SubtitleGenerationOptions | None = None,
    rough_cut_options: RoughCutOptions | None = None,
) -> VideoAnalysisResult:
    """Run the subtitle and rough-cut engines over one transcript.

    The per-line character budget always comes from the rendering width, overriding
    `subtitle_options.max_chars_per_line`.
    """
    normalized = normalize_words(words)
    subtitle_options = replace(
        subtitle_options or default_subtitle_generation_options(),
        max_chars_per_line=estimate_max_chars_per_line(config.video_width, config.subtitle_width_ratio),
    )
    rough_cut_options = rough_cut_options or default_rough_cut_options()

    subtitle_cues = build_subtitle_cues_from_words(normalized, subtitle_options)
    rough_cut_suggestions = generate_rough_cut_suggestions(normalized, config.duration_ms, rough_cut_options)
    logger.info(
        "Built analysis: words=%d cues=%d rough_cuts=%d",
        len(normalized),
        len(subtitle_cues),
        len(rough_cut_suggestions),
    )

    return VideoAnalysisResult(
        transcript=TranscriptData(
            locale=config.locale,
            text=" ".join(word.text for word in normalized).strip(),
            words=normalized,
            created_at_ms=_now_ms(),
        ),
        subtitle_cues=subtitle_cues,
        rough_cut_suggestions=rough_cut_suggestions,
    )
