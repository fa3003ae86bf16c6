"""Subtitle segmentation: group transcript words into display cues."""

from __future__ import annotations

import bisect
import logging
import math
from dataclasses import replace
from typing import Iterable

from clipsense.analysis.models import SubtitleCue, SubtitleGenerationOptions
from clipsense.base.intervals import round_ms
from clipsense.base.text.layout import count_chars, normalize_subtitle_text, tokenize, truncate_with_ellipsis, wrap_text
from clipsense.base.text.transcription import TranscriptWord, normalize_words

__all__ = [
    "build_subtitle_cues_from_words",
    "build_subtitle_lines",
    "normalize_subtitle_cues",
    "find_subtitle_cue_at_time",
]

logger = logging.getLogger(__name__)

_DEFAULT_WORD_CONFIDENCE = 0.8


def _join_words(words: list[TranscriptWord]) -> str:
    return normalize_subtitle_text(" ".join(word.text for word in words))


def _cps_required_duration_ms(text: str, max_cps: float) -> int:
    return math.ceil(count_chars(text) / max(0.001, max_cps) * 1000)


def _exceeds_limits(candidate: list[TranscriptWord], options: SubtitleGenerationOptions, max_chars: int) -> bool:
    text = _join_words(candidate)
    duration_ms = candidate[-1].end_ms - candidate[0].start_ms
    return (
        duration_ms > options.max_cue_duration_ms
        or count_chars(text) > max_chars
        or _cps_required_duration_ms(text, options.max_cps) > options.max_cue_duration_ms
    )


def _group_words(words: list[TranscriptWord], options: SubtitleGenerationOptions) -> list[list[TranscriptWord]]:
    max_chars = max(1, options.max_chars_per_line * options.max_lines)
    groups: list[list[TranscriptWord]] = []
    buffer: list[TranscriptWord] = []

    for word in words:
        # Words sharing the group's start time stay together so cue starts strictly increase.
        if buffer and word.start_ms > buffer[0].start_ms:
            silence_gap = word.start_ms - buffer[-1].end_ms
            if silence_gap >= options.split_on_silence_ms or _exceeds_limits(buffer + [word], options, max_chars):
                groups.append(buffer)
                buffer = []
        buffer.append(word)

    if buffer:
        groups.append(buffer)
    return groups


def _constrained_end_ms(
    start_ms: int, end_ms: int, text: str, next_start_ms: int | None, options: SubtitleGenerationOptions
) -> int:
    required_ms = min(
        options.max_cue_duration_ms,
        max(options.min_cue_duration_ms, _cps_required_duration_ms(text, options.max_cps)),
    )
    end_ms = max(end_ms, start_ms + required_ms)
    end_ms = min(end_ms, start_ms + options.max_cue_duration_ms)
    if next_start_ms is not None:
        end_ms = min(end_ms, next_start_ms)
    return max(end_ms, start_ms + 1)


def _fit_text(text: str, duration_ms: int, options: SubtitleGenerationOptions) -> str:
    """Fit text into the line layout, then trim it until the reading speed holds.

    A cue always keeps at least one character. When the cue is too short to show
    even that within `max_cps`, the result is a lone ellipsis that reads faster
    than the limit.
    """
    _, separator = tokenize(text)
    fitted = separator.join(wrap_text(text, options.max_chars_per_line, options.max_lines))

    layout_budget = max(1, options.max_chars_per_line * options.max_lines)
    cps_budget = math.floor(duration_ms * options.max_cps / 1000 + 1e-9)
    if cps_budget < 1:
        logger.debug("Cue of %d ms is too short for %.1f chars/s, keeping one character", duration_ms, options.max_cps)
    return truncate_with_ellipsis(fitted, max(1, min(layout_budget, cps_budget)))


def build_subtitle_cues_from_words(
    words: Iterable[TranscriptWord],
    options: SubtitleGenerationOptions,
) -> list[SubtitleCue]:
    """Build non-overlapping subtitle cues from recognized words.

    A new cue starts on a silence of at least `split_on_silence_ms`, or when adding
    the next word would break the duration, character or reading-speed limits.
    Cue ends are stretched towards `min_cue_duration_ms` but never into the next
    cue; text that still reads too fast is truncated with an ellipsis.

    Args:
        words: Recognized words, in any order. Invalid words are dropped.
        options: Segmentation and layout limits.

    Returns:
        Cues sorted by start time with ids `subtitle-1`, `subtitle-2`, ...
    """
    normalized = normalize_words(words)
    if not normalized:
        return []

    drafts: list[tuple[int, int, str, float]] = []
    for group in _group_words(normalized, options):
        text = _join_words(group)
        if not text:
            continue
        confidence = sum(
            word.confidence if word.confidence is not None else _DEFAULT_WORD_CONFIDENCE for word in group
        ) / len(group)
        drafts.append((group[0].start_ms, group[-1].end_ms, text, confidence))

    cues: list[SubtitleCue] = []
    for index, (start_ms, end_ms, text, confidence) in enumerate(drafts):
        next_start_ms = drafts[index + 1][0] if index + 1 < len(drafts) else None
        end_ms = _constrained_end_ms(start_ms, end_ms, text, next_start_ms, options)
        cues.append(
            SubtitleCue(
                id=f"subtitle-{index + 1}",
                start_ms=start_ms,
                end_ms=end_ms,
                text=_fit_text(text, end_ms - start_ms, options),
                source="asr",
                confidence=confidence,
            )
        )
    return cues


def normalize_subtitle_cues(cues: Iterable[SubtitleCue]) -> list[SubtitleCue]:
    """Clean up an edited cue track: round times, trim text, drop empty cues, sort."""
    normalized: list[SubtitleCue] = []
    for cue in cues:
        start_ms = round_ms(cue.start_ms)
        end_ms = round_ms(cue.end_ms)
        text = (cue.text or "").strip()
        if start_ms is None or end_ms is None or not text:
            continue
        start_ms, end_ms = max(0, start_ms), max(0, end_ms)
        if end_ms <= start_ms:
            continue
        normalized.append(replace(cue, start_ms=start_ms, end_ms=end_ms, text=text))
    return sorted(normalized, key=lambda cue: cue.start_ms)


def find_subtitle_cue_at_time(cues: list[SubtitleCue], time_ms: float) -> SubtitleCue | None:
    """Return the cue shown at `time_ms`, treating cues as `[start, end)`.

    `cues` must be sorted and non-overlapping, e.g. from `normalize_subtitle_cues`.
    """
    if not cues or not math.isfinite(time_ms) or time_ms < 0:
        return None
    starts = [cue.start_ms for cue in cues]
    index = bisect.bisect_right(starts, time_ms) - 1
    if index < 0:
        return None
    cue = cues[index]
    return cue if time_ms < cue.end_ms else None


def build_subtitle_lines(cue: SubtitleCue, max_chars_per_line: int, max_lines: int) -> list[str]:
    """Split a cue's text into the lines it is rendered with."""
    return wrap_text(normalize_subtitle_text(cue.text), max_chars_per_line, max_lines)
