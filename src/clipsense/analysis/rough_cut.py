"""Rough-cut suggestions: long silences and filler-word runs."""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Iterable

from clipsense.analysis.models import RoughCutOptions, RoughCutSuggestion
from clipsense.base.intervals import merge_intervals, normalize_interval
from clipsense.base.text.transcription import TranscriptWord, normalize_words

__all__ = ["generate_rough_cut_suggestions", "normalize_rough_cut_suggestions", "normalize_filler_token"]

SUGGESTION_MERGE_GAP_MS = 40
MAX_FILLER_GAP_MS = 200

# Leading/trailing characters that are neither letters nor digits.
_EDGE_PUNCTUATION_RE = re.compile(r"^[\W_]+|[\W_]+$")


def normalize_filler_token(value: str) -> str:
    return _EDGE_PUNCTUATION_RE.sub("", value.lower().strip())


def _merge_pair(previous: RoughCutSuggestion, item: RoughCutSuggestion) -> RoughCutSuggestion:
    end_ms = max(previous.end_ms, item.end_ms)
    # Strictly higher confidence takes over reason and label; ties keep the earlier one.
    if item.confidence > previous.confidence:
        return replace(previous, end_ms=end_ms, reason=item.reason, label=item.label, confidence=item.confidence)
    return replace(previous, end_ms=end_ms, confidence=max(previous.confidence, item.confidence))


def normalize_rough_cut_suggestions(
    suggestions: Iterable[RoughCutSuggestion],
    duration_ms: int,
) -> list[RoughCutSuggestion]:
    """Clamp suggestions to the video, drop empty ones and merge neighbours.

    Suggestions whose gap is at most 40 ms are merged. Ids are re-issued as
    `roughcut-1`, `roughcut-2`, ... after merging.
    """
    clamped: list[RoughCutSuggestion] = []
    for suggestion in suggestions:
        interval = normalize_interval(suggestion.start_ms, suggestion.end_ms, duration_ms)
        if interval is None:
            continue
        clamped.append(replace(suggestion, start_ms=interval.start_ms, end_ms=interval.end_ms))

    merged = merge_intervals(clamped, SUGGESTION_MERGE_GAP_MS, combine=_merge_pair)
    return [replace(suggestion, id=f"roughcut-{index + 1}") for index, suggestion in enumerate(merged)]


def _silence_suggestions(words: list[TranscriptWord], min_silence_ms: int) -> list[RoughCutSuggestion]:
    suggestions = []
    for index in range(1, len(words)):
        previous, current = words[index - 1], words[index]
        gap = current.start_ms - previous.end_ms
        if gap < min_silence_ms:
            continue
        suggestions.append(
            RoughCutSuggestion(
                id=f"silence-{index}",
                start_ms=previous.end_ms,
                end_ms=current.start_ms,
                reason="silence",
                confidence=min(0.98, 0.55 + gap / 3000),
                label="Long silence",
            )
        )
    return suggestions


def _filler_suggestions(
    words: list[TranscriptWord], filler_words: Iterable[str], min_duration_ms: int
) -> list[RoughCutSuggestion]:
    filler_set = {token for token in (normalize_filler_token(word) for word in filler_words) if token}
    suggestions: list[RoughCutSuggestion] = []
    run: list[TranscriptWord] = []

    def flush() -> None:
        if not run:
            return
        duration = run[-1].end_ms - run[0].start_ms
        if duration >= min_duration_ms:
            suggestions.append(
                RoughCutSuggestion(
                    id=f"filler-{run[0].start_ms}",
                    start_ms=run[0].start_ms,
                    end_ms=run[-1].end_ms,
                    reason="filler",
                    confidence=min(0.96, 0.62 + duration / 2000),
                    label="Filler words",
                )
            )
        run.clear()

    for word in words:
        if normalize_filler_token(word.text) not in filler_set:
            flush()
            continue
        if run and word.start_ms - run[-1].end_ms > MAX_FILLER_GAP_MS:
            flush()
        run.append(word)

    flush()
    return suggestions


def generate_rough_cut_suggestions(
    words: Iterable[TranscriptWord],
    duration_ms: int,
    options: RoughCutOptions,
) -> list[RoughCutSuggestion]:
    """Suggest silences and filler-word runs for deletion.

    Args:
        words: Recognized words. Invalid entries are ignored.
        duration_ms: Total video duration used to clamp suggestions.
        options: Detection thresholds and the filler vocabulary.

    Returns:
        Normalized, merged suggestions sorted by start time.
    """
    normalized = normalize_words(words)
    if not normalized:
        return []

    suggestions = _silence_suggestions(normalized, options.min_silence_ms)
    suggestions += _filler_suggestions(normalized, options.filler_words, options.min_filler_duration_ms)
    return normalize_rough_cut_suggestions(suggestions, duration_ms)
