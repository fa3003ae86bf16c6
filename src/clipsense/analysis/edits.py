"""Editor-side regions that rough-cut suggestions are merged into."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Iterable, Literal

from clipsense.analysis.models import RoughCutSuggestion
from clipsense.base.intervals import clamp, merge_intervals, normalize_interval, round_ms

__all__ = [
    "TrimRegion",
    "AudioEditRegion",
    "apply_rough_cut_suggestions_to_trim_regions",
    "rough_cut_suggestions_to_audio_edit_regions",
    "normalize_audio_edit_regions",
    "get_audio_edit_gain_multiplier_at_time",
]

AudioEditMode = Literal["mute", "duck"]

MIN_AUDIO_EDIT_DURATION_MS = 20
AUDIO_EDIT_MERGE_GAP_MS = 1
AUDIO_GAIN_EPSILON = 0.0001


@dataclass(frozen=True)
class TrimRegion:
    id: str
    start_ms: int
    end_ms: int


@dataclass(frozen=True)
class AudioEditRegion:
    id: str
    start_ms: int
    end_ms: int
    mode: AudioEditMode = "mute"
    gain: float = 0.0
    source: Literal["manual", "rough-cut"] | None = None
    reason: Literal["silence", "filler"] | None = None


def _normalize_trim_region(region: TrimRegion, duration_ms: int) -> TrimRegion | None:
    interval = normalize_interval(region.start_ms, region.end_ms, duration_ms)
    if interval is None:
        return None
    return replace(region, start_ms=interval.start_ms, end_ms=interval.end_ms)


def apply_rough_cut_suggestions_to_trim_regions(
    existing: list[TrimRegion],
    suggestions: Iterable[RoughCutSuggestion],
    duration_ms: int,
) -> list[TrimRegion]:
    """Fold accepted suggestions into the editor's trim regions.

    Existing and suggested regions are clamped to the video, merged when they touch
    or overlap, and renumbered `trim-1`, `trim-2`, ... Without suggestions the
    existing regions are returned untouched.
    """
    suggestions = list(suggestions)
    if not suggestions:
        return existing

    regions = [r for r in (_normalize_trim_region(region, duration_ms) for region in existing) if r is not None]
    for index, suggestion in enumerate(suggestions):
        interval = normalize_interval(suggestion.start_ms, suggestion.end_ms, duration_ms)
        if interval is not None:
            regions.append(TrimRegion(id=f"trim-auto-{index + 1}", start_ms=interval.start_ms, end_ms=interval.end_ms))

    merged = merge_intervals(regions, 0)
    return [replace(region, id=f"trim-{index + 1}") for index, region in enumerate(merged)]


def rough_cut_suggestions_to_audio_edit_regions(
    suggestions: Iterable[RoughCutSuggestion],
    *,
    mode: AudioEditMode = "mute",
    gain: float = 0.0,
) -> list[AudioEditRegion]:
    """Turn suggestions into mute/duck regions instead of cutting video."""
    return [
        AudioEditRegion(
            id=f"audio-edit-{index + 1}",
            start_ms=suggestion.start_ms,
            end_ms=suggestion.end_ms,
            mode=mode,
            gain=gain,
            source="rough-cut",
            reason=suggestion.reason,
        )
        for index, suggestion in enumerate(suggestions)
    ]


def _normalize_gain(value: float) -> float:
    try:
        gain = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(gain):
        return 0.0
    return clamp(gain, 0.0, 1.0)


def _normalize_audio_edit_region(region: AudioEditRegion, duration_ms: int) -> AudioEditRegion | None:
    total = max(0, round_ms(duration_ms) or 0)
    start_ms = round_ms(region.start_ms)
    end_ms = round_ms(region.end_ms)
    if start_ms is None or end_ms is None:
        return None
    start_ms = int(clamp(start_ms, 0, total))
    end_ms = int(clamp(end_ms, 0, total))
    if end_ms - start_ms < MIN_AUDIO_EDIT_DURATION_MS:
        return None

    return replace(
        region,
        start_ms=start_ms,
        end_ms=end_ms,
        mode="duck" if region.mode == "duck" else "mute",
        gain=_normalize_gain(region.gain),
        source=region.source if region.source in ("manual", "rough-cut") else None,
        reason=region.reason if region.reason in ("silence", "filler") else None,
    )


def _same_mode_and_gain(previous: AudioEditRegion, region: AudioEditRegion) -> bool:
    return previous.mode == region.mode and abs(previous.gain - region.gain) <= AUDIO_GAIN_EPSILON


def _merge_audio_edit(previous: AudioEditRegion, region: AudioEditRegion) -> AudioEditRegion:
    source = "manual" if region.source == "manual" else previous.source
    reason = previous.reason if previous.reason == region.reason else None
    return replace(previous, end_ms=max(previous.end_ms, region.end_ms), source=source, reason=reason)


def normalize_audio_edit_regions(regions: Iterable[AudioEditRegion] | None, duration_ms: int) -> list[AudioEditRegion]:
    """Clamp, clean and merge audio edit regions.

    Adjacent regions (at most 1 ms apart) merge only when they share mode and gain.
    A manual region makes the merged region manual; differing reasons clear it.
    """
    if not regions:
        return []

    normalized = [r for r in (_normalize_audio_edit_region(region, duration_ms) for region in regions) if r is not None]
    normalized.sort(key=lambda region: (region.start_ms, region.end_ms))
    merged = merge_intervals(
        normalized,
        AUDIO_EDIT_MERGE_GAP_MS,
        combine=_merge_audio_edit,
        can_merge=_same_mode_and_gain,
    )
    return [
        region if region.id else replace(region, id=f"audio-edit-{index + 1}") for index, region in enumerate(merged)
    ]


def get_audio_edit_gain_multiplier_at_time(time_ms: float, regions: list[AudioEditRegion] | None) -> float:
    """Gain multiplier applied at `time_ms`; the quietest active region wins."""
    if not regions or not math.isfinite(time_ms):
        return 1.0

    time_ms = max(0.0, time_ms)
    multiplier = 1.0
    for region in regions:
        if region.start_ms > time_ms:
            break
        if region.start_ms <= time_ms < region.end_ms:
            multiplier = min(multiplier, _normalize_gain(region.gain))
            if multiplier <= 0:
                return 0.0
    return multiplier
