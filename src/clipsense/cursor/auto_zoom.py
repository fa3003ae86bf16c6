"""Derive auto-zoom regions from cursor telemetry.

Candidates come from three sources, strongest first: recorded click and selection
events, clicks flagged on raw samples, and bursts of fast cursor movement. Each
candidate becomes a draft interval; nearby drafts are merged and, if there are too
many, only the highest scoring ones are kept.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Sequence

import numpy as np

from clipsense.base.intervals import clamp, merge_intervals
from clipsense.cursor.models import (
    AutoZoomDraft,
    AutoZoomReason,
    CursorPoint,
    CursorSample,
    CursorTrack,
    CursorTrackEvent,
    ZoomFocus,
)

__all__ = ["generate_auto_zoom_drafts"]

logger = logging.getLogger(__name__)

CLICK_PRE_ROLL_MS = 220
CLICK_HOLD_MS = 1_400
CLICK_MIN_GAP_MS = 260
CLICK_DEPTH = 3
CLICK_WEIGHT = 3.2
INFERRED_CLICK_WEIGHT = 3.0

SELECTION_PRE_ROLL_MS = 120
SELECTION_BASE_HOLD_MS = 1_550
SELECTION_MAX_EXTRA_HOLD_MS = 2_200
SELECTION_DEPTH = 3
SELECTION_BASE_WEIGHT = 3.8
SELECTION_MIN_SPAN = 0.008
SELECTION_MIN_DURATION_MS = 120

MOVEMENT_PRE_ROLL_MS = 120
MOVEMENT_HOLD_MS = 920
MOVEMENT_MIN_GAP_MS = 680
MOVEMENT_MIN_DISTANCE = 0.018
MOVEMENT_BASE_SPEED = 0.42
MOVEMENT_PERCENTILE = 0.86
MOVEMENT_DEPTH = 2

SPEED_MIN_DT_MS = 6
SPEED_MAX_DT_MS = 320
SPEED_MIN_DISTANCE = 0.0008

ANCHOR_EXCLUSION_MS = 360
MERGE_GAP_MS = 140
MIN_REGION_DURATION_MS = 420
MIN_TRACK_DURATION_MS = 200
DEFAULT_MAX_REGIONS = 64
MAX_REGIONS_LIMIT = 200

_REASON_PRIORITY: dict[str, int] = {"selection": 3, "click": 2, "movement": 1}
_REASON_BONUS: dict[str, float] = {"selection": 2.6, "click": 2.0, "movement": 0.0}


@dataclass(frozen=True)
class _Candidate:
    time_ms: int
    focus: ZoomFocus
    depth: int
    reason: AutoZoomReason
    weight: float
    pre_roll_ms: int
    hold_ms: float


@dataclass(frozen=True)
class _WeightedDraft:
    start_ms: int
    end_ms: int
    depth: int
    focus: ZoomFocus
    reason: AutoZoomReason
    weight: float


def _clamp01(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return clamp(value, 0.0, 1.0)


def _focus(point: CursorPoint | CursorSample) -> ZoomFocus:
    return ZoomFocus(cx=_clamp01(point.x), cy=_clamp01(point.y))


def _normalize_samples(track: CursorTrack) -> list[CursorSample]:
    samples = [
        replace(sample, time_ms=max(0, math.floor(sample.time_ms + 0.5)), x=_clamp01(sample.x), y=_clamp01(sample.y))
        for sample in track.samples
        if math.isfinite(sample.time_ms) and math.isfinite(sample.x) and math.isfinite(sample.y)
    ]
    return sorted(samples, key=lambda sample: sample.time_ms)


def _normalize_events(track: CursorTrack) -> list[CursorTrackEvent]:
    events = []
    for event in track.events:
        if event.type not in ("click", "selection") or not math.isfinite(event.start_ms):
            continue
        start_ms = max(0, math.floor(event.start_ms + 0.5))
        end_ms = math.floor(event.end_ms + 0.5) if math.isfinite(event.end_ms) else start_ms
        events.append(replace(event, start_ms=start_ms, end_ms=max(start_ms, end_ms)))
    return sorted(events, key=lambda event: event.start_ms)


def _selection_span(event: CursorTrackEvent) -> float:
    if event.bounds is not None:
        span = max(event.bounds.width, event.bounds.height)
        return span if math.isfinite(span) else 0.0
    if event.start_point is not None and event.end_point is not None:
        span = max(abs(event.end_point.x - event.start_point.x), abs(event.end_point.y - event.start_point.y))
        return span if math.isfinite(span) else 0.0
    return 0.0


def _event_candidates(events: list[CursorTrackEvent]) -> list[_Candidate]:
    candidates: list[_Candidate] = []
    last_click_at = -math.inf

    for event in events:
        if event.type == "click":
            if event.start_ms - last_click_at < CLICK_MIN_GAP_MS:
                continue
            candidates.append(
                _Candidate(
                    time_ms=int(event.start_ms),
                    focus=_focus(event.point),
                    depth=CLICK_DEPTH,
                    reason="click",
                    weight=CLICK_WEIGHT,
                    pre_roll_ms=CLICK_PRE_ROLL_MS,
                    hold_ms=CLICK_HOLD_MS,
                )
            )
            last_click_at = event.start_ms
            continue

        duration_ms = event.end_ms - event.start_ms
        max_span = _selection_span(event)
        if max_span < SELECTION_MIN_SPAN and duration_ms < SELECTION_MIN_DURATION_MS:
            continue
        focus_point = event.bounds.center if event.bounds is not None else event.point
        candidates.append(
            _Candidate(
                time_ms=int(event.start_ms),
                focus=_focus(focus_point),
                depth=SELECTION_DEPTH,
                reason="selection",
                weight=SELECTION_BASE_WEIGHT + min(1.6, max_span * 8),
                pre_roll_ms=SELECTION_PRE_ROLL_MS,
                hold_ms=SELECTION_BASE_HOLD_MS
                + clamp(duration_ms * 0.9 + max_span * 2000, 0, SELECTION_MAX_EXTRA_HOLD_MS),
            )
        )

    return candidates


def _near_anchor(time_ms: float, anchors: Sequence[_Candidate]) -> bool:
    return any(abs(anchor.time_ms - time_ms) < ANCHOR_EXCLUSION_MS for anchor in anchors)


def _inferred_click_candidates(samples: list[CursorSample], anchors: list[_Candidate]) -> list[_Candidate]:
    candidates: list[_Candidate] = []
    last_click_at = -math.inf

    for sample in samples:
        if not sample.visible or not sample.click:
            continue
        if sample.time_ms - last_click_at < CLICK_MIN_GAP_MS or _near_anchor(sample.time_ms, anchors):
            continue
        candidates.append(
            _Candidate(
                time_ms=int(sample.time_ms),
                focus=_focus(sample),
                depth=CLICK_DEPTH,
                reason="click",
                weight=INFERRED_CLICK_WEIGHT,
                pre_roll_ms=CLICK_PRE_ROLL_MS,
                hold_ms=CLICK_HOLD_MS,
            )
        )
        last_click_at = sample.time_ms

    return candidates


def _movement_steps(samples: list[CursorSample]) -> list[tuple[CursorSample, float, float]]:
    """Return `(sample, distance, speed)` for each usable step between visible samples."""
    steps = []
    for previous, current in zip(samples, samples[1:]):
        if not previous.visible or not current.visible:
            continue
        dt = current.time_ms - previous.time_ms
        if dt < SPEED_MIN_DT_MS or dt > SPEED_MAX_DT_MS:
            continue
        distance = math.hypot(current.x - previous.x, current.y - previous.y)
        if distance < SPEED_MIN_DISTANCE:
            continue
        steps.append((current, distance, distance / (dt / 1000)))
    return steps


def _movement_speed_threshold(speeds: list[float]) -> float:
    if not speeds:
        return MOVEMENT_BASE_SPEED
    percentile = float(np.quantile(np.asarray(speeds, dtype=float), MOVEMENT_PERCENTILE, method="lower"))
    return max(MOVEMENT_BASE_SPEED, percentile)


def _movement_candidates(samples: list[CursorSample], anchors: list[_Candidate]) -> list[_Candidate]:
    steps = _movement_steps(samples)
    threshold = _movement_speed_threshold([speed for _, _, speed in steps])

    candidates: list[_Candidate] = []
    last_movement_at = -math.inf
    for sample, distance, speed in steps:
        if distance < MOVEMENT_MIN_DISTANCE or speed < threshold:
            continue
        if sample.time_ms - last_movement_at < MOVEMENT_MIN_GAP_MS or _near_anchor(sample.time_ms, anchors):
            continue
        candidates.append(
            _Candidate(
                time_ms=int(sample.time_ms),
                focus=_focus(sample),
                depth=MOVEMENT_DEPTH,
                reason="movement",
                weight=speed,
                pre_roll_ms=MOVEMENT_PRE_ROLL_MS,
                hold_ms=MOVEMENT_HOLD_MS,
            )
        )
        last_movement_at = sample.time_ms

    logger.debug("Movement threshold %.3f produced %d candidates", threshold, len(candidates))
    return candidates


def _collect_candidates(samples: list[CursorSample], events: list[CursorTrackEvent]) -> list[_Candidate]:
    candidates = _event_candidates(events)
    if not any(candidate.reason == "click" for candidate in candidates):
        candidates += _inferred_click_candidates(samples, candidates)
    candidates += _movement_candidates(samples, candidates)
    return sorted(candidates, key=lambda candidate: candidate.time_ms)


def _to_draft(candidate: _Candidate, duration_ms: int) -> _WeightedDraft | None:
    start_ms = int(clamp(math.floor(candidate.time_ms - candidate.pre_roll_ms + 0.5), 0, duration_ms))
    end_ms = int(clamp(math.floor(candidate.time_ms + candidate.hold_ms + 0.5), 0, duration_ms))

    if end_ms - start_ms < MIN_REGION_DURATION_MS:
        center = (start_ms + end_ms) / 2
        start_ms = max(0, math.floor(center - MIN_REGION_DURATION_MS / 2 + 0.5))
        end_ms = start_ms + MIN_REGION_DURATION_MS
        if end_ms > duration_ms:
            end_ms = duration_ms
            start_ms = max(0, duration_ms - MIN_REGION_DURATION_MS)

    if end_ms <= start_ms:
        return None
    return _WeightedDraft(
        start_ms=start_ms,
        end_ms=end_ms,
        depth=candidate.depth,
        focus=candidate.focus,
        reason=candidate.reason,
        weight=candidate.weight,
    )


def _outranks(draft: _WeightedDraft, other: _WeightedDraft) -> bool:
    if _REASON_PRIORITY[draft.reason] != _REASON_PRIORITY[other.reason]:
        return _REASON_PRIORITY[draft.reason] > _REASON_PRIORITY[other.reason]
    return draft.weight > other.weight


def _merge_drafts(previous: _WeightedDraft, draft: _WeightedDraft) -> _WeightedDraft:
    end_ms = max(previous.end_ms, draft.end_ms)
    weight = max(previous.weight, draft.weight)
    if _outranks(draft, previous):
        return replace(draft, start_ms=previous.start_ms, end_ms=end_ms, weight=weight)
    return replace(previous, end_ms=end_ms, weight=weight)


def _limit_drafts(drafts: list[_WeightedDraft], max_regions: int) -> list[_WeightedDraft]:
    if len(drafts) <= max_regions:
        return drafts
    ranked = sorted(drafts, key=lambda draft: draft.weight + _REASON_BONUS[draft.reason], reverse=True)
    return sorted(ranked[:max_regions], key=lambda draft: draft.start_ms)


def generate_auto_zoom_drafts(
    track: CursorTrack | None,
    *,
    duration_ms: float,
    max_regions: int = DEFAULT_MAX_REGIONS,
) -> list[AutoZoomDraft]:
    """Suggest zoom regions for a recording from its cursor track.

    Args:
        track: Recorded cursor samples and, when available, click and selection events.
        duration_ms: Length of the recording. Drafts never extend past it.
        max_regions: Upper bound on the number of drafts, clamped to `[1, 200]`.

    Returns:
        Non-overlapping drafts sorted by start time. Empty when the track is missing,
        has fewer than two usable samples, or the recording is shorter than 200 ms.
    """
    if track is None or not math.isfinite(duration_ms):
        return []
    duration = max(0, math.floor(duration_ms + 0.5))
    if duration < MIN_TRACK_DURATION_MS:
        return []

    max_regions = int(clamp(max_regions, 1, MAX_REGIONS_LIMIT))
    samples = _normalize_samples(track)
    if len(samples) < 2:
        return []

    candidates = _collect_candidates(samples, _normalize_events(track))
    drafts = [draft for draft in (_to_draft(candidate, duration) for candidate in candidates) if draft is not None]
    merged = merge_intervals(drafts, MERGE_GAP_MS, combine=_merge_drafts)
    limited = _limit_drafts(merged, max_regions)

    return [
        AutoZoomDraft(
            start_ms=draft.start_ms,
            end_ms=draft.end_ms,
            depth=draft.depth,
            focus=draft.focus,
            reason=draft.reason,
        )
        for draft in limited
    ]
