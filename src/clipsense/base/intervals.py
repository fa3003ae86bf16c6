"""Millisecond interval helpers shared by the analysis engines."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable, TypeVar

__all__ = ["Interval", "round_ms", "clamp", "normalize_interval", "merge_intervals"]

T = TypeVar("T")


@dataclass(frozen=True)
class Interval:
    start_ms: int
    end_ms: int

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms


def round_ms(value: Any) -> int | None:
    """Round a timestamp half-up to whole milliseconds.

    Returns None for values that are not finite numbers.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return int(math.floor(number + 0.5))


def clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


def normalize_interval(start: Any, end: Any, duration_ms: Any) -> Interval | None:
    """Round and clamp `[start, end]` into `[0, duration_ms]`.

    Returns None when the clamped interval is empty or the input isn't numeric.
    """
    total = round_ms(duration_ms)
    start_ms = round_ms(start)
    end_ms = round_ms(end)
    if total is None or start_ms is None or end_ms is None:
        return None

    total = max(0, total)
    start_ms = int(clamp(start_ms, 0, total))
    end_ms = int(clamp(end_ms, 0, total))
    if end_ms <= start_ms:
        return None
    return Interval(start_ms=start_ms, end_ms=end_ms)


def _extend(previous: Any, item: Any) -> Any:
    return replace(previous, end_ms=max(previous.end_ms, item.end_ms))


def merge_intervals(
    items: Iterable[T],
    gap_tolerance_ms: int = 0,
    *,
    combine: Callable[[T, T], T] | None = None,
    can_merge: Callable[[T, T], bool] | None = None,
) -> list[T]:
    """Merge overlapping or nearby intervals in a single sorted pass.

    Sorting is stable on `start_ms`, so items sharing a start keep their input order.

    Args:
        items: Dataclass instances exposing `start_ms` and `end_ms`.
        gap_tolerance_ms: An item joins the running group when it starts no later than
            `previous.end_ms + gap_tolerance_ms`.
        combine: Builds the merged item from the running item and the joining one.
            Defaults to extending `end_ms`.
        can_merge: Optional extra predicate, e.g. "same mode and gain".

    Returns:
        New list sorted by start time. Input items are never mutated.
    """
    combine = combine or _extend
    ordered = sorted(items, key=lambda item: item.start_ms)  # type: ignore[attr-defined]

    merged: list[T] = []
    for item in ordered:
        if merged:
            previous = merged[-1]
            near = item.start_ms <= previous.end_ms + gap_tolerance_ms  # type: ignore[attr-defined]
            if near and (can_merge is None or can_merge(previous, item)):
                merged[-1] = combine(previous, item)
                continue
        merged.append(item)
    return merged
