"""Cursor telemetry recorded alongside a screen capture, and the zoom drafts derived from it.

Positions are normalized to the capture bounds, so `(0, 0)` is the top-left and
`(1, 1)` the bottom-right corner of the recorded frame.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Literal

__all__ = [
    "CursorSample",
    "CursorPoint",
    "CursorEventBounds",
    "CursorTrackEvent",
    "CursorTrack",
    "ZoomFocus",
    "AutoZoomDraft",
]

CursorEventType = Literal["click", "selection"]
AutoZoomReason = Literal["click", "selection", "movement"]


def _as_float(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


@dataclass(frozen=True)
class CursorSample:
    """Raw cursor position at one instant."""

    time_ms: float
    x: float
    y: float
    click: bool = False
    visible: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CursorSample:
        return cls(
            time_ms=_as_float(data.get("timeMs")),
            x=_as_float(data.get("x")),
            y=_as_float(data.get("y")),
            click=data.get("click") is True,
            visible=data.get("visible") is not False,
        )


@dataclass(frozen=True)
class CursorPoint:
    x: float
    y: float

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CursorPoint:
        return cls(x=_as_float(data.get("x")), y=_as_float(data.get("y")))


@dataclass(frozen=True)
class CursorEventBounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float
    width: float
    height: float

    @property
    def center(self) -> CursorPoint:
        return CursorPoint(x=(self.min_x + self.max_x) / 2, y=(self.min_y + self.max_y) / 2)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CursorEventBounds:
        return cls(
            min_x=_as_float(data.get("minX")),
            min_y=_as_float(data.get("minY")),
            max_x=_as_float(data.get("maxX")),
            max_y=_as_float(data.get("maxY")),
            width=_as_float(data.get("width")),
            height=_as_float(data.get("height")),
        )


@dataclass(frozen=True)
class CursorTrackEvent:
    """A click or a drag selection, recorded with more precision than raw samples."""

    type: CursorEventType
    start_ms: float
    end_ms: float
    point: CursorPoint
    start_point: CursorPoint | None = None
    end_point: CursorPoint | None = None
    bounds: CursorEventBounds | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CursorTrackEvent:
        def optional(key: str, factory: Any) -> Any:
            value = data.get(key)
            return factory(value) if isinstance(value, dict) else None

        return cls(
            type=data.get("type", "click"),
            start_ms=_as_float(data.get("startMs")),
            end_ms=_as_float(data.get("endMs")),
            point=CursorPoint.from_dict(data.get("point") or {}),
            start_point=optional("startPoint", CursorPoint.from_dict),
            end_point=optional("endPoint", CursorPoint.from_dict),
            bounds=optional("bounds", CursorEventBounds.from_dict),
        )


@dataclass
class CursorTrack:
    samples: list[CursorSample] = field(default_factory=list)
    events: list[CursorTrackEvent] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CursorTrack:
        return cls(
            samples=[CursorSample.from_dict(item) for item in data.get("samples") or [] if isinstance(item, dict)],
            events=[CursorTrackEvent.from_dict(item) for item in data.get("events") or [] if isinstance(item, dict)],
        )


@dataclass(frozen=True)
class ZoomFocus:
    cx: float
    cy: float

    def to_dict(self) -> dict[str, float]:
        return {"cx": self.cx, "cy": self.cy}


@dataclass(frozen=True)
class AutoZoomDraft:
    """Suggested zoom region.

    Attributes:
        start_ms: Start of the zoom in milliseconds.
        end_ms: End of the zoom in milliseconds.
        depth: Zoom tier from 1 (subtle) to 6 (closest).
        focus: Point the virtual camera centers on.
        reason: Which kind of interaction produced the region.
    """

    start_ms: int
    end_ms: int
    depth: int
    focus: ZoomFocus
    reason: AutoZoomReason

    def to_dict(self) -> dict[str, Any]:
        return {
            "startMs": self.start_ms,
            "endMs": self.end_ms,
            "depth": self.depth,
            "focus": self.focus.to_dict(),
            "reason": self.reason,
        }
