from .auto_zoom import generate_auto_zoom_drafts
from .models import (
    AutoZoomDraft,
    CursorEventBounds,
    CursorPoint,
    CursorSample,
    CursorTrack,
    CursorTrackEvent,
    ZoomFocus,
)

__all__ = [
    "generate_auto_zoom_drafts",
    "AutoZoomDraft",
    "CursorEventBounds",
    "CursorPoint",
    "CursorSample",
    "CursorTrack",
    "CursorTrackEvent",
    "ZoomFocus",
]
