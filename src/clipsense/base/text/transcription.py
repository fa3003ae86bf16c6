from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable

from clipsense.base.intervals import round_ms

__all__ = ["TranscriptWord", "TranscriptData", "normalize_word", "normalize_words"]


@dataclass(frozen=True)
class TranscriptWord:
    text: str
    start_ms: int
    end_ms: int
    confidence: float | None = None

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"text": self.text, "startMs": self.start_ms, "endMs": self.end_ms}
        if self.confidence is not None:
            data["confidence"] = self.confidence
        return data


@dataclass
class TranscriptData:
    locale: str
    text: str
    words: list[TranscriptWord] = field(default_factory=list)
    created_at_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "locale": self.locale,
            "text": self.text,
            "words": [word.to_dict() for word in self.words],
            "createdAtMs": self.created_at_ms,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TranscriptData:
        return cls(
            locale=data.get("locale", ""),
            text=data.get("text", ""),
            words=normalize_words(data.get("words") or []),
            created_at_ms=data.get("createdAtMs", 0),
        )


def _finite_or_none(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def normalize_word(word: TranscriptWord | dict[str, Any]) -> TranscriptWord | None:
    """Validate one word, returning None when it can't be used.

    Accepts either a `TranscriptWord` or a raw payload dict with camelCase keys.
    Text is trimmed, bounds are rounded to whole milliseconds and floored at 0.
    """
    if isinstance(word, TranscriptWord):
        text, start, end, confidence = word.text, word.start_ms, word.end_ms, word.confidence
    elif isinstance(word, dict):
        text, start, end, confidence = word.get("text"), word.get("startMs"), word.get("endMs"), word.get("confidence")
    else:
        return None

    text = str(text if text is not None else "").strip()
    start_ms = round_ms(start)
    end_ms = round_ms(end)
    if not text or start_ms is None or end_ms is None:
        return None

    start_ms = max(0, start_ms)
    end_ms = max(0, end_ms)
    if end_ms <= start_ms:
        return None

    return TranscriptWord(text=text, start_ms=start_ms, end_ms=end_ms, confidence=_finite_or_none(confidence))


def normalize_words(words: Iterable[TranscriptWord | dict[str, Any]]) -> list[TranscriptWord]:
    """Drop unusable words and sort the rest by start time."""
    normalized = [item for item in (normalize_word(word) for word in words) if item is not None]
    return sorted(normalized, key=lambda word: word.start_ms)
