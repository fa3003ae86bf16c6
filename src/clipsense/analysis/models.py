"""Data models for transcript-driven analysis results."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from typing import Any, Literal

from clipsense.base.text.transcription import TranscriptData
from clipsense.config import get_section

__all__ = [
    "SubtitleCue",
    "RoughCutSuggestion",
    "SubtitleGenerationOptions",
    "RoughCutOptions",
    "VideoAnalysisResult",
    "default_subtitle_generation_options",
    "default_rough_cut_options",
]

CueSource = Literal["asr", "manual", "agent"]
RoughCutReason = Literal["silence", "filler"]

DEFAULT_FILLER_WORDS: tuple[str, ...] = ("um", "uh", "emm", "ah", "er", "呃", "嗯", "这个")


@dataclass(frozen=True)
class SubtitleCue:
    """One subtitle display unit.

    Attributes:
        id: Stable identifier, `subtitle-<n>` for generated cues.
        start_ms: Start time in milliseconds.
        end_ms: End time in milliseconds, always greater than `start_ms`.
        text: Display text, never empty.
        source: Who produced the cue.
        confidence: Mean recognizer confidence of the underlying words.
    """

    id: str
    start_ms: int
    end_ms: int
    text: str
    source: CueSource = "asr"
    confidence: float | None = None

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "startMs": self.start_ms,
            "endMs": self.end_ms,
            "text": self.text,
            "source": self.source,
        }
        if self.confidence is not None:
            data["confidence"] = self.confidence
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SubtitleCue:
        return cls(
            id=str(data.get("id", "")),
            start_ms=data["startMs"],
            end_ms=data["endMs"],
            text=data["text"],
            source=data.get("source", "asr"),
            confidence=data.get("confidence"),
        )


@dataclass(frozen=True)
class RoughCutSuggestion:
    """A candidate deletion interval.

    Attributes:
        id: Identifier, `roughcut-<n>` after normalization.
        start_ms: Start time in milliseconds.
        end_ms: End time in milliseconds.
        reason: Why the interval is suggested for removal.
        confidence: Score in [0, 1].
        label: Short human readable description.
    """

    id: str
    start_ms: int
    end_ms: int
    reason: RoughCutReason
    confidence: float
    label: str

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "startMs": self.start_ms,
            "endMs": self.end_ms,
            "reason": self.reason,
            "confidence": self.confidence,
            "label": self.label,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RoughCutSuggestion:
        return cls(
            id=str(data.get("id", "")),
            start_ms=data["startMs"],
            end_ms=data["endMs"],
            reason=data["reason"],
            confidence=data["confidence"],
            label=data.get("label", ""),
        )


@dataclass
class SubtitleGenerationOptions:
    min_cue_duration_ms: int = 800
    max_cue_duration_ms: int = 4000
    split_on_silence_ms: int = 650
    max_chars_per_line: int = 22
    max_lines: int = 2
    max_cps: float = 14.0


@dataclass
class RoughCutOptions:
    min_silence_ms: int = 800
    min_filler_duration_ms: int = 260
    filler_words: tuple[str, ...] = DEFAULT_FILLER_WORDS


def _apply_overrides(options: Any, overrides: dict[str, Any]) -> Any:
    names = {f.name for f in fields(options)}
    for key, value in overrides.items():
        if key in names:
            setattr(options, key, tuple(value) if isinstance(value, list) else value)
    return options


def default_subtitle_generation_options() -> SubtitleGenerationOptions:
    """Subtitle defaults, with overrides from the `[subtitles]` config table."""
    return _apply_overrides(SubtitleGenerationOptions(), get_section("subtitles"))


def default_rough_cut_options() -> RoughCutOptions:
    """Rough-cut defaults, with overrides from the `[rough_cut]` config table."""
    return _apply_overrides(RoughCutOptions(), get_section("rough_cut"))


@dataclass
class VideoAnalysisResult:
    """Serializable analysis result for one video, persisted as a sidecar file."""

    transcript: TranscriptData
    subtitle_cues: list[SubtitleCue] = field(default_factory=list)
    rough_cut_suggestions: list[RoughCutSuggestion] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "transcript": self.transcript.to_dict(),
            "subtitleCues": [cue.to_dict() for cue in self.subtitle_cues],
            "roughCutSuggestions": [suggestion.to_dict() for suggestion in self.rough_cut_suggestions],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VideoAnalysisResult:
        """Rebuild a result from `to_dict` output.

        Raises:
            KeyError: If a required field is missing.
            TypeError: If a cue or suggestion entry is not an object.
        """
        cues = data.get("subtitleCues", [])
        suggestions = data.get("roughCutSuggestions", [])
        if not all(isinstance(item, dict) for item in [*cues, *suggestions]):
            raise TypeError("Subtitle cues and rough-cut suggestions must be objects")

        return cls(
            transcript=TranscriptData.from_dict(data["transcript"]),
            subtitle_cues=[SubtitleCue.from_dict(item) for item in cues],
            rough_cut_suggestions=[RoughCutSuggestion.from_dict(item) for item in suggestions],
        )

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent)

    @classmethod
    def from_json(cls, text: str | bytes) -> VideoAnalysisResult:
        return cls.from_dict(json.loads(text))
