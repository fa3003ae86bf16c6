from .exceptions import (
    AnalysisError,
    ClipSenseError,
    ConfigError,
    InvalidAnalysisInputError,
    TranscriberExecutionError,
    TranscriptionError,
)
from .intervals import Interval, merge_intervals, normalize_interval, round_ms
from .text import TranscriptData, TranscriptWord, estimate_max_chars_per_line, normalize_subtitle_text, wrap_text

__all__ = [
    "AnalysisError",
    "ClipSenseError",
    "ConfigError",
    "InvalidAnalysisInputError",
    "TranscriberExecutionError",
    "TranscriptionError",
    "Interval",
    "merge_intervals",
    "normalize_interval",
    "round_ms",
    "TranscriptData",
    "TranscriptWord",
    "estimate_max_chars_per_line",
    "normalize_subtitle_text",
    "wrap_text",
]
