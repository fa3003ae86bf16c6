from .layout import (
    ELLIPSIS,
    count_chars,
    estimate_max_chars_per_line,
    normalize_subtitle_text,
    tokenize,
    truncate_with_ellipsis,
    wrap_text,
)
from .transcription import TranscriptData, TranscriptWord, normalize_word, normalize_words

__all__ = [
    "ELLIPSIS",
    "count_chars",
    "estimate_max_chars_per_line",
    "normalize_subtitle_text",
    "tokenize",
    "truncate_with_ellipsis",
    "wrap_text",
    "TranscriptData",
    "TranscriptWord",
    "normalize_word",
    "normalize_words",
]
