"""Character-budget text layout for subtitles.

All lengths are counted in Unicode code points, so CJK text and emoji are
measured the same way the editor measures them.
"""

from __future__ import annotations

import math
import re

__all__ = [
    "ELLIPSIS",
    "count_chars",
    "truncate_with_ellipsis",
    "tokenize",
    "wrap_text",
    "normalize_subtitle_text",
    "estimate_max_chars_per_line",
]

ELLIPSIS = "…"

# Average glyph width in pixels used to turn a rendering width into a character budget.
_AVERAGE_GLYPH_WIDTH_PX = 38

_WHITESPACE_RE = re.compile(r"\s+")
_SPACE_BEFORE_PUNCT_RE = re.compile(r"\s+([，。！？；：、])")
_SPACE_AFTER_PUNCT_RE = re.compile(r"([，。！？；：、])\s+")
_SPACE_AFTER_OPENING_RE = re.compile(r"([（【《“])\s+")
_SPACE_BEFORE_CLOSING_RE = re.compile(r"\s+([）】》”])")


def count_chars(text: str) -> int:
    return len(text)


def _end_with_ellipsis(text: str, max_chars: int) -> str:
    if max_chars <= 0:
        return ""
    if max_chars == 1:
        return ELLIPSIS
    return f"{text[: max_chars - 1].rstrip()}{ELLIPSIS}"


def truncate_with_ellipsis(text: str, max_chars: int) -> str:
    """Cut `text` to `max_chars` code points, the last one being an ellipsis."""
    if count_chars(text) <= max_chars:
        return text
    return _end_with_ellipsis(text, max_chars)


def tokenize(text: str) -> tuple[list[str], str]:
    """Split text into wrap tokens and return them with the joining separator.

    Text containing whitespace is split into words; text without any (typical for
    Chinese or Japanese) is split per character.
    """
    if _WHITESPACE_RE.search(text):
        return [token for token in text.split() if token], " "
    return list(text), ""


def wrap_text(text: str, max_chars_per_line: int, max_lines: int) -> list[str]:
    """Greedily pack text into at most `max_lines` lines of `max_chars_per_line`.

    When content is left over after the last allowed line, that line ends with an
    ellipsis. A single token longer than a line is hard-cut.

    Example:
        >>> wrap_text("this is a subtitle example", 10, 2)
        ['this is a', 'subtitle…']
    """
    text = _WHITESPACE_RE.sub(" ", text or "").strip()
    max_chars_per_line = max(1, int(round(max_chars_per_line)))
    max_lines = max(1, int(round(max_lines)))

    if not text:
        return []
    if count_chars(text) <= max_chars_per_line:
        return [text]

    tokens, separator = tokenize(text)
    lines: list[str] = []
    index = 0
    while index < len(tokens):
        line = tokens[index][:max_chars_per_line]
        index += 1

        while index < len(tokens):
            candidate = f"{line}{separator}{tokens[index]}".strip()
            if count_chars(candidate) > max_chars_per_line:
                break
            line = candidate
            index += 1

        has_more = index < len(tokens)
        if has_more and len(lines) == max_lines - 1:
            # The ellipsis is forced here even when the line itself fits.
            lines.append(_end_with_ellipsis(line, max_chars_per_line))
            return lines

        lines.append(line)
        if len(lines) >= max_lines:
            break

    return lines


def normalize_subtitle_text(text: str) -> str:
    """Collapse whitespace and tighten spacing around full-width CJK punctuation."""
    text = _WHITESPACE_RE.sub(" ", text or "")
    text = _SPACE_BEFORE_PUNCT_RE.sub(r"\1", text)
    text = _SPACE_AFTER_PUNCT_RE.sub(r"\1", text)
    text = _SPACE_AFTER_OPENING_RE.sub(r"\1", text)
    text = _SPACE_BEFORE_CLOSING_RE.sub(r"\1", text)
    return text.strip()


def estimate_max_chars_per_line(video_width: float, width_ratio: float) -> int:
    """Estimate how many characters fit on one subtitle line for a render width."""
    width = max(320, math.floor(video_width + 0.5))
    ratio = max(0.5, min(0.95, width_ratio))
    return max(8, math.floor(width * ratio / _AVERAGE_GLYPH_WIDTH_PX + 0.5))
