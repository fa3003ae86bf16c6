"""Schema for the JSON file written by the native speech transcriber."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from clipsense.base.exceptions import TranscriberExecutionError
from clipsense.base.text.transcription import TranscriptWord, normalize_words

__all__ = ["TranscriptionSuccess", "TranscriptionFailure", "TranscriptionResult", "decode_helper_payload"]


@dataclass(frozen=True)
class TranscriptionSuccess:
    locale: str
    text: str
    words: list[TranscriptWord] = field(default_factory=list)

    success: Literal[True] = True


@dataclass(frozen=True)
class TranscriptionFailure:
    code: str | None
    message: str

    success: Literal[False] = False


TranscriptionResult = Union[TranscriptionSuccess, TranscriptionFailure]


class _HelperSuccessPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    success: Literal[True]
    locale: str | None = None
    text: str | None = None
    # Words are validated one by one later so a single bad entry is dropped, not fatal.
    words: list[Any] = Field(default_factory=list)

    @field_validator("words", mode="before")
    @classmethod
    def _words_list(cls, value: Any) -> Any:
        return value if isinstance(value, list) else []


class _HelperFailurePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    success: Literal[False]
    code: str | None = None
    message: str | None = None


_HELPER_PAYLOAD = TypeAdapter(Union[_HelperSuccessPayload, _HelperFailurePayload])


def decode_helper_payload(raw: str | bytes) -> TranscriptionResult:
    """Decode the helper's output file into a success or failure variant.

    Raises:
        TranscriberExecutionError: If the file isn't valid JSON or doesn't match either shape.
    """
    try:
        payload = _HELPER_PAYLOAD.validate_json(raw)
    except ValidationError as e:
        raise TranscriberExecutionError(f"Malformed transcriber output: {e.error_count()} validation error(s)") from e

    if isinstance(payload, _HelperSuccessPayload):
        return TranscriptionSuccess(
            locale=payload.locale or "",
            text=payload.text or "",
            words=normalize_words(word for word in payload.words if isinstance(word, dict)),
        )

    return TranscriptionFailure(
        code=payload.code,
        message=payload.message or "Unknown transcription error",
    )
