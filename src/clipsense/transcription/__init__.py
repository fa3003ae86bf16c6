from .failures import format_transcription_failure
from .native import NativeTranscriber, TranscriptionBackend
from .payload import TranscriptionFailure, TranscriptionResult, TranscriptionSuccess, decode_helper_payload

__all__ = [
    "NativeTranscriber",
    "TranscriptionBackend",
    "TranscriptionFailure",
    "TranscriptionResult",
    "TranscriptionSuccess",
    "decode_helper_payload",
    "format_transcription_failure",
]
