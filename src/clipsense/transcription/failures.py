"""Transcription failure codes and the messages shown for them."""

from __future__ import annotations

SPEECH_PERMISSION_DENIED = "speech_permission_denied"
RECOGNIZER_UNAVAILABLE = "recognizer_unavailable"
TRANSCRIPTION_TIMEOUT = "transcription_timeout"
NO_SPEECH_DETECTED = "no_speech_detected"
TRANSCRIPTION_FAILED = "transcription_failed"
AUDIO_EXPORT_FAILED = "audio_export_failed"
TRANSCRIBER_EXECUTION_FAILED = "transcriber_execution_failed"
UNSUPPORTED_PLATFORM = "unsupported_platform"


def format_transcription_failure(code: str | None, message: str | None) -> str:
    """Turn a failure code and helper message into a user-facing message."""
    code = (code or "").strip()
    message = (message or "").strip()

    if code == SPEECH_PERMISSION_DENIED:
        return (
            "Speech recognition permission denied. Open System Settings > Privacy & Security > "
            "Speech Recognition, allow this application, then retry."
        )
    if code == RECOGNIZER_UNAVAILABLE:
        return "Speech recognizer is currently unavailable. Please retry later."
    if code == TRANSCRIPTION_TIMEOUT:
        return message or "Speech transcription timed out. Please retry."
    if code == NO_SPEECH_DETECTED:
        return "No speech was detected in this recording."
    if code in (TRANSCRIPTION_FAILED, AUDIO_EXPORT_FAILED, TRANSCRIBER_EXECUTION_FAILED):
        return message or f"Transcription failed ({code})."
    return message or "Automatic transcription failed."
