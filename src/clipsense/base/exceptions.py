"""Exception hierarchy for clipsense."""


class ClipSenseError(Exception):
    """Base exception for all clipsense errors."""

    pass


class InvalidAnalysisInputError(ClipSenseError, ValueError):
    """Raised when an analysis request is rejected before a job is created."""

    pass


class AnalysisError(ClipSenseError):
    """Failure of one analysis job.

    The message is meant to be shown to the user as-is.
    """

    def __init__(self, message: str):
        message = message.strip() or "Video analysis failed."
        super().__init__(message)
        self.message = message


class TranscriptionError(ClipSenseError):
    """Base exception for transcription errors."""

    def __init__(self, message: str, code: str = "transcription_failed"):
        super().__init__(message)
        self.code = code


class TranscriberExecutionError(TranscriptionError):
    """Raised when the native helper cannot be prepared, launched or read."""

    def __init__(self, message: str):
        super().__init__(message, code="transcriber_execution_failed")


class ConfigError(ClipSenseError):
    """Raised when there's an error loading or parsing configuration."""

    pass
