"""Speech transcription through the native macOS helper process.

The helper is invoked as::

    speech-transcriber --input <video> --output <result.json> --locale <tag>

It writes one JSON payload to the output path and exits with 0 on success.
Its stdout and stderr are only logged; the contract is the output file plus the
exit code.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from clipsense.base.exceptions import TranscriberExecutionError, TranscriptionError
from clipsense.config import get_section
from clipsense.transcription.failures import TRANSCRIPTION_TIMEOUT, UNSUPPORTED_PLATFORM
from clipsense.transcription.payload import TranscriptionFailure, TranscriptionResult, decode_helper_payload

__all__ = ["TranscriptionBackend", "NativeTranscriber", "resolve_timeout_ms"]

logger = logging.getLogger(__name__)

HELPER_NAME = "speech-transcriber"
HELPER_ENV_VAR = "CLIPSENSE_TRANSCRIBER"

DEFAULT_TIMEOUT_MS = 5 * 60 * 1000
MIN_TIMEOUT_MS = 10_000
TERMINATE_GRACE_SECONDS = 5.0

SUPPORTED_PLATFORM = "darwin"


def resolve_timeout_ms(timeout_ms: float | None) -> int:
    """Apply the default and the lower bound to a requested timeout."""
    requested = DEFAULT_TIMEOUT_MS if timeout_ms is None else timeout_ms
    return max(MIN_TIMEOUT_MS, int(round(requested)))


class TranscriptionBackend(ABC):
    """Something that turns a media file into recognized words."""

    @abstractmethod
    def transcribe(self, input_path: str | Path, locale: str, timeout_ms: float | None = None) -> TranscriptionResult:
        """Transcribe a media file.

        Implementations report every failure through `TranscriptionFailure`
        instead of raising.
        """


def _bundled_helper_path() -> Path:
    return Path(__file__).parent / "bin" / HELPER_NAME


def _log_helper_output(stdout: str | None, stderr: str | None) -> None:
    for line in (stdout or "").splitlines():
        if line.strip():
            logger.info("[%s] %s", HELPER_NAME, line.strip())
    for line in (stderr or "").splitlines():
        if line.strip():
            logger.warning("[%s] %s", HELPER_NAME, line.strip())


class NativeTranscriber(TranscriptionBackend):
    """Runs the native speech transcriber helper in a subprocess.

    The helper binary is located lazily on first use: an explicit `helper_path`,
    then `[transcriber].helper_path` from the config file, then the
    `CLIPSENSE_TRANSCRIBER` environment variable, then the copy bundled with the
    package. If none exists and a Swift source is configured, it is compiled once
    with `xcrun swiftc`.
    """

    def __init__(
        self,
        helper_path: str | Path | None = None,
        *,
        swift_source: str | Path | None = None,
        default_timeout_ms: float | None = None,
        platform: str | None = None,
    ):
        config = get_section("transcriber")
        configured = helper_path or config.get("helper_path") or os.environ.get(HELPER_ENV_VAR)
        self._helper_candidate = Path(configured) if configured else _bundled_helper_path()
        source = swift_source or config.get("swift_source")
        self.swift_source = Path(source) if source else None
        self.default_timeout_ms = default_timeout_ms if default_timeout_ms is not None else config.get("timeout_ms")
        self.platform = platform or sys.platform

        self._helper: Path | None = None
        self._helper_lock = threading.Lock()

    @property
    def is_supported(self) -> bool:
        return self.platform == SUPPORTED_PLATFORM

    def helper_path(self) -> Path:
        """Return the helper binary, compiling it on first use if needed."""
        with self._helper_lock:
            if self._helper is None:
                self._helper = self._prepare_helper()
            return self._helper

    def _prepare_helper(self) -> Path:
        if self._helper_candidate.exists():
            return self._helper_candidate
        if self.swift_source is None:
            raise TranscriberExecutionError(f"Native speech transcriber helper missing: {self._helper_candidate}")
        self._compile_helper(self.swift_source, self._helper_candidate)
        return self._helper_candidate

    @staticmethod
    def _compile_helper(source: Path, output: Path) -> None:
        output.parent.mkdir(parents=True, exist_ok=True)
        cmd = [
            "xcrun",
            "swiftc",
            "-parse-as-library",
            "-O",
            str(source),
            "-framework",
            "Foundation",
            "-framework",
            "AVFoundation",
            "-framework",
            "Speech",
            "-o",
            str(output),
        ]
        logger.info("Compiling %s from %s", HELPER_NAME, source)

        try:
            subprocess.run(cmd, capture_output=True, text=True, check=True)
        except OSError as e:
            raise TranscriberExecutionError(f"Cannot compile {HELPER_NAME}: {e}") from e
        except subprocess.CalledProcessError as e:
            raise TranscriberExecutionError(e.stderr.strip() or f"swiftc failed with code {e.returncode}") from e

        output.chmod(0o755)

    def transcribe(self, input_path: str | Path, locale: str, timeout_ms: float | None = None) -> TranscriptionResult:
        if not self.is_supported:
            return TranscriptionFailure(
                code=UNSUPPORTED_PLATFORM,
                message="Automatic subtitle transcription is currently supported on macOS only.",
            )

        timeout_ms = resolve_timeout_ms(timeout_ms if timeout_ms is not None else self.default_timeout_ms)
        fd, output_name = tempfile.mkstemp(prefix="clipsense-transcription-", suffix=".json")
        os.close(fd)
        output_path = Path(output_name)

        try:
            return self._run_helper(Path(input_path), locale, output_path, timeout_ms / 1000)
        except TranscriptionError as e:
            logger.warning("Transcription of %s failed (%s): %s", input_path, e.code, e)
            return TranscriptionFailure(code=e.code, message=str(e))
        finally:
            output_path.unlink(missing_ok=True)

    def _run_helper(self, input_path: Path, locale: str, output_path: Path, timeout_s: float) -> TranscriptionResult:
        cmd = [str(self.helper_path()), "--input", str(input_path), "--output", str(output_path), "--locale", locale]
        logger.info("Transcribing %s (locale=%s, timeout=%.0fs)", input_path, locale, timeout_s)

        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            raise TranscriberExecutionError(f"Cannot start {HELPER_NAME}: {e}") from e

        try:
            stdout, stderr = process.communicate(timeout=timeout_s)
        except subprocess.TimeoutExpired:
            process.terminate()
            try:
                stdout, stderr = process.communicate(timeout=TERMINATE_GRACE_SECONDS)
            except subprocess.TimeoutExpired:
                process.kill()
                stdout, stderr = process.communicate()
            _log_helper_output(stdout, stderr)
            raise TranscriptionError(
                f"Speech transcription timed out after {timeout_s:.0f} seconds. Please retry.",
                code=TRANSCRIPTION_TIMEOUT,
            )

        _log_helper_output(stdout, stderr)
        if process.returncode != 0:
            failure = self._read_failure_payload(output_path)
            if failure is not None:
                return failure
            raise TranscriberExecutionError(
                (stderr or "").strip() or f"{HELPER_NAME} exited with code {process.returncode}"
            )

        return self._read_payload(output_path)

    @staticmethod
    def _read_payload(output_path: Path) -> TranscriptionResult:
        try:
            raw = output_path.read_bytes()
        except OSError as e:
            raise TranscriberExecutionError(f"Cannot read transcriber output: {e}") from e
        return decode_helper_payload(raw)

    def _read_failure_payload(self, output_path: Path) -> TranscriptionFailure | None:
        try:
            result = self._read_payload(output_path)
        except TranscriberExecutionError:
            return None
        return result if isinstance(result, TranscriptionFailure) else None
