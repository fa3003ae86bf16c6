import logging
import subprocess
import sys
from pathlib import Path

import pytest

import clipsense.transcription.native as native
from clipsense.base.exceptions import TranscriberExecutionError
from clipsense.transcription.native import NativeTranscriber, resolve_timeout_ms
from clipsense.transcription.payload import TranscriptionFailure, TranscriptionSuccess

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="fake helper is a POSIX shell script")

ARGUMENT_PARSER = """#!/bin/sh
while [ $# -gt 0 ]; do
  case "$1" in
    --input) input="$2"; shift 2 ;;
    --output) out="$2"; shift 2 ;;
    --locale) locale="$2"; shift 2 ;;
    *) shift ;;
  esac
done
"""


@pytest.fixture
def make_helper(tmp_path):
    def factory(body: str) -> Path:
        helper = tmp_path / "speech-transcriber"
        helper.write_text(ARGUMENT_PARSER + body + "\n", encoding="utf-8")
        helper.chmod(0o755)
        return helper

    return factory


@pytest.fixture
def video(tmp_path):
    path = tmp_path / "clip.mov"
    path.write_bytes(b"")
    return path


def test_successful_transcription(make_helper, video):
    helper = make_helper(
        'echo "transcribing $input"\n'
        "printf '{\"success\": true, \"locale\": \"%s\", \"text\": \"hi there\", "
        '"words": [{"text": "there", "startMs": 300, "endMs": 600}, '
        "{\"text\": \"hi\", \"startMs\": 0, \"endMs\": 250}]}' \"$locale\" > \"$out\""
    )

    result = NativeTranscriber(helper, platform="darwin").transcribe(video, "en-GB")

    assert isinstance(result, TranscriptionSuccess)
    assert result.locale == "en-GB"
    assert [word.text for word in result.words] == ["hi", "there"]


def test_output_file_is_removed(make_helper, video, tmp_path):
    record = tmp_path / "output-path.txt"
    helper = make_helper(f'echo "$out" > "{record}"\necho \'{{"success": true, "words": []}}\' > "$out"')

    NativeTranscriber(helper, platform="darwin").transcribe(video, "en-US")

    output_path = Path(record.read_text(encoding="utf-8").strip())
    assert output_path.name.endswith(".json")
    assert not output_path.exists()


def test_failure_payload_with_non_zero_exit(make_helper, video):
    helper = make_helper(
        'echo \'{"success": false, "code": "speech_permission_denied", "message": "denied"}\' > "$out"\nexit 3'
    )

    result = NativeTranscriber(helper, platform="darwin").transcribe(video, "en-US")

    assert result == TranscriptionFailure(code="speech_permission_denied", message="denied")


def test_failure_payload_with_zero_exit(make_helper, video):
    helper = make_helper('echo \'{"success": false, "code": "no_speech_detected"}\' > "$out"')

    result = NativeTranscriber(helper, platform="darwin").transcribe(video, "en-US")

    assert result == TranscriptionFailure(code="no_speech_detected", message="Unknown transcription error")


def test_non_zero_exit_without_payload_reports_stderr(make_helper, video, caplog):
    caplog.set_level(logging.INFO, logger="clipsense.transcription.native")
    helper = make_helper('echo "kaput" >&2\nexit 2')

    result = NativeTranscriber(helper, platform="darwin").transcribe(video, "en-US")

    assert result == TranscriptionFailure(code="transcriber_execution_failed", message="kaput")
    assert "[speech-transcriber] kaput" in caplog.text


def test_non_zero_exit_without_output(make_helper, video):
    result = NativeTranscriber(make_helper("exit 1"), platform="darwin").transcribe(video, "en-US")

    assert isinstance(result, TranscriptionFailure)
    assert result.code == "transcriber_execution_failed"
    assert result.message == "speech-transcriber exited with code 1"


def test_malformed_output(make_helper, video):
    result = NativeTranscriber(make_helper('echo "nope" > "$out"'), platform="darwin").transcribe(video, "en-US")

    assert isinstance(result, TranscriptionFailure)
    assert result.code == "transcriber_execution_failed"


def test_timeout_terminates_helper(make_helper, video, monkeypatch):
    monkeypatch.setattr(native, "MIN_TIMEOUT_MS", 100)
    helper = make_helper("exec sleep 10")

    result = NativeTranscriber(helper, platform="darwin").transcribe(video, "en-US", timeout_ms=300)

    assert isinstance(result, TranscriptionFailure)
    assert result.code == "transcription_timeout"


def test_unsupported_platform_fails_before_spawning(tmp_path, video):
    transcriber = NativeTranscriber(tmp_path / "does-not-exist", platform="linux")

    result = transcriber.transcribe(video, "en-US")

    assert result.code == "unsupported_platform"
    assert "macOS" in result.message


def test_missing_helper(tmp_path, video):
    result = NativeTranscriber(tmp_path / "missing-helper", platform="darwin").transcribe(video, "en-US")

    assert result.code == "transcriber_execution_failed"
    assert "missing" in result.message


def test_helper_not_executable(tmp_path, video):
    helper = tmp_path / "speech-transcriber"
    helper.write_text("not a program", encoding="utf-8")
    helper.chmod(0o644)

    result = NativeTranscriber(helper, platform="darwin").transcribe(video, "en-US")

    assert result.code == "transcriber_execution_failed"


@pytest.mark.parametrize("requested,expected", [(None, 300_000), (5, 10_000), (12_345.6, 12_346), (60_000, 60_000)])
def test_resolve_timeout_ms(requested, expected):
    assert resolve_timeout_ms(requested) == expected


class TestHelperResolution:
    def test_environment_variable(self, make_helper, monkeypatch):
        helper = make_helper("exit 0")
        monkeypatch.setenv("CLIPSENSE_TRANSCRIBER", str(helper))

        assert NativeTranscriber(platform="darwin").helper_path() == helper

    def test_config_file_wins_over_environment(self, isolated_config, make_helper, monkeypatch, tmp_path):
        helper = make_helper("exit 0")
        monkeypatch.setenv("CLIPSENSE_TRANSCRIBER", str(tmp_path / "other"))
        (isolated_config / "clipsense.toml").write_text(f'[transcriber]\nhelper_path = "{helper}"\n', encoding="utf-8")

        assert NativeTranscriber(platform="darwin").helper_path() == helper

    def test_compiles_missing_helper_once(self, tmp_path, monkeypatch):
        calls = []

        def fake_run(cmd, **kwargs):
            calls.append(cmd)
            Path(cmd[-1]).write_text("#!/bin/sh\n", encoding="utf-8")
            return subprocess.CompletedProcess(cmd, 0, "", "")

        monkeypatch.setattr(native.subprocess, "run", fake_run)
        source = tmp_path / "speech-transcriber.swift"
        source.write_text("// swift", encoding="utf-8")
        output = tmp_path / "bin" / "speech-transcriber"
        transcriber = NativeTranscriber(output, swift_source=source, platform="darwin")

        assert transcriber.helper_path() == output
        assert transcriber.helper_path() == output
        assert len(calls) == 1
        assert calls[0][:2] == ["xcrun", "swiftc"]
        assert str(source) in calls[0]

    def test_compile_failure(self, tmp_path, monkeypatch):
        def fake_run(cmd, **kwargs):
            raise subprocess.CalledProcessError(1, cmd, output="", stderr="error: no such module 'Speech'")

        monkeypatch.setattr(native.subprocess, "run", fake_run)
        transcriber = NativeTranscriber(tmp_path / "helper", swift_source=tmp_path / "x.swift", platform="darwin")

        with pytest.raises(TranscriberExecutionError, match="no such module"):
            transcriber.helper_path()
