import pytest

from clipsense.base.text.transcription import TranscriptWord
from clipsense.config import clear_config_cache


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Run every test from an empty directory so no config file is picked up."""
    monkeypatch.chdir(tmp_path)
    clear_config_cache()
    yield tmp_path
    clear_config_cache()


@pytest.fixture
def spoken_words():
    """A short English take with a filler run and one long pause."""
    return [
        TranscriptWord(text="hello", start_ms=0, end_ms=200, confidence=0.8),
        TranscriptWord(text="um", start_ms=240, end_ms=360, confidence=0.8),
        TranscriptWord(text="team", start_ms=420, end_ms=580, confidence=0.8),
        TranscriptWord(text="next", start_ms=2_100, end_ms=2_260, confidence=0.8),
    ]
