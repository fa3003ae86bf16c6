"""TOML configuration for clipsense.

Settings come from `clipsense.toml` in the working directory, or from the
`[tool.clipsense]` table of `pyproject.toml` when there is no dedicated file.
Each concern reads its own table (`[subtitles]`, `[rough_cut]`, `[analysis]`,
`[transcriber]`) through `get_section`.
"""

from __future__ import annotations

import warnings
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable

import tomllib

from clipsense.base.exceptions import ConfigError

CONFIG_FILENAME = "clipsense.toml"

KNOWN_SECTIONS: tuple[str, ...] = ("analysis", "subtitles", "rough_cut", "transcriber")

# Checked in order; the first existing file wins even if it has no clipsense table.
_CANDIDATES: tuple[tuple[str, Callable[[dict[str, Any]], dict[str, Any]]], ...] = (
    (CONFIG_FILENAME, lambda data: data),
    ("pyproject.toml", lambda data: data.get("tool", {}).get("clipsense", {})),
)


def _read_config(path: Path, extract: Callable[[dict[str, Any]], dict[str, Any]]) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return extract(tomllib.load(f))
    except tomllib.TOMLDecodeError as e:
        warnings.warn(f"Invalid TOML in config file {path}: {e}", RuntimeWarning)
    except OSError as e:
        warnings.warn(f"Cannot read config file {path}: {e}", RuntimeWarning)
    return {}


@lru_cache(maxsize=1)
def get_config() -> dict[str, Any]:
    """Return the whole clipsense configuration, or `{}` when none is found.

    The result is cached; call `clear_config_cache` after changing files or the cwd.
    """
    cwd = Path.cwd()
    for filename, extract in _CANDIDATES:
        path = cwd / filename
        if path.exists():
            return _read_config(path, extract)
    return {}


def get_section(name: str) -> dict[str, Any]:
    """Get one configuration table, e.g. `subtitles` or `transcriber`.

    Raises:
        ConfigError: If the name is unknown or the entry isn't a table.
    """
    if name not in KNOWN_SECTIONS:
        raise ConfigError(f"Unknown config section '{name}'. Known sections: {', '.join(KNOWN_SECTIONS)}")

    section = get_config().get(name, {})
    if not isinstance(section, dict):
        raise ConfigError(f"Config entry '{name}' must be a table, got {type(section).__name__}")
    return dict(section)


def clear_config_cache() -> None:
    get_config.cache_clear()
