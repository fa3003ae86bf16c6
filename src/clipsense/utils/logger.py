import logging
import os

LOG_LEVEL = os.environ.get("LOG_LEVEL", "info")

LOGGING_FORMAT = "[{asctime}|{filename}:{funcName}:{lineno:d}]{levelname}  {message}"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
}


def setup_logger(level: str | None = None) -> logging.Logger:
    """Send clipsense logs to the console.

    The level comes from `level`, else the `LOG_LEVEL` environment variable, and
    falls back to INFO for unknown names. Calling it again only updates the level.
    """
    logger = logging.getLogger("clipsense")
    logger.setLevel(_LEVELS.get((level or LOG_LEVEL).lower(), logging.INFO))

    if not any(getattr(handler, "_clipsense_console", False) for handler in logger.handlers):
        formatter = logging.Formatter(LOGGING_FORMAT, style="{", datefmt="%H:%M:%S")

        # Create a handler for console output
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler._clipsense_console = True  # type: ignore[attr-defined]
        logger.addHandler(console_handler)

    return logger
