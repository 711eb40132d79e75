from __future__ import annotations

import logging
import sys
from typing import Optional, Sequence

from colorama import just_fix_windows_console

CONSOLE_LOGGER_NAME = "mirror_sync"


class Ansi:
    RESET = "\x1b[0m"
    RED = "\x1b[31m"
    GREEN = "\x1b[32m"
    LIGHT_BROWN = "\x1b[33m"


def _supports_color(stream) -> bool:
    try:
        return hasattr(stream, "isatty") and stream.isatty()
    except Exception:
        return False


class ColorizingFormatter(logging.Formatter):
    """Errors in red; folder paths passed as `extra={"paths": [...]}` in light brown."""

    def __init__(self, use_color: bool, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        if not self.use_color:
            return base

        if record.levelno >= logging.ERROR:
            return f"{Ansi.RED}{base}{Ansi.RESET}"

        paths: Optional[Sequence[str]] = getattr(record, "paths", None)
        for path_text in paths or ():
            if path_text and path_text in base:
                base = base.replace(path_text, f"{Ansi.LIGHT_BROWN}{path_text}{Ansi.RESET}", 1)

        if getattr(record, "done", False):
            base = f"{Ansi.GREEN}{base}{Ansi.RESET}"
        return base


def setup_console_logger(stream=None, level: int = logging.INFO) -> logging.Logger:
    stream = stream if stream is not None else sys.stdout

    logger = logging.getLogger(CONSOLE_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    just_fix_windows_console()

    ch = logging.StreamHandler(stream)
    ch.setLevel(level)
    ch.setFormatter(ColorizingFormatter(use_color=_supports_color(stream), fmt="%(message)s"))
    logger.addHandler(ch)
    return logger
