from __future__ import annotations

import datetime as dt
import itertools
import logging
from pathlib import Path

SEPARATOR = "-" * 20

_instance_ids = itertools.count(1)


class Rfc3339Formatter(logging.Formatter):
    """`<RFC3339 local timestamp> - <message>`"""

    def __init__(self) -> None:
        super().__init__(fmt="%(asctime)s - %(message)s")

    def formatTime(self, record: logging.LogRecord, datefmt=None) -> str:
        return dt.datetime.fromtimestamp(record.created).astimezone().isoformat(timespec="seconds")


class EventLog:
    """
    Append-only audit log of copy outcomes, one line per event.

    The file is opened in append mode when the log is created, so an
    unwritable path fails at startup. Each run owns its own instance and
    passes it to the tasks that report into it; the handler's lock keeps
    lines from concurrent tasks whole. Write failures are reported by
    logging's own error hook and never raised to the caller. Characters the
    encoding cannot carry, such as undecodable bytes in file names, are
    written as backslash escapes.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._handler = logging.FileHandler(self.path, mode="a", encoding="utf-8", errors="backslashreplace")
        self._handler.setFormatter(Rfc3339Formatter())
        self._handler.setLevel(logging.INFO)

        self._logger = logging.getLogger(f"mirror_sync.events.{next(_instance_ids)}")
        self._logger.setLevel(logging.INFO)
        self._logger.propagate = False
        self._logger.addHandler(self._handler)

    def record(self, message: str) -> None:
        self._logger.info(message)

    def separator(self) -> None:
        self.record(SEPARATOR)

    def close(self) -> None:
        self._logger.removeHandler(self._handler)
        self._handler.close()

    def __enter__(self) -> "EventLog":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
