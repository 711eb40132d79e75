from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path, PurePath
from typing import Optional

from .comparator import should_copy
from .copier import copy_file
from .errors import CopyError, WalkError
from .eventlog import EventLog
from .models import FileTask
from .walker import ExcludeMatcher, walk_tree

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 16


class RunResults:
    """Counts of what one sync run did. Failures are also in the event log."""

    def __init__(self) -> None:
        self.dispatched = 0
        self.copied = 0
        self.up_to_date = 0
        self.skipped = 0
        self.failed = 0
        self.walk_error: Optional[str] = None
        self.errors: list[str] = []


def target_path_for(target_root: Path, relative_path: PurePath) -> Path:
    if relative_path.is_absolute() or relative_path.anchor or ".." in relative_path.parts:
        raise ValueError(f"{relative_path} is not relative to the source root")
    return Path(target_root) / relative_path


class CopyDispatcher:
    """
    Runs one independent copy task per `FileTask` on a bounded thread pool.

    `dispatch()` never blocks on copying and never raises because of a task;
    `wait()` returns once every dispatched task has finished.
    """

    def __init__(self, target_root: Path, events: EventLog, max_workers: int = DEFAULT_MAX_WORKERS):
        self.target_root = Path(target_root)
        self.events = events
        self.results = RunResults()
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="mirror-sync")
        self._futures = []
        self._guard = threading.Lock()
        self._outstanding = 0

    @property
    def outstanding(self) -> int:
        with self._guard:
            return self._outstanding

    def dispatch(self, task: FileTask) -> None:
        with self._guard:
            self._outstanding += 1
            self.results.dispatched += 1
        self._futures.append(self._pool.submit(self._run_task, task))

    def wait(self) -> RunResults:
        wait(self._futures)
        self._pool.shutdown(wait=True)
        return self.results

    def _run_task(self, task: FileTask) -> None:
        try:
            self._process(task)
        except Exception as e:
            logger.exception("unexpected error copying %s", task.source_path)
            self._fail(f"Error copying file: {e}")
        finally:
            with self._guard:
                self._outstanding -= 1

    def _process(self, task: FileTask) -> None:
        try:
            target_path = target_path_for(self.target_root, task.relative_path)
        except ValueError as e:
            self._fail(f"Error getting relative path: {e}")
            return

        decision = should_copy(task.metadata, target_path)
        if not decision:
            if decision.ambiguous:
                self.events.record(f"Skipped: {task.source_path.name} ({decision.reason})")
                self._count("skipped")
            else:
                self._count("up_to_date")
            return

        try:
            copy_file(task.source_path, target_path, task.metadata)
        except CopyError as e:
            self._fail(f"Error copying file: {e}")
            return

        self.events.record(f"Copied: {task.source_path.name}")
        self._count("copied")

    def _count(self, field: str) -> None:
        with self._guard:
            setattr(self.results, field, getattr(self.results, field) + 1)

    def _fail(self, message: str) -> None:
        self.events.record(message)
        with self._guard:
            self.results.failed += 1
            self.results.errors.append(message)


def run_sync(
    source_root: Path,
    target_root: Path,
    events: EventLog,
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
    exclude: Optional[ExcludeMatcher] = None,
) -> RunResults:
    """
    Mirror new and updated files from `source_root` into `target_root`.

    A walk error stops discovery but already dispatched copies still finish.
    The end of the run is marked with a separator line in `events`.
    """
    dispatcher = CopyDispatcher(target_root, events, max_workers=max_workers)
    try:
        for task in walk_tree(source_root, exclude=exclude):
            dispatcher.dispatch(task)
    except WalkError as e:
        dispatcher.results.walk_error = str(e)
        events.record(f"Error walking the path: {e}")
    finally:
        results = dispatcher.wait()
    events.separator()

    logger.debug(
        "run finished: dispatched=%d copied=%d up_to_date=%d skipped=%d failed=%d",
        results.dispatched,
        results.copied,
        results.up_to_date,
        results.skipped,
        results.failed,
    )
    return results
