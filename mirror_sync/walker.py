from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, Optional

from pathspec import PathSpec

from .errors import WalkError
from .models import FileTask, Metadata

logger = logging.getLogger(__name__)


class ExcludeMatcher:
    """Gitignore-style patterns matched against paths relative to the source root."""

    def __init__(self, patterns: Iterable[str]):
        self.patterns = list(patterns)
        self.spec = PathSpec.from_lines("gitwildmatch", self.patterns)

    def is_excluded(self, relative_path: Path, is_dir: bool) -> bool:
        rel_posix = relative_path.as_posix()
        if is_dir and not rel_posix.endswith("/"):
            rel_posix += "/"
        return self.spec.match_file(rel_posix)


def walk_tree(source_root: Path, exclude: Optional[ExcludeMatcher] = None) -> Iterator[FileTask]:
    """
    Yield a `FileTask` for every non-directory entry under `source_root`, depth first.

    Directories are descended but never yielded; symlinks to directories are
    not followed and are yielded like files. Any error reading a directory or
    an entry's metadata raises `WalkError` and ends the walk.
    """
    source_root = Path(source_root)
    stack = [source_root]
    while stack:
        directory = stack.pop()
        logger.debug("scanning: %s", directory)
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            raise WalkError(f"{directory}: {e}") from e

        subdirs = []
        for entry in entries:
            path = Path(entry.path)
            relative_path = path.relative_to(source_root)
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                if exclude is not None and exclude.is_excluded(relative_path, is_dir):
                    continue
                if is_dir:
                    subdirs.append(path)
                    continue
                st = entry.stat()
            except OSError as e:
                raise WalkError(f"{path}: {e}") from e
            yield FileTask(source_path=path, relative_path=relative_path, metadata=Metadata.from_stat(st))

        # reversed so the first listed subdirectory is walked first
        stack.extend(reversed(subdirs))
