from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path

from . import filetimes
from .errors import (
    CopyError,
    DirectoryCreateError,
    MetadataError,
    ReplaceError,
    SourceOpenError,
    StreamError,
    SyncError,
    TargetOpenError,
)
from .models import Metadata

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
TEMP_SUFFIX = ".tempcopy"


def ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def temp_path_for(target_path: Path) -> Path:
    # fixed length so any legal target name still leaves room for the temp name
    return target_path.with_name(f".{uuid.uuid4().hex[:12]}{TEMP_SUFFIX}")


def copy_file(source_path: Path, target_path: Path, source_meta: Metadata) -> None:
    """
    Copy one file's bytes, then its timestamps, from `source_path` to `target_path`.

    The content is written to a temporary file beside the target, flushed to
    stable storage, stamped with the source's times and renamed over the
    target; the rename itself is then flushed by syncing the directory. A
    failure at any step removes the temporary file and leaves any existing
    target untouched. Raises a `CopyError` subclass naming the step and the
    target path.
    """
    try:
        ensure_parent(target_path)
    except OSError as e:
        raise DirectoryCreateError(target_path.parent, e) from e

    tmp_path = temp_path_for(target_path)
    try:
        _write_content(source_path, tmp_path, target_path)

        try:
            filetimes.set_times(tmp_path, source_meta.times)
        except OSError as e:
            raise MetadataError(target_path, e) from e

        try:
            os.replace(tmp_path, target_path)
        except OSError as e:
            raise ReplaceError(target_path, e) from e
    except CopyError:
        _discard(tmp_path)
        raise

    try:
        sync_directory(target_path.parent)
    except OSError as e:
        raise SyncError(target_path, e) from e

    logger.debug("copied %s -> %s (%d bytes)", source_path, target_path, source_meta.size)


def sync_directory(directory: Path) -> None:
    """Flush a directory entry change (such as a rename) to disk. No-op on Windows."""
    if os.name == "nt":
        # directories cannot be opened for fsync; NTFS journals the rename
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def _write_content(source_path: Path, tmp_path: Path, target_path: Path) -> None:
    try:
        src = open(source_path, "rb")
    except OSError as e:
        raise SourceOpenError(source_path, e) from e

    with src:
        try:
            dst = open(tmp_path, "xb")
        except OSError as e:
            raise TargetOpenError(target_path, e) from e

        with dst:
            try:
                while True:
                    chunk = src.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    dst.write(chunk)
                dst.flush()
            except OSError as e:
                raise StreamError(target_path, e) from e

            try:
                os.fsync(dst.fileno())
            except OSError as e:
                raise SyncError(target_path, e) from e


def _discard(tmp_path: Path) -> None:
    try:
        tmp_path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("could not remove temporary file %s: %s", tmp_path, e)
