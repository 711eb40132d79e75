import os
from pathlib import Path

import pytest

from mirror_sync import copier, filetimes
from mirror_sync.copier import TEMP_SUFFIX, copy_file
from mirror_sync.errors import (
    CopyError,
    DirectoryCreateError,
    MetadataError,
    SourceOpenError,
    SyncError,
    TargetOpenError,
)
from mirror_sync.models import Metadata

from conftest import write_file


def _meta(path: Path) -> Metadata:
    return Metadata.from_stat(os.stat(path))


def _leftover_temps(directory: Path) -> list[Path]:
    return [p for p in directory.rglob("*") if p.name.endswith(TEMP_SUFFIX)]


def test_copy_preserves_content_and_times(tmp_path: Path):
    src = write_file(tmp_path / "src" / "report.txt", "hello\nworld\n", mtime=1_500_000_000, atime=1_600_000_000)
    before = os.stat(src)
    dst = tmp_path / "dst" / "nested" / "deeper" / "report.txt"

    copy_file(src, dst, Metadata.from_stat(before))

    after = os.stat(dst)
    assert after.st_mtime_ns == before.st_mtime_ns
    assert after.st_atime_ns == before.st_atime_ns
    assert dst.read_bytes() == b"hello\nworld\n"
    assert _leftover_temps(tmp_path / "dst") == []


def test_copy_binary_larger_than_one_chunk(tmp_path: Path):
    payload = os.urandom(copier.CHUNK_SIZE * 2 + 17)
    src = tmp_path / "blob.bin"
    src.write_bytes(payload)
    dst = tmp_path / "out" / "blob.bin"

    copy_file(src, dst, _meta(src))

    assert dst.read_bytes() == payload


def test_copy_overwrites_existing_target(tmp_path: Path):
    src = write_file(tmp_path / "a.txt", "new content", mtime=2_000_000)
    dst = write_file(tmp_path / "out" / "a.txt", "old content that is longer", mtime=1_000_000)

    copy_file(src, dst, _meta(src))

    assert dst.read_text(encoding="utf-8") == "new content"
    assert os.stat(dst).st_mtime_ns == os.stat(src).st_mtime_ns


def test_missing_source_raises_and_leaves_nothing(tmp_path: Path):
    src = write_file(tmp_path / "gone.txt", "x")
    meta = _meta(src)
    src.unlink()
    dst = tmp_path / "out" / "gone.txt"

    with pytest.raises(SourceOpenError) as excinfo:
        copy_file(src, dst, meta)

    assert isinstance(excinfo.value, CopyError)
    assert "gone.txt" in str(excinfo.value)
    assert not dst.exists()
    assert _leftover_temps(tmp_path / "out") == []


def test_metadata_failure_keeps_existing_target(tmp_path: Path, monkeypatch):
    src = write_file(tmp_path / "a.txt", "new", mtime=2_000_000)
    dst = write_file(tmp_path / "out" / "a.txt", "old", mtime=1_000_000)

    def boom(path, times):
        raise PermissionError(13, "Permission denied", str(path))

    monkeypatch.setattr(filetimes, "set_times", boom)

    with pytest.raises(MetadataError):
        copy_file(src, dst, _meta(src))

    assert dst.read_text(encoding="utf-8") == "old"
    assert _leftover_temps(tmp_path / "out") == []


def test_parent_that_is_a_file_fails_directory_creation(tmp_path: Path):
    src = write_file(tmp_path / "a.txt", "a")
    blocker = write_file(tmp_path / "out" / "sub", "not a directory")

    with pytest.raises(DirectoryCreateError):
        copy_file(src, blocker / "a.txt", _meta(src))


def test_existing_intermediate_directories_are_fine(tmp_path: Path):
    src = write_file(tmp_path / "a.txt", "a")
    (tmp_path / "out" / "x" / "y").mkdir(parents=True)

    copy_file(src, tmp_path / "out" / "x" / "y" / "a.txt", _meta(src))

    assert (tmp_path / "out" / "x" / "y" / "a.txt").read_text(encoding="utf-8") == "a"


def test_name_at_filesystem_limit_is_copied(tmp_path: Path):
    name = "n" * 240 + ".txt"
    src = write_file(tmp_path / "src" / name, "long name", mtime=1_000_000)
    dst = tmp_path / "out" / name

    copy_file(src, dst, _meta(src))

    assert dst.read_text(encoding="utf-8") == "long name"
    assert _leftover_temps(tmp_path / "out") == []


def test_temp_name_length_does_not_depend_on_target(tmp_path: Path):
    short = copier.temp_path_for(tmp_path / "a.txt")
    long = copier.temp_path_for(tmp_path / ("z" * 250))
    assert short.parent == long.parent == tmp_path
    assert len(short.name) == len(long.name)
    assert long.name.endswith(TEMP_SUFFIX)


def test_rename_is_flushed_by_syncing_the_directory(tmp_path: Path, monkeypatch):
    src = write_file(tmp_path / "a.txt", "a")
    dst = tmp_path / "out" / "sub" / "a.txt"
    synced = []

    def record(directory):
        assert dst.exists()
        synced.append(directory)

    monkeypatch.setattr(copier, "sync_directory", record)

    copy_file(src, dst, _meta(src))

    assert synced == [dst.parent]


def test_directory_sync_failure_is_a_sync_error(tmp_path: Path, monkeypatch):
    src = write_file(tmp_path / "a.txt", "a")
    dst = tmp_path / "out" / "a.txt"

    def boom(directory):
        raise OSError(5, "Input/output error", str(directory))

    monkeypatch.setattr(copier, "sync_directory", boom)

    with pytest.raises(SyncError) as excinfo:
        copy_file(src, dst, _meta(src))
    assert excinfo.value.path == dst


@pytest.mark.skipif(os.name == "nt", reason="directory fsync is skipped on Windows")
def test_sync_directory_on_real_directory(tmp_path: Path):
    copier.sync_directory(tmp_path)


def test_temp_file_failure_names_the_target(tmp_path: Path, monkeypatch):
    src = write_file(tmp_path / "a.txt", "a")
    dst = tmp_path / "out" / "a.txt"
    monkeypatch.setattr(copier, "temp_path_for", lambda target: tmp_path / "no-such-dir" / ("x" + TEMP_SUFFIX))

    with pytest.raises(TargetOpenError) as excinfo:
        copy_file(src, dst, _meta(src))

    assert excinfo.value.path == dst
    assert str(excinfo.value).startswith(f"create {dst}:")
    assert not dst.exists()
