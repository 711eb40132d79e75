from __future__ import annotations

import os
from pathlib import Path

import pytest


def write_file(path: Path, content: str = "", mtime: float | None = None, atime: float | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    if mtime is not None:
        os.utime(path, (atime if atime is not None else mtime, mtime))
    return path


@pytest.fixture
def trees(tmp_path: Path):
    source = tmp_path / "source"
    target = tmp_path / "target"
    source.mkdir()
    return source, target
