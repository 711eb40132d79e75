from __future__ import annotations

import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .filetimes import FileTimes, get_times


@dataclass(frozen=True)
class Metadata:
    modified_ns: int
    created_ns: Optional[int]
    accessed_ns: int
    size: int
    is_dir: bool

    @classmethod
    def from_stat(cls, st: os.stat_result) -> "Metadata":
        times = get_times(st)
        return cls(
            modified_ns=times.modified_ns,
            created_ns=times.created_ns,
            accessed_ns=times.accessed_ns,
            size=st.st_size,
            is_dir=stat.S_ISDIR(st.st_mode),
        )

    @property
    def times(self) -> FileTimes:
        return FileTimes(self.created_ns, self.accessed_ns, self.modified_ns)


@dataclass(frozen=True)
class FileTask:
    source_path: Path
    relative_path: Path
    metadata: Metadata


@dataclass(frozen=True)
class CopyDecision:
    copy: bool
    reason: str  # "missing", "newer", "up to date", or why the target could not be checked
    ambiguous: bool = False  # True when the target exists but could not be stat-ed

    def __bool__(self) -> bool:
        return self.copy
