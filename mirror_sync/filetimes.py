"""
File timestamp access.

Three timestamps are carried per file: creation, last access and last write.
Reading works from a stat result on every platform. Writing goes through a
platform backend:
- Windows sets all three with SetFileTime on a FILE_WRITE_ATTRIBUTES handle.
- Elsewhere only access and modification times can be set; creation time is
  read where the platform reports it but never applied.
"""

from __future__ import annotations

import ctypes
import os
from typing import NamedTuple, Optional, Union

PathLike = Union[str, "os.PathLike[str]"]


class FileTimes(NamedTuple):
    created_ns: Optional[int]
    accessed_ns: int
    modified_ns: int


def get_times(st: os.stat_result) -> FileTimes:
    return FileTimes(
        created_ns=_creation_ns(st),
        accessed_ns=st.st_atime_ns,
        modified_ns=st.st_mtime_ns,
    )


def _creation_ns(st: os.stat_result) -> Optional[int]:
    birth_ns = getattr(st, "st_birthtime_ns", None)
    if birth_ns is not None:
        return birth_ns
    birth = getattr(st, "st_birthtime", None)
    if birth is not None:
        return int(birth * 1_000_000_000)
    if os.name == "nt":
        # st_ctime is the creation time on Windows before 3.12
        return st.st_ctime_ns
    return None


# -------------------------
# Backends
# -------------------------

class PosixTimeSetter:
    def set_times(self, path: PathLike, times: FileTimes) -> None:
        os.utime(path, ns=(times.accessed_ns, times.modified_ns))


# 100ns intervals between 1601-01-01 and 1970-01-01
_EPOCH_AS_FILETIME = 116444736000000000

FILE_WRITE_ATTRIBUTES = 0x100
FILE_SHARE_READ = 0x1
FILE_SHARE_WRITE = 0x2
OPEN_EXISTING = 3
FILE_ATTRIBUTE_NORMAL = 0x80


def _ns_to_filetime(ns: int):
    from ctypes import wintypes

    value = ns // 100 + _EPOCH_AS_FILETIME
    return wintypes.FILETIME(value & 0xFFFFFFFF, value >> 32)


class WindowsTimeSetter:
    def __init__(self) -> None:
        from ctypes import wintypes

        kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)

        kernel32.CreateFileW.argtypes = [
            wintypes.LPCWSTR,
            wintypes.DWORD,
            wintypes.DWORD,
            wintypes.LPVOID,
            wintypes.DWORD,
            wintypes.DWORD,
            wintypes.HANDLE,
        ]
        kernel32.CreateFileW.restype = wintypes.HANDLE

        kernel32.SetFileTime.argtypes = [
            wintypes.HANDLE,
            ctypes.POINTER(wintypes.FILETIME),
            ctypes.POINTER(wintypes.FILETIME),
            ctypes.POINTER(wintypes.FILETIME),
        ]
        kernel32.SetFileTime.restype = wintypes.BOOL

        kernel32.CloseHandle.argtypes = [wintypes.HANDLE]
        kernel32.CloseHandle.restype = wintypes.BOOL

        self._kernel32 = kernel32
        self._invalid_handle = wintypes.HANDLE(-1).value

    def set_times(self, path: PathLike, times: FileTimes) -> None:
        handle = self._kernel32.CreateFileW(
            os.fspath(path),
            FILE_WRITE_ATTRIBUTES,
            FILE_SHARE_READ | FILE_SHARE_WRITE,
            None,
            OPEN_EXISTING,
            FILE_ATTRIBUTE_NORMAL,
            None,
        )
        if handle == self._invalid_handle:
            raise ctypes.WinError(ctypes.get_last_error())
        try:
            created = None
            if times.created_ns is not None:
                created = ctypes.byref(_ns_to_filetime(times.created_ns))
            accessed = _ns_to_filetime(times.accessed_ns)
            modified = _ns_to_filetime(times.modified_ns)
            ok = self._kernel32.SetFileTime(handle, created, ctypes.byref(accessed), ctypes.byref(modified))
            if not ok:
                raise ctypes.WinError(ctypes.get_last_error())
        finally:
            self._kernel32.CloseHandle(handle)


def default_setter():
    if os.name == "nt":
        return WindowsTimeSetter()
    return PosixTimeSetter()


_setter = default_setter()


def set_times(path: PathLike, times: FileTimes) -> None:
    _setter.set_times(path, times)
