class MirrorSyncError(Exception):
    """Base error for the project."""


class ConfigError(MirrorSyncError):
    pass


class WalkError(MirrorSyncError):
    pass


class CopyError(MirrorSyncError):
    """A single file's copy failed; the step is named by the subclass."""

    step = "copy"

    def __init__(self, path, cause: BaseException):
        super().__init__(f"{self.step} {path}: {cause}")
        self.path = path
        self.cause = cause


class DirectoryCreateError(CopyError):
    step = "create directory"


class SourceOpenError(CopyError):
    step = "open"


class TargetOpenError(CopyError):
    step = "create"


class StreamError(CopyError):
    step = "write"


class SyncError(CopyError):
    step = "sync"


class MetadataError(CopyError):
    step = "set times"


class ReplaceError(CopyError):
    step = "rename"
