"""One-way directory mirroring: copy new and updated files from a source tree to a target tree."""

__version__ = "0.1.0"
