from __future__ import annotations

import logging
import os
from pathlib import Path

from .models import CopyDecision, Metadata

logger = logging.getLogger(__name__)


def should_copy(source_meta: Metadata, target_path: Path) -> CopyDecision:
    """
    Decide whether `target_path` must be (re)written from a source file.

    Only modification times are compared: the source must be strictly newer.
    A target that exists but cannot be stat-ed is left alone and the decision
    is flagged as ambiguous so the caller can report it.
    """
    try:
        target_st = os.stat(target_path)
    except FileNotFoundError:
        return CopyDecision(True, "missing")
    except OSError as e:
        logger.debug("cannot stat target %s: %s", target_path, e)
        return CopyDecision(False, f"cannot stat target: {e}", ambiguous=True)

    if source_meta.modified_ns > target_st.st_mtime_ns:
        return CopyDecision(True, "newer")
    return CopyDecision(False, "up to date")
