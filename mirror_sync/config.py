from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from .dispatcher import DEFAULT_MAX_WORKERS
from .errors import ConfigError

CONFIG_FILE_NAME = "config.json"
LOG_FILE_NAME = "sync.log"


def app_dir() -> Path:
    """Directory of the running program; default home of config.json and sync.log."""
    return Path(sys.argv[0]).expanduser().resolve().parent


@dataclass(frozen=True)
class AppConfig:
    source_dir: Path
    target_dir: Path
    log_file: Path
    max_workers: int = DEFAULT_MAX_WORKERS
    exclude: tuple[str, ...] = field(default_factory=tuple)


def parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Copy new and updated files from a source folder to a target folder.")
    p.add_argument("--config", type=str, default=None, help="Path to the JSON configuration file.")
    p.add_argument("--log", type=str, default=None, help="Path of the append-only sync log.")
    p.add_argument("--workers", type=int, default=None, help="Maximum number of files copied at once.")
    p.add_argument("--debug", action="store_true", default=False, help="Print debug messages to the console.")
    return p.parse_args(argv)


def prompt_for_path(label: str, read: Callable[[str], str] = input) -> Path:
    while True:
        raw = read(f"{label}: ").strip().strip('"')
        if raw:
            return Path(raw)
        print("Please enter a non-empty path.")


def resolve_config_path(
    flag_value: Optional[str],
    default_path: Optional[Path] = None,
    read: Callable[[str], str] = input,
) -> Path:
    """`--config` wins, then config.json beside the program, then ask."""
    if flag_value:
        return Path(flag_value).expanduser()
    default_path = default_path if default_path is not None else app_dir() / CONFIG_FILE_NAME
    if default_path.exists():
        return default_path
    print("Configuration file not found. Please provide the path to the configuration file:")
    return prompt_for_path("Config file", read=read).expanduser()


def _is_subpath(child: Path, parent: Path) -> bool:
    try:
        child.resolve().relative_to(parent.resolve())
        return True
    except ValueError:
        return False


def load_config(
    path: Path,
    *,
    log_override: Optional[str] = None,
    workers_override: Optional[int] = None,
    default_log_dir: Optional[Path] = None,
) -> AppConfig:
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"malformed config file {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"config file {path} must contain a JSON object")

    source = raw.get("source_dir") or ""
    target = raw.get("target_dir") or ""
    if not isinstance(source, str) or not isinstance(target, str) or not source.strip() or not target.strip():
        raise ConfigError("Source and target directories must be specified in the configuration file.")

    source_dir = Path(source).expanduser()
    target_dir = Path(target).expanduser()
    if source_dir.resolve() == target_dir.resolve():
        raise ConfigError("Source and target directories must be different.")
    if _is_subpath(target_dir, source_dir):
        raise ConfigError("Target directory must not be inside the source directory.")

    max_workers = workers_override if workers_override is not None else raw.get("max_workers", DEFAULT_MAX_WORKERS)
    if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
        raise ConfigError(f"max_workers must be a positive integer: {max_workers!r}")

    exclude = raw.get("exclude", [])
    if not isinstance(exclude, list) or not all(isinstance(p, str) for p in exclude):
        raise ConfigError("exclude must be a list of patterns")

    if log_override:
        log_file = Path(log_override).expanduser()
    elif raw.get("log_file"):
        log_file = Path(raw["log_file"]).expanduser()
    else:
        log_file = (default_log_dir if default_log_dir is not None else app_dir()) / LOG_FILE_NAME

    return AppConfig(
        source_dir=source_dir,
        target_dir=target_dir,
        log_file=log_file,
        max_workers=max_workers,
        exclude=tuple(exclude),
    )
