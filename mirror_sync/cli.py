from __future__ import annotations

import logging
import sys
from typing import Optional

from .config import load_config, parse_args, resolve_config_path
from .console import setup_console_logger
from .dispatcher import run_sync
from .errors import ConfigError
from .eventlog import EventLog
from .walker import ExcludeMatcher


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logger = setup_console_logger(level=logging.DEBUG if args.debug else logging.INFO)

    try:
        config_path = resolve_config_path(args.config)
        cfg = load_config(config_path, log_override=args.log, workers_override=args.workers)
    except (ConfigError, EOFError) as e:
        logger.error("Error loading config: %s", e)
        return 2

    try:
        events = EventLog(cfg.log_file)
    except OSError as e:
        logger.error("Error opening log file: %s", e)
        return 2

    source, target = str(cfg.source_dir), str(cfg.target_dir)
    logger.info("Starting sync from [%s] ===========> [%s]", source, target, extra={"paths": [source, target]})

    exclude = ExcludeMatcher(cfg.exclude) if cfg.exclude else None
    with events:
        run_sync(cfg.source_dir, cfg.target_dir, events, max_workers=cfg.max_workers, exclude=exclude)

    logger.info("Sync completed.", extra={"done": True})
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
