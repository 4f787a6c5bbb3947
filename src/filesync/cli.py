#!/usr/bin/env python3
"""
CLI for the file sync agent.

Usage:
    filesync run --config conf/filesync.env
    filesync check --config conf/filesync.env
    filesync upload ./report.xls --config conf/filesync.env
"""

import argparse
import json
import logging
import signal
import sys
import time
from pathlib import Path
from typing import List, Optional

from .dispatcher import Dispatcher
from .exceptions import FileSyncError
from .models import WatchRoot
from .process import SyncAgent
from .settings import DEFAULT_SETTINGS_PATH, load_config
from .uploader import create_client

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger("filesync.cli")


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """Configure console logging and an optional log file."""
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


class GracefulShutdown:
    """Handle graceful shutdown on SIGINT/SIGTERM."""

    def __init__(self):
        self.should_exit = False
        signal.signal(signal.SIGINT, self._handler)
        signal.signal(signal.SIGTERM, self._handler)

    def _handler(self, signum, frame):
        logger.info("Received shutdown signal, stopping...")
        self.should_exit = True


def cmd_run(args) -> int:
    """Run the sync agent until interrupted."""
    config = load_config(Path(args.config))

    shutdown = GracefulShutdown()

    with SyncAgent(config) as agent:
        agent.start_async()

        logger.info(f"Target: {agent.root.path}")
        logger.info(f"Extensions: {config.upload_file_extensions or 'any'}")
        logger.info("Press Ctrl+C to stop")

        last_report = time.monotonic()
        while not shutdown.should_exit:
            time.sleep(0.5)
            if time.monotonic() - last_report >= args.stats_interval:
                last_report = time.monotonic()
                logger.debug(f"Stats: {agent.dispatcher.stats.to_dict()}")

    logger.info("Sync agent stopped")
    return 0


def cmd_check(args) -> int:
    """Validate the settings and print the effective configuration."""
    config = load_config(Path(args.config))
    WatchRoot.create(config.target_path, config.watch_mode)
    print(json.dumps(config.to_dict(), indent=2))
    return 0


def cmd_upload(args) -> int:
    """Deliver a single file through the filter, resolver and uploader."""
    config = load_config(Path(args.config))
    root = WatchRoot.create(config.target_path, config.watch_mode)

    with create_client(config) as client:
        dispatcher = Dispatcher(config, root, client)
        try:
            outcome = dispatcher.process_path(Path(args.file).absolute())
        finally:
            dispatcher.close()

    if not outcome.ok:
        detail = outcome.reason or outcome.cause or f"HTTP {outcome.status_code}"
        print(f"Not uploaded ({outcome.kind.value}): {detail}")
        return 1

    print(f"Uploaded {outcome.path} (HTTP {outcome.status_code})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config", "-c",
        default=str(DEFAULT_SETTINGS_PATH),
        help=f"Settings file (default: {DEFAULT_SETTINGS_PATH})",
    )
    parent.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    parent.add_argument("--log-file", default=None, help="Also write logs to this file")

    parser = argparse.ArgumentParser(
        prog="filesync",
        description="Watch a directory and upload settled file changes",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    rp = sub.add_parser("run", parents=[parent], help="Watch and upload until interrupted")
    rp.add_argument(
        "--stats-interval",
        type=float,
        default=60.0,
        help="Seconds between debug stats lines (default: 60)",
    )
    rp.set_defaults(func=cmd_run)

    cp = sub.add_parser("check", parents=[parent], help="Validate settings and print them")
    cp.set_defaults(func=cmd_check)

    up = sub.add_parser("upload", parents=[parent], help="Upload a single file now")
    up.add_argument("file", help="File to upload")
    up.set_defaults(func=cmd_upload)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level, Path(args.log_file) if args.log_file else None)

    try:
        return args.func(args)
    except FileSyncError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
