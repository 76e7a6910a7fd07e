"""
Rest Time Reminder - Main Entry Point

Reminds you to take breaks at regular intervals by ringing a bell and/or
showing a desktop notification.

Usage:
    rest-time-reminder                    # console mode (same as "run")
    rest-time-reminder -i 45m -v          # override interval, debug logging
    rest-time-reminder service            # supervisor-hosted mode
    rest-time-reminder version            # version + update notice
    rest-time-reminder check-update
"""

import argparse
import logging
import signal
import sys
import threading
from typing import List, Optional

from rest_reminder import __version__
from rest_reminder.config import AppConfig, apply_overrides, load_config
from rest_reminder.core import ConfigLoadError, UpdateCheckError
from rest_reminder.logging_setup import setup_logging
from rest_reminder.service import ReminderService, run_console
from rest_reminder.updater import check_for_update

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rest-time-reminder",
        description=(
            "A reminder application for taking regular breaks. Run without "
            "arguments to start in console mode."
        )
    )
    parser.add_argument("-c", "--config", help="config file (default: config.yaml)")
    parser.add_argument("-i", "--interval", help="reminder interval (e.g. 30m, 1h)")
    parser.add_argument("-s", "--sound", help="path to a custom WAV sound file")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable verbose logging")

    sub = parser.add_subparsers(dest="command")
    sub.add_parser("run", help="run in console mode (default)")
    sub.add_parser("service", help="run under a process supervisor")
    sub.add_parser("version", help="print version information")
    sub.add_parser("check-update", help="check for a newer release")
    return parser


def _load(args: argparse.Namespace) -> Optional[AppConfig]:
    """Load config, apply CLI overrides and configure logging"""
    try:
        config = load_config(args.config)
    except ConfigLoadError as e:
        setup_logging(verbose=args.verbose)
        logger.error(f"Failed to load configuration: {e}")
        return None

    config = apply_overrides(config, interval=args.interval, sound_file=args.sound)
    setup_logging(config.logging.level, config.logging.file, verbose=args.verbose)
    return config


def cmd_version(config: AppConfig) -> int:
    print(f"RestTimeReminder {__version__}")

    try:
        release = check_for_update(__version__, config.updates.repo)
    except UpdateCheckError as e:
        logger.debug(f"Update check failed: {e}")
        return 0

    if release:
        print(f"\nUpdate available: {release.version}")
        print(f"Download: {release.url}")
    return 0


def cmd_check_update(config: AppConfig) -> int:
    try:
        release = check_for_update(__version__, config.updates.repo)
    except UpdateCheckError as e:
        logger.error(f"Update check failed: {e}")
        return 1

    if release:
        print(f"Update available: {__version__} -> {release.version}")
        print(f"Download: {release.url}")
    else:
        print(f"RestTimeReminder {__version__} is the latest version")
    return 0


def cmd_service(config: AppConfig) -> int:
    """Host the scheduler the way a supervisor does: start, wait for a signal, stop"""
    service = ReminderService(config)
    stop_requested = threading.Event()

    def _on_signal(signum, frame):
        logger.info(f"Received shutdown signal: {signal.Signals(signum).name}")
        stop_requested.set()

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)

    service.start()

    # Wake up once a second so a scheduler that exits on its own is noticed
    while not stop_requested.wait(1.0):
        if service.status() != "running":
            break

    service.stop()
    return 1 if service.last_error else 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = _load(args)
    if config is None:
        return 1

    if args.command == "version":
        return cmd_version(config)
    if args.command == "check-update":
        return cmd_check_update(config)
    if args.command == "service":
        return cmd_service(config)
    return run_console(config)


if __name__ == "__main__":
    sys.exit(main())
