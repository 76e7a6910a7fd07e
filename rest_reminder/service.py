"""
Rest Reminder Host Lifecycle

Two ways to host the scheduler:

- run_console(): foreground process. SIGINT/SIGTERM set the cancel event,
  the scheduler runs on the calling (main) thread.
- ReminderService: start()/stop() hooks for an external process
  supervisor. The scheduler runs on a background thread; stop() cancels
  it and waits for the tick loop to exit.

Registering the program with an OS service manager is left to the
supervisor.
"""

import logging
import signal
import threading
from typing import Callable, Optional

from rest_reminder import __version__
from rest_reminder.audio import build_player
from rest_reminder.config import AppConfig
from rest_reminder.core import (
    InvalidConfigError,
    NotificationError,
    Scheduler,
    Ticker,
    UpdateCheckError
)
from rest_reminder.notification import DesktopNotifier
from rest_reminder.updater import check_for_update

logger = logging.getLogger(__name__)

STOP_TIMEOUT = 5.0  # seconds


def build_scheduler(config: AppConfig, ticker: Optional[Ticker] = None) -> Scheduler:
    """Wire the configured player and notifier into a Scheduler"""
    player = build_player(config.sound, config.notification)
    notifier = DesktopNotifier(config.notification)
    return Scheduler(config.reminder, player, notifier, ticker=ticker)


def _check_updates_in_background(
    repo: str,
    notifier: Optional[DesktopNotifier] = None
) -> threading.Thread:
    """Look for a newer release without delaying startup"""
    def _worker():
        try:
            release = check_for_update(__version__, repo)
        except UpdateCheckError as e:
            logger.debug(f"Update check failed: {e}")
            return
        if not release:
            return

        logger.info(
            f"New version {release.version} available: {release.url}"
        )
        if notifier is not None:
            try:
                notifier.alert(
                    "Update Available",
                    f"Rest Time Reminder {release.version} is available"
                )
            except NotificationError as e:
                logger.debug(f"Update notice not shown: {e}")

    thread = threading.Thread(target=_worker, daemon=True, name="Reminder-UpdateCheck")
    thread.start()
    return thread


def run_console(
    config: AppConfig,
    scheduler_factory: Callable[[AppConfig], Scheduler] = build_scheduler,
    cancel_event: Optional[threading.Event] = None,
    install_signal_handlers: bool = True
) -> int:
    """
    Run the reminder in the foreground until interrupted.

    Args:
        config: Loaded application config
        scheduler_factory: Builds the scheduler (injected in tests)
        cancel_event: Externally owned cancel event (created if omitted)
        install_signal_handlers: Hook SIGINT/SIGTERM to the cancel event

    Returns:
        Process exit code (0 = clean stop, 1 = invalid schedule)
    """
    cancel_event = cancel_event or threading.Event()
    previous_handlers = {}

    if install_signal_handlers:
        def _on_signal(signum, frame):
            logger.info(f"Received shutdown signal: {signal.Signals(signum).name}")
            cancel_event.set()

        for signum in (signal.SIGINT, signal.SIGTERM):
            previous_handlers[signum] = signal.signal(signum, _on_signal)

    logger.info(
        f"Starting RestTimeReminder {__version__} "
        f"(interval={config.reminder.interval})"
    )

    if config.updates.check_on_start:
        notifier = DesktopNotifier(config.notification) if config.notification.desktop else None
        _check_updates_in_background(config.updates.repo, notifier)

    try:
        scheduler = scheduler_factory(config)
        scheduler.run(cancel_event)
    except InvalidConfigError as e:
        logger.error(f"Scheduler error: {e}")
        return 1
    finally:
        for signum, handler in previous_handlers.items():
            signal.signal(signum, handler)

    logger.info("RestTimeReminder stopped gracefully")
    return 0


class ReminderService:
    """
    Supervisor-facing wrapper around the scheduler.

    Usage:
        service = ReminderService(config)
        service.start()     # returns immediately
        ...
        service.stop()      # cancels and waits for the tick loop
    """

    def __init__(
        self,
        config: AppConfig,
        scheduler_factory: Callable[[AppConfig], Scheduler] = build_scheduler
    ):
        self.config = config
        self._scheduler_factory = scheduler_factory
        self._cancel_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.scheduler: Optional[Scheduler] = None
        self.last_error: Optional[Exception] = None

        logger.info(f"ReminderService initialized ({config.service.display_name})")

    def start(self):
        """
        Start the scheduler on a background thread.

        Raises:
            RuntimeError: If the service is already running
        """
        if self.status() == "running":
            raise RuntimeError("Service is already running")

        logger.info("Service starting...")
        self._cancel_event = threading.Event()
        self.last_error = None
        self.scheduler = self._scheduler_factory(self.config)

        self._thread = threading.Thread(
            target=self._run,
            args=(self.scheduler, self._cancel_event),
            daemon=True,
            name="Reminder-Scheduler"
        )
        self._thread.start()

    def _run(self, scheduler: Scheduler, cancel_event: threading.Event):
        try:
            scheduler.run(cancel_event)
        except InvalidConfigError as e:
            self.last_error = e
            logger.error(f"Scheduler error: {e}")

    def stop(self, timeout: float = STOP_TIMEOUT) -> bool:
        """
        Cancel the scheduler and wait for the tick loop to exit.

        In-flight reminder dispatches are not awaited.

        Returns:
            True if the scheduler thread ended within timeout
        """
        logger.info("Service stopping...")
        self._cancel_event.set()

        if self._thread is None:
            return True

        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("Scheduler thread did not stop cleanly")
            return False

        logger.info("Service stopped")
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the scheduler thread ends. True if it ended."""
        if self._thread is None:
            return True
        self._thread.join(timeout=timeout)
        return not self._thread.is_alive()

    def status(self) -> str:
        if self._thread is not None and self._thread.is_alive():
            return "running"
        return "stopped"
