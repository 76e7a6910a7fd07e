"""
Rest Reminder Scheduler - Tick Loop and Fire Dispatch

Responsibilities:
- Validate the schedule once at run() entry (fail fast)
- Drive a 1-second tick source until cancelled
- Apply the trigger policy on every tick
- Record the fired minute on the tick-loop thread BEFORE dispatching
- Dispatch sound + notification on detached threads (never blocks ticks)

Threading model:
- The caller of run() is the tick-loop thread. It alone reads and writes
  SchedulerState, so that state needs no lock.
- Each fire spawns one daemon dispatch thread. Dispatch threads only read
  the immutable config and call the collaborators.
- The only lock guards the set of live dispatch threads.
- Cancellation does not wait for in-flight dispatches. Embedders that want
  a drain call wait_for_dispatches() themselves.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Set

from .clock import SystemTicker, Ticker
from .durations import DurationError, parse_duration, format_duration
from .errors import InvalidConfigError
from .models import ReminderConfig, SchedulerState, SchedulerStatus, minute_key
from .trigger_policy import should_trigger

logger = logging.getLogger(__name__)


class SoundPlayer(ABC):
    """
    Sound playback capability consumed by the scheduler.

    play() may be called from several dispatch threads at once;
    implementations serialize device access themselves.
    """

    @abstractmethod
    def play(self):
        """
        Play the reminder sound, blocking until playback completes.

        No-op when sound is disabled.

        Raises:
            PlaybackError: If playback fails
        """
        pass

    @abstractmethod
    def stop(self):
        """Stop any sound currently playing (best-effort)"""
        pass


class Notifier(ABC):
    """Desktop notification capability consumed by the scheduler"""

    @abstractmethod
    def notify(self):
        """
        Show the reminder notification. No-op when disabled.

        Raises:
            NotificationError: If the notification cannot be shown
        """
        pass


class Scheduler:
    """
    Break reminder scheduler.

    Usage:
        cancel = threading.Event()
        scheduler = Scheduler(ReminderConfig(interval="30m"), player, notifier)
        scheduler.run(cancel)   # blocks until cancel.set()
    """

    HOOK_EVENTS = (
        'reminder_fired',
        'playback_failed',
        'notification_failed',
        'dispatch_finished',
    )

    def __init__(
        self,
        config: ReminderConfig,
        player: SoundPlayer,
        notifier: Notifier,
        ticker: Optional[Ticker] = None
    ):
        """
        Initialize scheduler.

        Args:
            config: Reminder schedule (validated at run() entry)
            player: Sound player used on every fire
            notifier: Notifier used on every fire
            ticker: Tick source (default: 1-second SystemTicker)
        """
        self.config = config
        self.player = player
        self.notifier = notifier
        self.ticker = ticker or SystemTicker()

        # Tick-loop state (single writer, no lock)
        self._state = SchedulerState()
        self._status = SchedulerStatus.IDLE
        self._interval: Optional[timedelta] = None
        self._fire_count = 0

        # Dispatch bookkeeping
        self._active_threads: Set[threading.Thread] = set()
        self._threads_lock = threading.Lock()

        self._hooks: Dict[str, List[Callable]] = {event: [] for event in self.HOOK_EVENTS}

        logger.info(
            f"Scheduler initialized (interval={config.interval}, "
            f"trigger_minutes={list(config.trigger_minutes)})"
        )

    @property
    def status(self) -> SchedulerStatus:
        return self._status

    @property
    def fire_count(self) -> int:
        """Number of fires recorded by the tick loop"""
        return self._fire_count

    def register_hook(self, event: str, callback: Callable):
        """
        Register a callback for a scheduler event.

        reminder_fired runs on the tick-loop thread; the other events run on
        dispatch threads. Callback exceptions are logged and ignored.

        Raises:
            ValueError: If event name is invalid
        """
        if event not in self._hooks:
            raise ValueError(f"Invalid event: {event}")
        self._hooks[event].append(callback)
        logger.debug(f"Registered hook for event: {event}")

    def _emit_event(self, event: str, *args, **kwargs):
        for callback in self._hooks.get(event, []):
            try:
                callback(*args, **kwargs)
            except Exception as e:
                logger.error(f"Hook error for {event}: {e}", exc_info=True)

    def _validate_config(self) -> timedelta:
        """
        Parse and range-check the schedule.

        Returns:
            Parsed interval

        Raises:
            InvalidConfigError: If the interval is malformed or not positive,
                or a trigger minute is outside [0, 59]
        """
        try:
            interval = parse_duration(self.config.interval)
        except DurationError as e:
            raise InvalidConfigError(f"invalid interval format: {e}") from e

        if interval <= timedelta(0):
            raise InvalidConfigError(
                f"interval must be positive, got {self.config.interval!r}"
            )

        for minute in self.config.trigger_minutes:
            if isinstance(minute, bool) or not isinstance(minute, int) or not 0 <= minute <= 59:
                raise InvalidConfigError(
                    f"trigger minute {minute!r} is outside the range 0-59"
                )

        return interval

    def run(self, cancel_event: threading.Event):
        """
        Run the tick loop until cancel_event is set.

        Args:
            cancel_event: Cooperative cancellation signal

        Raises:
            InvalidConfigError: If the schedule is invalid (loop never starts)
            RuntimeError: If the scheduler is already running
        """
        if self._status == SchedulerStatus.RUNNING:
            raise RuntimeError("Scheduler is already running")

        try:
            self._interval = self._validate_config()
        except InvalidConfigError as e:
            self._status = SchedulerStatus.STOPPED
            logger.error(f"Scheduler not started: {e}")
            raise

        self._status = SchedulerStatus.RUNNING
        if self.config.trigger_minutes:
            logger.info(
                f"Scheduler started (trigger_minutes={list(self.config.trigger_minutes)})"
            )
        else:
            logger.info(f"Scheduler started (interval={format_duration(self._interval)})")

        try:
            while True:
                now = self.ticker.next_tick(cancel_event)
                if now is None:
                    break
                self._on_tick(now)
        finally:
            self.ticker.stop()
            self._status = SchedulerStatus.STOPPED

        if cancel_event.is_set():
            logger.info("Scheduler stopping")
        else:
            logger.info("Scheduler stopping (tick source exhausted)")

        with self._threads_lock:
            in_flight = len(self._active_threads)
        if in_flight:
            logger.debug(f"{in_flight} dispatch(es) still in flight at stop")

    def _on_tick(self, now: datetime):
        """Evaluate one tick. Runs on the tick-loop thread only."""
        if not should_trigger(now, self._state.last_fire_minute, self.config, self._interval):
            return

        # Record before dispatch so the next tick in this minute is debounced
        self._state.last_fire_minute = minute_key(now)
        self._fire_count += 1

        logger.info(f"🔔 Reminder triggered at {now.strftime('%H:%M:%S')}")
        self._emit_event('reminder_fired', now)
        self._dispatch(now)

    def _dispatch(self, now: datetime):
        """Start a detached dispatch thread for one fire"""
        thread = threading.Thread(
            target=self._dispatch_thread,
            args=(now,),
            daemon=True,
            name=f"Reminder-Dispatch-{now.strftime('%H%M')}"
        )
        with self._threads_lock:
            self._active_threads.add(thread)
        thread.start()

    def _dispatch_thread(self, now: datetime):
        """Thread wrapper for fire dispatch"""
        try:
            self._fire(now)
        finally:
            with self._threads_lock:
                self._active_threads.discard(threading.current_thread())

    def _fire(self, now: datetime):
        """Play sound, then notify. Each step is best-effort."""
        try:
            self.player.play()
        except Exception as e:
            logger.error(f"Failed to play sound: {e}", exc_info=True)
            self._emit_event('playback_failed', now, e)

        try:
            self.notifier.notify()
        except Exception as e:
            logger.error(f"Failed to show notification: {e}", exc_info=True)
            self._emit_event('notification_failed', now, e)

        self._emit_event('dispatch_finished', now)

    def active_dispatches(self) -> int:
        """Number of dispatch threads still running"""
        with self._threads_lock:
            return len(self._active_threads)

    def wait_for_dispatches(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for in-flight dispatch threads to finish.

        Not called by run(); cancellation stays fire-and-forget unless the
        embedder asks for a drain.

        Args:
            timeout: Maximum time to wait in seconds (None = no limit)

        Returns:
            True if all dispatches completed, False on timeout
        """
        start_time = time.monotonic()

        while True:
            with self._threads_lock:
                active = list(self._active_threads)

            if not active:
                return True

            if timeout is not None and (time.monotonic() - start_time) > timeout:
                return False

            for thread in active:
                thread.join(timeout=0.1)
