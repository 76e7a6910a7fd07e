"""
Rest Reminder Clock Sources

A Ticker hands the scheduler one wall-clock timestamp per tick. The
scheduler's only suspension point is Ticker.next_tick(), which must return
as soon as the cancel event is set.

- SystemTicker: real 1-second ticks, waits on the cancel event (no polling)
- VirtualTicker: replays a fixed list of timestamps, for deterministic tests
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional

logger = logging.getLogger(__name__)

TICK_PERIOD = 1.0  # seconds


class Ticker(ABC):
    """Source of scheduler ticks"""

    @abstractmethod
    def next_tick(self, cancel_event: threading.Event) -> Optional[datetime]:
        """
        Block until the next tick or until cancellation.

        Args:
            cancel_event: Cooperative cancellation signal

        Returns:
            Wall-clock timestamp of the tick, or None if cancelled or the
            source has no more ticks
        """
        pass

    def stop(self):
        """Release the tick source (no-op by default)"""
        pass


class SystemTicker(Ticker):
    """
    Wall-clock ticker with a fixed period.

    Deadlines are tracked on the monotonic clock so wall-clock jumps do not
    stretch or shrink the wait. If the loop falls behind by more than one
    period the missed ticks are dropped and the schedule re-aligns to now.
    """

    def __init__(
        self,
        period: float = TICK_PERIOD,
        now_fn: Callable[[], datetime] = datetime.now,
        monotonic: Callable[[], float] = time.monotonic
    ):
        if period <= 0:
            raise ValueError("Tick period must be positive")

        self.period = period
        self._now = now_fn
        self._monotonic = monotonic
        self._deadline: Optional[float] = None

    def next_tick(self, cancel_event: threading.Event) -> Optional[datetime]:
        if self._deadline is None:
            self._deadline = self._monotonic() + self.period

        remaining = self._deadline - self._monotonic()
        if remaining > 0:
            # wait() returns True only when the event was set
            if cancel_event.wait(remaining):
                return None
        if cancel_event.is_set():
            return None

        current = self._monotonic()
        self._deadline += self.period
        if self._deadline <= current:
            logger.debug("Ticker fell behind, dropping missed ticks")
            self._deadline = current + self.period

        return self._now()

    def stop(self):
        self._deadline = None


class VirtualTicker(Ticker):
    """
    Deterministic ticker for tests.

    Returns the given timestamps in order without sleeping, then None.
    Every delivered timestamp is recorded in `delivered`.
    """

    def __init__(self, timestamps: Iterable[datetime]):
        self._timestamps = iter(list(timestamps))
        self.delivered: List[datetime] = []
        self.stopped = False

    @classmethod
    def between(
        cls,
        start: datetime,
        end: datetime,
        step: timedelta = timedelta(seconds=1)
    ) -> "VirtualTicker":
        """Tick from start to end inclusive, one step apart"""
        if step <= timedelta(0):
            raise ValueError("Tick step must be positive")

        timestamps = []
        current = start
        while current <= end:
            timestamps.append(current)
            current += step
        return cls(timestamps)

    def next_tick(self, cancel_event: threading.Event) -> Optional[datetime]:
        if cancel_event.is_set():
            return None

        tick = next(self._timestamps, None)
        if tick is not None:
            self.delivered.append(tick)
        return tick

    def stop(self):
        self.stopped = True
