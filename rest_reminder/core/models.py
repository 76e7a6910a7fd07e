"""
Rest Reminder Models

Data structures shared by the trigger policy and the scheduler.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


DEFAULT_INTERVAL = "30m"


class SchedulerStatus(Enum):
    """Scheduler lifecycle states"""
    IDLE = "idle"          # Constructed, interval not parsed yet
    RUNNING = "running"    # Tick loop active
    STOPPED = "stopped"    # Cancelled, tick source exhausted, or invalid config


@dataclass(frozen=True)
class ReminderConfig:
    """
    Schedule settings for one run.

    interval is kept as the raw string; the scheduler parses it at run()
    entry. trigger_minutes, when non-empty, overrides interval triggering.
    """
    interval: str = DEFAULT_INTERVAL
    trigger_minutes: Tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self):
        """
        Normalize trigger_minutes into a sorted, de-duplicated tuple.

        Non-integer entries are kept as given so the scheduler can reject
        them at run() entry.
        """
        minutes = tuple(self.trigger_minutes or ())
        if all(isinstance(m, int) and not isinstance(m, bool) for m in minutes):
            minutes = tuple(sorted(set(minutes)))
        object.__setattr__(self, "trigger_minutes", minutes)

    @property
    def uses_trigger_minutes(self) -> bool:
        return bool(self.trigger_minutes)


@dataclass
class SchedulerState:
    """
    Mutable fire state.

    Only the tick-loop thread reads or writes this. last_fire_minute is the
    minute (seconds and microseconds zeroed) of the last fire, or None.
    """
    last_fire_minute: Optional[datetime] = None


def minute_key(now: datetime) -> datetime:
    """Truncate a timestamp to its calendar minute"""
    return now.replace(second=0, microsecond=0)
