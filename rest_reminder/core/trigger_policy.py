"""
Rest Reminder Trigger Policy

Pure decision function: given the current time, the last fired minute and
the schedule, answer whether a reminder fires now.

Rules:
- At most one fire per calendar minute (debounce on the truncated minute)
- Explicit trigger minutes take precedence over the interval
- Interval mode fires when the minute of the hour is a multiple of the
  interval in whole minutes
- Sub-minute intervals fall back to DEFAULT_INTERVAL_MINUTES, minute
  granularity is the floor resolution

No seconds alignment is required: a tick landing at 10:00:07 still counts
for minute 10:00 as long as nothing fired in that minute yet.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from .durations import parse_duration
from .models import ReminderConfig, minute_key

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MINUTES = 30


def interval_minutes(interval: timedelta) -> int:
    """
    Whole minutes in an interval, clamped to the default when below one.

    Args:
        interval: Parsed reminder interval

    Returns:
        floor(interval / 1 minute), or DEFAULT_INTERVAL_MINUTES if that is <= 0
    """
    minutes = int(interval // timedelta(minutes=1))
    if minutes <= 0:
        return DEFAULT_INTERVAL_MINUTES
    return minutes


def should_trigger(
    now: datetime,
    last_fire_minute: Optional[datetime],
    config: ReminderConfig,
    interval: Optional[timedelta] = None
) -> bool:
    """
    Decide whether a reminder should fire at `now`.

    Args:
        now: Current wall-clock timestamp
        last_fire_minute: Minute of the last fire (None if never fired)
        config: Reminder schedule
        interval: Pre-parsed config.interval (parsed here when omitted)

    Returns:
        True if a reminder should fire for this tick
    """
    current_minute = minute_key(now)

    if last_fire_minute is not None and minute_key(last_fire_minute) == current_minute:
        return False

    if config.trigger_minutes:
        return now.minute in config.trigger_minutes

    if interval is None:
        interval = parse_duration(config.interval)

    return now.minute % interval_minutes(interval) == 0
