"""
Rest Reminder Core - Scheduling Engine

Trigger policy, tick sources and the reminder scheduler.
"""

from .clock import Ticker, SystemTicker, VirtualTicker, TICK_PERIOD
from .durations import parse_duration, format_duration, DurationError
from .errors import (
    ReminderError,
    InvalidConfigError,
    PlaybackError,
    NotificationError,
    ConfigLoadError,
    UpdateCheckError
)
from .models import (
    ReminderConfig,
    SchedulerState,
    SchedulerStatus,
    minute_key,
    DEFAULT_INTERVAL
)
from .scheduler import Scheduler, SoundPlayer, Notifier
from .trigger_policy import should_trigger, interval_minutes, DEFAULT_INTERVAL_MINUTES

__all__ = [
    # Clock
    'Ticker',
    'SystemTicker',
    'VirtualTicker',
    'TICK_PERIOD',
    # Durations
    'parse_duration',
    'format_duration',
    'DurationError',
    # Errors
    'ReminderError',
    'InvalidConfigError',
    'PlaybackError',
    'NotificationError',
    'ConfigLoadError',
    'UpdateCheckError',
    # Models
    'ReminderConfig',
    'SchedulerState',
    'SchedulerStatus',
    'minute_key',
    'DEFAULT_INTERVAL',
    # Scheduler
    'Scheduler',
    'SoundPlayer',
    'Notifier',
    # Trigger policy
    'should_trigger',
    'interval_minutes',
    'DEFAULT_INTERVAL_MINUTES',
]
