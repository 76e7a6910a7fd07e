"""
Rest Reminder Errors

Only InvalidConfigError escapes Scheduler.run(). Playback and notification
failures are raised by the collaborators and contained by the dispatch
thread.
"""


class ReminderError(Exception):
    """Base exception for all reminder errors"""
    pass


class InvalidConfigError(ReminderError):
    """Raised when the reminder schedule cannot be parsed or is out of range"""
    pass


class PlaybackError(ReminderError):
    """Raised when a sound player fails to play"""
    pass


class NotificationError(ReminderError):
    """Raised when a desktop notification cannot be shown"""
    pass


class ConfigLoadError(ReminderError):
    """Raised when the configuration file cannot be read or parsed"""
    pass


class UpdateCheckError(ReminderError):
    """Raised when the latest release cannot be looked up"""
    pass
