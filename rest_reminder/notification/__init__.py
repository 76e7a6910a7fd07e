"""
Rest Reminder Notifications
"""

from .notifier import DesktopNotifier, APP_NAME

__all__ = [
    'DesktopNotifier',
    'APP_NAME',
]
