"""
Rest Reminder Notifier - Desktop Notifications via plyer

notify() is a no-op unless desktop notifications are enabled in the
config. Rendering is left to the OS notification service.
"""

import logging

from plyer import notification

from rest_reminder.config.settings import NotificationConfig
from rest_reminder.core.errors import NotificationError
from rest_reminder.core.scheduler import Notifier

logger = logging.getLogger(__name__)

APP_NAME = "Rest Time Reminder"
NOTIFICATION_TIMEOUT = 10  # seconds the toast stays visible


class DesktopNotifier(Notifier):
    """Desktop notifier for reminder fires"""

    def __init__(self, config: NotificationConfig, timeout: int = NOTIFICATION_TIMEOUT):
        self.config = config
        self.timeout = timeout
        logger.info(f"DesktopNotifier initialized (desktop={config.desktop})")

    def notify(self):
        if not self.config.desktop:
            logger.debug("Desktop notifications disabled, skipping")
            return

        logger.debug(f"Showing desktop notification: {self.config.title} - {self.config.message}")
        self._show(self.config.title, self.config.message)

    def alert(self, title: str, message: str):
        """
        Show an ad-hoc notification regardless of the desktop flag.

        Raises:
            NotificationError: If the notification cannot be shown
        """
        self._show(title, message)

    def _show(self, title: str, message: str):
        try:
            notification.notify(
                title=title,
                message=message,
                app_name=APP_NAME,
                timeout=self.timeout
            )
        except Exception as e:
            raise NotificationError(f"Failed to show notification: {e}") from e
