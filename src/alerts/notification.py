"""Notification sinks for phase completion messages."""

import logging
from typing import Optional

from plyer import notification

from .errors import AlertError


class DesktopNotificationSink:
    """Shows native desktop notifications through plyer."""
    def __init__(
        self,
        app_name: str,
        timeout_seconds: int = 10,
        logger: Optional[logging.Logger] = None,
    ):
        self._app_name = app_name
        self._timeout_seconds = timeout_seconds
        self._logger = logger or logging.getLogger(__name__)

    def notify(self, title: str, body: str) -> None:
        self._logger.debug("Showing desktop notification: %s", title)
        try:
            notification.notify(
                title=title,
                message=body,
                app_name=self._app_name,
                timeout=self._timeout_seconds,
            )
        except Exception as error:
            raise AlertError(f"Desktop notification failed: {error}") from error


class LoggingNotificationSink:
    """Writes notifications to the log for headless hosts."""
    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger(__name__)

    def notify(self, title: str, body: str) -> None:
        self._logger.info("%s %s", title, body)
