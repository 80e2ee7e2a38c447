"""Logging notification adapter — toasts end up in the application log."""

from __future__ import annotations

import logging

from habita.ports.notification_port import Toast, ToastLevel

logger = logging.getLogger(__name__)

_LEVELS = {
    ToastLevel.SUCCESS: logging.INFO,
    ToastLevel.INFO: logging.INFO,
    ToastLevel.ERROR: logging.ERROR,
}


class LogNotifier:
    """NotificationPort that writes each toast to the log."""

    async def send_toast(self, toast: Toast) -> None:
        logger.log(_LEVELS[toast.level], "[%s] %s: %s", toast.level.value, toast.title, toast.message)
