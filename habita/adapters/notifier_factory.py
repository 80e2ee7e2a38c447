"""Notifier factory — creates the right toast adapter based on config."""

from __future__ import annotations

from habita.config import settings
from habita.ports.notification_port import NotificationPort


def create_notifier() -> NotificationPort:
    """Return the notifier matching the NOTIFIER_PROVIDER setting."""
    provider = settings.NOTIFIER_PROVIDER.lower()

    if provider == "log":
        from habita.adapters.log_notifier import LogNotifier

        return LogNotifier()

    if provider == "telegram":
        if not settings.TELEGRAM_BOT_TOKEN or settings.TELEGRAM_CHAT_ID is None:
            raise ValueError("NOTIFIER_PROVIDER=telegram needs TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID")

        from telegram import Bot

        from habita.adapters.telegram_notifier import TelegramNotifier

        return TelegramNotifier(Bot(token=settings.TELEGRAM_BOT_TOKEN), settings.TELEGRAM_CHAT_ID)

    raise ValueError(f"Unknown NOTIFIER_PROVIDER: {provider!r}")
