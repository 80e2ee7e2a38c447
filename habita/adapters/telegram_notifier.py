"""Telegram notification adapter — implements NotificationPort.

Wraps a telegram.Bot instance and delivers each toast as a chat message.
"""

from __future__ import annotations

import logging

from telegram import Bot

from habita.ports.notification_port import Toast, ToastLevel

logger = logging.getLogger(__name__)

_ICONS = {
    ToastLevel.SUCCESS: "✅",
    ToastLevel.INFO: "ℹ️",
    ToastLevel.ERROR: "❌",
}


def format_toast(toast: Toast) -> str:
    text = f"{_ICONS[toast.level]} *{toast.title}*"
    if toast.message:
        text += f"\n{toast.message}"
    return text


class TelegramNotifier:
    """Telegram implementation of NotificationPort."""

    def __init__(self, bot: Bot, chat_id: int) -> None:
        self._bot = bot
        self._chat_id = chat_id

    async def send_toast(self, toast: Toast) -> None:
        await self._bot.send_message(
            chat_id=self._chat_id, text=format_toast(toast), parse_mode="Markdown",
        )
