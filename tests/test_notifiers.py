"""Tests for the toast adapters and the notifier factory."""

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from habita.adapters.log_notifier import LogNotifier
from habita.adapters.notifier_factory import create_notifier
from habita.adapters.telegram_notifier import TelegramNotifier, format_toast
from habita.ports.notification_port import Toast, ToastLevel


# ---------------------------------------------------------------------------
# LogNotifier
# ---------------------------------------------------------------------------


class TestLogNotifier:
    @pytest.mark.asyncio
    async def test_success_logs_info(self, caplog):
        with caplog.at_level(logging.INFO, logger="habita.adapters.log_notifier"):
            await LogNotifier().send_toast(Toast(ToastLevel.SUCCESS, "Plan applied!", "3 task(s) assigned"))
        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert "Plan applied!: 3 task(s) assigned" in record.getMessage()

    @pytest.mark.asyncio
    async def test_error_logs_error(self, caplog):
        with caplog.at_level(logging.INFO, logger="habita.adapters.log_notifier"):
            await LogNotifier().send_toast(Toast(ToastLevel.ERROR, "Error", "Could not discard the plan."))
        assert caplog.records[-1].levelno == logging.ERROR


# ---------------------------------------------------------------------------
# TelegramNotifier
# ---------------------------------------------------------------------------


class TestTelegramNotifier:
    def test_format_with_message(self):
        text = format_toast(Toast(ToastLevel.SUCCESS, "Added", "Dishes assigned to Ana"))
        assert text == "✅ *Added*\nDishes assigned to Ana"

    def test_format_title_only(self):
        assert format_toast(Toast(ToastLevel.ERROR, "Error")) == "❌ *Error*"

    @pytest.mark.asyncio
    async def test_sends_to_chat(self):
        bot = MagicMock()
        bot.send_message = AsyncMock()
        await TelegramNotifier(bot, 4242).send_toast(Toast(ToastLevel.INFO, "No changes"))
        bot.send_message.assert_awaited_once_with(
            chat_id=4242, text="ℹ️ *No changes*", parse_mode="Markdown",
        )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class TestCreateNotifier:
    def test_log_provider(self):
        with patch("habita.adapters.notifier_factory.settings") as mock_settings:
            mock_settings.NOTIFIER_PROVIDER = "LOG"
            assert isinstance(create_notifier(), LogNotifier)

    def test_telegram_provider(self):
        with patch("habita.adapters.notifier_factory.settings") as mock_settings, \
                patch("telegram.Bot") as bot_cls:
            mock_settings.NOTIFIER_PROVIDER = "telegram"
            mock_settings.TELEGRAM_BOT_TOKEN = "123:abc"
            mock_settings.TELEGRAM_CHAT_ID = 99
            notifier = create_notifier()
        assert isinstance(notifier, TelegramNotifier)
        bot_cls.assert_called_once_with(token="123:abc")

    def test_telegram_without_chat(self):
        with patch("habita.adapters.notifier_factory.settings") as mock_settings:
            mock_settings.NOTIFIER_PROVIDER = "telegram"
            mock_settings.TELEGRAM_BOT_TOKEN = "123:abc"
            mock_settings.TELEGRAM_CHAT_ID = None
            with pytest.raises(ValueError):
                create_notifier()

    def test_unknown_provider(self):
        with patch("habita.adapters.notifier_factory.settings") as mock_settings:
            mock_settings.NOTIFIER_PROVIDER = "carrier-pigeon"
            with pytest.raises(ValueError, match="Unknown NOTIFIER_PROVIDER"):
                create_notifier()
