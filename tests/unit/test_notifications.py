"""Unit tests for notification services."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from morpho_monitor.config import TelegramConfig
from morpho_monitor.notifications.telegram import (
    MAX_MESSAGE_LENGTH,
    TelegramNotifier,
    truncate_message,
)


def _mock_session(status: int) -> AsyncMock:
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    mock_session.post = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


@pytest.fixture()
def telegram_notifier() -> TelegramNotifier:
    return TelegramNotifier(
        TelegramConfig(
            enabled=True,
            alert_bot_token="alert-tok",
            log_bot_token="log-tok",
            chat_id="12345",
        )
    )


@pytest.fixture()
def telegram_notifier_unconfigured() -> TelegramNotifier:
    return TelegramNotifier(
        TelegramConfig(enabled=True, alert_bot_token="", log_bot_token="", chat_id="")
    )


class TestTruncateMessage:
    def test_short_message_unchanged(self) -> None:
        assert truncate_message("hello") == "hello"

    def test_long_message_truncated_to_limit(self) -> None:
        result = truncate_message("x" * 5000)
        assert len(result) == MAX_MESSAGE_LENGTH
        assert result.endswith("...")


class TestTelegramNotifier:
    @pytest.mark.asyncio
    async def test_send_alert_success(self, telegram_notifier: TelegramNotifier) -> None:
        mock_session = _mock_session(200)

        with patch("morpho_monitor.notifications.telegram.aiohttp.ClientSession", return_value=mock_session):
            with patch("morpho_monitor.notifications.telegram.aiohttp.TCPConnector"):
                result = await telegram_notifier.send_alert("test alert")

        assert result is True
        url = mock_session.post.call_args[0][0]
        payload = mock_session.post.call_args.kwargs["json"]
        assert "botalert-tok" in url
        assert payload["parse_mode"] == "HTML"
        assert payload["disable_notification"] is False

    @pytest.mark.asyncio
    async def test_send_alert_failure(self, telegram_notifier: TelegramNotifier) -> None:
        mock_session = _mock_session(403)

        with patch("morpho_monitor.notifications.telegram.aiohttp.ClientSession", return_value=mock_session):
            with patch("morpho_monitor.notifications.telegram.aiohttp.TCPConnector"):
                result = await telegram_notifier.send_alert("test alert")

        assert result is False

    @pytest.mark.asyncio
    async def test_send_log_uses_log_bot_silently(
        self, telegram_notifier: TelegramNotifier
    ) -> None:
        mock_session = _mock_session(200)

        with patch("morpho_monitor.notifications.telegram.aiohttp.ClientSession", return_value=mock_session):
            with patch("morpho_monitor.notifications.telegram.aiohttp.TCPConnector"):
                result = await telegram_notifier.send_log("test log")

        assert result is True
        url = mock_session.post.call_args[0][0]
        payload = mock_session.post.call_args.kwargs["json"]
        assert "botlog-tok" in url
        assert payload["disable_notification"] is True

    def test_log_bot_falls_back_to_alert_bot(self) -> None:
        notifier = TelegramNotifier(
            TelegramConfig(enabled=True, alert_bot_token="alert-tok", chat_id="1")
        )
        assert notifier.log_bot_token == "alert-tok"

    @pytest.mark.asyncio
    async def test_unconfigured_returns_false(
        self, telegram_notifier_unconfigured: TelegramNotifier
    ) -> None:
        result = await telegram_notifier_unconfigured.send_alert("test")
        assert result is False

        result = await telegram_notifier_unconfigured.send_log("test")
        assert result is False
