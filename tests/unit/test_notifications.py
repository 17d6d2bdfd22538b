"""Unit tests for the Telegram notifier."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.config import TelegramConfig
from src.notifications.telegram import MAX_MESSAGE_LENGTH, TelegramNotifier


@pytest.fixture()
def notifier() -> TelegramNotifier:
    return TelegramNotifier(
        TelegramConfig(
            enabled=True,
            alert_bot_token="alert-tok",
            log_bot_token="log-tok",
            chat_id="12345",
        )
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


class TestTelegramNotifier:
    @pytest.mark.asyncio
    async def test_send_alert_uses_alert_bot(self, notifier: TelegramNotifier) -> None:
        mock_session = _mock_session(200)

        with patch("src.notifications.telegram.aiohttp.ClientSession", return_value=mock_session):
            with patch("src.notifications.telegram.aiohttp.TCPConnector"):
                result = await notifier.send_alert("health 97%", subject="CRITICAL")

        assert result is True
        url = mock_session.post.call_args.args[0]
        payload = mock_session.post.call_args.kwargs["json"]
        assert url.endswith("/botalert-tok/sendMessage")
        assert payload["chat_id"] == "12345"
        assert payload["disable_notification"] is False
        assert payload["text"].startswith("<b>CRITICAL</b>")

    @pytest.mark.asyncio
    async def test_send_log_uses_log_bot(self, notifier: TelegramNotifier) -> None:
        mock_session = _mock_session(200)

        with patch("src.notifications.telegram.aiohttp.ClientSession", return_value=mock_session):
            with patch("src.notifications.telegram.aiohttp.TCPConnector"):
                result = await notifier.send_log("routine", silent=True)

        assert result is True
        assert "/botlog-tok/" in mock_session.post.call_args.args[0]
        assert mock_session.post.call_args.kwargs["json"]["disable_notification"] is True

    @pytest.mark.asyncio
    async def test_http_error_returns_false(self, notifier: TelegramNotifier) -> None:
        mock_session = _mock_session(403)

        with patch("src.notifications.telegram.aiohttp.ClientSession", return_value=mock_session):
            with patch("src.notifications.telegram.aiohttp.TCPConnector"):
                result = await notifier.send_alert("test alert")

        assert result is False

    @pytest.mark.asyncio
    async def test_unconfigured_skips_request(self) -> None:
        notifier = TelegramNotifier(TelegramConfig(enabled=True))

        with patch("src.notifications.telegram.aiohttp.ClientSession") as session_cls:
            assert await notifier.send_alert("x") is False
            assert await notifier.send_log("x") is False

        session_cls.assert_not_called()


class TestRender:
    def test_escapes_html(self) -> None:
        assert TelegramNotifier._render("a < b & c") == "a &lt; b &amp; c"

    def test_truncates_long_messages(self) -> None:
        text = TelegramNotifier._render("x" * (MAX_MESSAGE_LENGTH + 50))
        assert len(text) == MAX_MESSAGE_LENGTH
        assert text.endswith("…")

    def test_truncation_keeps_entities_whole(self) -> None:
        text = TelegramNotifier._render("a" * (MAX_MESSAGE_LENGTH - 3) + "&&&")
        assert text == "a" * (MAX_MESSAGE_LENGTH - 3) + "…"

    def test_truncation_keeps_complete_entity(self) -> None:
        text = TelegramNotifier._render("a" * (MAX_MESSAGE_LENGTH - 7) + "&" + "b" * 20)
        assert text == "a" * (MAX_MESSAGE_LENGTH - 7) + "&amp;b" + "…"
        assert len(text) == MAX_MESSAGE_LENGTH
