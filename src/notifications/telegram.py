"""Telegram notification service."""
import html
import logging
import ssl

import aiohttp
import certifi

from ..config import TelegramConfig

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"
# Telegram rejects messages above 4096 characters.
MAX_MESSAGE_LENGTH = 4096


class TelegramNotifier:
    """Post position alerts (audible bot) and logs (quiet bot) to one chat."""

    def __init__(self, config: TelegramConfig) -> None:
        self.alert_bot_token = config.alert_bot_token
        self.log_bot_token = config.log_bot_token
        self.chat_id = config.chat_id

    @staticmethod
    def _render(message: str, subject: str = "") -> str:
        body = html.escape(message)
        if subject:
            body = f"<b>{html.escape(subject)}</b>\n\n{body}"
        if len(body) > MAX_MESSAGE_LENGTH:
            body = body[: MAX_MESSAGE_LENGTH - 1]
            # Never end on half an entity such as "&am".
            amp = body.rfind("&")
            if amp != -1 and ";" not in body[amp:]:
                body = body[:amp]
            body += "…"
        return body

    async def _post(self, bot_token: str, text: str, silent: bool) -> bool:
        if not bot_token or not self.chat_id:
            logger.warning("Telegram credentials not configured")
            return False

        payload = {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_notification": silent,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.post(
                f"{TELEGRAM_API}/bot{bot_token}/sendMessage", json=payload
            ) as response:
                if response.status != 200:
                    logger.error("Telegram sendMessage failed: HTTP %s", response.status)
                    return False
                return True

    async def send_alert(self, message: str, subject: str = "") -> bool:
        """Send an alert through the alert bot; never silent."""
        sent = await self._post(
            self.alert_bot_token, self._render(message, subject), silent=False
        )
        if sent:
            logger.info("Telegram alert sent")
        return sent

    async def send_log(self, message: str, silent: bool = True) -> bool:
        """Send a routine position log through the log bot."""
        sent = await self._post(self.log_bot_token, self._render(message), silent=silent)
        if sent:
            logger.debug("Telegram log sent")
        return sent
