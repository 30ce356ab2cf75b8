"""Telegram delivery for engine health alerts and account logs."""
from __future__ import annotations

import html
import logging
import ssl

import aiohttp
import certifi

from ..config import TelegramConfig

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"
MAX_MESSAGE_LENGTH = 4096
TRUNCATION_NOTICE = "\n… (truncated)"


def render_message(message: str, subject: str = "", engine_label: str = "") -> str:
    """Build the HTML body: engine tag, bold subject, then the escaped text.

    Bodies longer than Telegram's limit are cut and marked as truncated.
    """
    parts: list[str] = []
    header = " ".join(
        part for part in (
            f"[{html.escape(engine_label)}]" if engine_label else "",
            f"<b>{html.escape(subject)}</b>" if subject else "",
        ) if part
    )
    if header:
        parts.append(header)
    parts.append(html.escape(message, quote=False))
    text = "\n\n".join(parts)
    if len(text) > MAX_MESSAGE_LENGTH:
        text = text[: MAX_MESSAGE_LENGTH - len(TRUNCATION_NOTICE)] + TRUNCATION_NOTICE
    return text


class TelegramNotifier:
    """Send engine alerts and logs through two Telegram bots.

    Alerts (insolvent or at-risk accounts, daily reports) go through the
    alert bot with sound on; routine account logs go through the log bot,
    muted by default. Every message is tagged with the engine label so that
    several engines can share one chat.
    """

    def __init__(self, config: TelegramConfig) -> None:
        self.alert_bot_token = config.alert_bot_token
        self.log_bot_token = config.log_bot_token
        self.chat_id = config.chat_id
        self.engine_label = config.engine_label

    async def _post(self, bot_token: str, text: str, silent: bool) -> bool:
        if not bot_token or not self.chat_id:
            logger.warning("Telegram credentials not configured")
            return False

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)
        payload = {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_notification": silent,
        }

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.post(
                f"{TELEGRAM_API_URL}/bot{bot_token}/sendMessage", json=payload
            ) as response:
                if response.status != 200:
                    logger.error("Telegram rejected message: HTTP %s", response.status)
                    return False
                return True

    async def send_alert(self, message: str, subject: str = "") -> bool:
        text = render_message(message, subject, self.engine_label)
        sent = await self._post(self.alert_bot_token, text, silent=False)
        if sent:
            logger.info("Telegram alert sent: %s", subject or "(no subject)")
        return sent

    async def send_log(self, message: str, silent: bool = True) -> bool:
        text = render_message(message, engine_label=self.engine_label)
        sent = await self._post(self.log_bot_token, text, silent=silent)
        if sent:
            logger.debug("Telegram log sent")
        return sent
