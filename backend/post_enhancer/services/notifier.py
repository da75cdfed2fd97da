"""Best-effort Telegram notifications."""

from __future__ import annotations

import logging

import httpx

from ..config import Settings

logger = logging.getLogger(__name__)


class TelegramNotifier:
    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        self._bot_token = settings.BOT_TOKEN
        self._chat_id = settings.TELEGRAM_CHAT_ID

    @property
    def enabled(self) -> bool:
        return bool(self._bot_token and self._chat_id)

    async def send(self, text: str) -> bool:
        """Send ``text`` to the configured chat.

        Returns whether the message was delivered.  Delivery failures are
        logged and dropped: a notification must never break the pipeline.
        """

        if not self.enabled:
            return False
        try:
            resp = await self._client.post(
                f"https://api.telegram.org/bot{self._bot_token}/sendMessage",
                json={"chat_id": self._chat_id, "text": text},
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            # The request URL embeds the bot token; log the exception type only.
            logger.warning("Telegram notification dropped: %s", type(e).__name__)
            return False
        return True
