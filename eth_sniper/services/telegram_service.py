# services/telegram_service.py
from __future__ import annotations
import os
from typing import Callable, Optional

import requests

from eth_sniper.utils.log_config import logger_manager

logger = logger_manager.setup_logger(__name__)

TELEGRAM_MAX_MESSAGE = 4096


class TelegramService:
    """
    Outbound pushes through the Bot API, used from the monitor thread.

    Config from .env:
      - TELEGRAM_TOKEN
    """

    def __init__(
        self,
        token: str | None = None,
        timeout: float = 10.0,
        on_unreachable: Optional[Callable[[int], object]] = None,
        session: requests.Session | None = None,
    ) -> None:
        self.token = token or os.getenv("TELEGRAM_TOKEN")
        self.timeout = timeout
        self.on_unreachable = on_unreachable
        self.http = session or requests.Session()
        self.api_base = f"https://api.telegram.org/bot{self.token}" if self.token else None
        if not self.api_base:
            logger.warning("TelegramService without TELEGRAM_TOKEN; pushes are disabled.")

    def send(self, chat_id: int, text: str, reply_markup: dict | None = None) -> bool:
        """Send ``text`` to ``chat_id``; returns whether Telegram accepted it."""
        if not self.api_base:
            return False
        payload = {"chat_id": chat_id, "text": text[:TELEGRAM_MAX_MESSAGE], "disable_web_page_preview": True}
        if reply_markup:
            payload["reply_markup"] = reply_markup
        try:
            resp = self.http.post(f"{self.api_base}/sendMessage", json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"❌ Error sending Telegram message to {chat_id}: {e}")
            return False

        if resp.status_code == 403:
            # bot blocked or removed from the chat
            logger.warning(f"🚫 Chat {chat_id} is unreachable (403); dropping its subscriptions.")
            if self.on_unreachable is not None:
                self.on_unreachable(chat_id)
            return False
        if not resp.ok:
            logger.error(f"❌ Telegram rejected message to {chat_id}: HTTP {resp.status_code} {resp.text[:200]}")
            return False
        return True
