from __future__ import annotations

from typing import Optional, Union

import requests

from basewatch.config import settings
from basewatch.core.errors import TrackerError
from basewatch.ports.notifier_port import NotifierPort


class TelegramError(TrackerError):
    pass


class TelegramNotifier(NotifierPort):
    def __init__(
        self,
        bot_token: str = settings.TELEGRAM_BOT_TOKEN,
        session: Optional[requests.Session] = None,
        timeout_sec: int = settings.TELEGRAM_TIMEOUT_SEC,
    ) -> None:
        if not bot_token:
            raise ValueError("TELEGRAM_BOT_TOKEN is required")
        self.base = f"{settings.TELEGRAM_API_BASE}/bot{bot_token.strip()}"
        self.session = session or requests.Session()
        self.timeout = timeout_sec

    def send(self, chat_id: Union[int, str], text: str) -> None:
        try:
            r = self.session.post(
                f"{self.base}/sendMessage",
                json={
                    "chat_id": chat_id,
                    "text": text,
                    "parse_mode": "Markdown",
                    "disable_web_page_preview": True,
                },
                timeout=self.timeout,
            )
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            raise TelegramError(f"sendMessage to {chat_id} failed: {e}") from e
        if not data.get("ok"):
            raise TelegramError(f"sendMessage to {chat_id} rejected: {data.get('description', data)}")
