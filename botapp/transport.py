"""Telegram chat as a session transport."""

from __future__ import annotations
from tracking import t

import logging
from typing import Optional

from telegram.error import TelegramError

from botapp.sessions.registry import Transport, TransportError

# Telegram rejects longer messages.
MAX_MESSAGE_LENGTH = 4096


class TelegramTransport(Transport):
    """Sends plain-text replies to one chat through the bot API."""

    def __init__(self, bot, chat_id: int, *, logger: Optional[logging.Logger] = None) -> None:
        t('botapp.transport.TelegramTransport.__init__')
        self.bot = bot
        self.chat_id = chat_id
        self.logger = logger or logging.getLogger('TelegramTransport')

    async def send(self, text: str) -> None:
        t('botapp.transport.TelegramTransport.send')
        for start in range(0, max(len(text), 1), MAX_MESSAGE_LENGTH):
            chunk = text[start:start + MAX_MESSAGE_LENGTH]
            try:
                await self.bot.send_message(chat_id=self.chat_id, text=chunk)
            except TelegramError as exc:
                raise TransportError(f"chat {self.chat_id}: {exc}") from exc

    def __repr__(self) -> str:
        return f"TelegramTransport(chat_id={self.chat_id})"


__all__ = ["MAX_MESSAGE_LENGTH", "TelegramTransport"]
