"""Runtime helpers for the Telegram bot application."""

from .lifecycle import LifecycleManager
from .bot_application import BotApplication

__all__ = ['LifecycleManager', 'BotApplication']
