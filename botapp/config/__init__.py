"""Structured configuration for the Telegram bot runtime."""

from __future__ import annotations
from tracking import t

from dataclasses import dataclass
from typing import Optional

from infrastructure.settings import AppSettings, ConfigurationError, get_settings


@dataclass(frozen=True)
class TelegramConfig:
    """Telegram-specific settings for the bot runtime."""

    token: str
    production_mode: bool


@dataclass(frozen=True)
class SessionConfig:
    """How long detached chats keep their browser and where "today" is."""

    idle_seconds: int
    timezone: str


@dataclass(frozen=True)
class BotAppConfig:
    """Aggregated configuration snapshot for the Telegram bot."""

    telegram: TelegramConfig
    sessions: SessionConfig
    settings: AppSettings

    @property
    def timezone(self) -> str:
        return self.sessions.timezone


def _build_config_from_settings(settings: AppSettings) -> BotAppConfig:
    """Translate :class:`AppSettings` values into runtime config objects."""
    t('botapp.config._build_config_from_settings')

    if not settings.bot_token:
        raise ConfigurationError("TELEGRAM_BOT_TOKEN is not set")

    return BotAppConfig(
        telegram=TelegramConfig(
            token=settings.bot_token,
            production_mode=settings.production_mode,
        ),
        sessions=SessionConfig(
            idle_seconds=settings.session_idle_seconds,
            timezone=settings.timezone,
        ),
        settings=settings,
    )


def load_bot_config(settings: Optional[AppSettings] = None) -> BotAppConfig:
    """Load the Telegram bot configuration from shared application settings."""
    t('botapp.config.load_bot_config')

    if settings is None:
        settings = get_settings()
    return _build_config_from_settings(settings)


__all__ = [
    'BotAppConfig',
    'SessionConfig',
    'TelegramConfig',
    'load_bot_config',
]
