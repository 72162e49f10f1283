"""Centralized application settings.

Every runtime knob is read here once from the environment (optionally
seeded from a ``.env`` file) into immutable dataclasses. Other modules
receive these snapshots explicitly instead of calling ``os.getenv``.
"""

from __future__ import annotations
from tracking import t

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from . import constants


class ConfigurationError(Exception):
    """Raised when required configuration values are missing or invalid."""


def _to_bool(value: Optional[str], default: bool = False) -> bool:
    """Normalize environment strings such as "true"/"1" into booleans."""
    t('infrastructure.settings._to_bool')

    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_int(value: Optional[str], default: int) -> int:
    t('infrastructure.settings._to_int')

    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(f"Expected an integer, got {value!r}") from exc


@dataclass(frozen=True)
class Credentials:
    """Login credentials for the reservation site."""

    username: str
    password: str

    def missing(self) -> Tuple[str, ...]:
        t('infrastructure.settings.Credentials.missing')
        missing = []
        if not self.username:
            missing.append("CLUB_USERNAME")
        if not self.password:
            missing.append("CLUB_PASSWORD")
        return tuple(missing)

    def require(self) -> "Credentials":
        """Return ``self`` or raise :class:`ConfigurationError` if incomplete."""
        t('infrastructure.settings.Credentials.require')

        missing = self.missing()
        if missing:
            raise ConfigurationError(f"Missing credentials: {', '.join(missing)}")
        return self


@dataclass(frozen=True)
class BrowserSettings:
    """How the remote browser is reached."""

    production_mode: bool
    headless: bool
    browserbase_api_key: str
    browserbase_project_id: str
    connect_url: str = constants.BROWSERBASE_CONNECT_URL

    def require_cloud_credentials(self) -> None:
        t('infrastructure.settings.BrowserSettings.require_cloud_credentials')

        missing = []
        if not self.browserbase_api_key:
            missing.append("BROWSERBASE_API_KEY")
        if not self.browserbase_project_id:
            missing.append("BROWSERBASE_PROJECT_ID")
        if missing:
            raise ConfigurationError(
                f"Production browser requires: {', '.join(missing)}"
            )


@dataclass(frozen=True)
class CalendarSettings:
    """Google Calendar service-account settings."""

    credentials_json: str
    credentials_path: str
    calendar_id: str
    timezone: str


@dataclass(frozen=True)
class AppSettings:
    """Immutable snapshot of high-level configuration values."""

    credentials: Credentials
    browser: BrowserSettings
    calendar: CalendarSettings
    bot_token: str
    production_mode: bool
    timezone: str
    session_idle_seconds: int
    companion_name: str
    companion_match_fragments: Tuple[str, ...]


def _parse_fragments(raw: Optional[str], companion_name: str) -> Tuple[str, ...]:
    t('infrastructure.settings._parse_fragments')

    if raw and raw.strip():
        return tuple(part.strip() for part in raw.split(",") if part.strip())
    return tuple(part for part in companion_name.split() if part)


def load_settings(env: Optional[Mapping[str, str]] = None) -> AppSettings:
    """Load configuration from the environment and fall back to defaults."""
    t('infrastructure.settings.load_settings')

    if env is None:
        load_dotenv(override=False)
        env = os.environ

    production_mode = _to_bool(env.get("PRODUCTION_MODE"), default=False)
    timezone = env.get("BOT_TIMEZONE", constants.DEFAULT_TIMEZONE)

    credentials = Credentials(
        username=env.get("CLUB_USERNAME", ""),
        password=env.get("CLUB_PASSWORD", ""),
    )

    browser = BrowserSettings(
        production_mode=production_mode,
        headless=_to_bool(env.get("BROWSER_HEADLESS"), default=production_mode),
        browserbase_api_key=env.get("BROWSERBASE_API_KEY", ""),
        browserbase_project_id=env.get("BROWSERBASE_PROJECT_ID", ""),
    )

    calendar = CalendarSettings(
        credentials_json=env.get("GOOGLE_CALENDAR_CREDENTIALS", ""),
        credentials_path=env.get(
            "GOOGLE_CALENDAR_CREDENTIALS_PATH", constants.DEFAULT_CALENDAR_CREDENTIALS_PATH
        ),
        calendar_id=env.get("GOOGLE_CALENDAR_ID", "primary"),
        timezone=timezone,
    )

    companion_name = env.get("COMPANION_NAME", constants.DEFAULT_COMPANION_NAME)

    idle_seconds = _to_int(env.get("SESSION_IDLE_SECONDS"), constants.DEFAULT_SESSION_IDLE_SECONDS)
    if idle_seconds <= 0:
        raise ConfigurationError("SESSION_IDLE_SECONDS must be positive")

    return AppSettings(
        credentials=credentials,
        browser=browser,
        calendar=calendar,
        bot_token=env.get("TELEGRAM_BOT_TOKEN", ""),
        production_mode=production_mode,
        timezone=timezone,
        session_idle_seconds=idle_seconds,
        companion_name=companion_name,
        companion_match_fragments=_parse_fragments(
            env.get("COMPANION_MATCH_FRAGMENTS"), companion_name
        ),
    )


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached :class:`AppSettings` instance."""
    t('infrastructure.settings.get_settings')

    return load_settings()


__all__ = [
    "AppSettings",
    "BrowserSettings",
    "CalendarSettings",
    "ConfigurationError",
    "Credentials",
    "get_settings",
    "load_settings",
]
