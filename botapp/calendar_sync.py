"""Google Calendar entries for confirmed court bookings.

Uses a service account (inline JSON or a credentials file). When neither is
configured the sync reports itself unavailable and every call returns False.
"""

from __future__ import annotations
from tracking import t

import asyncio
import json
import logging
import os
import re
from datetime import date, datetime, time as dt_time, timedelta
from typing import Any, Dict, Optional

import pytz
from google.oauth2 import service_account
from googleapiclient.discovery import build

from automation.shared.booking_contracts import Sport
from infrastructure import constants
from infrastructure.settings import CalendarSettings

SCOPES = ['https://www.googleapis.com/auth/calendar']

_TWELVE_HOUR_RE = re.compile(r'^(\d{1,2})(?::(\d{2}))?\s*(AM|PM)$')
_TWENTY_FOUR_HOUR_RE = re.compile(r'^(\d{1,2}):(\d{2})$')
_RANGE_RE = re.compile(
    r'^(\d{1,2}(?::\d{2})?)\s*(AM|PM)?\s*[-–—]\s*(\d{1,2}(?::\d{2})?)\s*(AM|PM)?$'
)
_SPORT_EMOJI = {Sport.TENNIS: '🎾', Sport.PICKLEBALL: '🥒'}


def _to_24h(hours: int, minutes: int, meridiem: str) -> Optional[dt_time]:
    if not 1 <= hours <= 12 or not 0 <= minutes <= 59:
        return None
    if hours == 12:
        hours = 0
    if meridiem == 'PM':
        hours += 12
    return dt_time(hours, minutes)


def _split_clock(token: str):
    hours, _, minutes = token.partition(':')
    return int(hours), int(minutes or 0)


def parse_start_time(label: str) -> Optional[dt_time]:
    """Start time of ``label``.

    Accepts ``2:00 PM``, ``2:00PM``, ``2 PM``, ``14:00`` and range labels such
    as ``2:30 - 4:00 PM``, where a start without AM/PM borrows the end's
    unless that would put it after the end (``11:00 - 12:30 PM`` is 11 AM).
    """

    t('botapp.calendar_sync.parse_start_time')
    if not label:
        return None
    text = label.strip().upper()

    match = _TWELVE_HOUR_RE.match(text)
    if match:
        return _to_24h(int(match.group(1)), int(match.group(2) or 0), match.group(3))

    match = _TWENTY_FOUR_HOUR_RE.match(text)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if hours > 23 or minutes > 59:
            return None
        return dt_time(hours, minutes)

    match = _RANGE_RE.match(text)
    if not match:
        return None
    start_token, start_meridiem, end_token, end_meridiem = match.groups()
    start_hours, start_minutes = _split_clock(start_token)
    if start_meridiem:
        return _to_24h(start_hours, start_minutes, start_meridiem)
    if not end_meridiem:
        return None

    end = _to_24h(*_split_clock(end_token), end_meridiem)
    start = _to_24h(start_hours, start_minutes, end_meridiem)
    if start is None or end is None:
        return None
    if start > end:
        start = _to_24h(start_hours, start_minutes, 'AM' if end_meridiem == 'PM' else 'PM')
    return start


class GoogleCalendarSync:
    """Adds a calendar event after each confirmed booking."""

    def __init__(self, settings: CalendarSettings, *, service: Any = None, logger: Optional[logging.Logger] = None) -> None:
        t('botapp.calendar_sync.GoogleCalendarSync.__init__')
        self.settings = settings
        self.logger = logger or logging.getLogger('CalendarSync')
        self.timezone = pytz.timezone(settings.timezone)
        self._service = service
        self._init_attempted = service is not None

    def _load_credentials_info(self) -> Optional[Dict[str, Any]]:
        t('botapp.calendar_sync.GoogleCalendarSync._load_credentials_info')
        if self.settings.credentials_json:
            self.logger.info("Using calendar credentials from environment")
            return json.loads(self.settings.credentials_json)
        path = self.settings.credentials_path
        if path and os.path.exists(path):
            self.logger.info("Using calendar credentials from %s", path)
            with open(path, 'r', encoding='utf-8') as handle:
                return json.load(handle)
        return None

    def _ensure_service(self) -> Any:
        t('botapp.calendar_sync.GoogleCalendarSync._ensure_service')
        if self._init_attempted:
            return self._service
        self._init_attempted = True
        try:
            info = self._load_credentials_info()
            if info is None:
                self.logger.warning("Calendar credentials not found, skipping calendar integration")
                return None
            credentials = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
            self._service = build('calendar', 'v3', credentials=credentials, cache_discovery=False)
            self.logger.info("Calendar service initialized")
        except Exception as exc:
            self.logger.warning("Failed to initialize calendar service: %s", exc)
            self._service = None
        return self._service

    @property
    def available(self) -> bool:
        return self._ensure_service() is not None

    def build_event(self, sport: Sport, booking_date: date, start: dt_time, companion: str) -> Dict[str, Any]:
        t('botapp.calendar_sync.GoogleCalendarSync.build_event')
        duration = constants.SPORT_DURATION_MINUTES[sport.value]
        start_at = self.timezone.localize(datetime.combine(booking_date, start))
        end_at = self.timezone.normalize(start_at + timedelta(minutes=duration))
        name = sport.value.capitalize()
        return {
            'summary': f"{_SPORT_EMOJI[sport]} {name} - {constants.CLUB_NAME}",
            'location': constants.CLUB_LOCATION,
            'description': (
                f"{name} court booking at {constants.CLUB_NAME}\n\n"
                f"Buddy: {companion}\nDuration: {duration} minutes"
            ),
            'start': {'dateTime': start_at.isoformat(), 'timeZone': self.settings.timezone},
            'end': {'dateTime': end_at.isoformat(), 'timeZone': self.settings.timezone},
        }

    def _insert(self, event: Dict[str, Any]) -> Dict[str, Any]:
        return self._service.events().insert(calendarId=self.settings.calendar_id, body=event).execute()

    async def add_booking(self, sport: Sport, booking_date: date, time_label: str, companion: str) -> bool:
        """Insert the event; False when unavailable, unparseable or rejected."""

        t('botapp.calendar_sync.GoogleCalendarSync.add_booking')
        if not self.available:
            self.logger.info("Calendar unavailable, not recording booking")
            return False

        start = parse_start_time(time_label)
        if start is None:
            self.logger.error("Could not parse booking time %r for calendar", time_label)
            return False

        event = self.build_event(sport, booking_date, start, companion)
        loop = asyncio.get_running_loop()
        try:
            created = await loop.run_in_executor(None, self._insert, event)
        except Exception as exc:
            self.logger.error("Failed to add booking to calendar: %s", exc)
            return False

        self.logger.info("✓ Calendar event created: %s (%s)", event['start']['dateTime'], created.get('id'))
        return True


__all__ = ["GoogleCalendarSync", "parse_start_time"]
