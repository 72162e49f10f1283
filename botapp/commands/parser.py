"""Parse ``/times`` and ``/book`` arguments into action requests."""

from __future__ import annotations
from tracking import t

import re
from datetime import date, datetime, timedelta
from typing import Optional, Sequence, Tuple

import pytz

from automation.shared.booking_contracts import ActionRequest, BookingAction, Sport

USAGE = (
    "Usage:\n"
    "/times <tennis|pickleball> <date> [time]\n"
    "/book <tennis|pickleball> <date> <time>\n\n"
    "Dates: today, tomorrow, wednesday, next friday, 2026-02-10, Feb 10\n"
    "Times: 2:30 PM, 14:00"
)

WEEKDAYS = {
    'monday': 0, 'mon': 0,
    'tuesday': 1, 'tue': 1, 'tues': 1,
    'wednesday': 2, 'wed': 2,
    'thursday': 3, 'thu': 3, 'thurs': 3,
    'friday': 4, 'fri': 4,
    'saturday': 5, 'sat': 5,
    'sunday': 6, 'sun': 6,
}

_MONTH_FORMATS = ('%b %d %Y', '%B %d %Y')
_TRAILING_TIME_RE = re.compile(
    r'(?:^|\s)(?:at\s+)?(\d{1,2})(?::(\d{2}))?\s*(am|pm)?$',
    re.IGNORECASE,
)


class CommandParseError(ValueError):
    """Raised with a user-facing explanation when arguments cannot be parsed."""


def today_in(timezone: str) -> date:
    """Current calendar date in ``timezone``."""

    t('botapp.commands.parser.today_in')
    return datetime.now(pytz.timezone(timezone)).date()


def resolve_date(text: str, today: date) -> Optional[date]:
    """Resolve relative and absolute date phrases against ``today``.

    A bare weekday means its next occurrence (today if it matches); ``next
    <weekday>`` is the occurrence after that. A month and day without a year
    that has already passed this year means next year.
    """

    t('botapp.commands.parser.resolve_date')
    phrase = ' '.join(text.lower().replace(',', ' ').split())
    if not phrase:
        return None
    if phrase in ('today', 'tonight'):
        return today
    if phrase == 'tomorrow':
        return today + timedelta(days=1)

    if phrase in WEEKDAYS:
        return today + timedelta(days=(WEEKDAYS[phrase] - today.weekday()) % 7)

    if phrase.startswith('next '):
        day = WEEKDAYS.get(phrase[len('next '):])
        if day is None:
            return None
        ahead = (day - today.weekday()) % 7 or 7
        return today + timedelta(days=ahead + 7)

    try:
        return date.fromisoformat(phrase)
    except ValueError:
        pass

    for fmt in _MONTH_FORMATS:
        try:
            return datetime.strptime(phrase, fmt).date()
        except ValueError:
            pass
        try:
            resolved = datetime.strptime(f"{phrase} {today.year}", fmt).date()
        except ValueError:
            continue
        if resolved < today:
            try:
                resolved = resolved.replace(year=today.year + 1)
            except ValueError:
                return None
        return resolved
    return None


def normalize_time(hours: str, minutes: Optional[str], meridiem: Optional[str]) -> Optional[str]:
    """``("2", None, "pm")`` → ``"2:00 PM"``; 24-hour input keeps its form."""

    t('botapp.commands.parser.normalize_time')
    hour = int(hours)
    minute = int(minutes or 0)
    if minute > 59:
        return None
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        return f"{hour}:{minute:02d} {meridiem.upper()}"
    if hour > 23:
        return None
    return f"{hour}:{minute:02d}"


def split_time(text: str) -> Tuple[str, Optional[str]]:
    """Split a trailing time (needs a colon or am/pm) off ``text``."""

    t('botapp.commands.parser.split_time')
    stripped = text.strip()
    match = _TRAILING_TIME_RE.search(stripped)
    if not match or not (match.group(2) or match.group(3)):
        return stripped, None
    time = normalize_time(match.group(1), match.group(2), match.group(3))
    if time is None:
        raise CommandParseError(f"I don't understand the time {match.group(0).strip()!r}.")
    return stripped[:match.start()].strip(), time


def parse_sport(token: str) -> Sport:
    t('botapp.commands.parser.parse_sport')
    try:
        return Sport(token.strip().lower())
    except ValueError:
        raise CommandParseError(f"Unknown sport {token!r}. Choose tennis or pickleball.") from None


def parse_action_command(action: BookingAction, args: Sequence[str], today: date) -> ActionRequest:
    """Build a request from command arguments such as ``["tennis", "next", "fri", "2:30", "PM"]``.

    A missing time for ``/book`` is left for the dispatcher to report.
    """

    t('botapp.commands.parser.parse_action_command')
    if not args:
        raise CommandParseError(USAGE)

    sport = parse_sport(args[0])
    date_text, time = split_time(' '.join(args[1:]))
    if not date_text:
        raise CommandParseError("Please tell me which date, e.g. tomorrow or Feb 10.")

    target_date = resolve_date(date_text, today)
    if target_date is None:
        raise CommandParseError(f"I couldn't understand the date {date_text!r}.")
    if target_date < today:
        raise CommandParseError("That date is in the past.")

    return ActionRequest(action=action, sport=sport, target_date=target_date, time=time)


__all__ = [
    "CommandParseError",
    "USAGE",
    "normalize_time",
    "parse_action_command",
    "parse_sport",
    "resolve_date",
    "split_time",
    "today_in",
]
