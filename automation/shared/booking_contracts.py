"""Shared request/result contracts for the chat layer, sessions, and the driver."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, List, Mapping, Optional, Tuple

from tracking import t


class Sport(Enum):
    """Court sports the club lets us book."""

    TENNIS = "tennis"
    PICKLEBALL = "pickleball"


class BookingAction(Enum):
    """What the user asked for."""

    QUERY_TIMES = "query_times"
    BOOK = "book"


class RequestValidationError(ValueError):
    """Raised when an inbound action payload cannot be turned into a request."""


@dataclass(frozen=True)
class ActionRequest:
    """Structured action produced by the intent extractor or a chat command."""

    action: BookingAction
    sport: Sport
    target_date: date
    time: Optional[str] = None

    def missing_fields(self) -> Tuple[str, ...]:
        """Return fields required by ``action`` that are absent."""

        t('automation.shared.booking_contracts.ActionRequest.missing_fields')
        if self.action is BookingAction.BOOK and not (self.time and self.time.strip()):
            return ("time",)
        return ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ActionRequest":
        """Build a request from ``{action, sport, date, time?}``.

        ``date`` must be an ISO ``YYYY-MM-DD`` string or a :class:`date`.
        Presence of ``time`` for bookings is checked later by the dispatcher so
        that the user gets a chat reply rather than a payload error.
        """

        t('automation.shared.booking_contracts.ActionRequest.from_payload')
        try:
            action = BookingAction(str(payload.get("action", "")).strip().lower())
        except ValueError as exc:
            raise RequestValidationError(f"Unknown action: {payload.get('action')!r}") from exc

        try:
            sport = Sport(str(payload.get("sport", "")).strip().lower())
        except ValueError as exc:
            raise RequestValidationError(f"Unknown sport: {payload.get('sport')!r}") from exc

        raw_date = payload.get("date")
        if isinstance(raw_date, date):
            target_date = raw_date
        else:
            try:
                target_date = date.fromisoformat(str(raw_date).strip())
            except ValueError as exc:
                raise RequestValidationError(f"Invalid date: {raw_date!r}") from exc

        raw_time = payload.get("time")
        time = str(raw_time).strip() if raw_time not in (None, "") else None
        return cls(action=action, sport=sport, target_date=target_date, time=time)


@dataclass(frozen=True)
class AvailabilityResult:
    """Outcome of an availability query.

    ``error`` holds a user-presentable message when the query could not run;
    an empty ``times`` list with no error means no courts are open.
    """

    times: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class BookingOutcome:
    """Outcome of a booking attempt.

    ``label`` is the on-page slot label that was booked, e.g. ``"2:30 - 4:00 PM"``;
    ``time`` is what the user asked for.
    """

    success: bool
    time: Optional[str] = None
    label: Optional[str] = None
    companion: Optional[str] = None
    error: Optional[str] = None

    @property
    def slot_unavailable(self) -> bool:
        """True when the flow ran but the page did not let us finish."""

        return not self.success and self.error is None


__all__ = [
    "ActionRequest",
    "AvailabilityResult",
    "BookingAction",
    "BookingOutcome",
    "RequestValidationError",
    "Sport",
]
