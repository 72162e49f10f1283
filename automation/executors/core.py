"""Shared state and error types for the court booking driver."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional


class DriverState(Enum):
    """Where the driver is in the booking workflow."""

    UNINITIALIZED = "uninitialized"
    AUTHENTICATED = "authenticated"
    NAVIGATED = "navigated"
    SLOT_SELECTED = "slot_selected"
    BUDDY_SELECTED = "buddy_selected"
    CONFIRMED = "confirmed"
    CLOSED = "closed"


# States in which the driver holds an authenticated page
LOGGED_IN_STATES = frozenset(
    {
        DriverState.AUTHENTICATED,
        DriverState.NAVIGATED,
        DriverState.SLOT_SELECTED,
        DriverState.BUDDY_SELECTED,
        DriverState.CONFIRMED,
    }
)


class AutomationError(Exception):
    """Base class for faults raised by the booking driver."""


class DriverStateError(AutomationError):
    """An operation was called from a state that does not allow it."""

    def __init__(self, operation: str, state: DriverState, allowed: Iterable[DriverState]) -> None:
        allowed_names = ", ".join(sorted(s.value for s in allowed))
        super().__init__(
            f"{operation}() not allowed in state {state.value} (expected one of: {allowed_names})"
        )
        self.operation = operation
        self.state = state


class BrowserNotStarted(AutomationError):
    """The driver has no open browser."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"{operation}() requires an open browser; call start() first")
        self.operation = operation


class LoginFailed(AutomationError):
    """Authentication did not reach the dashboard."""

    def __init__(self, message: str, last_url: Optional[str] = None) -> None:
        super().__init__(f"{message} (last URL: {last_url})" if last_url else message)
        self.last_url = last_url


class NavigationFailed(AutomationError):
    """A required step of the booking navigation chain failed."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


__all__ = [
    "AutomationError",
    "BrowserNotStarted",
    "DriverState",
    "DriverStateError",
    "LOGGED_IN_STATES",
    "LoginFailed",
    "NavigationFailed",
]
