"""Booking driver and the page steps it is built from."""

from .core import (
    AutomationError,
    BrowserNotStarted,
    DriverState,
    DriverStateError,
    LoginFailed,
    NavigationFailed,
)
from .driver import CourtBookingDriver
from .navigation import NavigationReport

__all__ = [
    "AutomationError",
    "BrowserNotStarted",
    "CourtBookingDriver",
    "DriverState",
    "DriverStateError",
    "LoginFailed",
    "NavigationFailed",
    "NavigationReport",
]
