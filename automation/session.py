"""Lazily-initialized automation session wrapping one booking driver.

Nothing above this module sees raw automation exceptions: every driver fault
is logged here and turned into a result object carrying a chat-safe message.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional

from tracking import t

from automation.availability.slot_matcher import matches
from automation.executors.core import LoginFailed, NavigationFailed
from automation.executors.driver import CourtBookingDriver
from automation.shared.booking_contracts import AvailabilityResult, BookingOutcome, Sport
from infrastructure.settings import AppSettings, ConfigurationError

DriverFactory = Callable[[], CourtBookingDriver]

LOGIN_FAILED_MESSAGE = "I couldn't log in to the club website. Please try again in a few minutes."
NAVIGATION_FAILED_MESSAGE = "I couldn't complete your request on the club website. Please try again."
CONFIGURATION_MESSAGE = "Server configuration error: the booking service is not set up correctly."
UNEXPECTED_MESSAGE = "Something went wrong while talking to the club website. Please try again."


class AutomationSession:
    """One browser + login, created on first use and released explicitly.

    ``ensure_initialized`` is not reentrant; callers serialize access (the
    session registry allows one in-flight action per session).
    """

    def __init__(self, driver_factory: DriverFactory, *, logger: Optional[logging.Logger] = None) -> None:
        t('automation.session.AutomationSession.__init__')
        self._driver_factory = driver_factory
        self._driver: CourtBookingDriver = driver_factory()
        self._initialized = False
        self.logger = logger or logging.getLogger('AutomationSession')

    @classmethod
    def from_settings(cls, settings: AppSettings, **kwargs) -> "AutomationSession":
        """Build a session whose drivers use ``settings``; raises on missing credentials."""

        t('automation.session.AutomationSession.from_settings')
        credentials = settings.credentials.require()

        def _factory() -> CourtBookingDriver:
            return CourtBookingDriver(
                credentials,
                settings.browser,
                companion_name=settings.companion_name,
                companion_fragments=settings.companion_match_fragments,
            )

        return cls(_factory, **kwargs)

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def driver(self) -> CourtBookingDriver:
        return self._driver

    @property
    def companion_name(self) -> str:
        return self._driver.companion_name

    async def ensure_initialized(self) -> None:
        """Open the browser and log in once; recreate the driver if its browser died.

        Raises whatever ``start``/``login`` raised, after releasing the browser,
        and leaves the session uninitialized.
        """

        t('automation.session.AutomationSession.ensure_initialized')
        if self._initialized:
            if self._driver.is_alive():
                return
            self.logger.warning("Browser context died, recreating automation driver")
            await self._driver.close()
            self._initialized = False
            self._driver = self._driver_factory()

        self.logger.info("Initializing browser (first use)...")
        try:
            await self._driver.start()
            await self._driver.login()
        except BaseException:
            await self._driver.close()
            raise
        self._initialized = True
        self.logger.info("Browser ready")

    async def query(self, sport: Sport, target_date: date, time: Optional[str] = None) -> AvailabilityResult:
        """List open slot labels for ``sport`` on ``target_date``.

        When ``time`` is given only labels starting at that time are returned.
        """

        t('automation.session.AutomationSession.query')
        try:
            await self.ensure_initialized()
            report = await self._driver.navigate_to_booking(sport, _day_name(target_date))
            times = await self._driver.get_available_times()
        except Exception as exc:
            return AvailabilityResult(error=self._describe_failure("query", exc))

        if not report.day_selected:
            self.logger.warning("Day %s was not selected, slots may be for the default day", report.day_abbreviation)
        if time:
            times = [label for label in times if matches(time, label)]
        return AvailabilityResult(times=times)

    async def book(self, sport: Sport, target_date: date, time: str) -> BookingOutcome:
        """Book the slot starting at ``time``.

        ``success=False`` with no ``error`` means the page did not offer the
        slot, the companion or a confirming button.
        """

        t('automation.session.AutomationSession.book')
        try:
            await self.ensure_initialized()
            await self._driver.navigate_to_booking(sport, _day_name(target_date))
            booked = await self._driver.book_court(time)
        except Exception as exc:
            return BookingOutcome(success=False, time=time, error=self._describe_failure("book", exc))

        return BookingOutcome(
            success=booked,
            time=time,
            label=self._driver.last_booked_label if booked else None,
            companion=self.companion_name if booked else None,
        )

    async def close(self) -> None:
        """Release the browser. The session can be initialized again later."""

        t('automation.session.AutomationSession.close')
        if self._initialized:
            self.logger.info("Closing browser session...")
        self._initialized = False
        await self._driver.close()

    def _describe_failure(self, operation: str, exc: Exception) -> str:
        t('automation.session.AutomationSession._describe_failure')
        if isinstance(exc, ConfigurationError):
            self.logger.error("%s aborted, configuration error: %s", operation, exc)
            return CONFIGURATION_MESSAGE
        if isinstance(exc, LoginFailed):
            self.logger.error("%s aborted, login failed: %s", operation, exc)
            return LOGIN_FAILED_MESSAGE
        if isinstance(exc, NavigationFailed):
            self.logger.error("%s aborted, navigation failed: %s (cause: %r)", operation, exc, exc.cause)
            return NAVIGATION_FAILED_MESSAGE
        self.logger.error("%s aborted by unexpected error: %s", operation, exc, exc_info=True)
        return UNEXPECTED_MESSAGE


def _day_name(target_date: date) -> str:
    return target_date.strftime("%A").lower()


__all__ = [
    "AutomationSession",
    "CONFIGURATION_MESSAGE",
    "DriverFactory",
    "LOGIN_FAILED_MESSAGE",
    "NAVIGATION_FAILED_MESSAGE",
    "UNEXPECTED_MESSAGE",
]
