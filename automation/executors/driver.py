"""State-machine driver for the club's court booking workflow."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Collection, List, Optional, Sequence

from playwright.async_api import Error as PlaywrightError

from tracking import t

from automation.browser.remote import BrowserHandle, close_browser, open_browser
from automation.executors.booking import (
    click_matching_slot,
    click_slot_next,
    collect_slot_labels,
    confirm_booking,
    enumerate_slot_elements,
    select_companion,
)
from automation.executors.core import (
    LOGGED_IN_STATES,
    BrowserNotStarted,
    DriverState,
    DriverStateError,
    NavigationFailed,
)
from automation.executors.login import perform_login
from automation.executors.navigation import NavigationReport, navigate_to_booking
from automation.shared.booking_contracts import Sport
from infrastructure.constants import SettleDelays
from infrastructure.settings import BrowserSettings, Credentials

BrowserOpener = Callable[[BrowserSettings], Awaitable[BrowserHandle]]
BrowserCloser = Callable[[Optional[BrowserHandle]], Awaitable[None]]


class CourtBookingDriver:
    """Owns one browser handle and walks it through login, navigation and booking.

    ``Uninitialized → Authenticated → Navigated → SlotSelected → BuddySelected
    → Confirmed``; ``close()`` moves to ``Closed`` from anywhere. Every public
    operation checks the current state first and raises
    :class:`DriverStateError` when called out of order.
    """

    def __init__(
        self,
        credentials: Credentials,
        browser_settings: BrowserSettings,
        *,
        companion_name: str,
        companion_fragments: Sequence[str] = (),
        browser_opener: BrowserOpener = open_browser,
        browser_closer: BrowserCloser = close_browser,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('automation.executors.driver.CourtBookingDriver.__init__')
        self.credentials = credentials
        self.browser_settings = browser_settings
        self.companion_name = companion_name
        self.companion_fragments = tuple(companion_fragments) or tuple(companion_name.split())
        self._open_browser = browser_opener
        self._close_browser = browser_closer
        self.logger = logger or logging.getLogger('CourtBookingDriver')
        self._handle: Optional[BrowserHandle] = None
        self._state = DriverState.UNINITIALIZED
        self.last_booked_label: Optional[str] = None

    @property
    def state(self) -> DriverState:
        return self._state

    @property
    def page(self):
        if self._handle is None:
            return None
        return self._handle.page

    def is_alive(self) -> bool:
        t('automation.executors.driver.CourtBookingDriver.is_alive')
        return self._handle is not None and self._handle.is_alive()

    def _require(self, operation: str, allowed: Collection[DriverState]) -> None:
        if self._state not in allowed:
            raise DriverStateError(operation, self._state, allowed)
        if self._handle is None:
            raise BrowserNotStarted(operation)

    async def start(self) -> None:
        """Open the browser. Failures propagate; nothing is retried here."""

        t('automation.executors.driver.CourtBookingDriver.start')
        allowed = (DriverState.UNINITIALIZED, DriverState.CLOSED)
        if self._state not in allowed:
            raise DriverStateError("start", self._state, allowed)
        if self._handle is not None:
            return
        self.logger.info("Opening browser...")
        self._handle = await self._open_browser(self.browser_settings)
        self._state = DriverState.UNINITIALIZED

    async def login(self) -> None:
        t('automation.executors.driver.CourtBookingDriver.login')
        self._require("login", (DriverState.UNINITIALIZED,))
        await perform_login(self._handle.page, self.credentials, self.logger)
        self._state = DriverState.AUTHENTICATED

    async def navigate_to_booking(self, sport: Sport, day_name: Optional[str]) -> NavigationReport:
        """Restart from the dashboard and open the slot grid.

        On failure the driver drops back to ``Authenticated`` so the next call
        starts over cleanly.
        """

        t('automation.executors.driver.CourtBookingDriver.navigate_to_booking')
        self._require("navigate_to_booking", LOGGED_IN_STATES)
        self._state = DriverState.AUTHENTICATED
        try:
            report = await navigate_to_booking(self._handle.page, sport, day_name, self.logger)
        except NavigationFailed:
            self.logger.error("Navigation to %s booking failed", sport.value, exc_info=True)
            raise
        except PlaywrightError as exc:
            self.logger.error("Navigation to %s booking failed: %s", sport.value, exc)
            raise NavigationFailed(f"Failed to navigate to {sport.value} booking", cause=exc) from exc

        self._state = DriverState.NAVIGATED
        return report

    async def get_available_times(self) -> List[str]:
        """Slot labels on the current grid; an empty list means nothing is open."""

        t('automation.executors.driver.CourtBookingDriver.get_available_times')
        self._require("get_available_times", (DriverState.NAVIGATED,))
        page = self._handle.page
        await page.wait_for_timeout(SettleDelays.BEFORE_SLOT_SCAN)

        result = await enumerate_slot_elements(page, self.logger)
        if not result.found:
            return []
        labels = await collect_slot_labels(result.element)
        self.logger.info("Found %s unique available times", len(labels))
        return labels

    async def book_court(self, time: str) -> bool:
        """Select the slot starting at ``time``, add the companion and confirm.

        Returns ``False`` when the slot, the companion or a confirming button
        cannot be found. Playwright faults outside those expected misses
        propagate.
        """

        t('automation.executors.driver.CourtBookingDriver.book_court')
        self._require("book_court", (DriverState.NAVIGATED,))
        page = self._handle.page
        self.last_booked_label = None

        label = await click_matching_slot(page, time, self.logger)
        if label is None:
            return False
        self._state = DriverState.SLOT_SELECTED
        await page.wait_for_timeout(SettleDelays.AFTER_SLOT_CLICK)

        await click_slot_next(page, self.logger)

        companion = await select_companion(page, self.companion_fragments, self.logger)
        if not companion.found:
            return False
        self._state = DriverState.BUDDY_SELECTED

        confirmed_with = await confirm_booking(page, self.logger)
        if confirmed_with is None:
            return False

        self._state = DriverState.CONFIRMED
        self.last_booked_label = label
        self.logger.info("✅ Court booked: %s", label)
        return True

    async def close(self) -> None:
        """Release the browser and reset state. Safe to call repeatedly."""

        t('automation.executors.driver.CourtBookingDriver.close')
        handle, self._handle = self._handle, None
        self._state = DriverState.CLOSED
        if handle is None:
            return
        try:
            await self._close_browser(handle)
        except Exception:
            self.logger.exception("Error while closing browser")


__all__ = ["CourtBookingDriver"]
