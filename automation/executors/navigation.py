"""Navigation from the dashboard to a sport's hourly slot grid.

Every call restarts from the dashboard. The booking app has no reliable
"go back", and leftover modals or filters from a previous attempt break the
structural paths used below.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from tracking import t

from automation.executors.core import NavigationFailed
from automation.executors.strategies import LocatorResult, first_found
from automation.shared.booking_contracts import Sport
from infrastructure import constants
from infrastructure.constants import BrowserTimeouts, SettleDelays

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NavigationReport:
    """What the non-fatal steps managed to do."""

    sport_strategy: str
    day_abbreviation: str
    day_selected: bool
    hour_view_selected: bool


def day_abbreviation(day_name: Optional[str]) -> str:
    """Map ``"wednesday"`` to ``"We"``; unknown or missing names map to Monday."""

    t('automation.executors.navigation.day_abbreviation')
    if not day_name:
        return constants.DEFAULT_DAY_ABBREVIATION
    return constants.DAY_ABBREVIATIONS.get(day_name.strip().lower(), constants.DEFAULT_DAY_ABBREVIATION)


async def reset_to_dashboard(page: Page) -> None:
    t('automation.executors.navigation.reset_to_dashboard')
    await page.goto(constants.DASHBOARD_URL, wait_until="networkidle", timeout=BrowserTimeouts.NAVIGATION)
    await page.wait_for_timeout(SettleDelays.AFTER_DASHBOARD)


async def click_structural(page: Page, label: str, selector: str, timeout: int, settle_ms: int) -> None:
    """Wait for a structural path and click it; any failure is fatal."""

    t('automation.executors.navigation.click_structural')
    try:
        await page.wait_for_selector(selector, timeout=timeout)
        await page.click(selector, timeout=timeout)
    except PlaywrightError as exc:
        raise NavigationFailed(f"Step '{label}' failed", cause=exc) from exc
    await page.wait_for_timeout(settle_ms)


async def select_sport(page: Page, sport: Sport, log: logging.Logger) -> LocatorResult:
    """Click the sport tile by visible text, falling back to its structural path."""

    t('automation.executors.navigation.select_sport')

    async def _by_text():
        target = page.get_by_text(constants.SPORT_LABELS[sport.value], exact=False).first
        await target.click(timeout=BrowserTimeouts.CLICK)
        return target

    async def _by_path():
        selector = constants.SPORT_XPATHS[sport.value]
        element = await page.wait_for_selector(selector, timeout=BrowserTimeouts.SPORT_FALLBACK)
        await page.click(selector, timeout=BrowserTimeouts.SPORT_FALLBACK)
        return element

    return await first_found([("text", _by_text), ("structural", _by_path)], log)


async def select_day(page: Page, abbreviation: str, log: logging.Logger) -> bool:
    """Click the first element whose exact text is ``abbreviation``.

    A miss is logged and tolerated; the grid may already show that day.
    """

    t('automation.executors.navigation.select_day')
    try:
        elements = await page.query_selector_all(f'xpath=//*[text()="{abbreviation}"]')
        if not elements:
            log.warning("Day %s not found on page, continuing with default view", abbreviation)
            return False
        await elements[0].click()
        return True
    except PlaywrightError as exc:
        log.warning("Failed to click day %s: %s", abbreviation, exc)
        return False


async def switch_to_hour_view(page: Page, log: logging.Logger) -> bool:
    t('automation.executors.navigation.switch_to_hour_view')

    def _finder(selector: str):
        async def _click():
            element = await page.wait_for_selector(selector, timeout=BrowserTimeouts.HOUR_VIEW)
            if element is None:
                return None
            await element.click()
            return element

        return _click

    result = await first_found(
        [(selector, _finder(selector)) for selector in constants.HOUR_VIEW_SELECTORS],
        log,
    )
    if not result.found:
        log.warning("Could not click Hour View, may already be in hour view")
    return result.found


async def navigate_to_booking(
    page: Page,
    sport: Sport,
    day_name: Optional[str],
    log: Optional[logging.Logger] = None,
) -> NavigationReport:
    """Drive the page from the dashboard to the hourly grid for ``sport``/``day_name``.

    Raises :class:`NavigationFailed` when a structural step, sport selection,
    duration selection or the continue button fails.
    """

    t('automation.executors.navigation.navigate_to_booking')
    log = log or logger
    log.info("Navigating to %s booking for %s", sport.value, day_name or "default day")

    try:
        await reset_to_dashboard(page)
    except PlaywrightError as exc:
        raise NavigationFailed("Could not load the dashboard", cause=exc) from exc

    for label, selector, settle_ms in constants.NAVIGATION_STEPS:
        log.debug("Navigation step: %s", label)
        await click_structural(page, label, selector, BrowserTimeouts.STRUCTURAL_STEP, settle_ms)

    sport_choice = await select_sport(page, sport, log)
    if not sport_choice.found:
        raise NavigationFailed(f"Could not select {sport.value}")
    log.info("Selected %s via %s", sport.value, sport_choice.strategy)
    await page.wait_for_timeout(SettleDelays.AFTER_SPORT)

    await click_structural(
        page,
        "choose duration",
        constants.DURATION_XPATHS[sport.value],
        BrowserTimeouts.SPORT_FALLBACK,
        SettleDelays.AFTER_DURATION,
    )
    await click_structural(
        page,
        "continue to time slots",
        constants.FILTER_NEXT_XPATH,
        BrowserTimeouts.STRUCTURAL_STEP,
        SettleDelays.AFTER_FILTER_NEXT,
    )

    abbreviation = day_abbreviation(day_name)
    day_selected = await select_day(page, abbreviation, log)
    await page.wait_for_timeout(SettleDelays.AFTER_DAY)

    hour_view = await switch_to_hour_view(page, log)
    await page.wait_for_timeout(SettleDelays.AFTER_HOUR_VIEW)

    log.info("✅ Navigated to %s booking (day %s, selected=%s)", sport.value, abbreviation, day_selected)
    return NavigationReport(
        sport_strategy=sport_choice.strategy or "",
        day_abbreviation=abbreviation,
        day_selected=day_selected,
        hour_view_selected=hour_view,
    )


__all__ = [
    "NavigationReport",
    "click_structural",
    "day_abbreviation",
    "navigate_to_booking",
    "reset_to_dashboard",
    "select_day",
    "select_sport",
    "switch_to_hour_view",
]
