"""Login procedure for the club's member portal."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeout

from tracking import t

from automation.executors.core import LoginFailed
from automation.executors.strategies import LocatorResult, first_found
from infrastructure import constants
from infrastructure.constants import BrowserTimeouts, SettleDelays
from infrastructure.settings import Credentials

logger = logging.getLogger(__name__)


def on_dashboard(url: str) -> bool:
    t('automation.executors.login.on_dashboard')
    return any(marker in (url or "") for marker in constants.DASHBOARD_URL_MARKERS)


async def is_authenticated(page: Page) -> bool:
    """True when the dashboard is showing its logged-in marker."""

    t('automation.executors.login.is_authenticated')
    if constants.DASHBOARD_URL_MARKERS[0] not in page.url:
        return False
    try:
        await page.locator(constants.LOGGED_IN_MARKER).first.wait_for(
            state="visible", timeout=BrowserTimeouts.LOGGED_IN_CHECK
        )
        return True
    except PlaywrightError:
        return False


async def locate_form_control(page: Page, selectors: Sequence[str], log: logging.Logger) -> LocatorResult:
    """First selector in ``selectors`` with at least one match on the page."""

    t('automation.executors.login.locate_form_control')

    def _finder(selector: str):
        async def _find():
            candidates = page.locator(selector)
            if await candidates.count() == 0:
                return None
            return candidates.first

        return _find

    return await first_found([(selector, _finder(selector)) for selector in selectors], log)


async def _fill(control, value: str) -> None:
    t('automation.executors.login._fill')
    await control.wait_for(state="visible", timeout=BrowserTimeouts.FIELD_VISIBLE)
    await control.click(timeout=BrowserTimeouts.CLICK)
    await control.fill(value)


async def perform_login(
    page: Page,
    credentials: Credentials,
    log: Optional[logging.Logger] = None,
) -> bool:
    """Log in, or detect an existing session.

    Returns ``True`` when the dashboard was already authenticated and the form
    was skipped. Raises :class:`LoginFailed` when a form control is missing, an
    interaction fails, or the dashboard is never reached.
    """

    t('automation.executors.login.perform_login')
    log = log or logger

    try:
        log.info("Navigating to dashboard...")
        await page.goto(
            constants.DASHBOARD_URL,
            wait_until="domcontentloaded",
            timeout=BrowserTimeouts.NAVIGATION,
        )
        await page.wait_for_timeout(SettleDelays.AFTER_DASHBOARD)

        if await is_authenticated(page):
            log.info("Already logged in")
            return True

        log.info("Login form expected at %s", page.url)

        username = await locate_form_control(page, constants.USERNAME_FIELD_SELECTORS, log)
        if not username.found:
            raise LoginFailed("No username field found on page", page.url)
        log.debug("Username field matched by %s", username.strategy)
        await _fill(username.element, credentials.username)
        await page.wait_for_timeout(SettleDelays.AFTER_FIELD_FILL)

        password = await locate_form_control(page, constants.PASSWORD_FIELD_SELECTORS, log)
        if not password.found:
            raise LoginFailed("No password field found on page", page.url)
        await _fill(password.element, credentials.password)
        await page.wait_for_timeout(SettleDelays.AFTER_FIELD_FILL)

        submit = await locate_form_control(page, constants.SUBMIT_CONTROL_SELECTORS, log)
        if not submit.found:
            raise LoginFailed("No login button found on page", page.url)
        log.debug("Submit control matched by %s", submit.strategy)
        await submit.element.wait_for(state="visible", timeout=BrowserTimeouts.FIELD_VISIBLE)
        await submit.element.click(timeout=BrowserTimeouts.CLICK)

        try:
            await page.wait_for_url(constants.DASHBOARD_URL_GLOB, timeout=BrowserTimeouts.LOGIN_REDIRECT)
        except PlaywrightTimeout:
            # Navigation may have finished before the wait attached; re-check below.
            log.warning("Dashboard URL wait timed out, re-checking current URL")

        await page.wait_for_timeout(SettleDelays.AFTER_LOGIN)
    except PlaywrightError as exc:
        raise LoginFailed(f"Login interaction failed: {exc}", _safe_url(page)) from exc

    final_url = page.url
    if not on_dashboard(final_url):
        raise LoginFailed("Login did not reach the dashboard", final_url)

    log.info("✅ Logged in (%s)", final_url)
    return False


def _safe_url(page: Page) -> Optional[str]:
    try:
        return page.url
    except PlaywrightError:
        return None


__all__ = ["is_authenticated", "locate_form_control", "on_dashboard", "perform_login"]
