"""Open and close the browser that a booking driver works in.

Production connects to a cloud-hosted Chromium through Browserbase over CDP;
development launches a local Chromium.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlencode

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from tracking import t

from infrastructure.settings import BrowserSettings

logger = logging.getLogger(__name__)

_LOCAL_ARGS = [
    '--no-sandbox',
    '--disable-dev-shm-usage',
    '--disable-blink-features=AutomationControlled',
]
_VIEWPORT = {'width': 1280, 'height': 900}
_USER_AGENT = (
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)
_CONNECT_TIMEOUT_MS = 30000


@dataclass
class BrowserHandle:
    """Everything that has to be released when a driver closes."""

    playwright: Any
    browser: Any
    context: Any
    page: Any
    remote: bool = False

    def is_alive(self) -> bool:
        """True while the browser is connected and the page is open."""
        t('automation.browser.remote.BrowserHandle.is_alive')
        try:
            return bool(self.browser.is_connected()) and not self.page.is_closed()
        except PlaywrightError:
            return False


def build_connect_url(settings: BrowserSettings) -> str:
    t('automation.browser.remote.build_connect_url')
    query = urlencode({
        'apiKey': settings.browserbase_api_key,
        'projectId': settings.browserbase_project_id,
    })
    return f"{settings.connect_url}?{query}"


async def _open_remote(playwright: Playwright, settings: BrowserSettings) -> BrowserHandle:
    t('automation.browser.remote._open_remote')
    settings.require_cloud_credentials()
    logger.info("Connecting to cloud browser...")
    browser: Browser = await playwright.chromium.connect_over_cdp(
        build_connect_url(settings), timeout=_CONNECT_TIMEOUT_MS
    )
    context: BrowserContext = browser.contexts[0] if browser.contexts else await browser.new_context()
    page: Page = context.pages[0] if context.pages else await context.new_page()
    return BrowserHandle(playwright=playwright, browser=browser, context=context, page=page, remote=True)


async def _open_local(playwright: Playwright, settings: BrowserSettings) -> BrowserHandle:
    t('automation.browser.remote._open_local')
    logger.info("Launching local Chromium (headless=%s)...", settings.headless)
    browser = await playwright.chromium.launch(headless=settings.headless, args=_LOCAL_ARGS)
    context = await browser.new_context(viewport=_VIEWPORT, user_agent=_USER_AGENT)
    page = await context.new_page()
    return BrowserHandle(playwright=playwright, browser=browser, context=context, page=page, remote=False)


async def open_browser(settings: BrowserSettings) -> BrowserHandle:
    """Start Playwright and open a page in the configured browser.

    Failures propagate to the caller after Playwright is stopped again.
    """

    t('automation.browser.remote.open_browser')
    playwright = await async_playwright().start()
    try:
        if settings.production_mode:
            handle = await _open_remote(playwright, settings)
        else:
            handle = await _open_local(playwright, settings)
    except BaseException:
        await playwright.stop()
        raise
    logger.info("✅ Browser ready (remote=%s)", handle.remote)
    return handle


async def close_browser(handle: Optional[BrowserHandle]) -> None:
    """Release page, context, browser and Playwright; individual failures are logged."""

    t('automation.browser.remote.close_browser')
    if handle is None:
        return

    for label, closer in (
        ("page", getattr(handle.page, "close", None)),
        ("context", getattr(handle.context, "close", None)),
        ("browser", getattr(handle.browser, "close", None)),
        ("playwright", getattr(handle.playwright, "stop", None)),
    ):
        if closer is None:
            continue
        try:
            await closer()
        except PlaywrightError as exc:
            logger.warning("Error closing %s: %s", label, exc)
    logger.info("Browser session closed")


__all__ = ["BrowserHandle", "build_connect_url", "close_browser", "open_browser"]
