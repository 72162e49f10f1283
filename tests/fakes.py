"""In-memory stand-ins for the Playwright objects the driver touches."""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from automation.browser.remote import BrowserHandle
from infrastructure import constants

LOGIN_URL = "https://bayclubconnect.com/account/login"


class FakeElement:
    """Element handle / locator item with scripted text, visibility and click failures."""

    def __init__(
        self,
        text: Optional[str] = "",
        *,
        visible: bool = True,
        click_error: Optional[Exception] = None,
        force_click_error: Optional[Exception] = None,
        on_click: Optional[Callable[[], None]] = None,
        children: Optional[Dict[str, List["FakeElement"]]] = None,
    ) -> None:
        self.text = text
        self.visible = visible
        self.click_error = click_error
        self.force_click_error = force_click_error
        self.on_click = on_click
        self.children = children or {}
        self.clicks: List[str] = []
        self.scrolled = 0
        self.value: Optional[str] = None

    async def text_content(self) -> Optional[str]:
        return self.text

    async def is_visible(self) -> bool:
        return self.visible

    async def scroll_into_view_if_needed(self) -> None:
        self.scrolled += 1

    async def click(self, timeout: Optional[int] = None, force: bool = False) -> None:
        if force and self.force_click_error is not None:
            raise self.force_click_error
        if not force and self.click_error is not None:
            raise self.click_error
        self.clicks.append("force" if force else "click")
        if self.on_click is not None:
            self.on_click()

    async def wait_for(self, state: Optional[str] = None, timeout: Optional[int] = None) -> None:
        if not self.visible:
            raise PlaywrightTimeout("element not visible")

    async def fill(self, value: str) -> None:
        self.value = value

    async def query_selector_all(self, selector: str) -> List["FakeElement"]:
        return list(self.children.get(selector, []))

    @property
    def clicked(self) -> bool:
        return bool(self.clicks)


class MissingElement:
    """What ``locator(...).first`` resolves to when nothing matches."""

    async def click(self, timeout: Optional[int] = None, force: bool = False) -> None:
        raise PlaywrightTimeout("locator resolved to 0 elements")

    async def wait_for(self, state: Optional[str] = None, timeout: Optional[int] = None) -> None:
        raise PlaywrightTimeout("locator resolved to 0 elements")


class FakeLocator:
    def __init__(self, elements: List[FakeElement]) -> None:
        self._elements = elements

    async def count(self) -> int:
        return len(self._elements)

    @property
    def first(self):
        return self._elements[0] if self._elements else MissingElement()


class FakePage:
    """Page double keyed by selector strings.

    ``elements`` backs ``locator``/``query_selector_all``/``wait_for_selector``
    and ``click``; ``texts`` backs ``get_by_text``. ``redirects`` maps a
    ``goto`` target to the URL the page ends up on.
    """

    def __init__(self, url: str = "about:blank") -> None:
        self.url = url
        self.elements: Dict[str, List[FakeElement]] = {}
        self.texts: Dict[str, List[FakeElement]] = {}
        self.redirects: Dict[str, str] = {}
        self.goto_error: Optional[Exception] = None
        self.wait_for_url_error: Optional[Exception] = None
        self.goto_calls: List[str] = []
        self.clicked_selectors: List[str] = []
        self.waited: List[int] = []
        self.closed = False

    def add(self, selector: str, *elements: FakeElement) -> List[FakeElement]:
        self.elements.setdefault(selector, []).extend(elements)
        return list(elements)

    def add_text(self, text: str, element: Optional[FakeElement] = None) -> FakeElement:
        element = element or FakeElement(text)
        self.texts.setdefault(text, []).append(element)
        return element

    async def goto(self, url: str, wait_until: Optional[str] = None, timeout: Optional[int] = None) -> None:
        self.goto_calls.append(url)
        if self.goto_error is not None:
            raise self.goto_error
        self.url = self.redirects.get(url, url)

    async def wait_for_timeout(self, ms: int) -> None:
        self.waited.append(ms)

    async def wait_for_url(self, pattern: Any, timeout: Optional[int] = None) -> None:
        if self.wait_for_url_error is not None:
            raise self.wait_for_url_error
        if "/home/dashboard" not in self.url:
            raise PlaywrightTimeout(f"Timeout waiting for {pattern}")

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(list(self.elements.get(selector, [])))

    def get_by_text(self, text: Any, exact: bool = False) -> FakeLocator:
        found: List[FakeElement] = []
        for key, elements in self.texts.items():
            if isinstance(text, re.Pattern):
                hit = text.search(key) is not None
            elif exact:
                hit = key == text
            else:
                hit = text.lower() in key.lower()
            if hit:
                found.extend(elements)
        return FakeLocator(found)

    async def query_selector_all(self, selector: str) -> List[FakeElement]:
        return list(self.elements.get(selector, []))

    async def wait_for_selector(self, selector: str, timeout: Optional[int] = None) -> FakeElement:
        elements = self.elements.get(selector)
        if not elements:
            raise PlaywrightTimeout(f"Timeout {timeout}ms exceeded waiting for {selector}")
        return elements[0]

    async def click(self, selector: str, timeout: Optional[int] = None) -> None:
        elements = self.elements.get(selector)
        if not elements:
            raise PlaywrightTimeout(f"Timeout {timeout}ms exceeded clicking {selector}")
        await elements[0].click(timeout=timeout)
        self.clicked_selectors.append(selector)

    def is_closed(self) -> bool:
        return self.closed

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    def __init__(self) -> None:
        self.connected = True

    def is_connected(self) -> bool:
        return self.connected

    async def close(self) -> None:
        self.connected = False


class BrowserFactory:
    """``browser_opener``/``browser_closer`` pair handing out fake pages."""

    def __init__(self, page_builder: Optional[Callable[[], FakePage]] = None, open_error: Optional[Exception] = None) -> None:
        self.page_builder = page_builder or FakePage
        self.open_error = open_error
        self.opened: List[BrowserHandle] = []
        self.closed: List[BrowserHandle] = []

    async def open(self, settings) -> BrowserHandle:
        if self.open_error is not None:
            raise self.open_error
        handle = BrowserHandle(
            playwright=None,
            browser=FakeBrowser(),
            context=None,
            page=self.page_builder(),
            remote=False,
        )
        self.opened.append(handle)
        return handle

    async def close(self, handle: Optional[BrowserHandle]) -> None:
        if handle is None:
            return
        self.closed.append(handle)
        await handle.page.close()
        await handle.browser.close()


def playwright_error(message: str = "boom") -> PlaywrightError:
    return PlaywrightError(message)


def playwright_timeout(message: str = "Timeout exceeded") -> PlaywrightTimeout:
    return PlaywrightTimeout(message)


def add_login_form(page: FakePage) -> Dict[str, FakeElement]:
    """Dashboard redirects to a login form whose submit lands on the dashboard."""

    page.redirects[constants.DASHBOARD_URL] = LOGIN_URL

    def _submit() -> None:
        page.redirects.pop(constants.DASHBOARD_URL, None)
        page.url = constants.DASHBOARD_URL

    controls = {
        "username": FakeElement(),
        "password": FakeElement(),
        "submit": FakeElement("Log In", on_click=_submit),
    }
    page.add('input[type="email"]', controls["username"])
    page.add('input[type="password"]', controls["password"])
    page.add('button[type="submit"]', controls["submit"])
    return controls


def add_navigation(page: FakePage, day: str = "We") -> None:
    """Every structural step, both sport tiles, the day chip and the hour view."""

    for label, selector, _ in constants.NAVIGATION_STEPS:
        page.add(selector, FakeElement(label))
    for sport, label in constants.SPORT_LABELS.items():
        page.add_text(label)
        page.add(constants.DURATION_XPATHS[sport], FakeElement("duration"))
    page.add(constants.FILTER_NEXT_XPATH, FakeElement("Next"))
    page.add(f'xpath=//*[text()="{day}"]', FakeElement(day))
    page.add(constants.HOUR_VIEW_SELECTORS[0], FakeElement("HOUR VIEW"))


def add_slots(page: FakePage, *labels: str) -> List[FakeElement]:
    return page.add(constants.TIME_SLOT_ITEM_SELECTOR, *(FakeElement(label) for label in labels))


def add_booking_steps(page: FakePage, confirm_text: str = "Confirm Booking") -> Dict[str, FakeElement]:
    """Slot Next button, first companion position and a confirming button."""

    steps = {
        "next": FakeElement("Next"),
        "companion": FakeElement("Samuel Wang"),
        "confirm": FakeElement(confirm_text),
    }
    page.add(constants.SLOT_NEXT_XPATH, steps["next"])
    page.add(constants.COMPANION_XPATHS[0], steps["companion"])
    page.add("button", steps["confirm"])
    return steps


def build_site(*labels: str, day: str = "We", logged_in: bool = False) -> FakePage:
    """A page that can log in, navigate and book one of ``labels``."""

    page = FakePage()
    if logged_in:
        page.add(constants.LOGGED_IN_MARKER, FakeElement("Select Activity"))
    else:
        add_login_form(page)
    add_navigation(page, day=day)
    add_slots(page, *labels)
    add_booking_steps(page)
    return page
