"""Slot enumeration and the select → companion → confirm booking steps."""

from __future__ import annotations

import logging
import re
from typing import Any, List, Optional, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from tracking import t

from automation.availability.slot_matcher import dedupe, looks_like_slot_label, matches
from automation.executors.strategies import (
    LocatorResult,
    click_with_force_fallback,
    first_found,
    is_visible,
    read_text,
)
from infrastructure import constants
from infrastructure.constants import BrowserTimeouts, SettleDelays

logger = logging.getLogger(__name__)


async def enumerate_slot_elements(page: Page, log: Optional[logging.Logger] = None) -> LocatorResult:
    """Find slot elements with four escalating strategies.

    The result's ``element`` is the list of matched element handles.
    """

    t('automation.executors.booking.enumerate_slot_elements')
    log = log or logger
    tag = constants.TIME_SLOT_ITEM_SELECTOR

    async def _direct():
        return await page.query_selector_all(tag)

    async def _after_wait():
        await page.wait_for_selector(tag, timeout=BrowserTimeouts.SLOT_LATE_RENDER)
        return await page.query_selector_all(tag)

    async def _in_container():
        container = await page.wait_for_selector(
            constants.TIME_SLOT_CONTAINER_SELECTOR, timeout=BrowserTimeouts.SLOT_LATE_RENDER
        )
        if container is None:
            return None
        return await container.query_selector_all(tag)

    async def _generic_scan():
        blocks = await page.query_selector_all(constants.GENERIC_BLOCK_SELECTOR)
        log.debug("Scanning %s generic blocks for time text", len(blocks))
        found = []
        for block in blocks:
            text = await read_text(block)
            if not looks_like_slot_label(text, constants.MAX_SLOT_LABEL_LENGTH):
                continue
            if await is_visible(block):
                found.append(block)
        return found

    result = await first_found(
        [
            ("tag selector", _direct),
            ("tag selector after wait", _after_wait),
            ("container scoped", _in_container),
            ("generic block scan", _generic_scan),
        ],
        log,
    )
    if result.found:
        log.info("Found %s slot elements via %s", len(result.element), result.strategy)
    else:
        log.info("No slot elements found by any strategy")
    return result


async def collect_slot_labels(elements: Sequence[Any]) -> List[str]:
    """Read, filter and de-duplicate slot label text from ``elements``."""

    t('automation.executors.booking.collect_slot_labels')
    labels = []
    for element in elements:
        text = await read_text(element)
        if looks_like_slot_label(text):
            labels.append(text)
    return dedupe(labels)


async def click_matching_slot(page: Page, requested: str, log: Optional[logging.Logger] = None) -> Optional[str]:
    """Click the first visible slot whose start time equals ``requested``'s.

    The page renders some intervals more than once, so later duplicates are
    ignored after one successful click. Returns the clicked label or ``None``.
    """

    t('automation.executors.booking.click_matching_slot')
    log = log or logger
    elements = await page.query_selector_all(constants.TIME_SLOT_ITEM_SELECTOR)
    log.info("Looking for %r among %s slot elements", requested, len(elements))

    for element in elements:
        label = await read_text(element)
        if not label or not matches(requested, label):
            continue
        if not await is_visible(element):
            log.debug("Matched %r but it is not visible", label)
            continue
        try:
            await element.scroll_into_view_if_needed()
            await page.wait_for_timeout(SettleDelays.AFTER_SCROLL)
        except PlaywrightError as exc:
            log.debug("Could not scroll %r into view: %s", label, exc)
            continue
        if await click_with_force_fallback(element, BrowserTimeouts.CLICK, log):
            log.info("Clicked time slot %r", label)
            return label

    log.warning("Could not find or click time slot %r", requested)
    return None


async def click_slot_next(page: Page, log: Optional[logging.Logger] = None) -> bool:
    """Advance past the slot grid. Some layouts auto-advance, so a miss is tolerated."""

    t('automation.executors.booking.click_slot_next')
    log = log or logger
    try:
        await page.wait_for_selector(constants.SLOT_NEXT_XPATH, timeout=BrowserTimeouts.STRUCTURAL_STEP)
        await page.click(constants.SLOT_NEXT_XPATH, timeout=BrowserTimeouts.STRUCTURAL_STEP)
    except PlaywrightError as exc:
        log.warning("Could not click Next after slot selection: %s", exc)
        return False
    await page.wait_for_timeout(SettleDelays.AFTER_SLOT_NEXT)
    return True


async def select_companion(
    page: Page,
    name_fragments: Sequence[str],
    log: Optional[logging.Logger] = None,
) -> LocatorResult:
    """Pick the booking companion: list positions, generic list, then name text."""

    t('automation.executors.booking.select_companion')
    log = log or logger
    await page.wait_for_timeout(SettleDelays.BEFORE_COMPANION)

    def _by_path(selector: str):
        async def _click():
            element = await page.wait_for_selector(selector, timeout=BrowserTimeouts.COMPANION_PATH)
            if element is None:
                return None
            await element.click()
            return element

        return _click

    async def _first_listed():
        people = await page.query_selector_all(constants.COMPANION_ITEM_SELECTOR)
        if not people:
            return None
        await people[0].click()
        return people[0]

    async def _by_name():
        if not name_fragments:
            return None
        pattern = re.compile("|".join(re.escape(fragment) for fragment in name_fragments), re.IGNORECASE)
        target = page.get_by_text(pattern).first
        await target.click(timeout=BrowserTimeouts.CLICK)
        return target

    strategies = [
        (f"list position {index}", _by_path(selector))
        for index, selector in enumerate(constants.COMPANION_XPATHS, start=1)
    ]
    strategies.append(("first listed person", _first_listed))
    strategies.append(("name text", _by_name))

    result = await first_found(strategies, log)
    if result.found:
        log.info("✓ Selected companion via %s", result.strategy)
        await page.wait_for_timeout(SettleDelays.AFTER_COMPANION)
    else:
        log.error("Could not select any companion")
    return result


async def confirm_booking(page: Page, log: Optional[logging.Logger] = None) -> Optional[str]:
    """Click the confirming button and return its text, or ``None``.

    Buttons whose text mentions confirm/book/submit/complete are tried first;
    failing that, the first visible button of any kind.
    """

    t('automation.executors.booking.confirm_booking')
    log = log or logger
    await page.wait_for_timeout(SettleDelays.AFTER_COMPANION)
    buttons = await page.query_selector_all("button")

    candidates = []
    for button in buttons:
        text = await read_text(button)
        if text is None or not await is_visible(button):
            continue
        candidates.append((button, text))

    keyword_matches = [
        (button, text)
        for button, text in candidates
        if any(keyword in text.lower() for keyword in constants.CONFIRM_BUTTON_KEYWORDS)
    ]
    for button, text in keyword_matches:
        if await click_with_force_fallback(button, BrowserTimeouts.QUICK_CLICK, log):
            log.info("✓ Clicked %r button", text)
            await page.wait_for_timeout(SettleDelays.AFTER_CONFIRM)
            return text

    log.warning("Could not find confirm button, trying any visible button...")
    for button, text in candidates:
        try:
            await button.click(timeout=BrowserTimeouts.QUICK_CLICK)
        except PlaywrightError:
            continue
        log.info("✓ Clicked fallback button %r", text)
        await page.wait_for_timeout(SettleDelays.AFTER_CONFIRM)
        return text

    log.error("Could not find any clickable button")
    return None


__all__ = [
    "click_matching_slot",
    "click_slot_next",
    "collect_slot_labels",
    "confirm_booking",
    "enumerate_slot_elements",
    "select_companion",
]
