"""Ordered fallback cascades for locating elements on a page with no stable contract.

Each strategy is an independent coroutine factory. A strategy that raises a
Playwright error or returns nothing counts as "not found" and the cascade moves
on; only the first successful strategy's element is returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence, Tuple

from playwright.async_api import Error as PlaywrightError

from tracking import t

Finder = Callable[[], Awaitable[Any]]
Strategy = Tuple[str, Finder]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocatorResult:
    """Typed outcome of one locator step: an element, or nothing."""

    element: Any = None
    strategy: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.element is not None

    @classmethod
    def not_found(cls) -> "LocatorResult":
        return cls()


def _is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (list, tuple)) and not value:
        return True
    return False


async def attempt(name: str, finder: Finder, log: Optional[logging.Logger] = None) -> LocatorResult:
    """Run one strategy, converting Playwright failures into ``not_found``."""

    t('automation.executors.strategies.attempt')
    log = log or logger
    try:
        element = await finder()
    except PlaywrightError as exc:
        log.debug("Strategy '%s' failed: %s", name, exc)
        return LocatorResult.not_found()

    if _is_empty(element):
        log.debug("Strategy '%s' found nothing", name)
        return LocatorResult.not_found()

    log.debug("Strategy '%s' succeeded", name)
    return LocatorResult(element=element, strategy=name)


async def first_found(
    strategies: Sequence[Strategy],
    log: Optional[logging.Logger] = None,
) -> LocatorResult:
    """Try ``strategies`` in order and return the first that finds something."""

    t('automation.executors.strategies.first_found')
    for name, finder in strategies:
        result = await attempt(name, finder, log)
        if result.found:
            return result
    return LocatorResult.not_found()


async def read_text(element: Any) -> Optional[str]:
    """Trimmed text content of ``element`` or ``None`` if it cannot be read."""

    t('automation.executors.strategies.read_text')
    try:
        text = await element.text_content()
    except PlaywrightError:
        return None
    if text is None:
        return None
    return text.strip()


async def is_visible(element: Any) -> bool:
    t('automation.executors.strategies.is_visible')
    try:
        return bool(await element.is_visible())
    except PlaywrightError:
        return False


async def click_with_force_fallback(
    element: Any,
    timeout: int,
    log: Optional[logging.Logger] = None,
) -> bool:
    """Click ``element``; on failure retry once with ``force=True``."""

    t('automation.executors.strategies.click_with_force_fallback')
    log = log or logger
    try:
        await element.click(timeout=timeout)
        return True
    except PlaywrightError as exc:
        log.debug("Plain click failed (%s), retrying with force", exc)

    try:
        await element.click(force=True, timeout=timeout)
        return True
    except PlaywrightError as exc:
        log.debug("Forced click failed: %s", exc)
        return False


__all__ = [
    "Finder",
    "LocatorResult",
    "Strategy",
    "attempt",
    "click_with_force_fallback",
    "first_found",
    "is_visible",
    "read_text",
]
