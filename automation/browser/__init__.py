"""Browser management utilities for court automation."""

from .remote import BrowserHandle, build_connect_url, close_browser, open_browser

__all__ = [
    "BrowserHandle",
    "build_connect_url",
    "close_browser",
    "open_browser",
]
