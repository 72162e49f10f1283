"""Shared test doubles for the court bot tests."""

from __future__ import annotations
from tracking import t

from typing import Any, Dict, List, Optional, Tuple

LogRecord = Tuple[str, Tuple[Any, ...], Dict[str, Any]]


class DummyLogger:
    """Stand-in for ``logging.Logger`` that keeps every call for assertions."""

    def __init__(self) -> None:
        t('tests.helpers.DummyLogger.__init__')
        self.records: List[LogRecord] = []

    def _record(self, level: str, *args: Any, **kwargs: Any) -> None:
        self.records.append((level, args, kwargs))

    def debug(self, *args: Any, **kwargs: Any) -> None:
        self._record("debug", *args, **kwargs)

    def info(self, *args: Any, **kwargs: Any) -> None:
        self._record("info", *args, **kwargs)

    def warning(self, *args: Any, **kwargs: Any) -> None:
        self._record("warning", *args, **kwargs)

    def error(self, *args: Any, **kwargs: Any) -> None:
        self._record("error", *args, **kwargs)

    def exception(self, *args: Any, **kwargs: Any) -> None:
        self._record("exception", *args, **kwargs)

    @property
    def messages(self) -> List[Tuple[str, str]]:
        """``(level, message)`` pairs with %-style arguments applied."""
        t('tests.helpers.DummyLogger.messages')

        formatted: List[Tuple[str, str]] = []
        for level, args, _ in self.records:
            if not args:
                formatted.append((level, ""))
                continue
            template, params = args[0], args[1:]
            try:
                message = str(template) % params if params else str(template)
            except (TypeError, ValueError):
                message = str(template)
            formatted.append((level, message))
        return formatted

    def at(self, level: str) -> List[str]:
        """Formatted messages logged at ``level``."""
        return [message for logged, message in self.messages if logged == level]

    def last(self, level: Optional[str] = None) -> Optional[LogRecord]:
        """Most recent record, optionally only at ``level``."""
        t('tests.helpers.DummyLogger.last')

        for entry in reversed(self.records):
            if level is None or entry[0] == level:
                return entry
        return None
