"""Pure helpers for matching a requested time against on-page slot labels.

Matching is deliberately strict: only the leading ``H:MM`` token of each side
is compared, character for character. "2:30" never matches "12:30 - 2:00 PM"
and there is no AM/PM normalization in the comparison.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

from tracking import t

_START_TIME_RE = re.compile(r"^(\d{1,2}:\d{2})")


def extract_start(label: str) -> Optional[str]:
    """Return the leading ``H:MM`` token of ``label`` or ``None``.

    >>> extract_start("2:30 - 4:00 PM")
    '2:30'
    >>> extract_start("PM 2:30") is None
    True
    """

    t('automation.availability.slot_matcher.extract_start')
    if not label:
        return None
    match = _START_TIME_RE.match(label.strip())
    return match.group(1) if match else None


def matches(requested: str, label: str) -> bool:
    """True iff both sides have a start time and the two are identical."""

    t('automation.availability.slot_matcher.matches')
    requested_start = extract_start(requested)
    label_start = extract_start(label)
    if not requested_start or not label_start:
        return False
    return requested_start == label_start


def dedupe(labels: Iterable[str]) -> List[str]:
    """Collapse repeated labels, keeping first-seen order."""

    t('automation.availability.slot_matcher.dedupe')
    seen = set()
    unique: List[str] = []
    for label in labels:
        if label in seen:
            continue
        seen.add(label)
        unique.append(label)
    return unique


def looks_like_slot_label(text: Optional[str], max_length: Optional[int] = None) -> bool:
    """Heuristic used when scraping: a colon plus AM or PM, optionally short."""

    t('automation.availability.slot_matcher.looks_like_slot_label')
    if not text:
        return False
    trimmed = text.strip()
    if ":" not in trimmed:
        return False
    upper = trimmed.upper()
    if "AM" not in upper and "PM" not in upper:
        return False
    if max_length is not None and len(trimmed) > max_length:
        return False
    return True


__all__ = ["dedupe", "extract_start", "looks_like_slot_label", "matches"]
