"""Slot label parsing and matching."""

from .slot_matcher import dedupe, extract_start, looks_like_slot_label, matches

__all__ = [
    "dedupe",
    "extract_start",
    "looks_like_slot_label",
    "matches",
]
