"""Runtime helpers for recording which functions execute in production."""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Set

# Guards the seen cache and file appends.
_LOCK = threading.RLock()
_TRACKING_FILE = Path(
    os.getenv(
        "FUNCTION_TRACKING_FILE",
        str(Path(__file__).resolve().parents[1] / "logs" / "functions_in_use.txt"),
    )
)
_ENABLED = os.getenv("FUNCTION_TRACKING", "true").strip().lower() in {"1", "true", "yes", "on"}
_SEEN: Set[str] = set()


def _initialize_seen_cache() -> None:
    """Populate the cache with names recorded by earlier runs."""
    if not _TRACKING_FILE.exists():
        return
    try:
        with _TRACKING_FILE.open("r", encoding="utf-8") as handle:
            _SEEN.update(line.strip() for line in handle if line.strip())
    except OSError:
        pass


def t(func_name: str) -> None:
    """Record ``func_name`` the first time it runs in this process."""
    if not func_name or not _ENABLED:
        return

    with _LOCK:
        if func_name in _SEEN:
            return

        try:
            _TRACKING_FILE.parent.mkdir(parents=True, exist_ok=True)
            with _TRACKING_FILE.open("a", encoding="utf-8") as handle:
                handle.write(f"{func_name}\n")
        except OSError:
            return

        _SEEN.add(func_name)


_initialize_seen_cache()
