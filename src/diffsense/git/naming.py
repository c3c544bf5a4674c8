"""Temporary branch naming helpers."""

from __future__ import annotations

import re
import threading
import time

DEFAULT_PREFIX = "diffsense-temp"

_PATH_SEPARATORS = re.compile(r"[/\\]")

_clock_lock = threading.Lock()
_last_timestamp_ms = 0


def sanitize_branch_segment(name: str) -> str:
    """Replace path separators so the name stays a single ref segment."""
    return _PATH_SEPARATORS.sub("-", name.strip())


def build_temp_branch(target_branch: str, timestamp_ms: int, prefix: str = DEFAULT_PREFIX) -> str:
    """Build deterministic temporary branch name."""
    return f"{prefix}-{sanitize_branch_segment(target_branch)}-{timestamp_ms}"


def next_timestamp_ms() -> int:
    """Return wallclock milliseconds, strictly increasing within the process."""
    global _last_timestamp_ms
    with _clock_lock:
        now = time.time_ns() // 1_000_000
        if now <= _last_timestamp_ms:
            now = _last_timestamp_ms + 1
        _last_timestamp_ms = now
        return now


def temp_branch_pattern(prefix: str = DEFAULT_PREFIX) -> str:
    """Glob matching every temporary branch with ``prefix``."""
    return f"{prefix}-*"
