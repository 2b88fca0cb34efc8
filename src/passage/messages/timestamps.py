"""Apple Core Data timestamp conversion."""

from __future__ import annotations

import time

# Apple's Core Data epoch offset (2001-01-01 vs 1970-01-01), in milliseconds
APPLE_EPOCH_OFFSET_MS = 978307200000

NANOSECONDS_PER_MS = 1_000_000


def now_ms() -> int:
    """Current wall-clock time in Unix milliseconds."""
    return int(time.time() * 1000)


def apple_to_unix_ms(apple_ts: int | None) -> int:
    """Convert a chat.db ``date`` (nanoseconds since 2001-01-01) to Unix ms.

    Missing or zero dates map to "now" so placeholder rows don't sort to 2001.
    """
    if not apple_ts:
        return now_ms()
    return APPLE_EPOCH_OFFSET_MS + apple_ts // NANOSECONDS_PER_MS


def unix_ms_to_apple(unix_ms: int) -> int:
    """Convert Unix ms to a chat.db ``date`` value for use in queries."""
    return (unix_ms - APPLE_EPOCH_OFFSET_MS) * NANOSECONDS_PER_MS
