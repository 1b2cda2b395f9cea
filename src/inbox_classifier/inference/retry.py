"""
Retry policy for classification requests.

The constants are fixed policy, not configuration. `backoff_delay` is pure
so the schedule can be checked without any HTTP plumbing.
"""

from __future__ import annotations

import math
from typing import Callable, Mapping, Optional

# Total attempts per message, first request included.
MAX_ATTEMPTS = 4

# Base of the exponential backoff after a 429 or 5xx response.
RATE_LIMIT_BACKOFF_BASE = 1.0

# Base of the exponential backoff after a transport failure.
TRANSPORT_BACKOFF_BASE = 0.5

# Jitter is drawn from [0, JITTER_MAX_SECONDS).
JITTER_MAX_SECONDS = 0.5


def backoff_delay(
    attempt: int,
    base: float,
    *,
    retry_after: Optional[float] = None,
    rng: Callable[[], float],
) -> float:
    """
    Seconds to wait after failed attempt number `attempt` (1-based).

    A server supplied retry_after replaces the exponential part; jitter is
    added either way.
    """
    if retry_after is not None:
        wait = retry_after
    else:
        wait = base * (2 ** (attempt - 1))
    return wait + rng() * JITTER_MAX_SECONDS


def parse_retry_after(headers: Optional[Mapping[str, str]]) -> Optional[float]:
    """Return the retry-after header in seconds, or None if absent or not numeric."""
    if not headers:
        return None
    raw = headers.get("retry-after")
    if raw is None:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        # HTTP-date form is not honoured.
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value
