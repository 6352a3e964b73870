"""Retry backoff with jitter, shared by every retrying caller."""

from __future__ import annotations
import asyncio
import random
from typing import Literal

__all__ = ["compute_backoff_delay_ms", "async_backoff_sleep"]

Mode = Literal["exponential", "decorrelated"]

_rng = random.SystemRandom()

def compute_backoff_delay_ms(
    attempt: int,
    *,
    base_ms: int,
    jitter_ms: int,
    cap_ms: int | None = None,
    mode: Mode = "exponential",
) -> int:
    """Delay before retry number *attempt* (1-based), in milliseconds.

    ``exponential``: base * 2**(attempt-1) plus up to *jitter_ms* of noise.
    ``decorrelated``: a random point in [base, 3 * previous step], so
    concurrent retriers spread out instead of synchronising.
    """
    n = max(1, int(attempt))
    step = base_ms * (2 ** (n - 1))
    if mode == "exponential":
        delay = step + _rng.randrange(max(1, jitter_ms))
    else:
        previous = base_ms * (2 ** max(0, n - 2))
        delay = max(base_ms, int(_rng.uniform(0, previous * 3)))
    if cap_ms is not None:
        delay = min(delay, cap_ms)
    return max(0, delay)

async def async_backoff_sleep(attempt: int, **kwargs) -> int:
    """Sleep for the computed backoff and return the delay used (ms)."""
    delay_ms = compute_backoff_delay_ms(attempt, **kwargs)
    await asyncio.sleep(delay_ms / 1000.0)
    return delay_ms
