from __future__ import annotations

import asyncio
import random
from typing import Literal

BackoffStrategy = Literal["linear", "exponential"]


def compute_backoff(
    attempt: int,
    delay: float = 1.0,
    backoff: BackoffStrategy = "exponential",
    jitter: float = 0.0,
) -> float:
    """Compute the wait before retry number ``attempt`` (1-based)."""
    if backoff == "exponential":
        wait = delay * 2 ** (attempt - 1)
    else:
        wait = delay * attempt
    if jitter:
        wait += random.uniform(0, jitter)
    return wait


async def schedule_retry(
    attempt: int, delay: float = 1.0, backoff: BackoffStrategy = "exponential"
) -> None:
    """Sleep for computed backoff delay before retrying."""
    await asyncio.sleep(compute_backoff(attempt, delay, backoff))
