"""Exponential backoff with jitter for best-effort upstream calls."""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from swingscan.errors import SwingScanError

logger = logging.getLogger("swingscan.market")

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry parameters.  Delays are in seconds."""

    max_attempts: int = 3
    base_delay_s: float = 1.0
    multiplier: float = 2.0
    max_delay_s: float = 10.0
    jitter: float = 0.25  # ± fraction of the delay


def compute_backoff(
    attempt: int,
    policy: RetryPolicy,
    rand: Optional[Callable[[], float]] = None,
) -> float:
    """Delay before retry number *attempt* (0-indexed).

    ``min(base × multiplier^attempt, max) × (1 ± jitter)``.
    """
    r = (rand or random.random)()
    delay = min(policy.base_delay_s * policy.multiplier ** attempt, policy.max_delay_s)
    return delay * (1 + policy.jitter * (2 * r - 1))


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    context: str = "operation",
    *,
    retry_on: tuple[type[BaseException], ...] = (SwingScanError,),
    give_up_on: tuple[type[BaseException], ...] = (),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    rand: Optional[Callable[[], float]] = None,
) -> T:
    """Await ``fn()`` up to ``policy.max_attempts`` times.

    Only exceptions in *retry_on* are retried; the last one is re-raised
    once attempts run out.  Anything else, and anything in *give_up_on*,
    propagates immediately.
    """
    attempts = max(policy.max_attempts, 1)
    for attempt in range(attempts):
        try:
            result = await fn()
        except retry_on as exc:
            if isinstance(exc, give_up_on):
                raise
            if attempt == attempts - 1:
                logger.error(
                    "%s failed after %d attempt(s): %s", context, attempts, exc
                )
                raise
            delay = compute_backoff(attempt, policy, rand)
            logger.warning(
                "%s failed (%s) — retry %d/%d in %.2fs",
                context, exc, attempt + 1, attempts, delay,
            )
            await sleep(delay)
            continue

        if attempt > 0:
            logger.info("%s succeeded on attempt %d", context, attempt + 1)
        return result

    raise AssertionError("unreachable")  # pragma: no cover
