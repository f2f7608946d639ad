"""Bounded exponential-backoff retry for single asynchronous operations."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Exponential delay schedule with optional jitter."""

    retries: int = 5
    factor: float = 2.0
    min_delay_seconds: float = 0.1
    max_delay_seconds: float = 2.0
    randomize: bool = True

    def delay_for(self, retry_number: int) -> float:
        """Return the wait before zero-based retry `retry_number`."""

        jitter = random.uniform(1.0, 2.0) if self.randomize else 1.0
        delay = self.min_delay_seconds * jitter * (self.factor ** max(retry_number, 0))
        return min(delay, self.max_delay_seconds)


DEFAULT_RETRY_POLICY = RetryPolicy()


def exponential_backoff(
    operation: Callable[..., Awaitable[T]],
    classify: Callable[[T], str | None],
    *args: Any,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    sleep: Sleep = asyncio.sleep,
) -> Callable[[], Awaitable[T]]:
    """Wrap `operation(*args)` so rejected results are retried.

    `classify` returns None for an acceptable result or a short description of
    what went wrong. The returned callable yields the last raw result, whether
    accepted or not, once the classifier accepts it or retries run out. Every
    call starts with a fresh attempt counter.
    """

    async def retryable() -> T:
        retry_number = 0
        while True:
            result = await operation(*args)
            error = classify(result)
            if error is None:
                return result
            if retry_number >= policy.retries:
                logger.warning(
                    "Giving up after %s attempts: %s",
                    retry_number + 1,
                    error,
                )
                return result

            delay = policy.delay_for(retry_number)
            logger.debug(
                "Attempt %s failed (%s), retrying in %.3fs.",
                retry_number + 1,
                error,
                delay,
            )
            retry_number += 1
            await sleep(delay)

    return retryable


__all__ = ["DEFAULT_RETRY_POLICY", "RetryPolicy", "Sleep", "exponential_backoff"]
