from __future__ import annotations

import asyncio

import pytest

from workitem_runner.infrastructure.http import RetryPolicy, exponential_backoff


class ScriptedOperation:
    """Return scripted results in order, repeating the last one."""

    def __init__(self, results: list[str]) -> None:
        self._results = results
        self.calls: list[tuple[object, ...]] = []

    async def __call__(self, *args: object) -> str:
        self.calls.append(args)
        index = min(len(self.calls), len(self._results)) - 1
        return self._results[index]


def _reject_unless_ok(result: str) -> str | None:
    return None if result == "ok" else f"got {result}"


async def _no_sleep(_: float) -> None:
    return None


def test_backoff_invokes_operation_at_most_retries_plus_one_times() -> None:
    operation = ScriptedOperation(["boom"])
    delays: list[float] = []

    async def record_sleep(delay: float) -> None:
        delays.append(delay)

    retryable = exponential_backoff(
        operation,
        _reject_unless_ok,
        "https://service.example.com/workitems",
        "token",
        policy=RetryPolicy(retries=5),
        sleep=record_sleep,
    )

    result = asyncio.run(retryable())

    assert result == "boom"
    assert len(operation.calls) == 6
    assert len(delays) == 5
    assert operation.calls[0] == ("https://service.example.com/workitems", "token")


def test_backoff_stops_at_first_accepted_result() -> None:
    operation = ScriptedOperation(["boom", "boom", "ok", "never"])

    retryable = exponential_backoff(operation, _reject_unless_ok, sleep=_no_sleep)

    assert asyncio.run(retryable()) == "ok"
    assert len(operation.calls) == 3


def test_backoff_returns_immediately_when_first_attempt_is_accepted() -> None:
    operation = ScriptedOperation(["ok"])
    delays: list[float] = []

    async def record_sleep(delay: float) -> None:
        delays.append(delay)

    retryable = exponential_backoff(operation, _reject_unless_ok, sleep=record_sleep)

    assert asyncio.run(retryable()) == "ok"
    assert len(operation.calls) == 1
    assert delays == []


def test_backoff_starts_with_fresh_attempt_state_on_every_call() -> None:
    operation = ScriptedOperation(["boom"])
    retryable = exponential_backoff(
        operation,
        _reject_unless_ok,
        policy=RetryPolicy(retries=2),
        sleep=_no_sleep,
    )

    asyncio.run(retryable())
    asyncio.run(retryable())

    assert len(operation.calls) == 6


def test_backoff_delays_grow_exponentially_and_respect_bounds() -> None:
    operation = ScriptedOperation(["boom"])
    delays: list[float] = []

    async def record_sleep(delay: float) -> None:
        delays.append(delay)

    retryable = exponential_backoff(
        operation,
        _reject_unless_ok,
        policy=RetryPolicy(retries=5, randomize=False),
        sleep=record_sleep,
    )
    asyncio.run(retryable())

    assert delays == pytest.approx([0.1, 0.2, 0.4, 0.8, 1.6])


@pytest.mark.parametrize("retry_number", [0, 1, 2, 3, 4, 10])
def test_randomized_delay_stays_within_min_and_max(retry_number: int) -> None:
    policy = RetryPolicy()

    for _ in range(50):
        delay = policy.delay_for(retry_number)
        assert policy.min_delay_seconds <= delay <= policy.max_delay_seconds
