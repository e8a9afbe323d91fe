from __future__ import annotations

import asyncio

import pytest

from tbtc_tvl.retry import (
    PermanentError,
    RetryExhausted,
    RetryPolicy,
    is_retryable,
    with_retry,
)
from tbtc_tvl.units import MalformedAmount


@pytest.fixture
def recorded_sleeps(monkeypatch):
    """Replace asyncio.sleep so backoff waits are recorded, not slept."""
    waits: list[float] = []

    async def fake_sleep(seconds, *args, **kwargs):
        waits.append(seconds)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return waits


def _flaky(failures: int, result="ok", exc_type=ConnectionError):
    calls = {"count": 0}

    async def operation():
        calls["count"] += 1
        if calls["count"] <= failures:
            raise exc_type(f"failure {calls['count']}")
        return result

    return operation, calls


def test_default_policy_delays():
    assert RetryPolicy().delays() == [1.0, 2.0]


def test_delays_are_capped():
    policy = RetryPolicy(max_attempts=7, initial_delay=1.0, max_delay=10.0)
    assert policy.delays() == [1.0, 2.0, 4.0, 8.0, 10.0, 10.0]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_attempts": 0},
        {"initial_delay": -1.0},
        {"multiplier": 0.5},
    ],
)
def test_policy_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)


def test_permanent_errors_are_not_retryable():
    assert is_retryable(ConnectionError("boom"))
    assert is_retryable(asyncio.TimeoutError())
    assert not is_retryable(PermanentError("bad config"))
    assert not is_retryable(MalformedAmount("x", "bad"))


@pytest.mark.asyncio
async def test_returns_first_success_without_waiting(recorded_sleeps):
    operation, calls = _flaky(0)

    assert await with_retry(operation, RetryPolicy()) == "ok"
    assert calls["count"] == 1
    assert recorded_sleeps == []


@pytest.mark.asyncio
async def test_retries_until_success(recorded_sleeps):
    operation, calls = _flaky(2, result=42)

    assert await with_retry(operation, RetryPolicy(max_attempts=3)) == 42
    assert calls["count"] == 3
    assert recorded_sleeps == [1.0, 2.0]


@pytest.mark.asyncio
async def test_exhausted_retries_raise_with_last_error(recorded_sleeps):
    operation, calls = _flaky(10)

    with pytest.raises(RetryExhausted) as exc_info:
        await with_retry(operation, RetryPolicy(max_attempts=3), description="fetch pools")

    err = exc_info.value
    assert calls["count"] == 3
    assert recorded_sleeps == [1.0, 2.0]
    assert err.attempts == 3
    assert isinstance(err.last_error, ConnectionError)
    assert err.__cause__ is err.last_error
    assert str(err) == "Failed after 3 attempts: fetch pools (failure 3)"


@pytest.mark.asyncio
async def test_waits_follow_the_capped_schedule(recorded_sleeps):
    operation, _ = _flaky(10)
    policy = RetryPolicy(max_attempts=6, initial_delay=1.0, max_delay=10.0)

    with pytest.raises(RetryExhausted):
        await with_retry(operation, policy)

    assert recorded_sleeps == [1.0, 2.0, 4.0, 8.0, 10.0]


@pytest.mark.asyncio
async def test_permanent_error_is_not_retried(recorded_sleeps):
    operation, calls = _flaky(10, exc_type=PermanentError)

    with pytest.raises(PermanentError):
        await with_retry(operation, RetryPolicy(max_attempts=5))

    assert calls["count"] == 1
    assert recorded_sleeps == []


@pytest.mark.asyncio
async def test_malformed_amount_is_not_retried(recorded_sleeps):
    calls = {"count": 0}

    async def operation():
        calls["count"] += 1
        raise MalformedAmount("-1", "negative amounts are not allowed")

    with pytest.raises(MalformedAmount):
        await with_retry(operation, RetryPolicy(max_attempts=3))

    assert calls["count"] == 1


@pytest.mark.asyncio
async def test_single_attempt_policy_does_not_wait(recorded_sleeps):
    operation, calls = _flaky(1)

    with pytest.raises(RetryExhausted) as exc_info:
        await with_retry(operation, RetryPolicy(max_attempts=1))

    assert calls["count"] == 1
    assert exc_info.value.attempts == 1
    assert recorded_sleeps == []


@pytest.mark.asyncio
async def test_attempt_timeout_counts_as_a_retryable_failure(recorded_sleeps):
    calls = {"count": 0}

    async def hangs():
        calls["count"] += 1
        await asyncio.Event().wait()

    policy = RetryPolicy(max_attempts=2, attempt_timeout=0.01)
    with pytest.raises(RetryExhausted) as exc_info:
        await with_retry(hangs, policy)

    assert calls["count"] == 2
    assert isinstance(exc_info.value.last_error, TimeoutError)
    assert recorded_sleeps == [1.0]
