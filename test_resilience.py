import asyncio

import pytest
from unittest.mock import AsyncMock

from esign_errors import (
    AuthenticationError,
    CircuitOpenError,
    EnvelopeNotFoundError,
    RemoteCallError,
)
from resilience import CircuitBreaker, CircuitState, ResilienceConfig, Retry
from settings import Settings


class ManualClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


async def _fail_times(breaker, func, count):
    for _ in range(count):
        with pytest.raises(RemoteCallError):
            await breaker.call(func)


def test_config_from_settings():
    assert ResilienceConfig.from_settings(Settings(max_retries=5)).max_attempts == 5
    assert ResilienceConfig.from_settings(Settings(max_retries=0)).max_attempts == 1
    config = ResilienceConfig()
    assert config.failure_rate_threshold == 50.0
    assert config.sliding_window_size == 10
    assert config.wait_duration_in_open_state == 30.0
    assert config.wait_duration == 2.0


@pytest.mark.asyncio
async def test_retry_success_first_attempt():
    retry = Retry("test", ResilienceConfig(max_attempts=3, wait_duration=0))
    func = AsyncMock(return_value="ok")

    assert await retry.call(func) == "ok"
    assert func.call_count == 1


@pytest.mark.asyncio
async def test_retry_fail_then_success():
    sleep = AsyncMock()
    retry = Retry("test", ResilienceConfig(max_attempts=3, wait_duration=2.0), sleep=sleep)
    func = AsyncMock(side_effect=[RemoteCallError("fail1"), AuthenticationError("fail2"), "ok"])

    assert await retry.call(func) == "ok"
    assert func.call_count == 3
    assert sleep.await_count == 2
    sleep.assert_awaited_with(2.0)


@pytest.mark.asyncio
async def test_retry_stops_at_max_attempts():
    retry = Retry("test", ResilienceConfig(max_attempts=3, wait_duration=0))
    func = AsyncMock(side_effect=RemoteCallError("constant fail"))

    with pytest.raises(RemoteCallError, match="constant fail"):
        await retry.call(func)
    assert func.call_count == 3


@pytest.mark.asyncio
async def test_retry_does_not_retry_other_errors():
    retry = Retry("test", ResilienceConfig(max_attempts=3, wait_duration=0))
    for error in (CircuitOpenError("open"), EnvelopeNotFoundError("x"), ValueError("bad")):
        func = AsyncMock(side_effect=error)
        with pytest.raises(type(error)):
            await retry.call(func)
        assert func.call_count == 1


@pytest.mark.asyncio
async def test_breaker_stays_closed_until_window_full():
    breaker = CircuitBreaker("test", ResilienceConfig())
    failing = AsyncMock(side_effect=RemoteCallError("fail"))

    await _fail_times(breaker, failing, 9)
    assert breaker.state == CircuitState.CLOSED

    await _fail_times(breaker, failing, 1)
    assert breaker.state == CircuitState.OPEN


@pytest.mark.asyncio
async def test_breaker_opens_at_half_failures():
    breaker = CircuitBreaker("test", ResilienceConfig())
    ok = AsyncMock(return_value="ok")
    failing = AsyncMock(side_effect=RemoteCallError("fail"))

    for _ in range(5):
        await breaker.call(ok)
    await _fail_times(breaker, failing, 4)
    assert breaker.state == CircuitState.CLOSED
    assert breaker.failure_rate == pytest.approx(44.44, abs=0.01)

    await _fail_times(breaker, failing, 1)
    assert breaker.state == CircuitState.OPEN


@pytest.mark.asyncio
async def test_breaker_ignores_old_outcomes_outside_window():
    breaker = CircuitBreaker("test", ResilienceConfig())
    ok = AsyncMock(return_value="ok")
    failing = AsyncMock(side_effect=RemoteCallError("fail"))

    await _fail_times(breaker, failing, 4)
    for _ in range(10):
        await breaker.call(ok)
    assert breaker.failure_rate == 0.0
    assert breaker.state == CircuitState.CLOSED


@pytest.mark.asyncio
async def test_open_breaker_fails_fast():
    clock = ManualClock()
    breaker = CircuitBreaker("test", ResilienceConfig(), clock=clock)
    failing = AsyncMock(side_effect=RemoteCallError("fail"))
    await _fail_times(breaker, failing, 10)

    clock.now += 29
    func = AsyncMock(return_value="ok")
    with pytest.raises(CircuitOpenError, match="is OPEN"):
        await breaker.call(func)
    func.assert_not_called()


@pytest.mark.asyncio
async def test_breaker_recovers_after_wait_duration():
    clock = ManualClock()
    breaker = CircuitBreaker("test", ResilienceConfig(), clock=clock)
    await _fail_times(breaker, AsyncMock(side_effect=RemoteCallError("fail")), 10)

    clock.now += 30
    assert await breaker.call(AsyncMock(return_value="recovered")) == "recovered"
    assert breaker.state == CircuitState.CLOSED
    assert breaker.failure_rate == 0.0


@pytest.mark.asyncio
async def test_breaker_half_open_failure_reopens():
    clock = ManualClock()
    breaker = CircuitBreaker("test", ResilienceConfig(), clock=clock)
    await _fail_times(breaker, AsyncMock(side_effect=RemoteCallError("fail")), 10)

    clock.now += 30
    func = AsyncMock(side_effect=RemoteCallError("still failing"))
    with pytest.raises(RemoteCallError):
        await breaker.call(func)
    assert breaker.state == CircuitState.OPEN
    assert func.call_count == 1

    with pytest.raises(CircuitOpenError):
        await breaker.call(func)
    assert func.call_count == 1


@pytest.mark.asyncio
async def test_half_open_admits_one_trial_call_under_concurrency():
    clock = ManualClock()
    breaker = CircuitBreaker("test", ResilienceConfig(), clock=clock)
    await _fail_times(breaker, AsyncMock(side_effect=RemoteCallError("fail")), 10)
    clock.now += 30

    release = asyncio.Event()
    admitted = 0

    async def slow():
        nonlocal admitted
        admitted += 1
        await release.wait()
        return "ok"

    tasks = [asyncio.create_task(breaker.call(slow)) for _ in range(5)]
    await asyncio.sleep(0)
    release.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)

    assert admitted == 1
    assert results.count("ok") == 1
    assert sum(isinstance(r, CircuitOpenError) for r in results) == 4
    assert breaker.state == CircuitState.CLOSED


@pytest.mark.asyncio
async def test_cancelled_trial_frees_the_half_open_slot():
    clock = ManualClock()
    breaker = CircuitBreaker("test", ResilienceConfig(), clock=clock)
    await _fail_times(breaker, AsyncMock(side_effect=RemoteCallError("fail")), 10)
    clock.now += 30

    trial = asyncio.create_task(breaker.call(asyncio.Event().wait))
    await asyncio.sleep(0)
    trial.cancel()
    with pytest.raises(asyncio.CancelledError):
        await trial

    assert breaker.state == CircuitState.HALF_OPEN
    assert await breaker.call(AsyncMock(return_value="ok")) == "ok"
    assert breaker.state == CircuitState.CLOSED
