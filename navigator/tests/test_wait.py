import asyncio

import pytest

from navigator.errors import WaitTimeout
from navigator.wait import wait_until


class FakeClock:
    """Records requested sleeps instead of sleeping."""

    def __init__(self):
        self.sleeps: list[float] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        await asyncio.sleep(0)


def _check_returning(value, on_call: int):
    calls = []

    def check():
        calls.append(len(calls) + 1)
        return value if len(calls) >= on_call else None

    return check, calls


@pytest.mark.asyncio
async def test_resolves_on_third_check_and_stops_polling():
    clock = FakeClock()
    check, calls = _check_returning("node-2", on_call=3)
    result = await wait_until(check, interval=0.5, max_attempts=10, sleep=clock.sleep)
    assert result == "node-2"
    assert calls == [1, 2, 3]
    assert clock.sleeps == [0.5, 0.5]


@pytest.mark.asyncio
async def test_immediate_success_does_not_sleep():
    clock = FakeClock()
    result = await wait_until(lambda: 42, sleep=clock.sleep)
    assert result == 42
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_falsy_values_other_than_none_count_as_results():
    clock = FakeClock()
    assert await wait_until(lambda: 0, sleep=clock.sleep) == 0
    assert await wait_until(lambda: False, sleep=clock.sleep) is False


@pytest.mark.asyncio
async def test_times_out_after_exact_budget():
    clock = FakeClock()
    check, calls = _check_returning("never", on_call=100)
    with pytest.raises(WaitTimeout) as excinfo:
        await wait_until(check, interval=0.25, max_attempts=4, sleep=clock.sleep)
    assert excinfo.value.attempts == 4
    assert calls == [1, 2, 3, 4]
    # no sleep after the final check
    assert clock.sleeps == [0.25, 0.25, 0.25]


@pytest.mark.asyncio
async def test_single_attempt_budget():
    clock = FakeClock()
    with pytest.raises(WaitTimeout):
        await wait_until(lambda: None, max_attempts=1, sleep=clock.sleep)
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_invalid_budget():
    with pytest.raises(ValueError):
        await wait_until(lambda: 1, max_attempts=0)


@pytest.mark.asyncio
async def test_real_sleep_with_small_interval():
    check, calls = _check_returning("ok", on_call=2)
    assert await wait_until(check, interval=0.01, max_attempts=3) == "ok"
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_abandoned_wait_can_be_cancelled():
    task = asyncio.ensure_future(wait_until(lambda: None, interval=10, max_attempts=5))
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
