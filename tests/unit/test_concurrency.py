import asyncio

import pytest

from shared.utils.concurrency import run_bounded
from shared.utils.retry import retry


async def test_run_bounded_keeps_input_order_and_isolates_failures():
    async def work(n: int) -> int:
        await asyncio.sleep(0.01 * (5 - n))
        if n == 2:
            raise RuntimeError("boom")
        return n * 10

    results = await run_bounded([1, 2, 3, 4], work, concurrency=2)
    assert [r.is_success() for r in results] == [True, False, True, True]
    assert results[0].value == 10
    assert str(results[1].error) == "boom"
    assert results[3].value == 40


async def test_run_bounded_never_exceeds_concurrency():
    running = 0
    peak = 0

    async def work(_: int) -> None:
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1

    await run_bounded(list(range(10)), work, concurrency=3)
    assert peak <= 3


async def test_run_bounded_cancel_stops_scheduling():
    cancel = asyncio.Event()
    seen = []

    async def work(n: int) -> int:
        seen.append(n)
        cancel.set()
        return n

    results = await run_bounded([1, 2, 3], work, concurrency=1, cancel_event=cancel)
    assert seen == [1]
    assert results[0].value == 1
    assert results[1:] == [None, None]


async def test_cancelling_the_caller_cancels_started_items():
    started = asyncio.Event()
    cancelled = []

    async def work(n: int) -> None:
        started.set()
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append(n)
            raise

    # concurrency=1 parks the caller on the semaphore while item 1 runs
    caller = asyncio.create_task(run_bounded([1, 2], work, concurrency=1))
    await started.wait()
    caller.cancel()

    with pytest.raises(asyncio.CancelledError):
        await caller
    assert cancelled == [1]


async def test_run_bounded_rejects_zero_concurrency():
    with pytest.raises(ValueError):
        await run_bounded([1], asyncio.sleep, concurrency=0)


async def test_retry_recovers_after_transient_error():
    calls = 0

    async def flaky() -> str:
        nonlocal calls
        calls += 1
        if calls < 2:
            raise OSError("transient")
        return "ok"

    assert await retry(flaky, attempts=3, base_ms=1, jitter_ms=0) == "ok"
    assert calls == 2


async def test_retry_reraises_last_error():
    async def broken() -> None:
        raise OSError("down")

    with pytest.raises(OSError):
        await retry(broken, attempts=2, base_ms=1, jitter_ms=0)


async def test_retry_does_not_retry_other_errors():
    calls = 0

    async def bad() -> None:
        nonlocal calls
        calls += 1
        raise KeyError("nope")

    with pytest.raises(KeyError):
        await retry(bad, attempts=3, base_ms=1, retry_on=(OSError,))
    assert calls == 1
