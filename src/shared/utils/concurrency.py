# /src/shared/utils/concurrency.py
"""
Bounded fan-out over asyncio tasks with cooperative cancellation.

- async def run_bounded(items, fn, *, concurrency, cancel_event=None)

Each item's outcome is a Success/Failure; items never scheduled because the
cancel event was set are reported as None. In-flight items finish unless the caller itself is cancelled.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from shared.domain.result import Failure, Result, Success

TItem = TypeVar("TItem")
TOut = TypeVar("TOut")


async def run_bounded(
    items: Sequence[TItem],
    fn: Callable[[TItem], Awaitable[TOut]],
    *,
    concurrency: int,
    cancel_event: Optional[asyncio.Event] = None,
) -> List[Optional[Result]]:
    if concurrency < 1:
        raise ValueError("concurrency must be >= 1")

    semaphore = asyncio.Semaphore(concurrency)
    results: List[Optional[Result]] = [None] * len(items)
    tasks: List[asyncio.Task] = []

    async def _run(index: int, item: TItem) -> None:
        try:
            results[index] = Success(await fn(item))
        except Exception as e:
            results[index] = Failure(e)
        finally:
            semaphore.release()

    try:
        for index, item in enumerate(items):
            await semaphore.acquire()
            if cancel_event is not None and cancel_event.is_set():
                semaphore.release()
                break
            tasks.append(asyncio.create_task(_run(index, item), name=f"bounded_{index}"))
    except asyncio.CancelledError:
        # caller cancelled mid-schedule: take the started items down with it
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    if tasks:
        await asyncio.gather(*tasks)
    return results
