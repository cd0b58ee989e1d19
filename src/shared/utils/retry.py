# /src/shared/utils/retry.py
"""
Async retry with exponential backoff + jitter for backing-store writes.

- async def retry(fn, *, attempts=3, base_ms=50, max_ms=2000, jitter_ms=50, retry_on=(Exception,))
"""

from __future__ import annotations

import asyncio
import random
from typing import Awaitable, Callable, Iterable, Tuple, Type, TypeVar

from shared.infrastructure.observability.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
ExcTuple = Tuple[Type[BaseException], ...]


async def retry(
    fn: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    base_ms: int = 50,
    max_ms: int = 2000,
    jitter_ms: int = 50,
    retry_on: Iterable[Type[BaseException]] = (Exception,),
) -> T:
    if attempts < 1:
        raise ValueError("attempts must be >= 1")
    exc_types: ExcTuple = tuple(retry_on)
    delay = base_ms
    for i in range(attempts):
        try:
            return await fn()
        except exc_types as e:
            if i == attempts - 1:
                raise
            logger.debug("Retrying after failure", attempt=i + 1, attempts=attempts, error=str(e))
            jitter = random.randint(0, jitter_ms)
            await asyncio.sleep(min((delay + jitter) / 1000.0, max_ms / 1000.0))
            delay = min(delay * 2, max_ms)
    raise RuntimeError("unreachable")
