"""Semaphore-bounded fan-out over a collection of async work items."""

import asyncio
from typing import Awaitable, Callable, List, Sequence, TypeVar

T = TypeVar('T')
R = TypeVar('R')


async def run_bounded(items: Sequence[T], limit: int,
                      worker: Callable[[T], Awaitable[R]]) -> List[R]:
    """Run ``worker`` over every item with at most ``limit`` in flight.

    Results are index-aligned with ``items`` whatever the completion order.
    Failures are not handled here: callers wrap their worker so that one
    failing item turns into a sentinel result instead of an exception. If a
    worker does raise, every sibling still runs to completion before the
    first exception (in input order) is re-raised.

    Args:
        items: Work items
        limit: Maximum number of concurrently executing workers (>= 1)
        worker: Coroutine function applied to each item

    Returns:
        List of worker results in input order
    """
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")

    semaphore = asyncio.Semaphore(limit)

    async def run_with_semaphore(item: T) -> R:
        async with semaphore:
            return await worker(item)

    results = await asyncio.gather(
        *(run_with_semaphore(item) for item in items), return_exceptions=True
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)
