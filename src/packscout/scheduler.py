"""Concurrency-bounded fan-out."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

T = TypeVar("T")

DEFAULT_CONCURRENCY = 5


async def gather_bounded(
    factories: Sequence[Callable[[], Awaitable[T]]],
    limit: int = DEFAULT_CONCURRENCY,
) -> list[T]:
    """Run every factory with at most ``limit`` in flight and join on all of them.

    Results are returned in input order regardless of completion order. The
    first exception propagates once all started work has settled.
    """
    if limit < 1:
        raise ValueError("limit must be >= 1")
    semaphore = asyncio.Semaphore(limit)

    async def run(factory: Callable[[], Awaitable[T]]) -> T:
        async with semaphore:
            return await factory()

    results = await asyncio.gather(*(run(f) for f in factories), return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results  # type: ignore[return-value]
