"""ConcurrencyLimiter — a fixed-size async worker pool."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

T = TypeVar("T")
R = TypeVar("R")


class ConcurrencyLimiter(Generic[T, R]):
    """Runs an async operation over many items, at most ``max_concurrency`` at a time.

    On the first failing item no further items are started. Operations
    already in flight run to completion and still report through
    ``on_result``; the first error is then raised to the caller.

    :param max_concurrency: Upper bound on simultaneous operations (>= 1).
    """

    def __init__(self, max_concurrency: int) -> None:
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self.max_concurrency = max_concurrency
        self.in_flight = 0
        self.peak_in_flight = 0

    async def run(
        self,
        items: Sequence[T],
        operation: Callable[[T], Awaitable[R]],
        on_result: Callable[[T, R], None] | None = None,
    ) -> list[R]:
        """Apply ``operation`` to every item.

        :param items: Inputs, each processed exactly once.
        :param operation: Coroutine function applied per item.
        :param on_result: Called on the event loop once per completed item.
        :returns: Results in input order.
        :raises Exception: The first error raised by ``operation``.
        """
        results: list[R | None] = [None] * len(items)
        pending = iter(enumerate(items))
        errors: list[Exception] = []

        async def worker() -> None:
            for index, item in pending:
                if errors:
                    return
                self.in_flight += 1
                self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
                try:
                    result = await operation(item)
                except Exception as exc:
                    errors.append(exc)
                    return
                finally:
                    self.in_flight -= 1
                results[index] = result
                if on_result is not None:
                    on_result(item, result)

        workers = min(self.max_concurrency, len(items))
        await asyncio.gather(*(worker() for _ in range(workers)))
        if errors:
            raise errors[0]
        return results  # type: ignore[return-value]
