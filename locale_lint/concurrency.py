import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from tqdm import tqdm

logger = logging.getLogger(__name__)

T = TypeVar('T')


class CancellationToken:
    """Cooperative cancellation flag checked by bulk operations between items."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass
class PoolOutcome:
    processed: int
    cancelled: bool


async def map_limit(
        items: Sequence[T],
        limit: int,
        fn: Callable[[T], Awaitable[None]],
        cancel_token: Optional[CancellationToken] = None,
        progress: Optional[tqdm] = None,
) -> PoolOutcome:
    """
    Run ``fn`` over ``items`` with at most ``limit`` coroutines in flight.

    A fixed set of workers pulls the next index from a shared counter until
    the items are exhausted. An exception raised for one item is logged and
    the worker moves on. When the token is cancelled, workers stop before
    taking their next item and the outcome reports how many items finished.

    Args:
        items: The work items.
        limit: Maximum number of concurrent workers (at least one is used).
        fn: Coroutine function applied to each item.
        cancel_token: Optional cancellation signal.
        progress: Optional tqdm bar advanced once per finished item.

    Returns:
        PoolOutcome: Number of processed items and whether the run was cancelled.
    """
    if not items:
        return PoolOutcome(processed=0, cancelled=bool(cancel_token and cancel_token.cancelled))

    next_index = 0
    processed = 0

    async def worker() -> None:
        nonlocal next_index, processed
        while True:
            if cancel_token is not None and cancel_token.cancelled:
                return
            current = next_index
            next_index += 1
            if current >= len(items):
                return
            item = items[current]
            try:
                await fn(item)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.error("Worker failed on %s: %s", item, exc, exc_info=logger.isEnabledFor(logging.DEBUG))
            processed += 1
            if progress is not None:
                progress.update(1)

    worker_count = max(1, min(limit, len(items)))
    await asyncio.gather(*(worker() for _ in range(worker_count)))
    cancelled = bool(cancel_token and cancel_token.cancelled and processed < len(items))
    return PoolOutcome(processed=processed, cancelled=cancelled)
