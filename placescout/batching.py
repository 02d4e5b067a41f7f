"""Sequential batches of concurrent requests with per-item failure isolation."""
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterator, List, Optional, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    if size <= 0:
        raise ValueError("Batch size must be > 0")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


def run_batches(
    items: Sequence[T],
    worker: Callable[[T], R],
    batch_size: int,
    on_batch_done: Optional[Callable[[int, int], None]] = None,
    should_continue: Optional[Callable[[], bool]] = None,
    pause_seconds: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> List[R]:
    """Run ``worker`` over ``items`` one batch at a time.

    Requests within a batch run concurrently and the whole batch is awaited
    before the next one starts, so at most ``batch_size`` calls are in flight.
    An item whose worker raises is logged and left out of the result; the
    remaining results keep input order.

    ``on_batch_done(done, total)`` is called after every batch.
    ``should_continue`` is checked between batches; returning False stops early.
    """
    results: List[R] = []
    total = len(items)
    done = 0
    batches = list(chunked(items, batch_size))
    for index, batch in enumerate(batches):
        if should_continue is not None and not should_continue():
            logger.info("Batch run stopped early after %s/%s items", done, total)
            break
        with ThreadPoolExecutor(max_workers=len(batch)) as pool:
            futures = [pool.submit(worker, item) for item in batch]
            for item, future in zip(batch, futures):
                try:
                    results.append(future.result())
                except Exception as exc:
                    logger.warning("Dropping %r: %s", item, exc)
        done += len(batch)
        if on_batch_done is not None:
            on_batch_done(done, total)
        if pause_seconds > 0 and index < len(batches) - 1:
            sleep(pause_seconds)
    return results
