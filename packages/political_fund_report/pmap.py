"""Ordered, bounded-concurrency map over a thread pool.

Used by the assembler to fan the section aggregations out. Aggregators are
pure functions over independent transaction slices, so running them on
worker threads needs no locking; the pool only caps how many run at once.

Behaviour
---------
- Results come back in input order regardless of completion order.
- ``concurrency=1`` runs every call inline on the caller's thread.
- ``stop_on_error=True`` (default) re-raises the first failure and cancels
  work that has not started yet. With ``False`` every call runs to
  completion and failures are raised together as an ``ExceptionGroup``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import TypeVar

InT = TypeVar("InT")
OutT = TypeVar("OutT")


def _map_inline(
    items: list[InT], mapper: Callable[[InT], OutT], stop_on_error: bool
) -> list[OutT]:
    out: list[OutT] = []
    errors: list[Exception] = []
    for item in items:
        try:
            out.append(mapper(item))
        except Exception as e:
            if stop_on_error:
                raise
            errors.append(e)
    if errors:
        raise ExceptionGroup("p_map: one or more mapper calls failed", errors)
    return out


def p_map(
    iterable: Iterable[InT],
    mapper: Callable[[InT], OutT],
    *,
    concurrency: int,
    stop_on_error: bool = True,
) -> list[OutT]:
    """Map ``iterable`` through ``mapper`` running at most ``concurrency`` calls at once."""

    if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
        raise ValueError("concurrency must be a positive integer")

    items = list(iterable)
    if concurrency == 1 or len(items) <= 1:
        return _map_inline(items, mapper, stop_on_error)

    results: dict[int, OutT] = {}
    errors: list[Exception] = []
    pending = iter(enumerate(items))
    future_to_idx: dict[Future[OutT], int] = {}

    def _submit(pool: ThreadPoolExecutor) -> bool:
        try:
            idx, item = next(pending)
        except StopIteration:
            return False
        future_to_idx[pool.submit(mapper, item)] = idx
        return True

    with ThreadPoolExecutor(max_workers=min(concurrency, len(items))) as pool:
        for _ in range(concurrency):
            if not _submit(pool):
                break

        while future_to_idx:
            done, _ = wait(list(future_to_idx), return_when=FIRST_COMPLETED)
            for fut in done:
                idx = future_to_idx.pop(fut)
                try:
                    results[idx] = fut.result()
                except Exception as e:
                    if stop_on_error:
                        pool.shutdown(wait=False, cancel_futures=True)
                        raise
                    errors.append(e)
                _submit(pool)

    if errors:
        raise ExceptionGroup("p_map: one or more mapper calls failed", errors)
    return [results[i] for i in range(len(items))]


__all__ = ["p_map"]
