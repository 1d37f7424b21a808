"""Order-preserving, bounded-concurrency map over a thread pool.

Used to fan out per-row categorization in an import batch. The mapper runs
in worker threads, so it must only touch thread-safe state (a prebuilt
:class:`statement_import.categorization.Categorizer` qualifies).

- ``concurrency`` caps how many mapper calls are in flight at once.
- Results come back in input order.
- ``stop_on_error=True`` re-raises the first failure and cancels queued work;
  ``stop_on_error=False`` runs everything and raises an ``ExceptionGroup``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from itertools import islice
from typing import TypeVar

from .logging_setup import get_logger

_logger = get_logger("statement_import.pmap")

InT = TypeVar("InT")
OutT = TypeVar("OutT")


def p_map(
    iterable: Iterable[InT],
    mapper: Callable[[InT], OutT],
    *,
    concurrency: int,
    stop_on_error: bool = True,
) -> list[OutT]:
    """Map ``iterable`` through ``mapper`` with at most ``concurrency`` calls in flight."""

    if not isinstance(concurrency, int) or concurrency < 1:
        raise ValueError("concurrency must be a positive integer")

    pending = enumerate(iterable)
    results: dict[int, OutT] = {}
    failures: list[Exception] = []
    total = 0

    with ThreadPoolExecutor(max_workers=concurrency) as pool:
        in_flight: dict[Future[OutT], int] = {}

        def _fill(slots: int) -> None:
            nonlocal total
            for idx, item in islice(pending, slots):
                in_flight[pool.submit(mapper, item)] = idx
                total += 1

        _fill(concurrency)
        while in_flight:
            done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
            for fut in done:
                idx = in_flight.pop(fut)
                exc = fut.exception()
                if exc is None:
                    results[idx] = fut.result()
                    continue
                if stop_on_error:
                    _logger.debug("p_map: item %d failed; cancelling queued work", idx)
                    pool.shutdown(wait=False, cancel_futures=True)
                    raise exc
                failures.append(exc)  # type: ignore[arg-type]
            _fill(len(done))

    if failures:
        raise ExceptionGroup(f"p_map: {len(failures)} of {total} calls failed", failures)
    return [results[i] for i in range(total)]


__all__ = ["p_map"]
