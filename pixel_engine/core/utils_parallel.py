"""Parallel execution helpers for row-independent pixel work."""
from __future__ import annotations

import concurrent.futures
import logging
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Sequence, Tuple, TypeVar


LOGGER = logging.getLogger("pixel_engine.parallel")

T = TypeVar("T")
R = TypeVar("R")


def create_thread_pool(max_workers: Optional[int] = None) -> concurrent.futures.ThreadPoolExecutor:
    """Thread pool whose workers are named after the engine for log output."""

    return concurrent.futures.ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="pixel_engine")


def run_parallel(function: Callable[[T], R], items: Sequence[T], *, max_workers: Optional[int] = None) -> list[R]:
    """Run *function* for each element in *items* concurrently.

    Results come back in the order of *items*. The first worker failure is
    logged and re-raised so no partial result escapes.
    """

    if not items:
        return []
    with create_thread_pool(max_workers=max_workers) as executor:
        futures = [executor.submit(function, item) for item in items]
        results: list[R] = []
        for future in futures:
            try:
                results.append(future.result())
            except Exception:
                LOGGER.exception("Parallel worker failure")
                for pending in futures:
                    pending.cancel()
                raise
        return results


def row_bands(height: int, parts: int) -> List[Tuple[int, int]]:
    """Split ``range(height)`` into at most *parts* contiguous ``(start, stop)`` bands."""

    parts = max(1, min(int(parts), height))
    step, remainder = divmod(height, parts)
    bands: List[Tuple[int, int]] = []
    start = 0
    for index in range(parts):
        stop = start + step + (1 if index < remainder else 0)
        bands.append((start, stop))
        start = stop
    return bands


@contextmanager
def limited_threads(max_workers: Optional[int]) -> Iterator[None]:
    """Bracket a parallel section with DEBUG records of its worker budget."""

    LOGGER.debug("Parallel section started (max_workers=%s)", max_workers)
    try:
        yield
    finally:
        LOGGER.debug("Parallel section finished (max_workers=%s)", max_workers)


__all__ = ["create_thread_pool", "limited_threads", "row_bands", "run_parallel"]
