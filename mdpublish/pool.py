"""Bounded worker pool for independent per-file jobs."""

from __future__ import annotations

from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, List, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def run_jobs(func: Callable[[T], R], items: Sequence[T], jobs: int) -> List[R]:
    """Apply ``func`` to every item and return the results in input order.

    With ``jobs <= 1`` items run one after another in the calling thread.
    Otherwise at most ``jobs`` threads run them; the first failure cancels
    everything not yet started and is re-raised once running jobs finish.
    """
    if jobs <= 1 or len(items) <= 1:
        return [func(item) for item in items]

    with ThreadPoolExecutor(max_workers=min(jobs, len(items))) as executor:
        futures = [executor.submit(func, item) for item in items]
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        for future in pending:
            future.cancel()
        for future in futures:
            if future in done and future.exception() is not None:
                raise future.exception()
        return [future.result() for future in futures]
