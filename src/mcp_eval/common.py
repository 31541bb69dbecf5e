"""Shared utilities: order-preserving parallel map with a progress bar."""

from __future__ import annotations

from multiprocessing.pool import ThreadPool
from typing import Any, Callable, Sequence

from tqdm import tqdm


def map_with_progress(
    f: Callable,
    xs: Sequence[Any],
    num_threads: int = 1,
    pbar: bool = True,
    desc: str = "",
) -> list[Any]:
    """Apply *f* to each element of *xs*, keeping input order.

    With ``num_threads <= 1`` items run one after another in the calling
    thread; otherwise a ThreadPool's ``imap`` is used.
    """
    pbar_fn = tqdm if pbar else lambda x, *a, **kw: x

    if num_threads <= 1 or len(xs) <= 1:
        return [f(x) for x in pbar_fn(xs, total=len(xs), desc=desc)]

    with ThreadPool(min(num_threads, len(xs))) as pool:
        return list(pbar_fn(pool.imap(f, xs), total=len(xs), desc=desc))
