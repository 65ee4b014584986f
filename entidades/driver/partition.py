"""Split the listing pages across workers."""

from __future__ import annotations

import math

from entidades.data_types import WorkRange


def partition_pages(total_pages: int, num_workers: int) -> list[WorkRange]:
    """Divide pages 1..total_pages into one contiguous range per worker.

    Every worker gets ceil(total_pages / num_workers) pages, except the
    tail: the last non-empty range is clipped to total_pages and any workers
    after it get empty ranges (start_page > end_page). Together the ranges
    cover 1..total_pages exactly once.

    Args:
        total_pages: Number of listing pages, at least 1.
        num_workers: Number of workers, at least 1.

    Returns:
        One WorkRange per worker, ordered by worker id (1-based).

    Example::

        >>> [str(r) for r in partition_pages(2, 4)]
        ['[1, 1]', '[2, 2]', '[3, 2]', '[4, 2]']
    """
    if total_pages < 1:
        raise ValueError(f"total_pages must be at least 1, got {total_pages}")
    if num_workers < 1:
        raise ValueError(f"num_workers must be at least 1, got {num_workers}")

    pages_per_worker = math.ceil(total_pages / num_workers)
    return [
        WorkRange(
            worker_id=index + 1,
            start_page=index * pages_per_worker + 1,
            end_page=min((index + 1) * pages_per_worker, total_pages),
        )
        for index in range(num_workers)
    ]
