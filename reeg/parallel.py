"""
Per-channel worker pool.

Filtering and resampling touch each channel independently, so they map a row
function over the matrix on a thread pool (numpy/scipy kernels release the
GIL). Results land in the slot of their channel index: output never depends
on completion order.
"""

from __future__ import annotations

import concurrent.futures
import logging
from typing import Callable, List, Optional

import numpy as np

from .errors import ConfigurationError, ShapeError

logger = logging.getLogger(__name__)


def map_channels(
    func: Callable[[np.ndarray], np.ndarray],
    data: np.ndarray,
    n_jobs: Optional[int] = None,
) -> np.ndarray:
    """
    Apply func to every row of data and stack the results in channel order.

    n_jobs=1 runs in the calling thread; None lets the executor pick its
    default worker count. If any channel fails the exception propagates once
    the pool has shut down, and no partial matrix is returned.

    >>> out = map_channels(lambda row: row * 2.0, np.ones((4, 10)))
    >>> out.shape
    (4, 10)
    """
    n_channels = data.shape[0]
    if n_channels == 0:
        return np.zeros((0, 0))

    if n_jobs is not None and n_jobs < 1:
        raise ConfigurationError(f"n_jobs must be >= 1 or None, got {n_jobs}")

    rows: List[Optional[np.ndarray]] = [None] * n_channels

    if n_jobs == 1 or n_channels == 1:
        for idx in range(n_channels):
            rows[idx] = func(data[idx])
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=n_jobs) as executor:
            futures = {executor.submit(func, data[idx]): idx for idx in range(n_channels)}
            for future in concurrent.futures.as_completed(futures):
                rows[futures[future]] = future.result()

    lengths = sorted({len(r) for r in rows})
    if len(lengths) > 1:
        raise ShapeError(f"channel outputs differ in length: {lengths}")
    logger.debug(f"Mapped {n_channels} channels (n_jobs={n_jobs})")
    return np.vstack(rows)
