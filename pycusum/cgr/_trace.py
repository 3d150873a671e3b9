"""
Unfold per-construction-time chart rows into a step-function trace.

A failure at construction time t makes the chart jump at t. Where the chart
values with and without the failures at t differ, the trace holds two points
at t: the value just before the jump followed by the value after it.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


def assemble_trace(
    ctimes: NDArray,
    rows: NDArray,
    stop_index: int | None,
    origin_time: float,
) -> tuple[NDArray, NDArray, NDArray, NDArray]:
    """Build the chart trace.

    Parameters
    ----------
    ctimes : NDArray
        (m,) construction times.
    rows : NDArray
        (m, 6) rows of (value, value_excl, theta, theta_excl, start,
        start_excl).
    stop_index : int or None
        Rows after this index are left out.
    origin_time : float
        Time of the leading (time, 0, 1, 0) point.

    Returns
    -------
    (time, value, exp_theta, start)
    """
    n_rows = len(ctimes) if stop_index is None else stop_index + 1
    t = ctimes[:n_rows]
    value, value_excl, theta, theta_excl, start, start_excl = rows[:n_rows].T

    jump = value != value_excl
    # index of the post-jump point of each row, after the origin point
    post = np.cumsum(1 + jump)
    pre = post[jump] - 1
    size = int(post[-1]) + 1 if n_rows else 1

    time = np.empty(size, dtype=np.float64)
    out_value = np.empty(size, dtype=np.float64)
    exp_theta = np.empty(size, dtype=np.float64)
    out_start = np.empty(size, dtype=np.float64)

    time[0], out_value[0], exp_theta[0], out_start[0] = origin_time, 0.0, 1.0, 0.0

    time[post] = t
    out_value[post] = value
    exp_theta[post] = np.exp(theta)
    out_start[post] = start

    time[pre] = t[jump]
    out_value[pre] = value_excl[jump]
    exp_theta[pre] = np.exp(theta_excl[jump])
    out_start[pre] = start_excl[jump]

    return time, out_value, exp_theta, out_start
