"""
Likelihood-ratio maximisation for the CGR-CUSUM.

For a construction time t and a candidate start time k, the subjects that
entered in [k, t] contribute

    A      = sum of their risk-adjusted cumulative hazards at t
    D      = their observed failures at or before t
    D_now  = their observed failures exactly at t

The excess log-hazard MLE is theta = log(D / A), clamped to [0, maxtheta]
for upward charts and [-maxtheta, 0] for downward charts, and the segment
statistic is theta * D - (exp(theta) - 1) * A (negated for downward charts).
The chart value at t is the extremum of the segment statistic over the
eligible start times. Both D and D - D_now are carried, giving the chart
value at and just before a failure at t.

References:
    Gomon, D., Putter, H., Nelissen, R. G. H. H., & van der Pas, S. (2022).
        CGR-CUSUM: A continuous time generalized rapid response cumulative
        sum chart. Biostatistics.
"""

from __future__ import annotations

from typing import Callable

import numpy as np
from numpy.typing import NDArray

from pycusum.cgr._common import NEUTRAL_ROW


def segment_statistic(
    A,
    D,
    D_now,
    maxtheta: float,
    upper: bool = True,
) -> tuple[NDArray, NDArray, NDArray, NDArray]:
    """Segment statistic and excess log-hazard MLE, with and without D_now.

    Vectorised over A, D and D_now.

    Parameters
    ----------
    A : array-like
        Cumulative intensity of the segment.
    D : array-like
        Observed failures at or before the construction time.
    D_now : array-like
        Observed failures exactly at the construction time.
    maxtheta : float
        Bound on abs(theta).
    upper : bool
        Upward (True) or downward (False) chart.

    Returns
    -------
    (value, value_excl, theta, theta_excl)
    """
    A = np.asarray(A, dtype=np.float64)
    D = np.asarray(D, dtype=np.float64)
    D_excl = D - np.asarray(D_now, dtype=np.float64)
    bound = abs(maxtheta)

    with np.errstate(divide="ignore", invalid="ignore"):
        theta = np.log(D / A)
        theta_excl = np.log(D_excl / A)

    # log(0 / A), log(D / 0) and log(0 / 0) all mean "no estimate"
    theta = np.where(np.isfinite(theta), theta, 0.0)
    theta_excl = np.where(np.isfinite(theta_excl), theta_excl, 0.0)

    if upper:
        theta = np.clip(theta, 0.0, bound)
        theta_excl = np.clip(theta_excl, 0.0, bound)
        value = theta * D - np.expm1(theta) * A
        value_excl = theta_excl * D_excl - np.expm1(theta_excl) * A
    else:
        theta = np.clip(theta, -bound, 0.0)
        theta_excl = np.clip(theta_excl, -bound, 0.0)
        value = -theta * D + np.expm1(theta) * A
        value_excl = -theta_excl * D_excl + np.expm1(theta_excl) * A

    return value, value_excl, theta, theta_excl


def maxoverk(
    start: float,
    ctime: float,
    column: NDArray,
    entrytime: NDArray,
    otime: NDArray,
    censorid: NDArray,
    maxtheta: float,
    upper: bool = True,
) -> tuple[float, float, float, float]:
    """Segment statistic for one (start time, construction time) pair.

    Parameters
    ----------
    start : float
        Candidate start time k.
    ctime : float
        Construction time t.
    column : NDArray
        Risk-adjusted cumulative hazards at ctime, aligned with entrytime
        (at least the subjects with entrytime <= ctime).
    entrytime, otime, censorid : NDArray
        Subject data, sorted by entrytime.
    maxtheta : float
        Bound on abs(theta).
    upper : bool
        Upward (True) or downward (False) chart.

    Returns
    -------
    (value, value_excl, theta, theta_excl) as floats.
    """
    lower = np.searchsorted(entrytime, start, side="left")
    upper_idx = np.searchsorted(entrytime, ctime, side="right")
    sub = slice(lower, upper_idx)

    A = np.sum(column[sub])
    failed = censorid[sub]
    D = np.sum(failed & (otime[sub] <= ctime))
    D_now = np.sum(failed & (otime[sub] == ctime))

    value, value_excl, theta, theta_excl = segment_statistic(
        A, D, D_now, maxtheta, upper
    )
    return float(value), float(value_excl), float(theta), float(theta_excl)


def start_candidates(
    entrytime: NDArray,
    otime: NDArray,
) -> tuple[NDArray, NDArray]:
    """Candidate start times and their earliest exit times.

    The chart statistic only changes when a subject enters, so the distinct
    entry times are the only start times worth searching. The earliest exit
    of a start time is the smallest otime among subjects entering then; when
    that exit is instantaneous it is also assigned to the preceding start
    time, so that segment stays eligible at the instant failure.

    Returns
    -------
    (stimes, first_exit), both (s,) and sorted by stimes.
    """
    stimes, first_idx = np.unique(entrytime, return_index=True)
    first_exit = np.minimum.reduceat(otime, first_idx) if len(otime) else otime[:0]
    first_exit = first_exit.astype(np.float64)

    instant = np.flatnonzero(first_exit[1:] == stimes[1:]) + 1
    first_exit[instant - 1] = first_exit[instant]
    return stimes, first_exit


def eligible_starts(
    stimes: NDArray,
    first_exit: NDArray,
    ctime: float,
    prune: bool,
) -> NDArray:
    """Boolean mask over stimes of start times searched at ctime."""
    mask = stimes <= ctime
    if prune:
        mask &= first_exit <= ctime
    return mask


def reduce_over_starts(
    value: NDArray,
    value_excl: NDArray,
    theta: NDArray,
    theta_excl: NDArray,
    starts: NDArray,
    upper: bool = True,
) -> tuple[float, ...]:
    """Extremum over start times, separately for both formulations.

    Upward charts take the maximum and downward charts the minimum; ties go
    to the earliest start time. With no start times the neutral row is
    returned: value 0, theta 0 and no breakpoint (NaN).

    Returns
    -------
    (value, value_excl, theta, theta_excl, start, start_excl)
    """
    if len(starts) == 0:
        return NEUTRAL_ROW
    pick = np.argmax if upper else np.argmin
    i = int(pick(value))
    k = int(pick(value_excl))
    return (
        float(value[i]), float(value_excl[k]),
        float(theta[i]), float(theta_excl[k]),
        float(starts[i]), float(starts[k]),
    )


def scan_construction_times(
    evaluate: Callable[[int], tuple[float, ...]],
    n_ctimes: int,
    h: float | None = None,
) -> tuple[NDArray, int | None]:
    """Evaluate construction times in order, stopping at the first signal.

    Parameters
    ----------
    evaluate : callable
        Maps a construction time index to its six-number row.
    n_ctimes : int
        Number of construction times.
    h : float or None
        Control limit. The first index at which either value (with or
        without the failures at that time) reaches abs(h) in absolute value
        is the stop index; later construction times are not evaluated and
        keep the neutral row.

    Returns
    -------
    (rows, stop_index)
        rows is (n_ctimes, 6); stop_index is None if no signal occurred or
        no control limit was given.
    """
    rows = np.tile(np.asarray(NEUTRAL_ROW, dtype=np.float64), (n_ctimes, 1))
    for j in range(n_ctimes):
        rows[j] = evaluate(j)
        if h is not None and np.max(np.abs(rows[j, :2])) >= abs(h):
            return rows, j
    return rows, None
