"""
Parameter payloads for CGR-CUSUM results.

Each dataclass is a frozen payload carried inside a Result[P] envelope.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray


# (value, value_excl, theta, theta_excl, start, start_excl) for a construction
# time with no eligible start time, or one skipped after early stopping.
NEUTRAL_ROW = (0.0, 0.0, 0.0, 0.0, np.nan, np.nan)


@dataclass(frozen=True)
class CGRParams:
    """CGR-CUSUM chart parameters.

    The per-construction-time arrays keep both formulations (including and
    excluding failures at the construction time itself); the trace arrays are
    the unfolded step function with one or two points per construction time.
    """

    ctimes: NDArray              # (m,) construction times
    value: NDArray               # (m,) chart value, failures at ctime included
    value_excl: NDArray          # (m,) chart value, failures at ctime excluded
    theta: NDArray               # (m,) MLE of excess log-hazard (included)
    theta_excl: NDArray          # (m,) MLE of excess log-hazard (excluded)
    start: NDArray               # (m,) maximising start time (included)
    start_excl: NDArray          # (m,) maximising start time (excluded)
    trace_time: NDArray          # (k,) time of each chart point
    trace_value: NDArray         # (k,) chart value
    trace_exp_theta: NDArray     # (k,) exp(theta), estimated hazard multiplier
    trace_start: NDArray         # (k,) start time of the maximising segment
    stop_index: int | None       # first ctime index with |value| >= |h|
    maxtheta: float
    direction: str               # "upper" or "lower"
    n_subjects: int
    n_events: int


@dataclass(frozen=True)
class ControlLimitParams:
    """Control limit calibrated on in-control units."""

    h: float                     # control limit (negative for lower charts)
    alpha: float                 # requested maximal type I error
    type_one_error: float        # achieved proportion of signalling units at h
    time: float                  # monitoring horizon
    h_precision: float           # grid spacing of candidate limits
    unit_labels: NDArray         # (n_units,) unit label per chart
    extremes: NDArray            # (n_units,) most extreme chart value per unit
    charts: tuple[Any, ...]      # one CGRSolution per unit


def chart_params(design, rows: NDArray, trace, stop_index: int | None) -> CGRParams:
    """Package per-construction-time rows and the unfolded trace."""
    time, value, exp_theta, start = trace
    return CGRParams(
        ctimes=design.ctimes,
        value=rows[:, 0],
        value_excl=rows[:, 1],
        theta=rows[:, 2],
        theta_excl=rows[:, 3],
        start=rows[:, 4],
        start_excl=rows[:, 5],
        trace_time=time,
        trace_value=value,
        trace_exp_theta=exp_theta,
        trace_start=start,
        stop_index=stop_index,
        maxtheta=design.maxtheta,
        direction=design.direction,
        n_subjects=design.n,
        n_events=design.n_events,
    )
