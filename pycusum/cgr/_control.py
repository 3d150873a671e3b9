"""
Control limits from in-control charts.

Given one chart per simulated in-control unit, the control limit is the
smallest value on a grid of spacing h_precision for which at most a
proportion alpha of the units signal. Searching from the largest absolute
chart value downwards, the grid is abandoned at the first limit whose
type I error exceeds alpha.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


def runlength_of(time: NDArray, value: NDArray, h: float) -> float:
    """First time the trace reaches h (from above if h < 0); inf if never."""
    crossed = value >= h if h >= 0 else value <= h
    hits = np.flatnonzero(crossed)
    return float(time[hits[0]]) if len(hits) else np.inf


def search_control_limit(
    extremes: NDArray,
    alpha: float,
    h_precision: float,
    upper: bool,
) -> tuple[float, float]:
    """Grid search for the control limit.

    Parameters
    ----------
    extremes : NDArray
        (n_units,) per unit maximum (upper) or minimum (lower) chart value.
        A unit signals at limit h exactly when its extreme reaches h.
    alpha : float
        Maximal proportion of signalling units.
    h_precision : float
        Grid spacing.
    upper : bool
        Chart direction; lower charts get a negative limit.

    Returns
    -------
    (h, type_one_error)
    """
    magnitude = np.abs(extremes)
    max_val = float(np.max(magnitude)) if len(magnitude) else 0.0

    # h_precision, 2 * h_precision, ..., up to max_val + h_precision
    n_grid = int(np.floor(max_val / h_precision + 1e-10)) + 1
    grid = h_precision * np.arange(n_grid, 0, -1)

    def type_one_error(h: float) -> float:
        return float(np.mean(magnitude >= h)) if len(magnitude) else 0.0

    control_h = max_val
    for h in grid:
        if type_one_error(h) <= alpha:
            control_h = float(h)
        else:
            break

    achieved = type_one_error(control_h)
    return (control_h if upper else -control_h), achieved
