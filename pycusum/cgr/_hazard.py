"""
Hazard contribution matrix.

Entry (i, j) is the risk-adjusted cumulative baseline hazard subject i has
accrued by construction time ctimes[j]:

    Lambda_i(t) = risk_i * cbaseh(min(t, otime_i) - entrytime_i),  t >= entrytime_i
                = 0,                                               t <  entrytime_i

Rows are independent, so large designs are split over subjects and the
chunks computed on a joblib process pool.
"""

from __future__ import annotations

import warnings
from typing import Callable

import numpy as np
from numpy.typing import NDArray

from pycusum.core.compute.parallel import (
    chunk_bounds,
    dispatch_blocker,
    resolve_n_jobs,
    run_parallel,
)
from pycusum.core.exceptions import NumericalError


def hazard_rows(
    entrytime: NDArray,
    otime: NDArray,
    ctimes: NDArray,
    cbaseh: Callable,
) -> NDArray:
    """Cumulative baseline hazard of each subject at each construction time.

    Not yet risk-adjusted. ctimes must be sorted, so the construction times
    at or after a subject's entry form a suffix of ctimes.

    Parameters
    ----------
    entrytime, otime : NDArray
        (k,) subject entry and observation times.
    ctimes : NDArray
        (m,) sorted construction times.
    cbaseh : callable
        Cumulative baseline hazard, applied to arrays of elapsed times.

    Returns
    -------
    NDArray
        (k, m) float64.
    """
    rows = np.zeros((len(entrytime), len(ctimes)), dtype=np.float64)
    first = np.searchsorted(ctimes, entrytime, side="left")
    for i in range(len(entrytime)):
        j = first[i]
        if j == len(ctimes):
            continue
        elapsed = np.minimum(ctimes[j:], otime[i]) - entrytime[i]
        rows[i, j:] = np.broadcast_to(
            np.asarray(cbaseh(elapsed), dtype=np.float64), elapsed.shape
        )
    return rows


def hazard_matrix(
    entrytime: NDArray,
    otime: NDArray,
    risk: NDArray,
    ctimes: NDArray,
    cbaseh: Callable,
    n_jobs: int = 1,
) -> tuple[NDArray, list[str]]:
    """Build the (n, m) risk-adjusted hazard contribution matrix.

    Parameters
    ----------
    entrytime, otime, risk : NDArray
        (n,) subject data, sorted by entry time.
    ctimes : NDArray
        (m,) sorted construction times.
    cbaseh : callable
        Cumulative baseline hazard.
    n_jobs : int
        Number of worker processes; -1 for all cores.

    Returns
    -------
    (matrix, notes)
        notes lists non-fatal diagnostics (over-subscription, fallback to
        sequential computation). Each is also emitted as a warning.

    Raises
    ------
    NumericalError
        If cbaseh produced negative or non-finite contributions.
    """
    n_workers, notes = resolve_n_jobs(n_jobs)
    for note in notes:
        warnings.warn(note, UserWarning, stacklevel=2)

    n = len(entrytime)
    rows = None
    if n_workers > 1 and n > 1 and len(ctimes) > 0:
        blocker = dispatch_blocker(cbaseh)
        if blocker is None:
            chunks = chunk_bounds(n, n_workers)
            try:
                blocks = run_parallel(
                    hazard_rows,
                    [(entrytime[a:b], otime[a:b], ctimes, cbaseh) for a, b in chunks],
                    n_workers,
                )
                rows = np.vstack(blocks)
            except Exception as e:
                blocker = f"{type(e).__name__}: {e}"
        if rows is None:
            note = (
                f"Parallel computation of hazard contributions unavailable "
                f"({blocker}); continuing sequentially."
            )
            warnings.warn(note, RuntimeWarning, stacklevel=2)
            notes.append(note)

    if rows is None:
        rows = hazard_rows(entrytime, otime, ctimes, cbaseh)

    lam = rows * risk[:, None]
    check_contributions(lam)
    return lam, notes


def hazard_column(
    entrytime: NDArray,
    otime: NDArray,
    risk: NDArray,
    ctime: float,
    cbaseh: Callable,
) -> NDArray:
    """Risk-adjusted contributions at a single construction time.

    Only subjects that have entered by ctime are included, i.e. the first
    ``searchsorted(entrytime, ctime, side="right")`` subjects. Values equal
    the corresponding column of hazard_matrix.
    """
    upper = np.searchsorted(entrytime, ctime, side="right")
    elapsed = np.minimum(ctime, otime[:upper]) - entrytime[:upper]
    base = np.broadcast_to(
        np.asarray(cbaseh(elapsed), dtype=np.float64), elapsed.shape
    )
    column = base * risk[:upper]
    check_contributions(column)
    return column


def check_contributions(values: NDArray) -> None:
    """Raise NumericalError unless all hazard contributions are finite and >= 0."""
    bad = ~np.isfinite(values) | (values < 0)
    if np.any(bad):
        raise NumericalError(
            f"cbaseh produced {int(np.sum(bad))} negative or non-finite "
            f"hazard contributions; it must be non-negative and finite on "
            f"[0, max(otime - entrytime)]",
            quantity="hazard contribution",
            n_invalid=int(np.sum(bad)),
        )
