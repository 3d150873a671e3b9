"""
Public API for the CGR-CUSUM.

    cgr_cusum(entrytime, otime, censorid, cbaseh=...) → CGRSolution
    cgr_control_limit(entrytime, otime, censorid, unit, ...) → ControlLimitSolution
    runlength(chart, h) → float

Each function validates inputs, creates a CGRDesign, dispatches to the
selected backend, and wraps the Result in a Solution.
"""

from __future__ import annotations

from typing import Callable, Literal

import numpy as np

from pycusum.core.result import Result
from pycusum.core.compute.timing import Timer
from pycusum.core.exceptions import ValidationError
from pycusum.core.validation import (
    check_array,
    check_consistent_length,
    check_scalar,
)
from pycusum.cgr.design import CGRDesign
from pycusum.cgr._common import ControlLimitParams
from pycusum.cgr._control import search_control_limit
from pycusum.cgr.backends.matrix import MatrixBackend
from pycusum.cgr.backends.recursive import RecursiveBackend
from pycusum.cgr.solution import CGRSolution, ControlLimitSolution


EngineChoice = Literal["matrix", "recursive"]


def cgr_cusum(
    entrytime,
    otime,
    censorid,
    *,
    cbaseh: Callable,
    risk=None,
    ctimes=None,
    stoptime: float | None = None,
    maxtheta: float = np.log(6),
    h: float | None = None,
    direction: Literal["upper", "lower"] = "upper",
    engine: EngineChoice = "matrix",
    n_jobs: int = 1,
    prune_start_times: bool | None = None,
) -> CGRSolution:
    """Continuous time Generalized Rapid response CUSUM.

    Parameters
    ----------
    entrytime : array-like
        Entry time of each subject, sorted non-decreasingly.
    otime : array-like
        Observation time (failure or censoring) of each subject.
    censorid : array-like
        1 if the failure was observed, 0 if right censored.
    cbaseh : callable
        Cumulative baseline hazard, called with NumPy arrays of elapsed
        times. Wrap scalar-only functions with np.vectorize.
    risk : array-like or None
        Relative risk multiplier per subject (see calc_risk). None means
        no risk adjustment.
    ctimes : array-like or None
        Times at which to construct the chart. Default: all distinct
        observation times.
    stoptime : float or None
        Do not construct the chart after this time.
    maxtheta : float
        Bound on the absolute excess log-hazard estimate. Default log(6),
        i.e. at most a six-fold increase (or decrease) in hazard.
    h : float or None
        Control limit. When given, construction stops at the first time
        abs(value) >= abs(h).
    direction : str
        "upper" detects increases in failure rate, "lower" decreases.
    engine : str
        "matrix" (fast, O(n * m) memory) or "recursive" (O(n) memory).
    n_jobs : int
        Worker processes for the hazard matrix (matrix engine only);
        -1 for all cores.
    prune_start_times : bool or None
        Only search start times whose earliest exit precedes the
        construction time. Default: True for "upper", False for "lower".

    Returns
    -------
    CGRSolution
    """
    design = CGRDesign.for_chart(
        entrytime, otime, censorid,
        cbaseh=cbaseh,
        risk=risk,
        ctimes=ctimes,
        stoptime=stoptime,
        maxtheta=maxtheta,
        h=h,
        direction=direction,
        prune_start_times=prune_start_times,
    )

    backend = _get_backend(engine, n_jobs)
    result = backend.solve(design)

    return CGRSolution(_result=result)


def runlength(chart: CGRSolution, h: float) -> float:
    """Time at which chart first crosses control limit h (inf if never)."""
    return chart.runlength(check_scalar(h, "h"))


def cgr_control_limit(
    entrytime,
    otime,
    censorid,
    unit,
    *,
    time: float,
    cbaseh: Callable,
    alpha: float = 0.05,
    risk=None,
    maxtheta: float = np.log(6),
    direction: Literal["upper", "lower"] = "upper",
    h_precision: float = 0.01,
    engine: EngineChoice = "matrix",
    n_jobs: int = 1,
) -> ControlLimitSolution:
    """Control limit restricting the type I error over a time horizon.

    The subject data describe simulated in-control units (generation is
    left to the caller); ``unit`` labels the unit of each subject. One chart
    is constructed per unit up to ``time``, then the smallest limit on a
    grid of spacing ``h_precision`` is chosen for which at most a
    proportion ``alpha`` of units signal.

    Parameters
    ----------
    entrytime, otime, censorid : array-like
        Subject data of all units. Need not be sorted.
    unit : array-like
        Unit label of each subject.
    time : float
        Horizon over which the type I error is restricted (> 0).
    cbaseh : callable
        Cumulative baseline hazard.
    alpha : float
        Maximal type I error, in (0, 1).
    risk : array-like or None
        Relative risk multipliers.
    maxtheta, direction, engine, n_jobs
        As in cgr_cusum.
    h_precision : float
        Spacing of candidate control limits (> 0).

    Returns
    -------
    ControlLimitSolution
        h is negative for downward charts.
    """
    time = check_scalar(time, "time", lower=0.0)
    alpha = check_scalar(alpha, "alpha", lower=0.0, upper=1.0)
    h_precision = check_scalar(h_precision, "h_precision", lower=0.0)
    if direction not in ("upper", "lower"):
        raise ValidationError(
            f"direction must be 'upper' or 'lower', got {direction!r}"
        )

    entry_arr = check_array(entrytime, "entrytime").ravel()
    otime_arr = check_array(otime, "otime").ravel()
    event_arr = check_array(censorid, "censorid").ravel()
    unit_arr = np.asarray(unit).ravel()
    risk_arr = None if risk is None else check_array(risk, "risk").ravel()

    arrays = [entry_arr, otime_arr, event_arr, unit_arr]
    names = ("entrytime", "otime", "censorid", "unit")
    if risk_arr is not None:
        arrays.append(risk_arr)
        names += ("risk",)
    check_consistent_length(*arrays, names=names)

    labels = np.unique(unit_arr)
    if len(labels) == 0:
        raise ValidationError("unit: at least one in-control unit is required")

    backend = _get_backend(engine, n_jobs)

    timer = Timer()
    timer.start()

    charts = []
    with timer.section('charts'):
        for label in labels:
            idx = np.flatnonzero(unit_arr == label)
            idx = idx[np.argsort(entry_arr[idx], kind='stable')]
            design = CGRDesign.for_chart(
                entry_arr[idx], otime_arr[idx], event_arr[idx],
                cbaseh=cbaseh,
                risk=None if risk_arr is None else risk_arr[idx],
                stoptime=time,
                maxtheta=maxtheta,
                direction=direction,
            )
            chart = CGRSolution(_result=backend.solve(design))
            timer.absorb(chart.timing)
            charts.append(chart)

    upper = direction == "upper"
    with timer.section('control_limit'):
        extremes = np.array([
            np.max(c.value) if upper else np.min(c.value) for c in charts
        ])
        h, achieved = search_control_limit(extremes, alpha, h_precision, upper)

    timer.stop()

    notes = []
    for c in charts:
        notes.extend(w for w in c.warnings if w not in notes)

    params = ControlLimitParams(
        h=h,
        alpha=alpha,
        type_one_error=achieved,
        time=time,
        h_precision=h_precision,
        unit_labels=labels,
        extremes=extremes,
        charts=tuple(charts),
    )
    result = Result(
        params=params,
        info={
            "method": "CGR-CUSUM control limit",
            "direction": direction,
            "n_units": len(labels),
        },
        timing=timer.result(),
        backend_name=backend.name,
        warnings=tuple(notes),
    )
    return ControlLimitSolution(_result=result)


def _get_backend(choice: EngineChoice, n_jobs: int):
    """
    Instantiate the backend for an engine choice.

    Raises:
        ValidationError: If the engine is unknown
    """
    if choice == "matrix":
        return MatrixBackend(n_jobs=n_jobs)
    elif choice == "recursive":
        return RecursiveBackend()
    raise ValidationError(
        f"engine must be 'matrix' or 'recursive', got {choice!r}"
    )
