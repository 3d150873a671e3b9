"""
CGRDesign: immutable container for one unit's monitoring data.

Wraps entry times, observation times, censoring indicators, risk
multipliers, the cumulative baseline hazard and the construction times at
which the chart is evaluated. Validates inputs at construction time; all
downstream code trusts clean data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal

import numpy as np
from numpy.typing import NDArray

from pycusum.core.exceptions import ValidationError
from pycusum.core.validation import (
    check_1d,
    check_array,
    check_binary,
    check_consistent_length,
    check_finite,
    check_nonnegative,
    check_scalar,
    check_sorted,
)


@dataclass(frozen=True)
class CGRDesign:
    """Immutable CGR-CUSUM input container.

    Parameters
    ----------
    entrytime : NDArray
        (n,) entry times, sorted non-decreasingly.
    otime : NDArray
        (n,) observation (event or censoring) times, ``otime >= entrytime``.
    censorid : NDArray
        (n,) bool, True when the failure was observed.
    risk : NDArray
        (n,) non-negative relative risk multipliers.
    ctimes : NDArray
        (m,) sorted distinct construction times, none before the first entry.
    cbaseh : callable
        Cumulative baseline hazard, evaluated on arrays of elapsed times.
    maxtheta : float
        Positive bound on the absolute excess log-hazard estimate.
    upper : bool
        True for an upward (increase detecting) chart.
    h : float or None
        Control limit for early stopping, or None.
    prune_start_times : bool
        Restrict start times to those whose earliest exit precedes the
        construction time.
    """

    entrytime: NDArray
    otime: NDArray
    censorid: NDArray
    risk: NDArray
    ctimes: NDArray
    cbaseh: Callable
    maxtheta: float
    upper: bool
    h: float | None
    prune_start_times: bool

    @classmethod
    def for_chart(
        cls,
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
        prune_start_times: bool | None = None,
    ) -> CGRDesign:
        """Create and validate chart inputs.

        Parameters
        ----------
        entrytime, otime, censorid : array-like
            Subject data, one element per subject, sorted by entry time.
        cbaseh : callable
            Cumulative baseline hazard function.
        risk : array-like or None
            Relative risk multipliers. None means all subjects at baseline.
        ctimes : array-like or None
            Construction times. None uses the distinct observation times.
        stoptime : float or None
            Discard construction times after this time.
        maxtheta : float
            Bound on the absolute excess log-hazard estimate.
        h : float or None
            Control limit for early stopping.
        direction : str
            "upper" or "lower".
        prune_start_times : bool or None
            None selects the direction default (True for "upper",
            False for "lower").

        Returns
        -------
        CGRDesign

        Raises
        ------
        ValidationError
            If inputs are invalid.
        """
        if direction not in ("upper", "lower"):
            raise ValidationError(
                f"direction must be 'upper' or 'lower', got {direction!r}"
            )
        upper = direction == "upper"

        if not callable(cbaseh):
            raise ValidationError(
                f"cbaseh must be callable, got {type(cbaseh).__name__}"
            )

        entrytime = check_array(entrytime, "entrytime").astype(np.float64).ravel()
        otime = check_array(otime, "otime").astype(np.float64).ravel()
        event = check_array(censorid, "censorid").ravel()

        check_consistent_length(
            entrytime, otime, event, names=("entrytime", "otime", "censorid")
        )
        check_finite(entrytime, "entrytime")
        check_finite(otime, "otime")
        check_sorted(entrytime, "entrytime")
        check_binary(event, "censorid")

        early = np.flatnonzero(otime < entrytime)
        if len(early) > 0:
            i = int(early[0])
            raise ValidationError(
                f"otime must not precede entrytime: {len(early)} subjects do, "
                f"first at index {i} (entrytime={entrytime[i]}, otime={otime[i]})"
            )

        n = len(entrytime)
        if risk is None:
            risk_arr = np.ones(n, dtype=np.float64)
        else:
            risk_arr = check_array(risk, "risk").astype(np.float64)
            check_1d(risk_arr, "risk")
            check_consistent_length(entrytime, risk_arr, names=("entrytime", "risk"))
            check_finite(risk_arr, "risk")
            check_nonnegative(risk_arr, "risk")

        maxtheta = abs(check_scalar(maxtheta, "maxtheta"))
        if maxtheta == 0:
            raise ValidationError("maxtheta must be non-zero, got 0")

        if h is not None:
            h = check_scalar(h, "h")

        if stoptime is not None:
            stoptime = check_scalar(stoptime, "stoptime")

        if ctimes is None:
            ct = np.unique(otime)
        else:
            ct = check_array(ctimes, "ctimes").astype(np.float64).ravel()
            check_finite(ct, "ctimes")
            ct = np.unique(ct)

        if n == 0:
            ct = ct[:0]
        else:
            ct = ct[ct >= entrytime[0]]
        if stoptime is not None:
            ct = ct[ct <= stoptime]

        if prune_start_times is None:
            prune_start_times = upper

        return cls(
            entrytime=entrytime,
            otime=otime,
            censorid=event.astype(bool),
            risk=risk_arr,
            ctimes=ct,
            cbaseh=cbaseh,
            maxtheta=maxtheta,
            upper=upper,
            h=h,
            prune_start_times=bool(prune_start_times),
        )

    @property
    def n(self) -> int:
        """Number of subjects."""
        return len(self.entrytime)

    @property
    def m(self) -> int:
        """Number of construction times."""
        return len(self.ctimes)

    @property
    def n_events(self) -> int:
        """Number of observed failures."""
        return int(np.sum(self.censorid))

    @property
    def direction(self) -> str:
        return "upper" if self.upper else "lower"

    @property
    def origin_time(self) -> float:
        """Time of the synthetic first chart point."""
        if self.n == 0:
            return 0.0
        if self.m == 0:
            return float(self.entrytime[0])
        return float(min(self.ctimes[0], self.entrytime[0]))
