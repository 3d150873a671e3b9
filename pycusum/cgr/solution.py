"""
Solution wrappers for CGR-CUSUM results.

Each Solution wraps a Result[Params] and exposes user-friendly properties.
"""

from __future__ import annotations

import numpy as np

from pycusum.core.result import Result
from pycusum.cgr._common import CGRParams, ControlLimitParams
from pycusum.cgr._control import runlength_of


class CGRSolution:
    """CGR-CUSUM chart.

    The chart is the step function through (time, value); exp_theta_t and
    S_nu give the estimated hazard multiplier and the start time of the
    maximising segment at each point.
    """

    __slots__ = ('_result',)

    def __init__(self, _result: Result[CGRParams]) -> None:
        self._result = _result

    # -- Trace --

    @property
    def time(self):
        """Time of each chart point (non-decreasing)."""
        return self._result.params.trace_time

    @property
    def value(self):
        """Chart value at each point."""
        return self._result.params.trace_value

    @property
    def exp_theta_t(self):
        """Estimated relative hazard multiplier exp(theta) at each point."""
        return self._result.params.trace_exp_theta

    @property
    def S_nu(self):
        """Start time of the maximising segment at each point."""
        return self._result.params.trace_start

    # -- Per construction time --

    @property
    def ctimes(self):
        return self._result.params.ctimes

    @property
    def ctime_values(self):
        """Chart value at each construction time, failures at that time included."""
        return self._result.params.value

    @property
    def ctime_values_excl(self):
        """Chart value just before each construction time."""
        return self._result.params.value_excl

    @property
    def theta(self):
        return self._result.params.theta

    @property
    def theta_excl(self):
        return self._result.params.theta_excl

    @property
    def start(self):
        return self._result.params.start

    @property
    def start_excl(self):
        return self._result.params.start_excl

    # -- Metadata --

    @property
    def stop_index(self) -> int | None:
        """Index into ctimes of the first signal (None if not stopped)."""
        return self._result.params.stop_index

    @property
    def stopped(self) -> bool:
        return self._result.params.stop_index is not None

    @property
    def direction(self) -> str:
        return self._result.params.direction

    @property
    def maxtheta(self) -> float:
        return self._result.params.maxtheta

    @property
    def n_subjects(self) -> int:
        return self._result.params.n_subjects

    @property
    def n_events(self) -> int:
        return self._result.params.n_events

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def timing(self):
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def runlength(self, h: float) -> float:
        """Time at which the chart first reaches control limit h.

        For h >= 0 the first time value >= h, for h < 0 the first time
        value <= h. Returns inf if the chart never signals.
        """
        return runlength_of(self.time, self.value, float(h))

    def __repr__(self) -> str:
        extreme = np.max(self.value) if self.direction == "upper" else np.min(self.value)
        return (
            f"CGRSolution(direction={self.direction!r}, "
            f"n={self.n_subjects}, events={self.n_events}, "
            f"points={len(self.time)}, extreme={extreme:.4g})"
        )


class ControlLimitSolution:
    """Control limit calibrated on in-control units."""

    __slots__ = ('_result',)

    def __init__(self, _result: Result[ControlLimitParams]) -> None:
        self._result = _result

    @property
    def h(self) -> float:
        return self._result.params.h

    @property
    def alpha(self) -> float:
        return self._result.params.alpha

    @property
    def type_one_error(self) -> float:
        """Proportion of in-control units signalling at h."""
        return self._result.params.type_one_error

    @property
    def time(self) -> float:
        return self._result.params.time

    @property
    def h_precision(self) -> float:
        return self._result.params.h_precision

    @property
    def unit_labels(self):
        return self._result.params.unit_labels

    @property
    def extremes(self):
        return self._result.params.extremes

    @property
    def charts(self) -> tuple[CGRSolution, ...]:
        return self._result.params.charts

    @property
    def n_units(self) -> int:
        return len(self._result.params.charts)

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def timing(self):
        return self._result.timing

    def __repr__(self) -> str:
        return (
            f"ControlLimitSolution(h={self.h:.4g}, alpha={self.alpha}, "
            f"type_one_error={self.type_one_error:.4g}, units={self.n_units})"
        )
