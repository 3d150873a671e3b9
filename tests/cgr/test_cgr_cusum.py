"""
Tests for cgr_cusum(): chart construction with both engines.

The hand-computed scenario uses cbaseh(t) = 0.25 t and three subjects:

    subject  entrytime  otime  censorid
    1        0          1      0
    2        0          3      0
    3        3          5      1

Construction times are the observation times 1, 3 and 5. Only at t = 5 is
a failure observed; the segment starting at 3 then has A = 0.5, D = 1, so
theta = log 2 and the upward chart jumps from 0 to log 2 - 0.5. The
segment starting at 0 has A = 1.5 and drives the downward chart to
log 1.5 - 0.5 with theta = log(2 / 3).
"""

from functools import partial

import numpy as np
import pytest
from numpy.testing import assert_allclose

from pycusum import cgr_cusum
from pycusum.cgr import CGRSolution, chaz_exp, runlength
from pycusum.core.compute.tolerances import CPU_FP64, select_tolerance
from pycusum.core.exceptions import UnsortedError, ValidationError


ENTRY = np.array([0.0, 0.0, 3.0])
OTIME = np.array([1.0, 3.0, 5.0])
CENSOR = np.array([0, 0, 1])
QUARTER = partial(chaz_exp, lam=0.25)

ENGINES = ["matrix", "recursive"]


def assert_same_chart(a, b):
    tier = select_tolerance(b.backend_name)
    tol = dict(rtol=tier.rtol, atol=tier.atol)
    assert_allclose(a.time, b.time, **tol)
    assert_allclose(a.value, b.value, **tol)
    assert_allclose(a.exp_theta_t, b.exp_theta_t, **tol)
    assert_allclose(a.S_nu, b.S_nu, **tol)
    assert_allclose(a.ctime_values, b.ctime_values, **tol)
    assert_allclose(a.start, b.start, equal_nan=True, **tol)
    assert_allclose(a.start_excl, b.start_excl, equal_nan=True, **tol)
    assert a.stop_index == b.stop_index


# ═══════════════════════════════════════════════════════════════════════
# Hand-computed charts
# ═══════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize("engine", ENGINES)
class TestSmallScenario:

    def test_upper(self, engine):
        chart = cgr_cusum(ENTRY, OTIME, CENSOR, cbaseh=QUARTER, engine=engine)

        assert isinstance(chart, CGRSolution)
        assert_allclose(chart.time, [0.0, 1.0, 3.0, 5.0, 5.0])
        assert_allclose(
            chart.value, [0.0, 0.0, 0.0, 0.0, np.log(2) - 0.5],
            rtol=CPU_FP64.rtol, atol=CPU_FP64.atol,
        )
        assert_allclose(chart.exp_theta_t, [1.0, 1.0, 1.0, 1.0, 2.0])
        assert_allclose(chart.S_nu, [0.0, 0.0, 0.0, 0.0, 3.0])

    def test_upper_per_construction_time(self, engine):
        chart = cgr_cusum(ENTRY, OTIME, CENSOR, cbaseh=QUARTER, engine=engine)

        assert_allclose(chart.ctimes, [1.0, 3.0, 5.0])
        assert_allclose(chart.ctime_values, [0.0, 0.0, np.log(2) - 0.5])
        assert_allclose(chart.ctime_values_excl, [0.0, 0.0, 0.0])
        assert_allclose(chart.theta, [0.0, 0.0, np.log(2)])
        assert_allclose(chart.start_excl, [0.0, 0.0, 0.0])

    def test_lower(self, engine):
        chart = cgr_cusum(
            ENTRY, OTIME, CENSOR, cbaseh=QUARTER, direction="lower", engine=engine
        )

        assert_allclose(chart.time, [0.0, 1.0, 3.0, 5.0, 5.0])
        assert_allclose(chart.value, [0.0, 0.0, 0.0, 0.0, np.log(1.5) - 0.5])
        assert_allclose(chart.exp_theta_t[-1], 2.0 / 3.0)
        assert chart.S_nu[-1] == 0.0
        assert chart.direction == "lower"

    def test_control_limit_stops_chart(self, engine):
        chart = cgr_cusum(
            ENTRY, OTIME, CENSOR, cbaseh=QUARTER, h=0.1, engine=engine
        )
        assert chart.stopped
        assert chart.stop_index == 2
        assert chart.runlength(0.1) == 5.0

    def test_metadata(self, engine):
        chart = cgr_cusum(ENTRY, OTIME, CENSOR, cbaseh=QUARTER, engine=engine)
        assert chart.n_subjects == 3
        assert chart.n_events == 1
        assert chart.maxtheta == pytest.approx(np.log(6))
        assert chart.backend_name == f"cpu_{engine}"
        assert "chart_values" in chart.timing
        assert "trace" in chart.timing
        assert "CGRSolution" in repr(chart)


@pytest.mark.parametrize("engine", ENGINES)
class TestSingleSubject:
    """One subject entering at 0 and failing at 5, cbaseh(t) = 0.1 t.

    At t = 5 the subject has A = 0.5 and D = 1, so theta = log(1 / 0.5)
    = log 2 (inside maxtheta = 5) and the chart value is log 2 - 0.5.
    Before t = 5 the only start time has no exit yet and is not searched.
    """

    def test_chart(self, engine):
        chart = cgr_cusum(
            [0.0], [5.0], [1],
            cbaseh=partial(chaz_exp, lam=0.1),
            ctimes=[1.0, 3.0, 5.0],
            maxtheta=5.0,
            engine=engine,
        )

        assert_allclose(chart.ctimes, [1.0, 3.0, 5.0])
        assert_allclose(
            chart.ctime_values, [0.0, 0.0, np.log(2) - 0.5],
            rtol=CPU_FP64.rtol, atol=CPU_FP64.atol,
        )
        assert_allclose(chart.theta, [0.0, 0.0, np.log(2)])
        # A = D / exp(theta)
        assert_allclose(1.0 / np.exp(chart.theta[-1]), 0.5)
        assert_allclose(chart.time, [0.0, 1.0, 3.0, 5.0, 5.0])
        assert_allclose(chart.value, [0.0, 0.0, 0.0, 0.0, np.log(2) - 0.5])
        assert_allclose(chart.exp_theta_t, [1.0, 1.0, 1.0, 1.0, 2.0])
        assert chart.start[-1] == 0.0
        assert np.all(np.isnan(chart.start[:2]))


class TestDegenerateInputs:

    @pytest.mark.parametrize("engine", ENGINES)
    def test_no_subjects(self, engine):
        chart = cgr_cusum([], [], [], cbaseh=QUARTER, engine=engine)
        assert_allclose(chart.time, [0.0])
        assert_allclose(chart.value, [0.0])
        assert_allclose(chart.exp_theta_t, [1.0])
        assert len(chart.ctimes) == 0

    @pytest.mark.parametrize("direction", ["upper", "lower"])
    def test_no_failures(self, direction):
        chart = cgr_cusum(
            ENTRY, OTIME, np.zeros(3), cbaseh=QUARTER, direction=direction
        )
        assert_allclose(chart.value, 0.0)
        assert_allclose(chart.exp_theta_t, 1.0)

    def test_ctimes_before_first_entry_dropped(self):
        chart = cgr_cusum(
            ENTRY + 1.0, OTIME + 1.0, CENSOR, cbaseh=QUARTER,
            ctimes=[0.0, 0.5, 2.0, 6.0],
        )
        assert_allclose(chart.ctimes, [2.0, 6.0])
        assert chart.time[0] == 1.0

    def test_stoptime(self):
        chart = cgr_cusum(ENTRY, OTIME, CENSOR, cbaseh=QUARTER, stoptime=4.0)
        assert_allclose(chart.ctimes, [1.0, 3.0])
        assert chart.time[-1] <= 4.0


class TestValidation:

    def test_unsorted_entrytime(self):
        with pytest.raises(UnsortedError, match="entrytime"):
            cgr_cusum([0.0, 2.0, 1.0], [3.0, 4.0, 5.0], [1, 0, 1], cbaseh=QUARTER)

    def test_otime_before_entrytime(self):
        with pytest.raises(ValidationError, match="must not precede"):
            cgr_cusum([0.0, 2.0], [1.0, 1.5], [1, 0], cbaseh=QUARTER)

    def test_length_mismatch(self):
        with pytest.raises(ValidationError, match="Inconsistent lengths"):
            cgr_cusum([0.0, 1.0], [1.0, 2.0, 3.0], [1, 0], cbaseh=QUARTER)

    def test_censorid_not_binary(self):
        with pytest.raises(ValidationError, match="censorid"):
            cgr_cusum(ENTRY, OTIME, [0, 2, 1], cbaseh=QUARTER)

    def test_negative_risk(self):
        with pytest.raises(ValidationError, match="risk"):
            cgr_cusum(ENTRY, OTIME, CENSOR, cbaseh=QUARTER, risk=[1.0, -1.0, 1.0])

    def test_cbaseh_not_callable(self):
        with pytest.raises(ValidationError, match="callable"):
            cgr_cusum(ENTRY, OTIME, CENSOR, cbaseh=0.25)

    def test_zero_maxtheta(self):
        with pytest.raises(ValidationError, match="maxtheta"):
            cgr_cusum(ENTRY, OTIME, CENSOR, cbaseh=QUARTER, maxtheta=0.0)

    def test_unknown_direction(self):
        with pytest.raises(ValidationError, match="direction"):
            cgr_cusum(ENTRY, OTIME, CENSOR, cbaseh=QUARTER, direction="both")

    def test_unknown_engine(self):
        with pytest.raises(ValidationError, match="engine"):
            cgr_cusum(ENTRY, OTIME, CENSOR, cbaseh=QUARTER, engine="gpu")


# ═══════════════════════════════════════════════════════════════════════
# Simulated units
# ═══════════════════════════════════════════════════════════════════════


class TestChartProperties:

    def test_upper_non_negative(self, out_of_control_unit, cbaseh):
        chart = cgr_cusum(**out_of_control_unit, cbaseh=cbaseh)
        assert np.all(chart.value >= 0)
        assert np.all(chart.exp_theta_t >= 1)
        assert np.all(chart.exp_theta_t <= 6 + 1e-12)

    def test_lower_non_positive(self, in_control_unit, cbaseh):
        chart = cgr_cusum(**in_control_unit, cbaseh=cbaseh, direction="lower")
        assert np.all(chart.value <= 0)
        assert np.all(chart.exp_theta_t <= 1)

    def test_time_ordering(self, in_control_unit, cbaseh):
        chart = cgr_cusum(**in_control_unit, cbaseh=cbaseh)
        assert np.all(np.diff(chart.time) >= 0)
        assert chart.time[0] <= in_control_unit["entrytime"][0]

    def test_including_failures_never_lowers_upper_chart(
        self, out_of_control_unit, cbaseh
    ):
        chart = cgr_cusum(**out_of_control_unit, cbaseh=cbaseh)
        assert np.all(chart.ctime_values >= chart.ctime_values_excl - 1e-12)

    def test_out_of_control_unit_signals(self, simulate, cbaseh):
        in_control = cgr_cusum(**simulate(n=60), cbaseh=cbaseh)
        out_of_control = cgr_cusum(
            **simulate(n=60, theta=np.log(4)), cbaseh=cbaseh
        )
        assert np.max(out_of_control.value) > np.max(in_control.value)


class TestEarlyStopping:

    def test_prefix_identity(self, out_of_control_unit, cbaseh):
        full = cgr_cusum(**out_of_control_unit, cbaseh=cbaseh)
        h = 0.5 * np.max(full.ctime_values)
        j = int(np.flatnonzero(full.ctime_values >= h)[0])

        stopped = cgr_cusum(**out_of_control_unit, cbaseh=cbaseh, h=h)

        assert stopped.stop_index == j
        assert_allclose(stopped.ctime_values[: j + 1], full.ctime_values[: j + 1])
        assert_allclose(stopped.ctime_values[j + 1:], 0.0)
        assert np.all(np.isnan(stopped.start[j + 1:]))
        assert stopped.time[-1] == full.ctimes[j]
        n_points = len(stopped.time)
        assert_allclose(stopped.value, full.value[:n_points])
        assert runlength(full, h) == full.ctimes[j]

    def test_unreached_limit(self, in_control_unit, cbaseh):
        full = cgr_cusum(**in_control_unit, cbaseh=cbaseh)
        capped = cgr_cusum(
            **in_control_unit, cbaseh=cbaseh, h=np.max(full.value) + 1.0
        )
        assert not capped.stopped
        assert_allclose(capped.value, full.value)

    def test_runlength_never(self, in_control_unit, cbaseh):
        chart = cgr_cusum(**in_control_unit, cbaseh=cbaseh)
        assert runlength(chart, np.max(chart.value) + 1.0) == np.inf

    @pytest.mark.parametrize("engine", ENGINES)
    def test_lower_stops_before_failure(self, engine):
        """Downward chart crossing h only just before a failure at t = 10.

        Six subjects enter at 0, cbaseh(t) = 0.25 t, so at t = 10 the
        cumulative intensity is 12.75 and theta is clamped at -log 6. With
        the failure at 10 the value is 2 log 6 - 12.75 * 5 / 6 = -7.04,
        without it log 6 - 12.75 * 5 / 6 = -8.83. Only the latter reaches
        h = -8, and at t = 12 the chart is back at -7.87.
        """
        data = dict(
            entrytime=np.zeros(6),
            otime=[1.0, 10.0, 10.0, 10.0, 12.0, 12.0],
            censorid=[1, 1, 0, 0, 0, 0],
            cbaseh=QUARTER,
            direction="lower",
            engine=engine,
        )
        full = cgr_cusum(**data)
        stopped = cgr_cusum(**data, h=-8.0)

        assert_allclose(full.ctime_values[1], 2 * np.log(6) - 12.75 * 5 / 6)
        assert_allclose(full.ctime_values_excl[1], np.log(6) - 12.75 * 5 / 6)
        assert full.ctime_values[2] > -8.0

        assert stopped.stop_index == 1
        assert stopped.time[-1] == 10.0
        assert stopped.ctime_values[2] == 0.0
        assert np.isnan(stopped.start[2])
        assert full.runlength(-8.0) == 10.0
        assert stopped.runlength(-8.0) == 10.0
        assert_allclose(stopped.value, full.value[: len(stopped.time)])


class TestEngineAgreement:

    @pytest.mark.parametrize("direction", ["upper", "lower"])
    @pytest.mark.parametrize("prune", [None, True, False])
    def test_simulated(self, out_of_control_unit, cbaseh, direction, prune):
        kwargs = dict(
            cbaseh=cbaseh, direction=direction, prune_start_times=prune
        )
        matrix = cgr_cusum(**out_of_control_unit, engine="matrix", **kwargs)
        recursive = cgr_cusum(**out_of_control_unit, engine="recursive", **kwargs)
        assert_same_chart(matrix, recursive)

    @pytest.mark.parametrize("direction", ["upper", "lower"])
    def test_tied_times(self, simulate, cbaseh, direction):
        unit = simulate(n=80, theta=np.log(2))
        unit["entrytime"] = np.round(unit["entrytime"])
        unit["otime"] = np.maximum(np.round(unit["otime"]), unit["entrytime"])
        matrix = cgr_cusum(**unit, cbaseh=cbaseh, direction=direction)
        recursive = cgr_cusum(
            **unit, cbaseh=cbaseh, direction=direction, engine="recursive"
        )
        assert_same_chart(matrix, recursive)

    def test_early_stopping(self, out_of_control_unit, cbaseh):
        kwargs = dict(cbaseh=cbaseh, h=1.0)
        matrix = cgr_cusum(**out_of_control_unit, **kwargs)
        recursive = cgr_cusum(**out_of_control_unit, engine="recursive", **kwargs)
        assert_same_chart(matrix, recursive)


class TestPruning:

    def test_pruning_never_raises_upper_chart(self, out_of_control_unit, cbaseh):
        pruned = cgr_cusum(**out_of_control_unit, cbaseh=cbaseh)
        full = cgr_cusum(
            **out_of_control_unit, cbaseh=cbaseh, prune_start_times=False
        )
        assert np.all(pruned.ctime_values <= full.ctime_values + 1e-12)
