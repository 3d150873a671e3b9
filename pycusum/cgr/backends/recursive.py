"""
Recursive backend for the CGR-CUSUM.

Never materialises the hazard contribution matrix. At each construction
time the contributions of the subjects that have entered are computed on the
fly, and the start times are walked from latest to earliest while the
segment's cumulative intensity and failure counts are accumulated one
subject at a time. Memory is O(n); hazard contributions are recomputed for
every construction time.
"""

from __future__ import annotations

import numpy as np

from pycusum.core.result import Result
from pycusum.core.compute.timing import Timer
from pycusum.cgr._common import CGRParams, NEUTRAL_ROW, chart_params
from pycusum.cgr._hazard import hazard_column
from pycusum.cgr._maxima import (
    eligible_starts,
    reduce_over_starts,
    scan_construction_times,
    segment_statistic,
    start_candidates,
)
from pycusum.cgr._trace import assemble_trace
from pycusum.cgr.design import CGRDesign


class RecursiveBackend:
    """
    CPU backend accumulating segment sums incrementally.

    Implements the Backend protocol for CGRDesign -> CGRParams. Produces the
    same chart as MatrixBackend.
    """

    @property
    def name(self) -> str:
        return 'cpu_recursive'

    def solve(self, design: CGRDesign) -> Result[CGRParams]:
        """
        Compute the CGR-CUSUM chart.

        Args:
            design: Validated chart design

        Returns:
            Result containing CGRParams
        """
        timer = Timer()
        timer.start()

        entrytime, otime = design.entrytime, design.otime
        censorid, ctimes = design.censorid, design.ctimes
        stimes, first_exit = start_candidates(entrytime, otime)

        def evaluate(j: int) -> tuple[float, ...]:
            t = ctimes[j]
            searched = stimes <= t
            if not searched.any():
                return NEUTRAL_ROW
            eligible = eligible_starts(
                stimes, first_exit, t, design.prune_start_times
            )[searched]
            if not eligible.any():
                return NEUTRAL_ROW

            column = hazard_column(
                entrytime, otime, design.risk, t, design.cbaseh
            )
            lower = np.searchsorted(entrytime, stimes[searched], side='left')

            A_acc, D_acc, D_now_acc = 0.0, 0, 0
            i = len(column)
            starts, A, D, D_now = [], [], [], []
            for s in range(len(lower) - 1, -1, -1):
                while i > lower[s]:
                    i -= 1
                    A_acc += column[i]
                    if censorid[i] and otime[i] <= t:
                        D_acc += 1
                        if otime[i] == t:
                            D_now_acc += 1
                if eligible[s]:
                    starts.append(stimes[s])
                    A.append(A_acc)
                    D.append(D_acc)
                    D_now.append(D_now_acc)

            # back to increasing start time, so ties resolve as in MatrixBackend
            starts, A, D, D_now = (
                np.asarray(x[::-1]) for x in (starts, A, D, D_now)
            )
            stats = segment_statistic(A, D, D_now, design.maxtheta, design.upper)
            return reduce_over_starts(*stats, starts, design.upper)

        with timer.section('chart_values'):
            rows, stop_index = scan_construction_times(
                evaluate, design.m, design.h
            )

        with timer.section('trace'):
            trace = assemble_trace(ctimes, rows, stop_index, design.origin_time)

        timer.stop()

        return Result(
            params=chart_params(design, rows, trace, stop_index),
            info={
                'method': 'CGR-CUSUM',
                'engine': 'recursive',
                'direction': design.direction,
                'stop_index': stop_index,
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=(),
        )
