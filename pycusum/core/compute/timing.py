"""
Execution timing utilities.

Chart construction has distinct phases (hazard contributions, chart values,
trace assembly) with very different cost profiles; Timer records each one.
Control limit calibration builds many charts, so a Timer can also absorb the
phase timings of the charts it oversees.
"""

import time
from contextlib import contextmanager
from typing import Iterator, Mapping


class Timer:
    """
    Accumulating timer with named sections.

    Usage:
        timer = Timer()
        timer.start()

        with timer.section('hazard_matrix'):
            lam, notes = hazard_matrix(...)

        with timer.section('chart_values'):
            rows, stop_index = scan_construction_times(...)

        timer.stop()
        timer.result()
        # {'total_seconds': 0.05, 'hazard_matrix': 0.03, 'chart_values': 0.02}
    """

    def __init__(self):
        self._sections: dict[str, float] = {}
        self._start_time: float | None = None
        self._total: float | None = None

    def start(self) -> None:
        """Start the overall timer."""
        self._start_time = time.perf_counter()

    def stop(self) -> None:
        """Stop the overall timer."""
        if self._start_time is None:
            raise RuntimeError("Timer.stop() called before start()")
        self._total = time.perf_counter() - self._start_time

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        """
        Time a named section. Repeated sections accumulate.

        Sections may overlap each other and always overlap the total.
        """
        start = time.perf_counter()
        try:
            yield
        finally:
            self._add(name, time.perf_counter() - start)

    def absorb(self, timing: Mapping[str, float] | None) -> None:
        """
        Add the section timings of another result to this timer.

        Args:
            timing: A Timer.result() dict, or None (nothing to add).
                Its 'total_seconds' entry is skipped.
        """
        if timing is None:
            return
        for name, seconds in timing.items():
            if name != 'total_seconds':
                self._add(name, seconds)

    def _add(self, name: str, seconds: float) -> None:
        self._sections[name] = self._sections.get(name, 0.0) + seconds

    def result(self) -> dict[str, float]:
        """
        Get timing results.

        Returns:
            Dictionary with 'total_seconds' and all section timings

        Raises:
            RuntimeError: If called before stop()
        """
        if self._total is None:
            raise RuntimeError("Timer.result() called before stop()")

        result = {'total_seconds': self._total}
        result.update(self._sections)
        return result
