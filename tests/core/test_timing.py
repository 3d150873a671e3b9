"""
Tests for execution timing utilities.
"""

import pytest

from pycusum.core.compute import Timer


class TestTimer:

    def test_sections_accumulate(self):
        timer = Timer()
        timer.start()
        with timer.section('chart_values'):
            pass
        with timer.section('chart_values'):
            pass
        timer.stop()

        result = timer.result()
        assert set(result) == {'total_seconds', 'chart_values'}
        assert result['total_seconds'] >= result['chart_values'] >= 0.0

    def test_absorb_adds_sections(self):
        timer = Timer()
        timer.start()
        timer.absorb({'total_seconds': 5.0, 'hazard_matrix': 0.25, 'trace': 0.5})
        timer.absorb({'total_seconds': 5.0, 'hazard_matrix': 0.25})
        timer.absorb(None)
        timer.stop()

        result = timer.result()
        assert result['hazard_matrix'] == pytest.approx(0.5)
        assert result['trace'] == pytest.approx(0.5)
        assert result['total_seconds'] < 5.0

    def test_result_before_stop(self):
        timer = Timer()
        timer.start()
        with pytest.raises(RuntimeError, match="before stop"):
            timer.result()

    def test_stop_before_start(self):
        with pytest.raises(RuntimeError, match="before start"):
            Timer().stop()
