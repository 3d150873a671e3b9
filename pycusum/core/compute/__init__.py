"""
Shared compute infrastructure for pycusum.

IMPORTANT: This is NOT where domain-specific backends live. Those go in
{domain}/backends/. This module contains shared numeric infrastructure.

Submodules:
    timing: Execution timing utilities
    tolerances: Numerical comparison tiers
    parallel: joblib process-pool helpers
"""

from pycusum.core.compute.timing import Timer
from pycusum.core.compute.parallel import resolve_n_jobs, run_parallel

__all__ = [
    # Timing
    "Timer",
    # Parallel
    "resolve_n_jobs",
    "run_parallel",
]
