"""
pycusum: risk-adjusted CUSUM charts for monitoring failure rates.

Monitors the failure rate of subjects (e.g. patients) at units (e.g.
hospitals) in continuous time, adjusting for subject risk.

Submodules:
    cgr: Continuous time Generalized Rapid response CUSUM
    core: Shared validation, results and compute utilities
"""

__version__ = "0.1.0"

from pycusum import cgr
from pycusum.cgr import cgr_cusum, cgr_control_limit

__all__ = [
    "__version__",
    "cgr",
    "cgr_cusum",
    "cgr_control_limit",
]
