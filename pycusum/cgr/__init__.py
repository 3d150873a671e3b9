"""
Continuous time Generalized Rapid response CUSUM (CGR-CUSUM).

Public API:
    cgr_cusum(...) -> CGRSolution
    cgr_control_limit(...) -> ControlLimitSolution
    runlength(chart, h) -> float
    maxoverk(...) -> (value, value_excl, theta, theta_excl)
    calc_risk(X, coefficients) -> relative risks
    chaz_exp(t, lam) -> exponential cumulative hazard
"""

from pycusum.cgr.solvers import cgr_cusum, cgr_control_limit, runlength
from pycusum.cgr.solution import CGRSolution, ControlLimitSolution
from pycusum.cgr.design import CGRDesign
from pycusum.cgr.risk import calc_risk, chaz_exp
from pycusum.cgr._maxima import maxoverk

__all__ = [
    "cgr_cusum",
    "cgr_control_limit",
    "runlength",
    "maxoverk",
    "calc_risk",
    "chaz_exp",
    "CGRSolution",
    "ControlLimitSolution",
    "CGRDesign",
]
