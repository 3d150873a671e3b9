"""
Risk adjustment inputs: relative risks and baseline cumulative hazards.

Fitting the risk model is left to a survival package; these helpers only
apply an already fitted proportional hazards model.
"""

from __future__ import annotations

from typing import Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pycusum.core.exceptions import DimensionError
from pycusum.core.validation import check_array, check_finite, check_scalar


def calc_risk(
    X: ArrayLike,
    coefficients: ArrayLike,
    *,
    center: ArrayLike | Literal["mean"] | None = None,
) -> NDArray:
    """Relative risk exp((X - center) @ beta) of each subject.

    Parameters
    ----------
    X : array-like
        (n, p) covariates, or (n,) for a single covariate.
    coefficients : array-like
        (p,) log hazard ratios from a fitted Cox model.
    center : array-like, "mean" or None
        Covariate values of the reference subject. "mean" centres at the
        column means of X, as R's predict(coxph, type = "risk") does. None
        (default) uses the zero vector.

    Returns
    -------
    NDArray
        (n,) positive risk multipliers.
    """
    X_arr = check_array(X, "X")
    if X_arr.ndim == 1:
        X_arr = X_arr.reshape(-1, 1)
    if X_arr.ndim != 2:
        raise DimensionError(f"X: expected 1D or 2D array, got {X_arr.ndim}D")
    beta = check_array(coefficients, "coefficients").ravel()
    if len(beta) != X_arr.shape[1]:
        raise DimensionError(
            f"coefficients: expected {X_arr.shape[1]} values to match the "
            f"columns of X, got {len(beta)}"
        )
    check_finite(X_arr, "X")
    check_finite(beta, "coefficients")

    if isinstance(center, str):
        if center != "mean":
            raise ValueError(f"center must be 'mean', an array or None, got '{center}'")
        X_arr = X_arr - X_arr.mean(axis=0)
    elif center is not None:
        c = check_array(center, "center").ravel()
        if len(c) != X_arr.shape[1]:
            raise DimensionError(
                f"center: expected {X_arr.shape[1]} values, got {len(c)}"
            )
        X_arr = X_arr - c

    return np.exp(X_arr @ beta)


def chaz_exp(t, lam: float) -> NDArray:
    """Cumulative hazard lam * t of an exponential distribution.

    Parameters
    ----------
    t : array-like
        Elapsed times (>= 0).
    lam : float
        Rate of the exponential distribution (> 0).
    """
    lam = check_scalar(lam, "lam", lower=0.0)
    return lam * np.asarray(t, dtype=np.float64)
