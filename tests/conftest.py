"""
pytest configuration and shared fixtures.
"""

from functools import partial

import numpy as np
import pytest

from pycusum.cgr import chaz_exp


BASE_RATE = 0.02


def simulate_unit(rng, n=40, psi=0.5, lam=BASE_RATE, theta=0.0,
                  followup=100.0, beta=0.5):
    """One unit with Poisson arrivals and exponential survival.

    Subjects fail at rate lam * exp(theta) * risk and are censored after
    followup time units.
    """
    entrytime = np.cumsum(rng.exponential(1.0 / psi, n))
    x = rng.standard_normal(n)
    risk = np.exp(beta * x)
    survtime = rng.exponential(1.0 / (lam * np.exp(theta) * risk))
    censorid = (survtime <= followup).astype(np.float64)
    otime = entrytime + np.minimum(survtime, followup)
    return {
        "entrytime": entrytime,
        "otime": otime,
        "censorid": censorid,
        "risk": risk,
    }


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def cbaseh():
    """Exponential cumulative baseline hazard at the simulation rate."""
    return partial(chaz_exp, lam=BASE_RATE)


@pytest.fixture
def in_control_unit(rng):
    return simulate_unit(rng)


@pytest.fixture
def out_of_control_unit(rng):
    """Unit failing at four times the baseline rate."""
    return simulate_unit(rng, n=60, theta=np.log(4))


@pytest.fixture
def simulate(rng):
    """Factory for further units drawn from the shared generator."""
    return partial(simulate_unit, rng)
