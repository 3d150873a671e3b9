"""
Tolerance tiers for numerical validation.

The two CGR-CUSUM engines perform the same floating point operations in
the same order, so they agree far below the engine tier; the tier exists
so tests and benchmarks compare engines with one shared constant.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerance specification for numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


# CPU double precision against closed-form reference values
CPU_FP64 = ToleranceTier(
    rtol=1e-10,
    atol=1e-12,
    name='cpu_fp64',
    description='CPU double precision against closed-form values',
)

# Matrix engine against recursive engine
ENGINE_AGREEMENT = ToleranceTier(
    rtol=1e-9,
    atol=1e-9,
    name='engine_agreement',
    description='cpu_matrix vs cpu_recursive on the same design',
)


def select_tolerance(backend_name: str) -> ToleranceTier:
    """Select the tolerance tier for comparing a backend against the matrix engine."""
    if backend_name == 'cpu_matrix':
        return CPU_FP64
    return ENGINE_AGREEMENT
