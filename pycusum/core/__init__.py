"""
Core infrastructure for pycusum.

This module provides shared abstractions and utilities used by the
domain-specific submodules.

Key components:
    protocols: Backend protocol
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing, tolerances, process-pool helpers
"""

from pycusum.core.protocols import Backend
from pycusum.core.result import Result
from pycusum.core.exceptions import (
    PyCusumError,
    ValidationError,
    DimensionError,
    UnsortedError,
    NumericalError,
)

__all__ = [
    # Protocols
    "Backend",
    # Result
    "Result",
    # Exceptions
    "PyCusumError",
    "ValidationError",
    "DimensionError",
    "UnsortedError",
    "NumericalError",
]
