"""
Exception hierarchy for pycusum.

All exceptions inherit from PyCusumError to allow catching any
library-specific error. Domain-specific exceptions should inherit from
the appropriate base class here.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""


class PyCusumError(Exception):
    """Base exception for all pycusum errors."""
    pass


class ValidationError(PyCusumError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when array shapes don't match expected dimensions or
    when multiple arrays have inconsistent shapes.
    """
    pass


class UnsortedError(ValidationError):
    """
    An array that must be ordered is not.

    Attributes:
        name: Parameter name of the offending array
        position: First index i at which array[i] < array[i - 1]
    """

    def __init__(
        self,
        message: str,
        name: str | None = None,
        position: int | None = None
    ):
        super().__init__(message)
        self.name = name
        self.position = position


class NumericalError(PyCusumError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation,
    such as a cumulative hazard function returning negative or non-finite
    values.

    Attributes:
        quantity: Name of the quantity that was invalid
        n_invalid: Number of invalid entries, if counted
    """

    def __init__(
        self,
        message: str,
        quantity: str | None = None,
        n_invalid: int | None = None
    ):
        super().__init__(message)
        self.quantity = quantity
        self.n_invalid = n_invalid
