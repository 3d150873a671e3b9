"""
Input validation utilities for pycusum.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

import numbers

import numpy as np
from numpy.typing import ArrayLike, NDArray
from typing import Any

from pycusum.core.exceptions import ValidationError, DimensionError, UnsortedError


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to a floating point numpy array.

    Accepts any array-like and converts to numpy array. Rejects inputs
    that result in object dtype (indicating mixed types or non-numeric data).
    Boolean input is accepted and converted to 0.0/1.0.

    Args:
        array: Input to validate
        name: Parameter name for error messages

    Returns:
        numpy.ndarray with floating dtype

    Raises:
        ValidationError: If input cannot be converted to numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if result.dtype == object:
        raise ValidationError(
            f"{name}: converted to object dtype, indicating mixed types or non-numeric data"
        )

    if result.dtype == np.bool_:
        return result.astype(np.float64)

    # Reject non-numeric dtypes (strings, bytes, datetime, etc.)
    if not np.issubdtype(result.dtype, np.number):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    if not np.issubdtype(result.dtype, np.floating):
        result = result.astype(np.float64)

    return result


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no NaN or Inf values.

    Args:
        array: Array to check
        name: Parameter name for error messages

    Raises:
        ValidationError: If array contains non-finite values
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        raise ValidationError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
        )


def check_1d(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array is 1-dimensional.

    Args:
        array: Array to check
        name: Parameter name for error messages

    Raises:
        DimensionError: If array is not 1D
    """
    if array.ndim != 1:
        raise DimensionError(
            f"{name}: expected 1D array, got {array.ndim}D with shape {array.shape}"
        )


def check_consistent_length(
    *arrays: NDArray[np.floating[Any]],
    names: tuple[str, ...]
) -> None:
    """
    Verify all arrays have the same length (first dimension).

    Args:
        *arrays: Arrays to check
        names: Parameter names for error messages (must match number of arrays)

    Raises:
        ValueError: If number of names doesn't match number of arrays
        DimensionError: If arrays have inconsistent lengths
    """
    if len(arrays) != len(names):
        raise ValueError(
            f"Number of arrays ({len(arrays)}) must match number of names ({len(names)})"
        )

    if len(arrays) < 2:
        return

    lengths = [arr.shape[0] for arr in arrays]
    if len(set(lengths)) > 1:
        details = ", ".join(f"{name}={length}" for name, length in zip(names, lengths))
        raise DimensionError(f"Inconsistent lengths: {details}")


def check_sorted(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify a 1D array is sorted non-decreasingly.

    Args:
        array: Array to check
        name: Parameter name for error messages

    Raises:
        UnsortedError: If some element is smaller than its predecessor
    """
    if array.shape[0] < 2:
        return
    drops = np.flatnonzero(np.diff(array) < 0)
    if len(drops) > 0:
        i = int(drops[0]) + 1
        raise UnsortedError(
            f"{name}: must be sorted non-decreasingly, but "
            f"{name}[{i}]={array[i]!r} < {name}[{i - 1}]={array[i - 1]!r}",
            name=name,
            position=i,
        )


def check_binary(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array only contains 0 and 1.

    Args:
        array: Array to check
        name: Parameter name for error messages

    Raises:
        ValidationError: If other values are present
    """
    bad = ~np.isin(array, [0.0, 1.0])
    if np.any(bad):
        raise ValidationError(
            f"{name}: must contain only 0 and 1, "
            f"got unique values: {np.unique(array[bad])}"
        )


def check_nonnegative(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no negative values.

    Args:
        array: Array to check
        name: Parameter name for error messages

    Raises:
        ValidationError: If any value is negative
    """
    n_neg = int(np.sum(array < 0))
    if n_neg > 0:
        raise ValidationError(
            f"{name}: must be non-negative, got {n_neg} negative values "
            f"(min={float(np.min(array))!r})"
        )


def check_scalar(
    value: Any,
    name: str,
    *,
    lower: float | None = None,
    upper: float | None = None,
    lower_inclusive: bool = False,
    upper_inclusive: bool = False,
) -> float:
    """
    Validate a single finite real number, optionally within bounds.

    Args:
        value: Value to check
        name: Parameter name for error messages
        lower: Optional lower bound
        upper: Optional upper bound
        lower_inclusive: Whether ``value == lower`` is allowed
        upper_inclusive: Whether ``value == upper`` is allowed

    Returns:
        The value as a Python float

    Raises:
        ValidationError: If value is not a finite real number within bounds
    """
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
        raise ValidationError(
            f"{name}: must be a single numeric value, got {type(value).__name__}"
        )
    value = float(value)
    if not np.isfinite(value):
        raise ValidationError(f"{name}: must be finite, got {value}")

    if lower is not None:
        ok = value >= lower if lower_inclusive else value > lower
        if not ok:
            op = ">=" if lower_inclusive else ">"
            raise ValidationError(f"{name}: must be {op} {lower}, got {value}")
    if upper is not None:
        ok = value <= upper if upper_inclusive else value < upper
        if not ok:
            op = "<=" if upper_inclusive else "<"
            raise ValidationError(f"{name}: must be {op} {upper}, got {value}")
    return value
