"""
Process-pool helpers for data-parallel work.

Work is split into contiguous chunks and dispatched with joblib (loky
processes). Whether a callable can reach the workers at all is decided by a
single capability check before dispatch, so callers can fall back to
sequential execution without relying on pool failures.
"""

from __future__ import annotations

import os
import pickle
from typing import Any, Callable, Sequence

import cloudpickle
import numpy as np
from joblib import Parallel, delayed

from pycusum.core.exceptions import ValidationError


def resolve_n_jobs(n_jobs: int) -> tuple[int, list[str]]:
    """
    Validate a worker count and translate -1 into the number of cores.

    Args:
        n_jobs: Requested number of workers (positive, or -1 for all cores)

    Returns:
        (n_workers, notes) where notes holds non-fatal diagnostics, e.g.
        over-subscription of the detected cores.

    Raises:
        ValidationError: If n_jobs is not a positive integer or -1
    """
    if isinstance(n_jobs, bool) or not isinstance(n_jobs, (int, np.integer)):
        raise ValidationError(
            f"n_jobs: must be an integer, got {type(n_jobs).__name__}"
        )
    n_cores = os.cpu_count() or 1
    if n_jobs == -1:
        return n_cores, []
    if n_jobs < 1:
        raise ValidationError(f"n_jobs: must be >= 1 or -1, got {n_jobs}")

    notes = []
    if n_jobs > n_cores:
        notes.append(
            f"More workers requested ({n_jobs}) than cores detected ({n_cores}). "
            f"Proceeding anyway."
        )
    return int(n_jobs), notes


def dispatch_blocker(func: Callable) -> str | None:
    """
    Check once whether func can be shipped to worker processes.

    Returns:
        None if func serialises, otherwise a description of why not.
    """
    try:
        cloudpickle.dumps(func)
    except (pickle.PicklingError, TypeError, AttributeError) as e:
        return f"{type(e).__name__}: {e}"
    return None


def chunk_bounds(n: int, n_chunks: int) -> list[tuple[int, int]]:
    """Split range(n) into at most n_chunks contiguous, non-empty slices."""
    n_chunks = max(1, min(n_chunks, n))
    edges = np.linspace(0, n, n_chunks + 1).astype(int)
    return [(int(a), int(b)) for a, b in zip(edges[:-1], edges[1:]) if b > a]


def run_parallel(
    func: Callable,
    tasks: Sequence[tuple[Any, ...]],
    n_jobs: int,
) -> list[Any]:
    """
    Apply func to every argument tuple in tasks on a process pool.

    The pool lives only for the duration of this call.
    """
    with Parallel(n_jobs=n_jobs, prefer="processes") as pool:
        return pool(delayed(func)(*args) for args in tasks)
