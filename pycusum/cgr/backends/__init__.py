"""
CGR-CUSUM backends.

Available backends:
    MatrixBackend: materialises the subject x construction-time hazard matrix
    RecursiveBackend: accumulates hazard contributions on the fly
"""

from pycusum.cgr.backends.matrix import MatrixBackend
from pycusum.cgr.backends.recursive import RecursiveBackend

__all__ = [
    "MatrixBackend",
    "RecursiveBackend",
]
