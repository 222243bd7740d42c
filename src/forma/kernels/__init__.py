"""
Numba kernels for FORMA window computations.

Design Rules:
1. Functions take numpy arrays or scalars as input
2. Functions return numpy arrays or scalars as output
3. No file I/O, no `self`, no state mutation of inputs
4. Numba JIT compiled with cache=True
"""

from forma.kernels import neighbors

__all__ = ["neighbors"]
