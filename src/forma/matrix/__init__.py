"""
Dense/sparse matrix helpers shared by the time and space operators.

Design Rules:
1. Functions are pure: no I/O, no state retained between calls
2. Indices are absolute; ``start`` offsets them into the output
3. Missing positions are filled with an explicit sentinel argument
"""

from forma.matrix.utils import idx_to_rowcol, matrix_of, rowcol_to_idx, sparse_expander
from forma.matrix.walk import neighbor_indices, neighbor_scan

__all__ = [
    "sparse_expander",
    "matrix_of",
    "idx_to_rowcol",
    "rowcol_to_idx",
    "neighbor_indices",
    "neighbor_scan",
]
