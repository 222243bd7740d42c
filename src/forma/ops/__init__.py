"""
FORMA operators.

Each operator handles the tuples of a single key and keeps no state between
calls, so any engine may run keys concurrently.

Modules:
    timeseries: chunk-to-series reconstruction and fire series
    align: truncation of co-located series onto a common window
    predicate: sparse vectors and spatial windowing
    neighbors: neighbor aggregation over windows
    trends: trend-detector protocol and the shells that feed it
"""

from forma.ops.align import adjust, adjust_fires, alignment_drops
from forma.ops.neighbors import combine_neighbors, process_neighbors
from forma.ops.predicate import partition_windows, sparse_windower, vals_to_sparsevec
from forma.ops.timeseries import (
    add_fires,
    fire_series,
    merge_fire_tuples,
    running_fire_sum,
    timeseries,
)
from forma.ops.trends import TrendDetector, dynamic_trends, forma_schema

__all__ = [
    "timeseries",
    "add_fires",
    "merge_fire_tuples",
    "running_fire_sum",
    "fire_series",
    "adjust",
    "adjust_fires",
    "alignment_drops",
    "vals_to_sparsevec",
    "sparse_windower",
    "partition_windows",
    "combine_neighbors",
    "process_neighbors",
    "TrendDetector",
    "dynamic_trends",
    "forma_schema",
]
