"""
FORMA batch jobs.

Jobs wire the operators in ``forma.ops`` together over whole datasets,
using a ``DistributedEngine`` for grouping, sorting and per-key failure
isolation.

Example:
    >>> from forma.config import FormaConfig
    >>> from forma.jobs import extract_tseries, forma_query
    >>>
    >>> config = FormaConfig.from_toml("forma.toml")
    >>> ndvi = list(extract_tseries(ndvi_chunks, config.missing_value))
    >>> rows = forma_query(config, ndvi, rain, vcf, country, fires, detector)
"""

from forma.jobs.run_forma import (
    FormaRow,
    dynamic_filter,
    dynamic_tap,
    fire_tap,
    forma_query,
    forma_tap,
    static_tap,
    textify,
)
from forma.jobs.timeseries import extract_tseries, fire_query

__all__ = [
    "extract_tseries",
    "fire_query",
    "static_tap",
    "dynamic_filter",
    "dynamic_tap",
    "fire_tap",
    "forma_tap",
    "forma_query",
    "textify",
    "FormaRow",
]
