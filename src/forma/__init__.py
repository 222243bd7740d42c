"""
FORMA-RS: Forest Monitoring for Action.

Detects tropical deforestation from MODIS time series. Per-pixel NDVI,
rain and fire series are aligned, passed through a trend detector, grouped
into spatial windows and summarized with neighbor statistics.

Subpackages:
    matrix: Sparse expansion and neighbor walks over dense grids.
    kernels: Numba-compiled neighbor aggregation.
    ops: Pure operators (reconstruction, alignment, windowing, neighbors, trends).
    jobs: Batch jobs wiring the operators together over a DistributedEngine.

Example:
    >>> from forma.config import FormaConfig
    >>> from forma.codec import read_records
    >>> from forma.jobs import forma_query
    >>>
    >>> config = FormaConfig.from_toml("forma.toml")
    >>> rows = forma_query(config, read_records("ndvi.frma"), read_records("rain.frma"),
    ...                    read_records("vcf.frma"), read_records("country.frma"),
    ...                    read_records("fire.frma"), detector)
"""

__version__ = "0.1.0"
