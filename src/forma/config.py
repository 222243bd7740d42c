"""
Job configuration for FORMA runs.

The configuration is an immutable struct passed explicitly to every
operator that needs it. It can be built from a dictionary, a TOML file,
or a YAML file:

    [forma]
    est_start = "2005-12-01"
    est_end = "2011-04-01"
    t_res = "32"
    neighbors = 1
    window_dims = [600, 600]
    vcf_limit = 25
    long_block = 15
    window = 5
    missing_value = -9999
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import pandas as pd
import toml
import yaml

from forma.date_time import PERIODS_PER_YEAR
from forma.errors import ConfigError

__all__ = ["FormaConfig", "FORMA_DEFAULTS"]


FORMA_DEFAULTS: Dict[str, Any] = {
    "est_start": "2005-12-01",
    "est_end": "2011-04-01",
    "t_res": "32",
    "neighbors": 1,
    "window_dims": [600, 600],
    "vcf_limit": 25,
    "long_block": 15,
    "window": 5,
    "missing_value": -9999,
}


@dataclass(frozen=True)
class FormaConfig:
    """Estimation parameters for one FORMA job.

    Attributes:
        est_start: First date of the estimation window (YYYY-MM-DD)
        est_end: Last date of the estimation window (YYYY-MM-DD)
        t_res: Temporal resolution code, "8", "16" or "32"
        neighbors: Neighbor radius used by the neighbor scan
        window_dims: (rows, cols) of each spatial window
        vcf_limit: Pixels with VCF below this value are dropped
        long_block: Block length for the long-term trend detector
        window: Short-term trend window length
        missing_value: Sentinel written where a sample is missing
    """

    est_start: str = FORMA_DEFAULTS["est_start"]
    est_end: str = FORMA_DEFAULTS["est_end"]
    t_res: str = FORMA_DEFAULTS["t_res"]
    neighbors: int = FORMA_DEFAULTS["neighbors"]
    window_dims: Tuple[int, int] = field(default=tuple(FORMA_DEFAULTS["window_dims"]))
    vcf_limit: float = FORMA_DEFAULTS["vcf_limit"]
    long_block: int = FORMA_DEFAULTS["long_block"]
    window: int = FORMA_DEFAULTS["window"]
    missing_value: int = FORMA_DEFAULTS["missing_value"]

    def __post_init__(self):
        object.__setattr__(self, "t_res", str(self.t_res))
        object.__setattr__(self, "window_dims", tuple(int(d) for d in self.window_dims))
        self.validate()

    def validate(self) -> None:
        """Raise ConfigError if any field is out of range."""
        if self.t_res not in PERIODS_PER_YEAR:
            raise ConfigError(
                f"t_res must be one of {sorted(PERIODS_PER_YEAR)}",
                {"t_res": self.t_res},
            )
        if len(self.window_dims) != 2 or min(self.window_dims) <= 0:
            raise ConfigError(
                "window_dims must hold two positive extents",
                {"window_dims": self.window_dims},
            )
        if self.neighbors < 0:
            raise ConfigError("neighbors must be non-negative", {"neighbors": self.neighbors})
        if self.long_block <= 0 or self.window <= 0:
            raise ConfigError(
                "long_block and window must be positive",
                {"long_block": self.long_block, "window": self.window},
            )
        try:
            start, end = pd.Timestamp(self.est_start), pd.Timestamp(self.est_end)
        except ValueError as exc:
            raise ConfigError(
                f"unparseable estimation date: {exc}",
                {"est_start": self.est_start, "est_end": self.est_end},
            ) from exc
        if start > end:
            raise ConfigError(
                "est_start must not be after est_end",
                {"est_start": self.est_start, "est_end": self.est_end},
            )

    @property
    def rows(self) -> int:
        return self.window_dims[0]

    @property
    def cols(self) -> int:
        return self.window_dims[1]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormaConfig":
        """Create from a dictionary; unknown keys are rejected."""
        data = dict(data)
        # nested [forma] table or flat mapping
        if "forma" in data and isinstance(data["forma"], dict):
            data = dict(data["forma"])
        data = {k.replace("-", "_"): v for k, v in data.items()}
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError("unrecognized configuration fields", {"fields": unknown})
        return cls(**data)

    @classmethod
    def from_toml(cls, path: Union[str, Path]) -> "FormaConfig":
        with open(path, "r") as f:
            return cls.from_dict(toml.load(f))

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "FormaConfig":
        with open(path, "r") as f:
            return cls.from_dict(yaml.safe_load(f) or {})

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "FormaConfig":
        """Load by file extension (.toml, .yaml or .yml)."""
        suffix = Path(path).suffix.lower()
        if suffix == ".toml":
            return cls.from_toml(path)
        if suffix in (".yaml", ".yml"):
            return cls.from_yaml(path)
        raise ConfigError("unsupported configuration format", {"path": str(path)})

    def with_overrides(self, **kwargs: Any) -> "FormaConfig":
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["window_dims"] = list(self.window_dims)
        return d
