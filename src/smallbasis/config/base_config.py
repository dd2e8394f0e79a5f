# smallbasis/config/base_config.py
from __future__ import annotations
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict

from ..errors import ConfigurationError
from ..utils.yaml_io import load_yaml

DEFAULT_BLOCK_SIZE = 16


@dataclass
class CompressorConfig:
    quality: float = 0.5
    block_size: int = DEFAULT_BLOCK_SIZE
    basis: str = "trig"                 # "trig" or "ortho"
    coefficient_dtype: str = "float64"  # storage precision of the coefficients
    zlib_level: int = 3

    def __post_init__(self):
        try:
            self.quality = float(self.quality)
            self.block_size = int(self.block_size)
            self.zlib_level = int(self.zlib_level)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"invalid compressor config: {exc}") from exc
        self.basis = str(self.basis).lower()
        self.coefficient_dtype = str(self.coefficient_dtype).lower()

        if not 0.0 <= self.quality <= 1.0:
            raise ConfigurationError(f"quality must lie in [0, 1], got {self.quality}")
        if self.block_size <= 0:
            raise ConfigurationError(f"block_size must be positive, got {self.block_size}")
        if self.basis not in ("trig", "ortho"):
            raise ConfigurationError(f"Unknown basis kind: {self.basis!r}")
        if self.coefficient_dtype not in ("float32", "float64"):
            raise ConfigurationError(f"Unsupported coefficient dtype: {self.coefficient_dtype!r}")
        if not 0 <= self.zlib_level <= 9:
            raise ConfigurationError(f"zlib_level must lie in [0, 9], got {self.zlib_level}")

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "CompressorConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ConfigurationError(f"unknown compressor config keys: {sorted(unknown)}")
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "CompressorConfig":
        """Load from a YAML mapping, optionally nested under a ``compressor`` key."""
        data = load_yaml(path)
        if not isinstance(data, dict):
            raise ConfigurationError(f"{path}: expected a mapping at the top level")
        section = data.get("compressor", data)
        if not isinstance(section, dict):
            raise ConfigurationError(f"{path}: 'compressor' must be a mapping")
        return cls.from_dict(section)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
