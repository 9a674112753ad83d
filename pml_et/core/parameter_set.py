"""Immutable land-cover parameter grids for one (year, variant)."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

import numpy as np
import xarray as xr

from .constants import ModelVariant


@dataclass(frozen=True)
class ParameterSet:
    """
    Land-cover-dependent constant grids for one land-cover year and variant.

    Attributes:
        year: Land-cover year the grids were built from (already clamped)
        variant: Model variant the parameters belong to
        grids: Read-only mapping of parameter name -> grid
        land_cover: Land-cover class grid (NaN where unclassified)
    """

    year: int
    variant: ModelVariant
    grids: Mapping[str, xr.DataArray]
    land_cover: Optional[xr.DataArray] = None
    metadata: Mapping = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "variant", ModelVariant.parse(self.variant))
        object.__setattr__(self, "grids", MappingProxyType(dict(self.grids)))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def __getitem__(self, name: str) -> xr.DataArray:
        if name not in self.grids:
            raise KeyError(f"Parameter '{name}' not found for {self.variant.value} ({self.year})")
        return self.grids[name]

    def __contains__(self, name: str) -> bool:
        return name in self.grids

    def get(self, name: str, default=None):
        return self.grids.get(name, default)

    def names(self) -> list:
        return list(self.grids.keys())

    def missing(self, required: Iterable[str]) -> list:
        return [name for name in required if name not in self.grids]

    @property
    def shape(self) -> tuple:
        return next(iter(self.grids.values())).shape

    def summary(self) -> dict:
        """Mean, min and max of every parameter grid, ignoring no-data."""
        stats = {}
        for name, grid in self.grids.items():
            values = np.asarray(grid, dtype=np.float64)
            finite = values[np.isfinite(values)]
            stats[name] = {
                "mean": float(finite.mean()) if finite.size else float("nan"),
                "min": float(finite.min()) if finite.size else float("nan"),
                "max": float(finite.max()) if finite.size else float("nan"),
            }
        return stats
