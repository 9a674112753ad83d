"""
Fixed-point representation of flux grids.

Physical values are scaled by 100 and stored as unsigned integers. Values
outside the representable range are clamped before rounding so they never
wrap; the largest integer is reserved for no-data on export.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np
import xarray as xr
from loguru import logger

from ..config.settings import QUANTIZATION
from ..utils.exceptions import QuantizationError

ROUNDING_MODES = ("nearest", "floor")


@dataclass
class QuantizationConfig:
    """Configuration of the fixed-point output representation."""
    scale: float = QUANTIZATION["scale"]
    dtype: str = QUANTIZATION["dtype"]
    nodata: Optional[int] = QUANTIZATION["nodata"]
    rounding: str = QUANTIZATION["rounding"]

    def __post_init__(self):
        if not np.issubdtype(np.dtype(self.dtype), np.integer):
            raise QuantizationError("Output dtype must be an integer type", dtype=self.dtype)
        if self.scale <= 0:
            raise QuantizationError("Scale must be positive", scale=self.scale)
        if self.rounding not in ROUNDING_MODES:
            raise QuantizationError(f"Rounding must be one of {ROUNDING_MODES}, got {self.rounding!r}")
        info = np.iinfo(self.dtype)
        if self.nodata is not None and not info.min <= self.nodata <= info.max:
            raise QuantizationError(f"No-data value {self.nodata} does not fit {self.dtype}", dtype=self.dtype)

    @property
    def ceiling(self) -> int:
        """Largest integer a valid value may take."""
        info = np.iinfo(self.dtype)
        return info.max - 1 if self.nodata == info.max else info.max

    @property
    def floor(self) -> int:
        """Smallest integer a valid value may take."""
        info = np.iinfo(self.dtype)
        return info.min + 1 if self.nodata == info.min else info.min

    @property
    def physical_range(self) -> tuple:
        return self.floor / self.scale, self.ceiling / self.scale


class Quantizer:
    """Convert physical flux grids to and from the fixed-point representation."""

    def __init__(self, config: QuantizationConfig = None):
        self.config = config or QuantizationConfig()

    def quantize(self, grid: xr.DataArray) -> xr.DataArray:
        """
        Scale, clamp and round a physical grid.

        The result is integer-valued float64 so no-data stays NaN until
        export; use to_integer() for the packed integer array.
        """
        cfg = self.config
        lo, hi = cfg.physical_range
        clamped = int(((grid > hi) | (grid < lo)).sum())
        if clamped:
            logger.warning(
                f"Clamped {clamped} pixel(s) of {grid.name or 'grid'} to "
                f"[{lo}, {hi}] before scaling by {cfg.scale:g}"
            )
        scaled = grid.clip(min=lo, max=hi) * cfg.scale
        rounded = np.rint(scaled) if cfg.rounding == "nearest" else np.floor(scaled)
        # rounding can step past the clamp on the last ulp
        rounded = rounded.clip(min=cfg.floor, max=cfg.ceiling)
        rounded.attrs = dict(grid.attrs, fixed_point_scale=cfg.scale)
        return rounded.rename(grid.name)

    def dequantize(self, grid: xr.DataArray) -> xr.DataArray:
        """Recover physical magnitudes from a quantized grid."""
        physical = grid / self.config.scale
        physical.attrs = {k: v for k, v in grid.attrs.items() if k != "fixed_point_scale"}
        return physical.rename(grid.name)

    def to_integer(self, grid) -> np.ndarray:
        """Pack an integer-valued grid into the output dtype, no-data as the fill value."""
        cfg = self.config
        values = np.asarray(grid, dtype=np.float64)
        nodata = cfg.nodata if cfg.nodata is not None else 0
        return np.where(np.isnan(values), nodata, values).astype(cfg.dtype)
