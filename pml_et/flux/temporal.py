"""
Period-level soil evaporation correction.

The only component that looks across timesteps. For one period of daily
outputs (ascending, unique timestamps):

    Pi_avg, Es_eq_avg = backward moving average over the current and the
                        two preceding steps (shorter at the start)
    fval_soil         = clamp(Pi_avg / Es_eq_avg, 0, 1)
    Es                = Es_eq * fval_soil

then the final band set is reassembled and quantized.
"""

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np
import pandas as pd
import xarray as xr
from loguru import logger

from ..config.settings import QC_BAND, SOIL_MOISTURE_WINDOW, period_bands
from ..core.constants import ModelVariant
from ..core.datacube import DataCube
from ..utils.exceptions import ConfigurationError, DataInputError
from ..utils.validation import validate_time_order
from .quantization import Quantizer


@dataclass
class AggregatorConfig:
    """Configuration for the temporal pass."""
    window: int = SOIL_MOISTURE_WINDOW
    variant: ModelVariant = ModelVariant.V2
    include_qc: bool = True

    def __post_init__(self):
        self.variant = ModelVariant.parse(self.variant)
        if int(self.window) < 1:
            raise ConfigurationError("Moving-average window must be at least 1", config_param="window")
        self.window = int(self.window)


def stack_band(records: Sequence[DataCube], band: str, times: pd.DatetimeIndex) -> xr.DataArray:
    """Stack one band of a record sequence along a new time dimension."""
    grids = [record[band].drop_vars("time", errors="ignore") for record in records]
    return xr.concat(grids, dim=pd.Index(times, name="time")).rename(band)


def backward_moving_average(stack: xr.DataArray, window: int = SOIL_MOISTURE_WINDOW) -> xr.DataArray:
    """
    Trailing mean over the current and window - 1 preceding steps.

    The window shrinks at the start of the sequence; no-data steps inside a
    window are skipped, and a window without any valid value is no-data.
    """
    return stack.rolling(time=window, min_periods=1).mean()


def soil_water_factor(pi_avg: xr.DataArray, es_eq_avg: xr.DataArray) -> xr.DataArray:
    """fval_soil = clamp(Pi_avg / Es_eq_avg, 0, 1); no-data where the denominator is 0 or missing."""
    with np.errstate(divide="ignore", invalid="ignore"):
        ratio = pi_avg / es_eq_avg.where(es_eq_avg != 0)
    return ratio.clip(min=0.0, max=1.0).rename("fval_soil")


def nearest_time_index(source: Sequence, target: Sequence) -> np.ndarray:
    """
    For every target timestamp, the position of the closest source timestamp.

    Ties go to the earlier source timestamp.

    Args:
        source: Ascending candidate timestamps
        target: Timestamps to match

    Returns:
        Integer array of positions into source, one per target
    """
    src = pd.DatetimeIndex(source).asi8
    tgt = pd.DatetimeIndex(target).asi8
    if len(src) == 0:
        raise DataInputError("No candidate timestamps to match against", input_type="time index")

    right = np.searchsorted(src, tgt, side="left").clip(0, len(src) - 1)
    left = (right - 1).clip(0, len(src) - 1)
    pick_left = np.abs(tgt - src[left]) <= np.abs(src[right] - tgt)
    return np.where(pick_left, left, right)


class TemporalAggregator:
    """
    Turn one period of daily outputs into the final period outputs.

    Attributes:
        config: Window length, variant and qc passthrough
        quantizer: Fixed-point conversion applied to every flux band
    """

    def __init__(self, config: AggregatorConfig = None, quantizer: Quantizer = None):
        self.config = config or AggregatorConfig()
        self.quantizer = quantizer or Quantizer()

    @property
    def output_bands(self) -> list:
        return period_bands(self.config.variant, self.config.include_qc)

    def _check_records(self, daily: Sequence[DataCube]) -> pd.DatetimeIndex:
        times = validate_time_order([record.time for record in daily])
        needed = [b for b in self.output_bands if b != "Es"] + ["Es_eq", "Pi"]
        for position, record in enumerate(daily):
            missing = record.missing_bands(needed)
            if missing:
                raise DataInputError(
                    f"Daily output at position {position} lacks bands {missing}",
                    input_type="daily output",
                )
        return times

    def soil_water_availability(self, daily: Sequence[DataCube]) -> xr.DataArray:
        """
        Soil-water-availability factor for every record of a period.

        Returns:
            fval_soil stacked along time, one step per daily record
        """
        times = validate_time_order([record.time for record in daily])
        window = self.config.window
        pi_avg = backward_moving_average(stack_band(daily, "Pi", times), window)
        es_avg = backward_moving_average(stack_band(daily, "Es_eq", times), window)
        return soil_water_factor(pi_avg, es_avg)

    def aggregate(self, daily: Sequence[DataCube]) -> List[DataCube]:
        """
        Correct soil evaporation and assemble the period outputs.

        Args:
            daily: Daily outputs of one period, ascending unique timestamps

        Returns:
            Period outputs, same length and order as the input
        """
        if not daily:
            return []
        times = self._check_records(daily)

        fval = self.soil_water_availability(daily)
        match = nearest_time_index(fval["time"].values, times)
        logger.debug(
            f"Soil-water factor over {len(times)} steps: "
            f"mean={float(fval.mean()):.3f}, window={self.config.window}"
        )

        outputs = []
        for record, position in zip(daily, match):
            factor = fval.isel(time=int(position)).drop_vars("time")
            es = (record["Es_eq"].drop_vars("time", errors="ignore") * factor).rename("Es")

            period = DataCube(time=record.time, crs=record.crs, transform=record.transform,
                              metadata=dict(record.metadata))
            for band in self.output_bands:
                if band == QC_BAND:
                    period.add(band, record[QC_BAND])
                else:
                    grid = es if band == "Es" else record[band]
                    period.add(band, self.quantizer.quantize(grid))
            outputs.append(period)
        return outputs
