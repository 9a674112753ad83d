"""Yearly totals from period outputs."""

from typing import Sequence

import pandas as pd
import xarray as xr
from loguru import logger

from ..config.settings import QC_BAND
from ..core.datacube import DataCube
from ..flux.quantization import Quantizer
from ..utils.exceptions import OutputError


def days_in_year(year: int) -> int:
    start = pd.Timestamp(year=int(year), month=1, day=1)
    return (start + pd.DateOffset(years=1) - start).days


def annual_totals(period: Sequence[DataCube], year: int, quantizer: Quantizer = None) -> DataCube:
    """
    Yearly sum of every flux band from the period outputs of one year.

    total = mean(band over the period) * days in year / scale

    The mean skips no-data steps; a pixel without any valid step stays
    no-data. Results are physical (mm/year, gC/m²/year).

    Args:
        period: Quantized period outputs of one year
        year: Calendar year of the period
        quantizer: Supplies the fixed-point scale

    Returns:
        DataCube stamped at 1 January of the year, without qc
    """
    quantizer = quantizer or Quantizer()
    if not period:
        raise OutputError(f"No period outputs for {year}", output_type="annual totals")

    ndays = days_in_year(year)
    first = period[0]
    totals = DataCube(
        time=pd.Timestamp(year=int(year), month=1, day=1),
        crs=first.crs,
        transform=first.transform,
        metadata=dict(first.metadata, days_in_year=ndays, steps=len(period)),
    )
    for band in first.bands():
        if band == QC_BAND:
            continue
        stack = xr.concat([cube[band].drop_vars("time", errors="ignore") for cube in period], dim="time")
        totals.add(band, stack.mean("time", skipna=True) * ndays / quantizer.config.scale)

    logger.debug(f"Annual totals for {year} from {len(period)} step(s), {ndays} days")
    return totals
