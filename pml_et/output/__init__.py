"""Output writers and yearly aggregation for PML period outputs."""

from .writer import (
    OutputWriter,
    geotiff_name,
    to_dataset,
    write_period_netcdf,
    write_multiband_geotiff,
    write_statistics_csv,
)
from .aggregation import annual_totals, days_in_year

__all__ = [
    'OutputWriter',
    'geotiff_name',
    'to_dataset',
    'write_period_netcdf',
    'write_multiband_geotiff',
    'write_statistics_csv',
    'annual_totals',
    'days_in_year',
]
