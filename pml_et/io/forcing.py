"""Forcing provider for the PML model.

Serves the per-timestep meteorological and remote-sensing grids of one
calendar year as an ascending sequence of DataCubes.
"""

from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
import pandas as pd
import rioxarray  # noqa: F401  (registers the .rio accessor)
import xarray as xr
from loguru import logger

from ..config.settings import required_forcing_bands
from ..core.datacube import DataCube
from ..utils.exceptions import DataInputError, ForcingBandError
from ..utils.validation import validate_time_order

# Dimension names normalized to the (y, x) grid layout
DIM_ALIASES = {
    "lat": "y",
    "latitude": "y",
    "lon": "x",
    "longitude": "x",
}


class ForcingProvider:
    """
    Forcing records backed by an xarray.Dataset with a time dimension.

    Every data variable is one band. Variables can be renamed to band names
    with band_mapping, and rescaled with scale_factors / add_offsets
    (value * scale + offset) to the units the model expects.

    Example:
        >>> provider = ForcingProvider.from_netcdf("data/forcing_2010.nc")
        >>> records = provider.get_period(2010)
        >>> print(records[0])
    """

    def __init__(
        self,
        dataset: xr.Dataset,
        include_qc: bool = True,
        band_mapping: Optional[Dict[str, str]] = None,
        scale_factors: Optional[Dict[str, float]] = None,
        add_offsets: Optional[Dict[str, float]] = None,
        crs=None,
        transform=None,
    ):
        if "time" not in dataset.dims:
            raise DataInputError("Forcing dataset has no time dimension", input_type="forcing")

        dataset = dataset.rename({k: v for k, v in DIM_ALIASES.items() if k in dataset.dims})
        if band_mapping:
            dataset = dataset.rename({k: v for k, v in band_mapping.items() if k in dataset.data_vars})

        self.dataset = dataset.sortby("time")
        self.include_qc = include_qc
        self.scale_factors = scale_factors or {}
        self.add_offsets = add_offsets or {}
        self.crs = crs if crs is not None else self._dataset_crs()
        self.transform = transform if transform is not None else self._dataset_transform()

    @classmethod
    def from_netcdf(cls, path: Union[str, Path], **kwargs) -> "ForcingProvider":
        """
        Open a NetCDF file of forcing grids.

        Raises:
            DataInputError: If the file does not exist
        """
        path = Path(path)
        if not path.exists():
            raise DataInputError(f"Forcing file not found: {path}", input_type="forcing", file_path=str(path))
        logger.info(f"Opening forcing dataset {path}")
        return cls(xr.open_dataset(path), **kwargs)

    def _dataset_crs(self):
        try:
            return self.dataset.rio.crs
        except Exception as e:
            logger.debug(f"No CRS found on forcing dataset: {e}")
            return None

    def _dataset_transform(self):
        if "x" not in self.dataset.coords or "y" not in self.dataset.coords:
            return None
        try:
            return self.dataset.rio.transform()
        except Exception as e:
            logger.debug(f"Cannot derive a transform from forcing coordinates: {e}")
            return None

    @property
    def required_bands(self) -> list:
        return required_forcing_bands(self.include_qc)

    def years(self) -> List[int]:
        """Calendar years covered by the dataset."""
        return sorted(int(y) for y in np.unique(self.dataset["time"].dt.year.values))

    def get_period(self, year: int) -> List[DataCube]:
        """
        Forcing records of one calendar year.

        Returns:
            DataCubes in ascending, unique time order; empty if the year is
            not covered

        Raises:
            ForcingBandError: If a required band is not in the dataset
            TimestampOrderError: If timestamps repeat
        """
        missing = [b for b in self.required_bands if b not in self.dataset.data_vars]
        if missing:
            raise ForcingBandError(f"Forcing dataset lacks bands {missing}", missing_bands=missing)

        subset = self.dataset.sel(time=self.dataset["time"].dt.year == int(year))
        times = validate_time_order(subset["time"].values)
        logger.info(f"Loaded {len(times)} forcing record(s) for {year}")

        records = []
        for position, time in enumerate(times):
            step = subset.isel(time=position)
            cube = DataCube(time=pd.Timestamp(time), crs=self.crs, transform=self.transform)
            for band in self.required_bands:
                grid = step[band].drop_vars("time", errors="ignore").astype(np.float64)
                scale = self.scale_factors.get(band, 1.0)
                offset = self.add_offsets.get(band, 0.0)
                if scale != 1.0 or offset != 0.0:
                    grid = grid * scale + offset
                cube.add(band, grid)
            records.append(cube)
        return records
