"""DataCube class for storing one timestep of multi-band grid data."""

from typing import Any, Dict, Iterable, Optional, Union
import numpy as np
import pandas as pd
import xarray as xr
from dataclasses import dataclass, field
import rasterio.crs


@dataclass
class DataCube:
    """
    A timestamped container of co-registered 2-D grids.

    Forcing records, daily model outputs and period outputs are all
    DataCubes; they differ only in the bands they carry. No-data cells
    are stored as NaN.

    Attributes:
        data: Dictionary storing band name -> xarray.DataArray mappings
        time: Timestamp of the record (ordering key for period sequences)
        crs: Coordinate reference system (rasterio format)
        transform: Affine transform for the grid
        metadata: Additional metadata dictionary
    """

    data: Dict[str, xr.DataArray] = field(default_factory=dict)
    time: Optional[pd.Timestamp] = None
    crs: Optional[rasterio.crs.CRS] = None
    transform: Optional[Any] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.time is not None:
            self.time = pd.Timestamp(self.time)

    def add(self, name: str, data: Union[xr.DataArray, np.ndarray, float]) -> 'DataCube':
        """
        Add a band or scalar value to the DataCube.

        Args:
            name: Name of the band/scalar
            data: xarray.DataArray, numpy array, or scalar value

        Returns:
            self for method chaining
        """
        if isinstance(data, xr.DataArray):
            self.data[name] = data.rename(name)
        elif isinstance(data, (int, float)):
            self.metadata[name] = data
        else:
            self.data[name] = xr.DataArray(np.asarray(data, dtype=np.float64), dims=['y', 'x'], name=name)
        return self

    def __getitem__(self, name: str) -> xr.DataArray:
        if name not in self.data:
            raise KeyError(f"Band '{name}' not found in DataCube")
        return self.data[name]

    def __contains__(self, name: str) -> bool:
        return name in self.data

    def bands(self) -> list:
        """Return list of band names stored in data (not metadata)."""
        return list(self.data.keys())

    def missing_bands(self, required: Iterable[str]) -> list:
        """Return the required band names this cube does not carry."""
        return [b for b in required if b not in self.data]

    def select(self, names: Iterable[str]) -> 'DataCube':
        """
        Return a new DataCube holding only the named bands, in that order.

        Raises:
            KeyError: If a band is not found
        """
        return DataCube(
            data={name: self[name] for name in names},
            time=self.time,
            crs=self.crs,
            transform=self.transform,
            metadata=dict(self.metadata),
        )

    def shape(self, band_name: str) -> tuple:
        """
        Get the shape of a specific band.

        Raises:
            KeyError: If band not found
        """
        return self[band_name].shape

    @property
    def y_dim(self) -> int:
        """Get the y-dimension size (first dimension of bands)."""
        if not self.data:
            raise ValueError("No data in DataCube")
        return next(iter(self.data.values())).shape[0]

    @property
    def x_dim(self) -> int:
        """Get the x-dimension size (second dimension of bands)."""
        if not self.data:
            raise ValueError("No data in DataCube")
        return next(iter(self.data.values())).shape[1]

    def __repr__(self) -> str:
        shape = (self.y_dim, self.x_dim) if self.data else ()
        return (f"DataCube(time={self.time}, bands={self.bands()}, "
                f"shape={shape}, crs={self.crs})")
