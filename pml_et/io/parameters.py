"""Land-cover parameter provider for the PML model.

Builds per-pixel parameter grids by mapping a yearly land-cover
classification through a per-class parameter table. Land cover exists for
2001-2018 only; other years use the nearest year of that range.
"""

from pathlib import Path
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd
import rioxarray
import xarray as xr
import yaml
from loguru import logger

from ..config.settings import PARAMETER_BANDS, clamp_land_cover_year
from ..core.constants import ModelVariant
from ..core.parameter_set import ParameterSet
from ..utils.exceptions import DataInputError, ParameterError
from .forcing import DIM_ALIASES

LandCoverSource = Union[Mapping[int, xr.DataArray], xr.DataArray, Callable[[int], xr.DataArray]]

# Class values that mean "not classified"
UNCLASSIFIED_VALUES = (255,)


def load_parameter_table(path: Union[str, Path]) -> pd.DataFrame:
    """
    Read a per-class parameter table.

    CSV files need a ``class`` column with the land-cover code and one
    column per parameter. YAML files map each class code to a dictionary
    of parameter values.

    Returns:
        DataFrame indexed by land-cover code

    Raises:
        DataInputError: If the file is missing or has an unknown format
    """
    path = Path(path)
    if not path.exists():
        raise DataInputError(f"Parameter table not found: {path}", input_type="parameter table",
                             file_path=str(path))

    suffix = path.suffix.lower()
    if suffix == ".csv":
        table = pd.read_csv(path)
        if "class" not in table.columns:
            raise DataInputError("Parameter table needs a 'class' column", input_type="parameter table",
                                 file_path=str(path))
        table = table.set_index("class")
    elif suffix in (".yaml", ".yml"):
        with open(path, "r") as f:
            table = pd.DataFrame.from_dict(yaml.safe_load(f), orient="index")
        table.index.name = "class"
    else:
        raise DataInputError(f"Unsupported parameter table format: {suffix}", input_type="parameter table",
                             file_path=str(path))

    table.index = table.index.astype(int)
    logger.debug(f"Read parameter table {path}: {len(table)} classes, columns {list(table.columns)}")
    return table


def load_land_cover(path: Union[str, Path], variable: Optional[str] = None) -> xr.DataArray:
    """
    Read land-cover grids from NetCDF or GeoTIFF.

    A NetCDF variable with a ``year`` (or ``time``) dimension gives one grid
    per year. A single-band GeoTIFF gives one grid used for every year.
    """
    path = Path(path)
    if not path.exists():
        raise DataInputError(f"Land-cover file not found: {path}", input_type="land cover",
                             file_path=str(path))

    if path.suffix.lower() in (".tif", ".tiff"):
        grid = rioxarray.open_rasterio(path, masked=True)
        if "band" in grid.dims:
            grid = grid.isel(band=0, drop=True)
        return grid.rename("land_cover")

    dataset = xr.open_dataset(path)
    name = variable or ("land_cover" if "land_cover" in dataset.data_vars else list(dataset.data_vars)[0])
    grid = dataset[name]
    grid = grid.rename({k: v for k, v in DIM_ALIASES.items() if k in grid.dims})
    if "time" in grid.dims and "year" not in grid.dims:
        grid = grid.assign_coords(time=grid["time"].dt.year).rename(time="year")
    return grid.rename("land_cover")


class LandCoverParameterProvider:
    """
    Parameter sets built from land cover and a per-class table.

    Attributes:
        table: Parameter values indexed by land-cover code
        unclassified_values: Land-cover values treated as no-data

    Example:
        >>> provider = LandCoverParameterProvider.from_files("params.csv", "land_cover.nc")
        >>> params = provider.get(2010, "PML_V2")
        >>> params.summary()
    """

    def __init__(
        self,
        land_cover: LandCoverSource,
        table: pd.DataFrame,
        unclassified_values: Iterable[int] = UNCLASSIFIED_VALUES,
    ):
        self.land_cover = land_cover
        self.table = table.copy()
        self.table.index = self.table.index.astype(float)
        self.unclassified_values = tuple(unclassified_values)
        self._cache: Dict[Tuple[int, ModelVariant], ParameterSet] = {}

    @classmethod
    def from_files(cls, table_path, land_cover_path, variable: Optional[str] = None, **kwargs):
        return cls(load_land_cover(land_cover_path, variable), load_parameter_table(table_path), **kwargs)

    def land_cover_for(self, year: int) -> xr.DataArray:
        """
        Land-cover grid for an already clamped year, unclassified pixels as NaN.

        Raises:
            ParameterError: If the source has no grid for the year
        """
        source = self.land_cover
        if callable(source) and not isinstance(source, xr.DataArray):
            grid = source(year)
        elif isinstance(source, xr.DataArray):
            if "year" in source.dims:
                if year not in source["year"].values:
                    raise ParameterError(f"No land cover for {year}", parameter="land_cover")
                grid = source.sel(year=year, drop=True)
            else:
                grid = source
        else:
            if year not in source:
                raise ParameterError(f"No land cover for {year}", parameter="land_cover")
            grid = source[year]

        grid = grid.astype(np.float64)
        if self.unclassified_values:
            grid = grid.where(~grid.isin(list(self.unclassified_values)))
        return grid.rename("land_cover")

    def _lookup(self, land_cover: xr.DataArray, name: str) -> xr.DataArray:
        codes = np.asarray(land_cover, dtype=np.float64)
        values = self.table[name].reindex(pd.Index(codes.ravel())).to_numpy(dtype=np.float64)
        return land_cover.copy(data=values.reshape(codes.shape)).rename(name)

    def get(self, year: int, variant=ModelVariant.V2) -> ParameterSet:
        """
        Parameter set for a year and variant.

        The year is clamped into the land-cover range first; results are
        cached per (land-cover year, variant).

        Raises:
            ParameterError: If the table lacks a parameter of the variant
        """
        variant = ModelVariant.parse(variant)
        land_year = clamp_land_cover_year(year)
        key = (land_year, variant)
        if key in self._cache:
            return self._cache[key]

        required = PARAMETER_BANDS[variant]
        missing = [name for name in required if name not in self.table.columns]
        if missing:
            raise ParameterError(f"Parameter table lacks {variant.value} columns {missing}",
                                 parameter=", ".join(missing))

        land_cover = self.land_cover_for(land_year)
        classes = np.unique(land_cover.values[np.isfinite(land_cover.values)])
        unknown = sorted(set(classes) - set(self.table.index))
        if unknown:
            logger.warning(f"Land-cover classes {unknown} are not in the parameter table; set to no-data")

        if land_year != int(year):
            logger.info(f"Year {year} uses land cover of {land_year}")

        params = ParameterSet(
            year=land_year,
            variant=variant,
            grids={name: self._lookup(land_cover, name) for name in required},
            land_cover=land_cover,
            metadata={"classes": [int(c) for c in classes]},
        )
        self._cache[key] = params
        return params

    def clear_cache(self) -> None:
        self._cache.clear()
