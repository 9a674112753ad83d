"""
Pytest configuration and fixtures for PML pipeline tests.

Provides forcing, parameter and daily-output factories on small grids.
"""

import pytest
import numpy as np
import pandas as pd
import xarray as xr
from pathlib import Path
import sys

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

GRID_SHAPE = (2, 3)

# Mid-latitude summer day, moderately dry air
FORCING_DEFAULTS = {
    "LAI": 2.0,
    "Emiss": 0.97,
    "Albedo": 0.15,
    "Pa": 100.0,
    "Tmax": 25.0,
    "Tmin": 15.0,
    "Tavg": 20.0,
    "Prcp": 5.0,
    "Rln": 350.0,
    "Rs": 250.0,
    "U2": 2.0,
    "co2": 380.0,
    "q": 0.008,
    "qc": 0.0,
}

PARAMETER_DEFAULTS = {
    "hc": 10.0,
    "LAIref": 4.5,
    "S_sls": 0.1,
    "fER0": 0.05,
    "gsx": 0.005,
    "Am": 10.0,
    "Alpha": 0.06,
    "Thelta": 0.02,
    "m": 10.0,
    "VPDmin": 0.9,
    "VPDmax": 4.0,
    "D0": 0.7,
    "kQ": 0.45,
    "kA": 0.7,
}


def _grid(value, shape=GRID_SHAPE, name=None):
    arr = np.broadcast_to(np.asarray(value, dtype=np.float64), shape).copy()
    return xr.DataArray(arr, dims=["y", "x"], name=name)


def make_forcing(time="2010-01-01", shape=GRID_SHAPE, include_qc=True, **overrides):
    """Forcing record with uniform default values; overrides may be scalars or arrays."""
    from pml_et.core.datacube import DataCube

    cube = DataCube(time=pd.Timestamp(time))
    for band, value in FORCING_DEFAULTS.items():
        if band == "qc" and not include_qc:
            continue
        cube.add(band, _grid(overrides.get(band, value), shape))
    return cube


def make_parameters(variant="PML_V2", shape=GRID_SHAPE, land_cover=None, year=2010, **overrides):
    """Parameter set with uniform default values for the variant."""
    from pml_et.config.settings import PARAMETER_BANDS
    from pml_et.core.constants import ModelVariant
    from pml_et.core.parameter_set import ParameterSet

    variant = ModelVariant.parse(variant)
    grids = {
        name: _grid(overrides.get(name, PARAMETER_DEFAULTS[name]), shape, name)
        for name in PARAMETER_BANDS[variant]
    }
    lc = None if land_cover is None else _grid(land_cover, shape, "land_cover")
    return ParameterSet(year=year, variant=variant, grids=grids, land_cover=lc)


def make_daily(time, Pi, Es_eq, shape=GRID_SHAPE, variant="PML_V2", **overrides):
    """Daily output record with given Pi / Es_eq and constant other bands."""
    from pml_et.core.datacube import DataCube

    cube = DataCube(time=pd.Timestamp(time), metadata={"variant": variant})
    bands = {"Es_eq": Es_eq, "Ec": 1.5, "Ei": 0.3, "Pi": Pi, "ET_water": np.nan, "qc": 0.0}
    if variant in ("PML_V2", "V2"):
        bands["GPP"] = 4.0
    bands.update(overrides)
    for band, value in bands.items():
        cube.add(band, _grid(value, shape))
    return cube


@pytest.fixture
def forcing_factory():
    return make_forcing


@pytest.fixture
def parameter_factory():
    return make_parameters


@pytest.fixture
def daily_factory():
    return make_daily


@pytest.fixture
def forcing_cube():
    """Single forcing record with default values."""
    return make_forcing()


@pytest.fixture
def params_v2():
    """PML_V2 parameter set, all pixels vegetated (class 1)."""
    return make_parameters("PML_V2", land_cover=1)


@pytest.fixture
def params_v1():
    """PML_V1 parameter set, all pixels vegetated (class 1)."""
    return make_parameters("PML_V1", land_cover=1)


@pytest.fixture
def mixed_land_cover():
    """Water (0), vegetation (1, 5), snow/ice (15), unclassified (NaN)."""
    return np.array([[0.0, 1.0, 5.0], [15.0, np.nan, 1.0]])


@pytest.fixture
def parameter_table():
    """Per-class parameter table covering both variants."""
    rows = {
        0: dict(PARAMETER_DEFAULTS, hc=0.0, gsx=0.0, Am=0.0, Alpha=0.0, Thelta=0.0),
        1: dict(PARAMETER_DEFAULTS),
        5: dict(PARAMETER_DEFAULTS, hc=20.0, gsx=0.008, Am=15.0),
        15: dict(PARAMETER_DEFAULTS, hc=0.0, gsx=0.0, Am=0.0, Alpha=0.0, Thelta=0.0),
    }
    table = pd.DataFrame.from_dict(rows, orient="index")
    table.index.name = "class"
    return table


@pytest.fixture
def forcing_dataset():
    """Forcing dataset with five 8-day composites in 2010 and two in 2011."""
    times = pd.to_datetime([
        "2010-01-01", "2010-01-09", "2010-01-17", "2010-01-25", "2010-02-02",
        "2011-01-01", "2011-01-09",
    ])
    data = {}
    for band, value in FORCING_DEFAULTS.items():
        arr = np.full((len(times),) + GRID_SHAPE, value, dtype=np.float64)
        data[band] = (("time", "lat", "lon"), arr)
    data["Prcp"][1][1] = 0.0
    return xr.Dataset(data, coords={"time": times})


@pytest.fixture
def land_cover_by_year(mixed_land_cover):
    """Land-cover grids for the whole classification range."""
    return {year: _grid(mixed_land_cover) for year in range(2001, 2019)}
