"""
Unit tests for forcing and parameter providers.
"""

import pytest
import numpy as np
import pandas as pd
import xarray as xr
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))


class TestForcingProvider:
    """Test ForcingProvider."""

    def test_dims_renamed(self, forcing_dataset):
        from pml_et.io import ForcingProvider

        provider = ForcingProvider(forcing_dataset)

        assert set(provider.dataset.dims) == {"time", "y", "x"}
        assert provider.years() == [2010, 2011]

    def test_no_time_dimension(self, forcing_dataset):
        from pml_et.io import ForcingProvider
        from pml_et.utils.exceptions import DataInputError

        with pytest.raises(DataInputError):
            ForcingProvider(forcing_dataset.isel(time=0))

    def test_get_period(self, forcing_dataset):
        from pml_et.io import ForcingProvider

        records = ForcingProvider(forcing_dataset).get_period(2010)

        assert len(records) == 5
        assert records[0].time == pd.Timestamp("2010-01-01")
        assert records[-1].time == pd.Timestamp("2010-02-02")
        assert records[0].bands() == ForcingProvider(forcing_dataset).required_bands
        assert records[0]["LAI"].dims == ("y", "x")
        np.testing.assert_array_equal(records[1]["Prcp"][1], 0.0)
        np.testing.assert_array_equal(records[0]["Prcp"][1], 5.0)

    def test_uncovered_year_is_empty(self, forcing_dataset):
        from pml_et.io import ForcingProvider

        assert ForcingProvider(forcing_dataset).get_period(2005) == []

    def test_unsorted_input_is_sorted(self, forcing_dataset):
        from pml_et.io import ForcingProvider

        shuffled = forcing_dataset.isel(time=[3, 0, 4, 1, 2, 6, 5])
        records = ForcingProvider(shuffled).get_period(2010)

        assert [r.time for r in records] == sorted(r.time for r in records)

    def test_duplicate_times(self, forcing_dataset):
        from pml_et.io import ForcingProvider
        from pml_et.utils.exceptions import TimestampOrderError

        duplicated = forcing_dataset.isel(time=[0, 0, 1])

        with pytest.raises(TimestampOrderError):
            ForcingProvider(duplicated).get_period(2010)

    def test_missing_band(self, forcing_dataset):
        from pml_et.io import ForcingProvider
        from pml_et.utils.exceptions import ForcingBandError

        with pytest.raises(ForcingBandError):
            ForcingProvider(forcing_dataset.drop_vars("Rln")).get_period(2010)

    def test_qc_optional(self, forcing_dataset):
        from pml_et.io import ForcingProvider

        records = ForcingProvider(forcing_dataset.drop_vars("qc"), include_qc=False).get_period(2011)

        assert "qc" not in records[0]
        assert len(records) == 2

    def test_band_mapping_and_scaling(self, forcing_dataset):
        from pml_et.io import ForcingProvider

        ds = forcing_dataset.rename({"Tavg": "t2m"})
        ds["t2m"] = ds["t2m"] + 273.15
        provider = ForcingProvider(ds, band_mapping={"t2m": "Tavg"}, add_offsets={"Tavg": -273.15},
                                   scale_factors={"Prcp": 0.5})
        record = provider.get_period(2010)[0]

        np.testing.assert_allclose(record["Tavg"], 20.0)
        np.testing.assert_allclose(record["Prcp"], 2.5)

    def test_from_netcdf(self, forcing_dataset, tmp_path):
        from pml_et.io import ForcingProvider

        path = tmp_path / "forcing.nc"
        forcing_dataset.to_netcdf(path)
        provider = ForcingProvider.from_netcdf(path)

        assert provider.years() == [2010, 2011]
        assert len(provider.get_period(2011)) == 2

    def test_from_netcdf_missing_file(self, tmp_path):
        from pml_et.io import ForcingProvider
        from pml_et.utils.exceptions import DataInputError

        with pytest.raises(DataInputError):
            ForcingProvider.from_netcdf(tmp_path / "missing.nc")


class TestParameterTable:
    """Test load_parameter_table."""

    def test_csv(self, parameter_table, tmp_path):
        from pml_et.io import load_parameter_table

        path = tmp_path / "params.csv"
        parameter_table.reset_index().to_csv(path, index=False)
        table = load_parameter_table(path)

        assert list(table.index) == [0, 1, 5, 15]
        assert table.loc[5, "hc"] == 20.0

    def test_yaml(self, tmp_path):
        import yaml
        from pml_et.io import load_parameter_table

        path = tmp_path / "params.yaml"
        with open(path, "w") as f:
            yaml.safe_dump({1: {"hc": 10.0, "gsx": 0.005}, 12: {"hc": 0.5, "gsx": 0.004}}, f)
        table = load_parameter_table(path)

        assert sorted(table.index) == [1, 12]
        assert table.loc[12, "hc"] == 0.5

    def test_csv_without_class_column(self, tmp_path):
        from pml_et.io import load_parameter_table
        from pml_et.utils.exceptions import DataInputError

        path = tmp_path / "params.csv"
        pd.DataFrame({"hc": [1.0]}).to_csv(path, index=False)

        with pytest.raises(DataInputError):
            load_parameter_table(path)

    def test_unsupported_format(self, tmp_path):
        from pml_et.io import load_parameter_table
        from pml_et.utils.exceptions import DataInputError

        path = tmp_path / "params.xlsx"
        path.write_text("")

        with pytest.raises(DataInputError):
            load_parameter_table(path)

    def test_missing_file(self, tmp_path):
        from pml_et.io import load_parameter_table
        from pml_et.utils.exceptions import DataInputError

        with pytest.raises(DataInputError):
            load_parameter_table(tmp_path / "none.csv")


class TestLandCoverParameterProvider:
    """Test LandCoverParameterProvider."""

    def test_parameter_lookup(self, land_cover_by_year, parameter_table):
        from pml_et.io import LandCoverParameterProvider
        from pml_et.core.constants import ModelVariant

        params = LandCoverParameterProvider(land_cover_by_year, parameter_table).get(2010, "V2")

        assert params.variant is ModelVariant.V2
        assert params.year == 2010
        np.testing.assert_array_equal(params["hc"], [[0.0, 10.0, 20.0], [0.0, np.nan, 10.0]])
        np.testing.assert_array_equal(params.land_cover, [[0.0, 1.0, 5.0], [15.0, np.nan, 1.0]])
        assert params.metadata["classes"] == [0, 1, 5, 15]

    def test_v1_parameters(self, land_cover_by_year, parameter_table):
        from pml_et.io import LandCoverParameterProvider

        params = LandCoverParameterProvider(land_cover_by_year, parameter_table).get(2010, "V1")

        assert sorted(params.grids) == sorted(["hc", "LAIref", "S_sls", "fER0", "gsx"])

    @pytest.mark.parametrize("year, land_year", [(1995, 2001), (2001, 2001), (2018, 2018), (2021, 2018)])
    def test_year_clamped(self, land_cover_by_year, parameter_table, year, land_year):
        from pml_et.io import LandCoverParameterProvider

        assert LandCoverParameterProvider(land_cover_by_year, parameter_table).get(year).year == land_year

    def test_cache(self, land_cover_by_year, parameter_table):
        from pml_et.io import LandCoverParameterProvider

        provider = LandCoverParameterProvider(land_cover_by_year, parameter_table)

        assert provider.get(2019) is provider.get(2020)
        assert provider.get(2010, "V1") is not provider.get(2010, "V2")
        first = provider.get(2010)
        provider.clear_cache()
        assert provider.get(2010) is not first

    def test_unknown_and_unclassified(self, parameter_table):
        from pml_et.io import LandCoverParameterProvider

        grid = xr.DataArray(np.array([[1.0, 7.0, 255.0]]), dims=["y", "x"])
        params = LandCoverParameterProvider({2010: grid}, parameter_table).get(2010)

        assert params["hc"][0, 0] == 10.0
        assert np.isnan(params["hc"][0, 1])
        assert np.isnan(params["hc"][0, 2])
        assert np.isnan(params.land_cover[0, 2])

    def test_yearly_dataarray_source(self, mixed_land_cover, parameter_table):
        from pml_et.io import LandCoverParameterProvider
        from pml_et.utils.exceptions import ParameterError

        stack = xr.DataArray(np.stack([mixed_land_cover, np.ones((2, 3))]), dims=["year", "y", "x"],
                             coords={"year": [2001, 2002]})
        provider = LandCoverParameterProvider(stack, parameter_table)

        np.testing.assert_array_equal(provider.get(2002)["hc"], 10.0)
        with pytest.raises(ParameterError):
            provider.get(2005)

    def test_callable_source(self, parameter_table):
        from pml_et.io import LandCoverParameterProvider

        calls = []

        def source(year):
            calls.append(year)
            return xr.DataArray(np.full((2, 2), 5.0), dims=["y", "x"])

        params = LandCoverParameterProvider(source, parameter_table).get(2030)

        assert calls == [2018]
        np.testing.assert_array_equal(params["hc"], 20.0)

    def test_missing_columns(self, land_cover_by_year, parameter_table):
        from pml_et.io import LandCoverParameterProvider
        from pml_et.utils.exceptions import ParameterError

        provider = LandCoverParameterProvider(land_cover_by_year, parameter_table.drop(columns=["Am"]))

        with pytest.raises(ParameterError):
            provider.get(2010, "V2")
        assert provider.get(2010, "V1").variant.value == "PML_V1"

    def test_geotiff_land_cover(self, parameter_table, tmp_path):
        import rasterio
        from rasterio.crs import CRS
        from rasterio.transform import from_origin
        from pml_et.io import LandCoverParameterProvider

        path = tmp_path / "land_cover.tif"
        codes = np.array([[0, 1, 5], [15, 255, 1]], dtype=np.uint8)
        with rasterio.open(path, "w", driver="GTiff", height=2, width=3, count=1, dtype="uint8",
                           crs=CRS.from_epsg(4326), transform=from_origin(100.0, 40.0, 0.5, 0.5)) as dst:
            dst.write(codes, 1)

        table_path = tmp_path / "params.csv"
        parameter_table.reset_index().to_csv(table_path, index=False)

        provider = LandCoverParameterProvider.from_files(table_path, path)
        params = provider.get(2012)

        assert params["hc"].dims == ("y", "x")
        np.testing.assert_array_equal(params["hc"], [[0.0, 10.0, 20.0], [0.0, np.nan, 10.0]])

    def test_netcdf_land_cover(self, mixed_land_cover, tmp_path):
        from pml_et.io import load_land_cover

        times = pd.to_datetime(["2009-01-01", "2010-01-01"])
        ds = xr.Dataset({"MCD12Q1": (("time", "lat", "lon"), np.stack([mixed_land_cover] * 2))},
                        coords={"time": times})
        path = tmp_path / "land_cover.nc"
        ds.to_netcdf(path)

        grid = load_land_cover(path)

        assert grid.dims == ("year", "y", "x")
        assert list(grid["year"].values) == [2009, 2010]
        assert grid.name == "land_cover"

    def test_netcdf_land_cover_long_dim_names(self, mixed_land_cover, tmp_path):
        from pml_et.io import load_land_cover

        ds = xr.Dataset(
            {"land_cover": (("year", "latitude", "longitude"), np.stack([mixed_land_cover] * 2))},
            coords={"year": [2009, 2010], "latitude": [30.25, 30.75], "longitude": [100.25, 100.75, 101.25]},
        )
        path = tmp_path / "land_cover.nc"
        ds.to_netcdf(path)

        grid = load_land_cover(path)

        assert grid.dims == ("year", "y", "x")
        np.testing.assert_array_equal(grid["y"].values, [30.25, 30.75])
