"""
Tests for the PML command-line interface.
"""

import json
import pytest
import sys
from pathlib import Path
from click.testing import CliRunner

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))


def _json_output(output):
    # log records may precede the document on the shared stream
    return json.loads(output[output.index("{"):])


@pytest.fixture
def input_files(forcing_dataset, mixed_land_cover, parameter_table, tmp_path):
    """Forcing NetCDF, land-cover NetCDF and parameter CSV on disk."""
    import numpy as np
    import xarray as xr

    forcing = tmp_path / "forcing.nc"
    forcing_dataset.to_netcdf(forcing)

    land_cover = tmp_path / "land_cover.nc"
    years = np.arange(2001, 2019)
    grids = np.stack([np.nan_to_num(mixed_land_cover, nan=255.0)] * len(years))
    xr.Dataset({"land_cover": (("year", "lat", "lon"), grids)}, coords={"year": years}).to_netcdf(land_cover)

    table = tmp_path / "params.csv"
    parameter_table.reset_index().to_csv(table, index=False)
    return {"forcing": str(forcing), "land_cover": str(land_cover), "table": str(table)}


@pytest.fixture(autouse=True)
def quiet_logger():
    yield
    from pml_et.utils.logger import Logger
    Logger.configure_for_testing()


class TestInfoCommand:
    """Test `pml info`."""

    def test_text(self):
        from pml_et.cli import cli

        result = CliRunner().invoke(cli, ["info"])

        assert result.exit_code == 0
        assert "PML_V2 outputs: GPP, Ec, Es, Ei, ET_water, qc" in result.output
        assert "Land cover years: 2001-2018" in result.output

    def test_json(self):
        from pml_et.cli import cli

        result = CliRunner().invoke(cli, ["info", "--json"])

        data = _json_output(result.output)
        assert data["output_bands"]["PML_V1"] == ["Ec", "Es", "Ei", "ET_water", "qc"]
        assert data["water_ice_codes"] == [0, 15]
        assert data["quantization"]["nodata"] == 65535
        assert data["run_config"]["variant"] == "PML_V2"
        assert data["run_config"]["window"] == 3

    def test_log_file(self, tmp_path):
        from pml_et.cli import cli

        log_file = tmp_path / "logs" / "pml.log"
        result = CliRunner().invoke(cli, ["--log-file", str(log_file), "info"])

        assert result.exit_code == 0
        assert log_file.exists()


class TestRunCommand:
    """Test `pml run`."""

    def test_dry_run(self, input_files):
        from pml_et.cli import cli

        result = CliRunner().invoke(cli, [
            "run", "-f", input_files["forcing"], "-l", input_files["land_cover"],
            "-t", input_files["table"], "-s", "2009", "-e", "2011", "--dry-run",
        ])

        assert result.exit_code == 0, result.output
        assert "Dry run - years that would be processed:" in result.output
        assert "2009 (land cover 2009, no forcing)" in result.output
        assert "2010 (land cover 2010, forcing available)" in result.output

    def test_run_writes_netcdf(self, input_files, tmp_path):
        from pml_et.cli import cli

        out = tmp_path / "out"
        result = CliRunner().invoke(cli, [
            "run", "-f", input_files["forcing"], "-l", input_files["land_cover"],
            "-t", input_files["table"], "-s", "2010", "-e", "2011", "-o", str(out),
        ])

        assert result.exit_code == 0, result.output
        assert "[OK] 2010: 5 output(s)" in result.output
        assert "[OK] 2011: 2 output(s)" in result.output
        assert (out / "PML_V2_2010.nc").exists()

    def test_run_v1_annual(self, input_files):
        from pml_et.cli import cli

        result = CliRunner().invoke(cli, [
            "run", "-f", input_files["forcing"], "-l", input_files["land_cover"],
            "-t", input_files["table"], "-s", "2010", "--variant", "v1", "--annual",
        ])

        assert result.exit_code == 0, result.output
        assert "PML_V1: 1 year(s), 2010-2010" in result.output
        assert "[OK] 2010: 1 output(s)" in result.output

    def test_end_before_start(self, input_files):
        from pml_et.cli import cli

        result = CliRunner().invoke(cli, [
            "run", "-f", input_files["forcing"], "-l", input_files["land_cover"],
            "-t", input_files["table"], "-s", "2011", "-e", "2010",
        ])

        assert result.exit_code != 0

    def test_year_out_of_range(self, input_files):
        from pml_et.cli import cli

        result = CliRunner().invoke(cli, [
            "run", "-f", input_files["forcing"], "-l", input_files["land_cover"],
            "-t", input_files["table"], "-s", "1800",
        ])

        assert result.exit_code == 2
        assert "Year out of range" in result.output

    def test_config_file(self, input_files, tmp_path):
        from pml_et.cli import cli

        config = tmp_path / "config.yaml"
        config.write_text("variant: V1\n")
        result = CliRunner().invoke(cli, [
            "--config", str(config),
            "run", "-f", input_files["forcing"], "-l", input_files["land_cover"],
            "-t", input_files["table"], "-s", "2010", "--dry-run",
        ])

        assert result.exit_code == 0, result.output
        assert "PML_V1: 1 year(s), 2010-2010" in result.output

    def test_bad_config_file(self, tmp_path):
        from pml_et.cli import cli

        config = tmp_path / "config.yaml"
        config.write_text("window_size: 5\n")
        result = CliRunner().invoke(cli, ["--config", str(config), "info"])

        assert result.exit_code == 1
        assert "Error loading config" in result.output


class TestParamsCommand:
    """Test `pml params`."""

    def test_json(self, input_files):
        from pml_et.cli import cli

        result = CliRunner().invoke(cli, [
            "params", "-l", input_files["land_cover"], "-t", input_files["table"],
            "-y", "2010", "--json",
        ])

        assert result.exit_code == 0, result.output
        data = _json_output(result.output)
        assert data["land_cover_year"] == 2010
        assert data["variant"] == "PML_V2"
        assert data["parameters"]["hc"]["max"] == 20.0

    def test_text(self, input_files):
        from pml_et.cli import cli

        result = CliRunner().invoke(cli, [
            "params", "-l", input_files["land_cover"], "-t", input_files["table"],
            "-y", "2022", "--variant", "V1",
        ])

        assert result.exit_code == 0, result.output
        assert "PML_V1 parameters for 2022 (land cover 2018)" in result.output
        assert "gsx" in result.output
