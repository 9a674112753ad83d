"""Output Writer for the PML pipeline.

Writes period outputs as one NetCDF per period or one multi-band GeoTIFF
per timestep. Flux bands are stored as unsigned fixed-point integers
(physical value x 100); the largest integer marks no-data.
"""

import csv
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Sequence

import numpy as np
import pandas as pd
import rasterio
from rasterio.errors import RasterioError
import xarray as xr
from loguru import logger

from ..config.settings import UNITS
from ..core.constants import ModelVariant
from ..core.datacube import DataCube
from ..flux.quantization import Quantizer
from ..utils.exceptions import GeoTIFFWriteError, OutputError, handle_exception
from ..utils.logger import log_execution_time


def geotiff_name(variant, time) -> str:
    """File name of one exported timestep, PML_<variant>_<YYYY-MM-DD>.tif."""
    variant = ModelVariant.parse(variant)
    return f"{variant.value}_{pd.Timestamp(time):%Y-%m-%d}.tif"


def to_dataset(period: Sequence[DataCube], quantizer: Quantizer = None) -> xr.Dataset:
    """
    Stack period outputs along time into a dataset of packed integers.

    Args:
        period: Period outputs in time order
        quantizer: Supplies the integer dtype and no-data value

    Returns:
        xarray.Dataset with one (time, y, x) variable per band
    """
    quantizer = quantizer or Quantizer()
    if not period:
        raise OutputError("Nothing to write: empty period", output_type="netcdf")

    times = pd.DatetimeIndex([cube.time for cube in period], name="time")
    bands = period[0].bands()
    ds = xr.Dataset()
    for band in bands:
        grids = [
            xr.DataArray(quantizer.to_integer(cube[band]), dims=cube[band].dims)
            for cube in period
        ]
        ds[band] = xr.concat(grids, dim=times)
        ds[band].attrs.update({
            "units": UNITS.get(band, "1"),
            "long_name": band,
        })
        if band in UNITS and band != "qc":
            ds[band].attrs["fixed_point_scale"] = quantizer.config.scale
    return ds


@handle_exception
def write_period_netcdf(path, period: Sequence[DataCube], quantizer: Quantizer = None) -> str:
    """Write a whole period to one NetCDF file.

    Args:
        path: Output file path
        period: Period outputs in time order
        quantizer: Supplies the integer dtype and no-data value

    Returns:
        Path of the written file
    """
    quantizer = quantizer or Quantizer()
    ds = to_dataset(period, quantizer)

    first = period[0]
    ds.attrs.update({
        "title": "PML gridded GPP and evapotranspiration",
        "model": first.metadata.get("variant", "unknown"),
        "history": f"Created {datetime.now().isoformat()}",
        "Conventions": "CF-1.8",
    })
    if first.crs is not None:
        ds.attrs["crs"] = str(first.crs)
    if first.transform is not None:
        ds.attrs["transform"] = list(first.transform)[:6]

    encoding = {
        band: {"dtype": quantizer.config.dtype, "_FillValue": quantizer.config.nodata, "zlib": True}
        for band in ds.data_vars
    }
    ds.to_netcdf(path, encoding=encoding)
    ds.close()
    return str(path)


def write_multiband_geotiff(
    path,
    cube: DataCube,
    quantizer: Quantizer = None,
    compression: str = "LZW",
) -> str:
    """Write every band of one period output to a multi-band GeoTIFF.

    Args:
        path: Output file path
        cube: Period output with CRS and transform set
        quantizer: Supplies the integer dtype and no-data value
        compression: Compression algorithm (default: LZW)

    Raises:
        GeoTIFFWriteError: If the cube has no CRS or transform, or writing fails
    """
    quantizer = quantizer or Quantizer()
    cfg = quantizer.config

    if cube.crs is None or cube.transform is None:
        raise GeoTIFFWriteError("DataCube must have CRS and transform set", file_path=str(path))

    bands = cube.bands()
    height, width = cube.y_dim, cube.x_dim
    try:
        with rasterio.open(
            path,
            "w",
            driver="GTiff",
            height=height,
            width=width,
            count=len(bands),
            dtype=cfg.dtype,
            crs=cube.crs,
            transform=cube.transform,
            compress=compression,
            nodata=cfg.nodata,
        ) as dst:
            for idx, band in enumerate(bands, start=1):
                dst.write(quantizer.to_integer(cube[band]), idx)
                dst.set_band_description(idx, band)
            dst.update_tags(
                DATE=datetime.now().isoformat(),
                PRODUCT=cube.metadata.get("variant", "PML"),
                TIME=cube.time.isoformat() if cube.time is not None else "",
                SCALE=str(cfg.scale),
                BANDS=",".join(bands),
            )
    except RasterioError as e:
        raise GeoTIFFWriteError(f"Failed to write GeoTIFF: {e}", file_path=str(path)) from e
    return str(path)


def write_statistics_csv(path, stats: Dict[str, Dict[str, float]]) -> None:
    """Write per-band summary statistics to CSV.

    Args:
        path: Output file path
        stats: band -> {statistic: value}
    """
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["band", "statistic", "value", "unit"])
        for band, values in stats.items():
            for key, value in values.items():
                writer.writerow([band, key, value, UNITS.get(band, "")])


class OutputWriter:
    """Output writer for PML period outputs.

    Attributes:
        output_dir: Base output directory for all files
        quantizer: Fixed-point conversion shared with the aggregator
        compression: Compression for GeoTIFF files
    """

    FORMATS = ("netcdf", "geotiff")

    def __init__(self, output_dir=".", quantizer: Quantizer = None, compression: str = "LZW"):
        self.output_dir = Path(output_dir)
        self.quantizer = quantizer or Quantizer()
        self.compression = compression
        self.output_files: List[Path] = []

        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _make_filename(self, product: str, label: str, extension: str) -> Path:
        return self.output_dir / f"{product}_{label}.{extension}"

    @log_execution_time
    def write_period(self, period: Sequence[DataCube], variant, year: int, fmt: str = "netcdf") -> List[str]:
        """
        Write one period in the requested format.

        Returns:
            Paths of the written files
        """
        if fmt not in self.FORMATS:
            raise OutputError(f"Unknown output format {fmt!r}; use one of {self.FORMATS}", output_type=fmt)
        variant = ModelVariant.parse(variant)

        if fmt == "netcdf":
            path = self._make_filename(variant.value, str(year), "nc")
            written = [write_period_netcdf(path, period, self.quantizer)]
        else:
            written = [
                write_multiband_geotiff(self.output_dir / geotiff_name(variant, cube.time), cube,
                                        self.quantizer, self.compression)
                for cube in period
            ]
        self.output_files.extend(Path(p) for p in written)
        logger.info(f"Wrote {len(written)} {fmt} file(s) for {variant.value} {year} to {self.output_dir}")
        return written

    def compute_statistics(self, period: Sequence[DataCube]) -> Dict[str, Dict[str, Any]]:
        """Mean, min, max and valid count of every flux band over a period, in physical units."""
        stats = {}
        if not period:
            return stats
        for band in period[0].bands():
            if band == "qc":
                continue
            values = np.stack([np.asarray(cube[band], dtype=np.float64) for cube in period])
            values = values / self.quantizer.config.scale
            valid = values[np.isfinite(values)]
            if valid.size == 0:
                continue
            stats[band] = {
                "mean": float(valid.mean()),
                "min": float(valid.min()),
                "max": float(valid.max()),
                "count": int(valid.size),
            }
        return stats

    def write_period_statistics(self, period: Sequence[DataCube], variant, year: int) -> str:
        variant = ModelVariant.parse(variant)
        path = self._make_filename(f"{variant.value}_statistics", str(year), "csv")
        write_statistics_csv(path, self.compute_statistics(period))
        self.output_files.append(path)
        return str(path)
