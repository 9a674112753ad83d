"""
Per-timestep PML flux model.

Combines the radiation balance, canopy and aerodynamic conductance and
rainfall interception of one forcing record into the daily output bands:

    Eeq      = max(slop / (slop + gama) * Rn / lambda * 86.4, 0.0001)
    Evp      = max(gama / (slop + gama) * 6430 * (1 + 0.536 u2) * VPD / lambda, 0)
    ET_water = Eeq + Evp                         (water and snow/ice only)
    Tou      = exp(-kA * LAI)
    LEcr     = slop/gama * Rn * (1 - Tou) / (slop/gama + 1 + Ga/Gc)
    LEca     = (rou_a * Cp * Ga * VPD / gama) / (slop/gama + 1 + Ga/Gc)
    LEs_eq   = slop/gama * Rn * Tou / (slop/gama + 1)

Latent heat terms (W/m²) are converted to mm/day by dividing by
lambda / 86.4. Transpiration is exactly zero where LAI <= 0.

The model holds no state between timesteps.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Tuple

import numpy as np
import xarray as xr
from loguru import logger

from ..config.settings import (
    DAILY_BANDS,
    PARAMETER_BANDS,
    QC_BAND,
    WATER_ICE_CODES,
    required_forcing_bands,
)
from ..conductance import AerodynamicConductance, AerodynamicConfig, CanopyConductance, CanopyConstants
from ..core.constants import (
    AIR_SPECIFIC_HEAT,
    MIN_EQUILIBRIUM_EVAPORATION,
    ModelVariant,
    W_TO_MM_PER_DAY,
)
from ..core.datacube import DataCube
from ..core.parameter_set import ParameterSet
from ..interception import RainfallInterception
from ..radiation import RadiationBalance
from ..utils.exceptions import ConfigurationError, GridShapeError, ParameterError
from ..utils.validation import check_forcing_ranges, check_mask_partition, validate_forcing_record
from .quantization import Quantizer

DEGENERATE_POLICIES = ("mask", "zero")

# Fraction of a pixel by which parameter and forcing labels may differ
COORDINATE_TOLERANCE = 1e-3


@dataclass
class DailyFluxConfig:
    """Configuration for the per-timestep flux model."""
    variant: ModelVariant = ModelVariant.V2

    # Pass the forcing qc band through to the output
    include_qc: bool = True

    # 0/0 in GPP or Ec from all-zero land-cover parameters:
    # "mask" keeps the no-data, "zero" fills it with 0 on valid vegetated pixels
    degenerate_policy: str = "mask"

    # Land-cover codes evaluated as open water or snow/ice
    water_ice_codes: Tuple[int, ...] = WATER_ICE_CODES

    validate_inputs: bool = True

    aerodynamic: AerodynamicConfig = field(default_factory=AerodynamicConfig)

    def __post_init__(self):
        self.variant = ModelVariant.parse(self.variant)
        if self.degenerate_policy not in DEGENERATE_POLICIES:
            raise ConfigurationError(
                f"degenerate_policy must be one of {DEGENERATE_POLICIES}",
                config_param="degenerate_policy",
            )
        self.water_ice_codes = tuple(int(c) for c in self.water_ice_codes)


def land_cover_masks(land_cover: xr.DataArray, water_ice_codes=WATER_ICE_CODES) -> Tuple[xr.DataArray, xr.DataArray]:
    """
    Split the classified domain into water/ice and vegetated masks.

    The masks never overlap and together cover every pixel whose land
    cover is not no-data.

    Returns:
        (water_mask, vegetated_mask) boolean grids
    """
    classified = land_cover.notnull()
    water = land_cover.isin(list(water_ice_codes)) & classified
    vegetated = classified & ~water
    return water.rename("water_mask"), vegetated.rename("vegetated_mask")


class DailyFluxModel:
    """
    Evaluate the PML model for one forcing record.

    Attributes:
        config: Model configuration (variant, masking policies)
    """

    def __init__(self, config: DailyFluxConfig = None, quantizer: Quantizer = None):
        self.config = config or DailyFluxConfig()
        self.quantizer = quantizer or Quantizer()
        self.radiation = RadiationBalance()
        self.canopy = CanopyConductance(self.config.variant)
        self.aerodynamic = AerodynamicConductance(self.config.aerodynamic)
        self.interception = RainfallInterception()

    @property
    def variant(self) -> ModelVariant:
        return self.config.variant

    @property
    def output_bands(self) -> list:
        bands = DAILY_BANDS[self.variant] + ["ET_water"]
        return bands + [QC_BAND] if self.config.include_qc else bands

    def _check_inputs(self, cube: DataCube, params: ParameterSet) -> None:
        validate_forcing_record(cube, required_forcing_bands(self.config.include_qc))
        missing = params.missing(PARAMETER_BANDS[self.variant])
        if missing:
            raise ParameterError(
                f"Parameter set lacks {self.variant.value} parameters: {missing}",
                parameter=", ".join(missing),
            )
        if tuple(params.shape) != (cube.y_dim, cube.x_dim):
            raise GridShapeError(
                "Parameter grids do not match the forcing grid",
                expected=(cube.y_dim, cube.x_dim), actual=tuple(params.shape),
            )
        # labels may differ by float noise, not by a fraction of a pixel
        forcing_grid = cube["LAI"]
        param_grid = params[PARAMETER_BANDS[self.variant][0]]
        for dim in ("y", "x"):
            if dim in forcing_grid.coords and dim in param_grid.coords:
                expected = np.asarray(forcing_grid[dim].values, dtype=np.float64)
                actual = np.asarray(param_grid[dim].values, dtype=np.float64)
                spacing = np.abs(np.diff(expected)).min() if expected.size > 1 else 1.0
                if not np.allclose(expected, actual, rtol=0.0, atol=COORDINATE_TOLERANCE * spacing):
                    raise GridShapeError(f"Parameter grid {dim} coordinates differ from the forcing grid")
        check_forcing_ranges(cube)

    @staticmethod
    def align_parameters(cube: DataCube, params: ParameterSet) -> ParameterSet:
        """
        Relabel the parameter grids onto the forcing grid's y/x coordinates.

        Arithmetic between xarray objects joins on exact labels, so grids
        read from different files must carry identical coordinates.
        """
        if "LAI" not in cube:
            return params
        forcing_grid = cube["LAI"]
        labels = {dim: forcing_grid[dim].values for dim in ("y", "x") if dim in forcing_grid.coords}
        if not labels:
            return params

        def relabel(grid):
            if grid is None:
                return None
            shared = {dim: values for dim, values in labels.items()
                      if dim in grid.dims and grid.sizes[dim] == len(values)}
            return grid.assign_coords(shared) if shared else grid

        return replace(
            params,
            grids={name: relabel(grid) for name, grid in params.grids.items()},
            land_cover=relabel(params.land_cover),
        )

    def compute_components(self, cube: DataCube, params: ParameterSet) -> Dict[str, xr.DataArray]:
        """
        Compute every intermediate and final grid for one forcing record.

        Args:
            cube: Forcing record
            params: Parameter set of the model's variant

        Returns:
            Dictionary of grids, physical units, no land-cover masking
        """
        if self.config.validate_inputs:
            self._check_inputs(cube, params)
        params = self.align_parameters(cube, params)

        constants = CanopyConstants.from_parameters(params)
        terms = dict(self.radiation.compute(cube))
        terms.update(self.canopy.compute(cube, terms, params, constants))
        terms["Ga"] = self.aerodynamic.compute(cube["U2"], params["hc"])
        terms.update(self.interception.compute(cube["LAI"], cube["Prcp"], params))

        lai = cube["LAI"]
        u2 = cube["U2"]
        slop, gama, rn = terms["slop"], terms["gama"], terms["Rn"]
        lmbda, vpd = terms["lambda"], terms["VPD"]
        ga, gc = terms["Ga"], terms["Gc"]

        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            eeq = (slop / (slop + gama) * rn / lmbda * W_TO_MM_PER_DAY).clip(min=MIN_EQUILIBRIUM_EVAPORATION)
            evp = (gama / (slop + gama) * (6430.0 * (1.0 + 0.536 * u2) * vpd) / lmbda).clip(min=0.0)

            tou = np.exp(-constants.kA * lai)
            ratio = slop / gama
            denominator = ratio + 1.0 + ga / gc

            le_cr = ratio * rn * (1.0 - tou) / denominator
            le_ca = (terms["rou_a"] * AIR_SPECIFIC_HEAT * ga * vpd / gama) / denominator

            # no leaves, no transpiration; also overrides undefined Ga/Gc
            no_canopy = lai <= 0
            le_cr = xr.where(no_canopy, 0.0, le_cr)
            le_ca = xr.where(no_canopy, 0.0, le_ca)

            le_s_eq = ratio * rn * tou / (ratio + 1.0)

            to_depth = lmbda / W_TO_MM_PER_DAY
            ecr = le_cr / to_depth
            eca = le_ca / to_depth

        terms.update({
            "Eeq": eeq,
            "Evp": evp,
            "ET_water": eeq + evp,
            "Tou": tou,
            "LEcr": le_cr,
            "LEca": le_ca,
            "LEc": le_ca + le_cr,
            "LEs_eq": le_s_eq,
            "Ecr": ecr,
            "Eca": eca,
            "Ec": eca + ecr,
            "Es_eq": le_s_eq / to_depth,
        })
        return {name: grid.rename(name) for name, grid in terms.items()}

    def compute(self, cube: DataCube, params: ParameterSet) -> DataCube:
        """
        Compute the daily output record for one forcing record.

        Vegetated bands (Es_eq, Ec, Ei, Pi and GPP for PML_V2) are no-data
        on water/ice pixels; ET_water is no-data everywhere else. Values
        keep their physical magnitudes (mm/day, gC/m²/day).

        Returns:
            DataCube with the bands listed by output_bands
        """
        params = self.align_parameters(cube, params)
        components = self.compute_components(cube, params)

        if params.land_cover is not None:
            water, vegetated = land_cover_masks(params.land_cover, self.config.water_ice_codes)
            partition = check_mask_partition(water, vegetated, params.land_cover.notnull())
            if not partition["valid"]:
                logger.warning(f"Land-cover masks do not partition the classified grid: {partition}")
        else:
            shape = components["Ec"].shape
            water = xr.DataArray(np.zeros(shape, dtype=bool), dims=components["Ec"].dims)
            vegetated = ~water

        if self.config.degenerate_policy == "zero":
            components = self._fill_degenerate(components, cube, vegetated)

        output = DataCube(
            time=cube.time,
            crs=cube.crs,
            transform=cube.transform,
            metadata={"variant": self.variant.value},
        )
        for band in DAILY_BANDS[self.variant]:
            output.add(band, components[band].where(vegetated))
        output.add("ET_water", components["ET_water"].where(water))
        if self.config.include_qc:
            output.add(QC_BAND, cube[QC_BAND])

        for band in ("Ec", "GPP"):
            if band in output and bool(output[band].where(vegetated).isnull().all()) and bool(vegetated.any()):
                logger.warning(f"{band} is no-data on every vegetated pixel at {cube.time}")
        return output

    def _fill_degenerate(self, components, cube, vegetated):
        forcing = required_forcing_bands(include_qc=False)
        valid_forcing = vegetated.copy()
        for band in forcing:
            valid_forcing = valid_forcing & cube[band].notnull()
        filled = dict(components)
        for band in ("Ec", "GPP"):
            if band in filled:
                grid = filled[band]
                filled[band] = xr.where(valid_forcing & grid.isnull(), 0.0, grid).rename(band)
        return filled

    def quantize(self, daily: DataCube) -> DataCube:
        """Return a copy of a daily record with flux bands in fixed-point form; qc unchanged."""
        quantized = DataCube(time=daily.time, crs=daily.crs, transform=daily.transform,
                             metadata=dict(daily.metadata))
        for band in daily.bands():
            grid = daily[band]
            quantized.add(band, grid if band == QC_BAND else self.quantizer.quantize(grid))
        return quantized
