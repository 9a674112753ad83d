"""
Radiation balance and psychrometric terms for the PML model.

All terms are closed-form elementwise expressions of one forcing record:

    lambda = 2500 - 2.2 * Tavg                        (J/g)
    ea     = q * Pa / (0.622 + 0.378 * q)             (kPa)
    es     = (es(Tmax) + es(Tmin)) / 2                (kPa)
    VPD    = max(es - ea, 0.001)                      (kPa)
    gama   = Cp * Pa / (0.622 * lambda)               (kPa/°C)
    slop   = 4098 * es(Tavg) / (Tavg + 237.3)²        (kPa/°C)
    Rn     = max((1 - albedo) * Rs + Rln - RLout, 0)  (W/m²)
    PAR    = max(0.45 * Rs, 0)                        (W/m²)

Temperatures are in °C, pressure in kPa, radiation in W/m².
"""

from typing import Dict

import numpy as np
import xarray as xr
from loguru import logger

from ..core.constants import (
    AIR_SPECIFIC_HEAT,
    EPSILON,
    FREEZING_POINT,
    LATENT_HEAT_SLOPE,
    LATENT_HEAT_VAPORIZATION,
    MIN_VPD,
    MJ_DAY_TO_W,
    PAR_FRACTION,
    STEFAN_BOLTZMANN_MJ,
)
from ..core.datacube import DataCube
from ..utils.exceptions import RadiationBalanceError

REQUIRED_BANDS = ["Tmax", "Tmin", "Tavg", "Pa", "q", "Rs", "Rln", "Albedo", "Emiss"]


def latent_heat_vaporization(tavg):
    """Latent heat of vaporization (J/g), decreasing linearly with temperature (°C)."""
    return LATENT_HEAT_VAPORIZATION + LATENT_HEAT_SLOPE * tavg


def saturation_vapor_pressure(temperature):
    """Saturation vapour pressure (kPa) at air temperature (°C), Tetens form."""
    return 0.6108 * np.exp(17.27 * temperature / (temperature + 237.3))


def actual_vapor_pressure(q, pressure):
    """Actual vapour pressure (kPa) from specific humidity (kg/kg) and pressure (kPa)."""
    return q * pressure / (EPSILON + 0.378 * q)


def vapor_pressure_deficit(tmax, tmin, ea):
    """Vapour pressure deficit (kPa) floored at MIN_VPD."""
    es = (saturation_vapor_pressure(tmax) + saturation_vapor_pressure(tmin)) / 2.0
    return (es - ea).clip(min=MIN_VPD)


def air_density(pressure, tavg):
    """Air density (g/m³)."""
    return 3846.0 * pressure / (tavg + FREEZING_POINT)


def psychrometric_constant(pressure, lmbda):
    """Psychrometric constant (kPa/°C)."""
    return AIR_SPECIFIC_HEAT * pressure / (EPSILON * lmbda)


def saturation_slope(tavg):
    """Slope of the saturation vapour pressure curve (kPa/°C) at Tavg."""
    return 4098.0 * saturation_vapor_pressure(tavg) / (tavg + 237.3) ** 2


def outgoing_longwave(emissivity, tavg):
    """Outgoing longwave radiation (W/m²) from the Stefan-Boltzmann law."""
    return emissivity * STEFAN_BOLTZMANN_MJ * (tavg + FREEZING_POINT) ** 4 * MJ_DAY_TO_W


class RadiationBalance:
    """
    Compute net radiation and the psychrometric quantities used by every
    downstream component.

    Attributes:
        par_fraction: Fraction of shortwave radiation taken as PAR
    """

    def __init__(self, par_fraction: float = PAR_FRACTION):
        self.par_fraction = par_fraction

    def compute(self, cube: DataCube) -> Dict[str, xr.DataArray]:
        """
        Compute the radiation balance for one forcing record.

        Args:
            cube: Forcing record carrying REQUIRED_BANDS

        Returns:
            Dictionary of grids: lambda, ea, es, VPD, rou_a, gama, slop,
            Rns, RLout, Rnl, Rn, PAR

        Raises:
            RadiationBalanceError: If a required band is missing
        """
        missing = cube.missing_bands(REQUIRED_BANDS)
        if missing:
            raise RadiationBalanceError(
                f"Missing inputs for radiation balance: {missing}", component="inputs"
            )

        tavg = cube["Tavg"]
        pressure = cube["Pa"]

        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            lmbda = latent_heat_vaporization(tavg)
            ea = actual_vapor_pressure(cube["q"], pressure)
            es = (saturation_vapor_pressure(cube["Tmax"]) + saturation_vapor_pressure(cube["Tmin"])) / 2.0
            vpd = (es - ea).clip(min=MIN_VPD)

            rns = (1.0 - cube["Albedo"]) * cube["Rs"]
            rl_out = outgoing_longwave(cube["Emiss"], tavg)
            rnl = cube["Rln"] - rl_out
            rn = (rns + rnl).clip(min=0.0)

            terms = {
                "lambda": lmbda,
                "ea": ea,
                "es": es,
                "VPD": vpd,
                "rou_a": air_density(pressure, tavg),
                "gama": psychrometric_constant(pressure, lmbda),
                "slop": saturation_slope(tavg),
                "Rns": rns,
                "RLout": rl_out,
                "Rnl": rnl,
                "Rn": rn,
                "PAR": (self.par_fraction * cube["Rs"]).clip(min=0.0),
            }

        logger.debug(
            f"Radiation balance: Rn mean={float(rn.mean()):.2f} W/m², "
            f"VPD mean={float(vpd.mean()):.3f} kPa"
        )
        return {name: grid.rename(name) for name, grid in terms.items()}
