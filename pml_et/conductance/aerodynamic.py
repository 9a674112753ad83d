"""Aerodynamic conductance (Ga) from a logarithmic wind profile."""

from dataclasses import dataclass

import numpy as np
import xarray as xr

from ..core.constants import (
    DISPLACEMENT_FRACTION,
    REFERENCE_HEIGHT,
    ROUGHNESS_HEAT_FRACTION,
    ROUGHNESS_MOMENTUM_FRACTION,
    VON_KARMAN,
)


@dataclass
class AerodynamicConfig:
    """Configuration for aerodynamic conductance."""
    # Reference height of the wind profile (m), above the tallest canopy
    reference_height: float = REFERENCE_HEIGHT

    von_karman: float = VON_KARMAN

    # d = 0.64 hc, zom = 0.13 hc, zoh = 0.1 zom
    displacement_fraction: float = DISPLACEMENT_FRACTION
    roughness_momentum_fraction: float = ROUGHNESS_MOMENTUM_FRACTION
    roughness_heat_fraction: float = ROUGHNESS_HEAT_FRACTION

    # Canopy heights at or below zero leave Ga undefined; mask them
    mask_nonpositive_height: bool = True


class AerodynamicConductance:
    """
    Compute aerodynamic conductance (m/s) from canopy height and 2 m wind.

        uz = ln(67.8 * Zob - 5.42) / 4.87 * u2
        Ga = uz * k² / (ln((Zob - d) / zom) * ln((Zob - d) / zoh))
    """

    def __init__(self, config: AerodynamicConfig = None):
        self.config = config or AerodynamicConfig()

    def wind_at_reference_height(self, u2):
        """Extrapolate 2 m wind speed to the reference height (FAO-56 profile)."""
        zob = self.config.reference_height
        return np.log(67.8 * zob - 5.42) / 4.87 * u2

    def compute(self, u2: xr.DataArray, hc: xr.DataArray) -> xr.DataArray:
        """
        Args:
            u2: Wind speed at 2 m (m/s)
            hc: Canopy height (m)

        Returns:
            Aerodynamic conductance grid; no-data where hc <= 0 when masking
        """
        cfg = self.config
        zob = cfg.reference_height

        with np.errstate(divide="ignore", invalid="ignore"):
            d = hc * cfg.displacement_fraction
            zom = hc * cfg.roughness_momentum_fraction
            zoh = zom * cfg.roughness_heat_fraction
            uz = self.wind_at_reference_height(u2)
            ga = uz * cfg.von_karman ** 2 / (np.log((zob - d) / zom) * np.log((zob - d) / zoh))

        if cfg.mask_nonpositive_height:
            ga = ga.where(hc > 0)
        return ga.rename("Ga")
