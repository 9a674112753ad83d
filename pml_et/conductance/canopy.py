"""
Canopy conductance (Gc) for the PML model.

Two formulations, chosen once per model instance:

PML_V1, big-leaf Leuning:
    Gc = gsx / kQ * ln((PAR + Q50) / (PAR * exp(-kQ * LAI) + Q50)) * fvpd_gc

PML_V2, photosynthesis-coupled:
    GPP = 1.0368 * Ags * fvpd
    Gc  = m / Ca * Ags * 1.6 * fvpd_gc, converted from mol/m²/s to m/s

with fvpd_gc = 1 / (1 + VPD / D0). Both clamp Gc to at least 1e-6 m/s.

A land-cover class whose photosynthesis parameters are all zero gives
0/0 in Ags; the resulting no-data propagates into GPP and Gc untouched.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Union

import numpy as np
import xarray as xr
from loguru import logger

from ..core.constants import (
    D0,
    H2O_CO2_DIFFUSIVITY,
    KA,
    KQ,
    MIN_CANOPY_CONDUCTANCE,
    ModelVariant,
    PAR_W_TO_UMOL,
    Q50,
    STANDARD_PRESSURE_KPA,
    UMOL_TO_GC_PER_DAY,
)
from ..core.datacube import DataCube
from ..core.parameter_set import ParameterSet
from ..utils.exceptions import ConductanceError

Grid = Union[float, xr.DataArray]


@dataclass(frozen=True)
class CanopyConstants:
    """
    Canopy light and VPD response coefficients.

    Scalars for PML_V1; per-pixel grids taken from the parameter set for
    PML_V2. Passed explicitly into every computation that needs them.
    """

    kQ: Grid = KQ
    kA: Grid = KA
    Q50: float = Q50
    D0: Grid = D0

    @classmethod
    def from_parameters(cls, params: ParameterSet) -> "CanopyConstants":
        if params.variant is ModelVariant.V2:
            return cls(kQ=params["kQ"], kA=params["kA"], D0=params["D0"])
        return cls()


def vpd_conductance_factor(vpd, d0):
    """Leuning VPD reduction of stomatal conductance, 1 / (1 + VPD / D0)."""
    return 1.0 / (1.0 + vpd / d0)


def vpd_stress_factor(vpd, vpd_min, vpd_max):
    """Linear VPD stress on photosynthesis, 1 below VPDmin and 0 above VPDmax."""
    return ((vpd_max - vpd) / (vpd_max - vpd_min)).clip(min=0.0, max=1.0)


def temperature_factor(tavg):
    """Temperature response of photosynthesis, bounded above by 1."""
    return (np.exp(0.031 * (tavg - 25.0)) / (1.0 + np.exp(0.115 * (tavg - 41.0)))).clip(max=1.0)


def gross_assimilation(par_mol, ca, lai, am, alpha, thelta, kq, ft2):
    """
    Canopy gross assimilation Ags (µmol/m²/s) integrated over LAI.

    Args:
        par_mol: PAR in µmol/m²/s
        ca: Ambient CO2 (µmol/mol)
        lai: Leaf area index
        am, alpha, thelta: Light-response parameters
        kq: PAR extinction coefficient
        ft2: Temperature factor
    """
    p1 = am * alpha * thelta * par_mol
    p2 = am * alpha * par_mol
    p3 = am * thelta * ca
    p4 = alpha * thelta * par_mol * ca / ft2
    return ca * p1 / (p2 * kq + p4 * kq) * (
        kq * lai + np.log((p2 + p3 + p4) / (p2 + p3 * np.exp(kq * lai) + p4))
    )


def molar_to_velocity(gc_mol, tavg, pressure):
    """Convert conductance from mol/m²/s to m/s at air temperature (°C) and pressure (kPa)."""
    return gc_mol * 1e-2 / (0.446 * (273.0 / (273.0 + tavg)) * (pressure / STANDARD_PRESSURE_KPA))


class CanopyConductance:
    """
    Compute canopy conductance, and GPP for PML_V2.

    Attributes:
        variant: PML_V1 or PML_V2
        min_conductance: Floor applied to Gc (m/s)
    """

    def __init__(self, variant: ModelVariant = ModelVariant.V2,
                 min_conductance: float = MIN_CANOPY_CONDUCTANCE):
        self.variant = ModelVariant.parse(variant)
        self.min_conductance = min_conductance

    def compute(
        self,
        cube: DataCube,
        radiation: Dict[str, xr.DataArray],
        params: ParameterSet,
        constants: Optional[CanopyConstants] = None,
    ) -> Dict[str, xr.DataArray]:
        """
        Compute canopy conductance for one forcing record.

        Args:
            cube: Forcing record (LAI, Tavg, Pa, co2)
            radiation: Output of RadiationBalance.compute (PAR, VPD)
            params: Parameter set of the same variant
            constants: Canopy coefficients; derived from params if omitted

        Returns:
            Dictionary with Gc and fvpd_gc, plus GPP, Ags, fvpd, fT2 for PML_V2

        Raises:
            ConductanceError: If the parameter set belongs to another variant
        """
        if params.variant is not self.variant:
            raise ConductanceError(
                f"Parameter set is {params.variant.value}, model is {self.variant.value}",
                variant=self.variant.value,
            )
        constants = constants or CanopyConstants.from_parameters(params)

        lai = cube["LAI"]
        par = radiation["PAR"]
        vpd = radiation["VPD"]

        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            fvpd_gc = vpd_conductance_factor(vpd, constants.D0)
            if self.variant is ModelVariant.V2:
                result = self._photosynthesis_conductance(cube, par, vpd, fvpd_gc, params, constants)
            else:
                gc = params["gsx"] / constants.kQ * np.log(
                    (par + constants.Q50) / (par * np.exp(-constants.kQ * lai) + constants.Q50)
                ) * fvpd_gc
                result = {"Gc": gc}
            result["Gc"] = result["Gc"].clip(min=self.min_conductance)

        result["fvpd_gc"] = fvpd_gc
        logger.debug(
            f"{self.variant.value} canopy conductance: "
            f"Gc mean={float(result['Gc'].mean()):.3e} m/s"
        )
        return {name: grid.rename(name) for name, grid in result.items()}

    def _photosynthesis_conductance(self, cube, par, vpd, fvpd_gc, params, constants):
        ca = cube["co2"]
        tavg = cube["Tavg"]

        par_mol = par * PAR_W_TO_UMOL
        ft2 = temperature_factor(tavg)
        ags = gross_assimilation(
            par_mol, ca, cube["LAI"],
            params["Am"], params["Alpha"], params["Thelta"],
            constants.kQ, ft2,
        )
        fvpd = vpd_stress_factor(vpd, params["VPDmin"], params["VPDmax"])
        gpp = ags * UMOL_TO_GC_PER_DAY * fvpd

        gc_mol = params["m"] / ca * ags * H2O_CO2_DIFFUSIVITY * fvpd_gc
        gc = molar_to_velocity(gc_mol, tavg, cube["Pa"])
        return {"Gc": gc, "GPP": gpp, "Ags": ags, "fvpd": fvpd, "fT2": ft2}
