"""
Rainfall interception by the canopy (Gash-type, single storage layer).

Van Dijk, A.I.J.M. and Warren, G., 2010. The Australian water resources
assessment system. Version 0.5, p. 39.

    fveg = 1 - exp(-LAI / LAIref)
    Sveg = S_sls * LAI
    fER  = fveg * fER0
    Pwet = -ln(1 - fER0) * Sveg / (fER0 * fveg)
    Ei   = fveg * P                          if P <  Pwet
         = fveg * Pwet + fER * (P - Pwet)    if P >= Pwet
    Pi   = P - Ei
"""

from typing import Dict

import numpy as np
import xarray as xr

from ..core.parameter_set import ParameterSet


class RainfallInterception:
    """
    Compute interception loss and the rainfall reaching the surface.

    Stateless; every timestep is evaluated on its own. Pixels without a
    canopy (LAI <= 0) intercept nothing, so Ei = 0 and Pi = P exactly.
    """

    def compute(self, lai: xr.DataArray, prcp: xr.DataArray, params: ParameterSet) -> Dict[str, xr.DataArray]:
        """
        Args:
            lai: Leaf area index
            prcp: Precipitation (mm/day)
            params: Parameter set with LAIref, S_sls and fER0

        Returns:
            Dictionary with fveg, Sveg, fER, Pwet, Ei and Pi
        """
        fer0 = params["fER0"]

        with np.errstate(divide="ignore", invalid="ignore"):
            fveg = 1.0 - np.exp(-lai / params["LAIref"])
            sveg = params["S_sls"] * lai
            fer = fveg * fer0
            pwet = -np.log(1.0 - fer0) * sveg / (fer0 * fveg)

            ei = xr.where(prcp < pwet, fveg * prcp, fveg * pwet + fer * (prcp - pwet))

        no_canopy = lai <= 0
        ei = xr.where(no_canopy, 0.0, ei).where(prcp.notnull())
        pi = prcp - ei

        return {
            "fveg": fveg.rename("fveg"),
            "Sveg": sveg.rename("Sveg"),
            "fER": fer.rename("fER"),
            "Pwet": pwet.rename("Pwet"),
            "Ei": ei.rename("Ei"),
            "Pi": pi.rename("Pi"),
        }
