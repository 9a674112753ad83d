"""
Unit tests for canopy rainfall interception.
"""

import numpy as np
import xarray as xr
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))


def _grid(values):
    return xr.DataArray(np.atleast_2d(np.asarray(values, dtype=np.float64)), dims=["y", "x"])


class TestRainfallInterception:
    """Test RainfallInterception component."""

    def test_bare_pixel_intercepts_nothing(self, parameter_factory):
        from pml_et.interception import RainfallInterception

        params = parameter_factory("V2", shape=(1, 2))
        result = RainfallInterception().compute(_grid([0.0, -0.1]), _grid([5.0, 5.0]), params)

        np.testing.assert_array_equal(result["Ei"], [[0.0, 0.0]])
        np.testing.assert_array_equal(result["Pi"], [[5.0, 5.0]])

    def test_light_rain_below_saturation(self, parameter_factory):
        from pml_et.interception import RainfallInterception

        params = parameter_factory("V2", shape=(1, 1))
        result = RainfallInterception().compute(_grid([6.0]), _grid([0.5]), params)

        fveg = 1.0 - np.exp(-6.0 / 4.5)
        assert float(result["Pwet"][0, 0]) > 0.5
        np.testing.assert_allclose(result["Ei"], fveg * 0.5)

    def test_saturated_canopy(self, parameter_factory):
        """Heavy rain on a dense canopy: storage term plus evaporation from wet canopy."""
        from pml_et.interception import RainfallInterception

        params = parameter_factory("V2", shape=(1, 1))
        result = RainfallInterception().compute(_grid([6.0]), _grid([20.0]), params)

        sveg = float(result["Sveg"][0, 0])
        ei = float(result["Ei"][0, 0])
        storage = float(result["fveg"][0, 0] * result["Pwet"][0, 0])

        assert np.isclose(sveg, 0.6)
        np.testing.assert_allclose(storage, sveg * -np.log(1.0 - 0.05) / 0.05)
        np.testing.assert_allclose(ei, storage + float(result["fER"][0, 0]) * (20.0 - float(result["Pwet"][0, 0])))
        assert sveg < ei < 20.0

    def test_water_balance(self, parameter_factory):
        """Pi = P - Ei and 0 <= Ei <= P."""
        from pml_et.interception import RainfallInterception

        params = parameter_factory("V2", shape=(2, 3))
        lai = _grid([[0.0, 0.5, 1.0], [2.0, 4.0, 8.0]])
        prcp = _grid([[3.0, 0.0, 0.2], [1.0, 10.0, 50.0]])
        result = RainfallInterception().compute(lai, prcp, params)

        np.testing.assert_allclose(result["Pi"], prcp - result["Ei"])
        assert float(result["Ei"].min()) >= 0.0
        assert bool((result["Ei"] <= prcp).all())

    def test_nodata_precipitation(self, parameter_factory):
        from pml_et.interception import RainfallInterception

        params = parameter_factory("V2", shape=(1, 2))
        result = RainfallInterception().compute(_grid([0.0, 2.0]), _grid([np.nan, 1.0]), params)

        assert np.isnan(result["Ei"][0, 0])
        assert np.isnan(result["Pi"][0, 0])
        assert np.isfinite(result["Pi"][0, 1])
