"""Input providers for forcing grids and land-cover parameters."""

from .forcing import ForcingProvider
from .parameters import LandCoverParameterProvider, load_land_cover, load_parameter_table

__all__ = ['ForcingProvider', 'LandCoverParameterProvider', 'load_land_cover', 'load_parameter_table']
