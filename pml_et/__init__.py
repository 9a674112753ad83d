"""
PML Model - Python implementation of the Penman-Monteith-Leuning model.

PML couples a canopy conductance model (big-leaf Leuning in PML_V1, a
photosynthesis-coupled formulation in PML_V2) with the Penman-Monteith
equation to estimate gross primary productivity and the components of
evapotranspiration from gridded forcing data.

This package provides tools for:
- Loading forcing grids and land-cover parameter grids
- Computing the radiation balance, conductances and rainfall interception
- Evaluating daily GPP, transpiration and soil and interception evaporation
- Correcting soil evaporation with a moving-average soil water factor
- Writing fixed-point NetCDF and GeoTIFF outputs

Version: 0.1.0
"""

__version__ = "0.1.0"
__author__ = "PML Development Team"

# Core modules
from pml_et.core import (
    DataCube,
    ParameterSet,
    ModelVariant,
    constants
)

# IO modules
from pml_et.io import (
    ForcingProvider,
    LandCoverParameterProvider
)

# Model components
from pml_et.radiation import RadiationBalance
from pml_et.conductance import (
    CanopyConductance,
    CanopyConstants,
    AerodynamicConductance
)
from pml_et.interception import RainfallInterception

# Flux model
from pml_et.flux import (
    DailyFluxModel,
    DailyFluxConfig,
    TemporalAggregator,
    AggregatorConfig,
    Quantizer,
    QuantizationConfig
)

# Pipeline
from pml_et.pipeline import PMLPipeline, PipelineConfig

__all__ = [
    # Version
    '__version__',
    '__author__',

    # Core
    'DataCube',
    'ParameterSet',
    'ModelVariant',
    'constants',

    # IO
    'ForcingProvider',
    'LandCoverParameterProvider',

    # Components
    'RadiationBalance',
    'CanopyConductance',
    'CanopyConstants',
    'AerodynamicConductance',
    'RainfallInterception',

    # Flux
    'DailyFluxModel',
    'DailyFluxConfig',
    'TemporalAggregator',
    'AggregatorConfig',
    'Quantizer',
    'QuantizationConfig',

    # Pipeline
    'PMLPipeline',
    'PipelineConfig',
]
