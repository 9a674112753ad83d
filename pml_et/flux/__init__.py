"""Per-timestep flux model, temporal correction and fixed-point output."""

from .quantization import QuantizationConfig, Quantizer
from .daily_flux import DailyFluxConfig, DailyFluxModel, land_cover_masks
from .temporal import (
    AggregatorConfig,
    TemporalAggregator,
    backward_moving_average,
    soil_water_factor,
    nearest_time_index,
)

__all__ = [
    'QuantizationConfig',
    'Quantizer',
    'DailyFluxConfig',
    'DailyFluxModel',
    'land_cover_masks',
    'AggregatorConfig',
    'TemporalAggregator',
    'backward_moving_average',
    'soil_water_factor',
    'nearest_time_index',
]
