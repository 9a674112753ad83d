"""Radiation balance module for the PML model."""

from .radiation_balance import (
    RadiationBalance,
    latent_heat_vaporization,
    saturation_vapor_pressure,
    actual_vapor_pressure,
    vapor_pressure_deficit,
    psychrometric_constant,
    saturation_slope,
)

__all__ = [
    'RadiationBalance',
    'latent_heat_vaporization',
    'saturation_vapor_pressure',
    'actual_vapor_pressure',
    'vapor_pressure_deficit',
    'psychrometric_constant',
    'saturation_slope',
]
