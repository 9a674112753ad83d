"""Canopy and aerodynamic conductance for the PML model."""

from .canopy import (
    CanopyConductance,
    CanopyConstants,
    vpd_conductance_factor,
    vpd_stress_factor,
    temperature_factor,
    gross_assimilation,
)
from .aerodynamic import AerodynamicConductance, AerodynamicConfig

__all__ = [
    'CanopyConductance',
    'CanopyConstants',
    'vpd_conductance_factor',
    'vpd_stress_factor',
    'temperature_factor',
    'gross_assimilation',
    'AerodynamicConductance',
    'AerodynamicConfig',
]
