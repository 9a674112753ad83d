"""Core module for the PML model."""

from .datacube import DataCube
from .parameter_set import ParameterSet
from . import constants
from .constants import (
    STEFAN_BOLTZMANN_MJ,
    VON_KARMAN,
    AIR_SPECIFIC_HEAT,
    LATENT_HEAT_VAPORIZATION,
    REFERENCE_HEIGHT,
    KQ,
    KA,
    Q50,
    D0,
    MIN_VPD,
    MIN_CANOPY_CONDUCTANCE,
    W_TO_MM_PER_DAY,
    ModelVariant,
)

__all__ = [
    'DataCube',
    'ParameterSet',
    'constants',
    'STEFAN_BOLTZMANN_MJ',
    'VON_KARMAN',
    'AIR_SPECIFIC_HEAT',
    'LATENT_HEAT_VAPORIZATION',
    'REFERENCE_HEIGHT',
    'KQ',
    'KA',
    'Q50',
    'D0',
    'MIN_VPD',
    'MIN_CANOPY_CONDUCTANCE',
    'W_TO_MM_PER_DAY',
    'ModelVariant',
]
