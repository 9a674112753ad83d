"""Physical and model constants for the PML model."""

from enum import Enum

# ============================================================================
# RADIATION CONSTANTS
# ============================================================================

# Stefan-Boltzmann constant (MJ/K⁴/m²/day)
STEFAN_BOLTZMANN_MJ = 4.903e-9

# Fraction of shortwave radiation that is photosynthetically active
PAR_FRACTION = 0.45

# PAR conversion from W/m² to µmol/m²/s
PAR_W_TO_UMOL = 4.57

# ============================================================================
# ATMOSPHERIC CONSTANTS
# ============================================================================

# Von Karman constant (dimensionless)
VON_KARMAN = 0.40

# Specific heat of air at constant pressure (J/g/°C)
AIR_SPECIFIC_HEAT = 1.0164

# Ratio of molecular weight of water vapour to dry air
EPSILON = 0.622

# Latent heat of vaporization at 0 °C (J/g) and its temperature slope (J/g/°C)
LATENT_HEAT_VAPORIZATION = 2500.0
LATENT_HEAT_SLOPE = -2.2

# Reference height above the canopy for the wind profile (m), above any hc
REFERENCE_HEIGHT = 15.0

# Zero-plane displacement and roughness lengths as fractions of canopy height
DISPLACEMENT_FRACTION = 0.64
ROUGHNESS_MOMENTUM_FRACTION = 0.13
ROUGHNESS_HEAT_FRACTION = 0.1

# Standard sea-level pressure (kPa)
STANDARD_PRESSURE_KPA = 101.3

# ============================================================================
# CANOPY CONSTANTS (PML_V1; per-pixel parameters in PML_V2)
# ============================================================================

# Extinction coefficient of PAR
KQ = 0.4488

# Attenuation of net all-wave irradiance, typically 0.6-0.8
KA = 0.7

# Absorbed PAR at which stomatal conductance is half of gsx (W/m²)
Q50 = 30.0

# VPD at which stomatal conductance is halved (kPa)
D0 = 0.7

# ============================================================================
# NUMERIC GUARDS
# ============================================================================

MIN_VPD = 0.001
MIN_CANOPY_CONDUCTANCE = 1e-6
MIN_EQUILIBRIUM_EVAPORATION = 0.0001

# ============================================================================
# CONVERSION FACTORS
# ============================================================================

# W/m² divided by lambda (J/g) times this factor gives mm/day
W_TO_MM_PER_DAY = 86.4

# MJ/m²/day to W/m²
MJ_DAY_TO_W = 1.0 / 0.0864

# Ags (µmol/m²/s) to GPP (gC/m²/day): 86400 / 1e6 * 12
UMOL_TO_GC_PER_DAY = 1.0368

# Gs/Gc ratio of diffusivities of water vapour and CO2
H2O_CO2_DIFFUSIVITY = 1.6

FREEZING_POINT = 273.15


class ModelVariant(str, Enum):
    """Canopy conductance formulation selected at model construction."""

    V1 = "PML_V1"
    V2 = "PML_V2"

    @classmethod
    def parse(cls, value) -> "ModelVariant":
        if isinstance(value, cls):
            return value
        key = str(value).strip().upper().replace("PML_", "").replace("PML", "")
        try:
            return cls["V" + key.lstrip("V")]
        except KeyError:
            raise ValueError(f"Unknown PML variant: {value!r} (expected V1 or V2)")


__all__ = [
    'STEFAN_BOLTZMANN_MJ', 'PAR_FRACTION', 'PAR_W_TO_UMOL', 'VON_KARMAN',
    'AIR_SPECIFIC_HEAT', 'EPSILON', 'LATENT_HEAT_VAPORIZATION',
    'LATENT_HEAT_SLOPE', 'REFERENCE_HEIGHT', 'DISPLACEMENT_FRACTION',
    'ROUGHNESS_MOMENTUM_FRACTION', 'ROUGHNESS_HEAT_FRACTION',
    'STANDARD_PRESSURE_KPA', 'KQ', 'KA', 'Q50', 'D0', 'MIN_VPD',
    'MIN_CANOPY_CONDUCTANCE', 'MIN_EQUILIBRIUM_EVAPORATION', 'W_TO_MM_PER_DAY',
    'MJ_DAY_TO_W', 'UMOL_TO_GC_PER_DAY', 'H2O_CO2_DIFFUSIVITY',
    'FREEZING_POINT', 'ModelVariant',
]
