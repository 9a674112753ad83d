"""Configuration settings for the PML model."""

from pathlib import Path

from ..core.constants import ModelVariant

# ============================================================================
# PATHS
# ============================================================================

BASE_DIR = Path(__file__).resolve().parent.parent

# ============================================================================
# FORCING BANDS
# ============================================================================

# Meteorological and remote-sensing bands every forcing record carries
FORCING_BANDS = [
    "LAI",      # Leaf area index (m²/m²)
    "Emiss",    # Surface emissivity (-)
    "Albedo",   # Surface albedo (-)
    "Pa",       # Air pressure (kPa)
    "Tmax",     # Daily maximum air temperature (°C)
    "Tmin",     # Daily minimum air temperature (°C)
    "Tavg",     # Daily mean air temperature (°C)
    "Prcp",     # Precipitation (mm/day)
    "Rln",      # Incoming longwave radiation (W/m²)
    "Rs",       # Incoming shortwave radiation (W/m²)
    "U2",       # Wind speed at 2 m (m/s)
    "co2",      # Atmospheric CO2 (µmol/mol)
    "q",        # Specific humidity (kg/kg)
]

# Quality-control band passed through unchanged
QC_BAND = "qc"

# ============================================================================
# PARAMETER BANDS
# ============================================================================

# Land-cover-dependent parameters shared by both variants
COMMON_PARAMETERS = ["hc", "LAIref", "S_sls", "fER0"]

PARAMETER_BANDS = {
    ModelVariant.V1: COMMON_PARAMETERS + ["gsx"],
    ModelVariant.V2: COMMON_PARAMETERS + [
        "Am", "Alpha", "Thelta", "m", "VPDmin", "VPDmax", "D0", "kQ", "kA"
    ],
}

# ============================================================================
# LAND COVER
# ============================================================================

# Land-cover classification is available for this closed range of years
LAND_COVER_YEAR_MIN = 2001
LAND_COVER_YEAR_MAX = 2018

# Classes evaluated with the open-water/ice evaporation branch
WATER_CODE = 0
SNOW_ICE_CODE = 15
WATER_ICE_CODES = (WATER_CODE, SNOW_ICE_CODE)

# ============================================================================
# OUTPUT BANDS
# ============================================================================

# Bands of the per-timestep model output
DAILY_BANDS = {
    ModelVariant.V1: ["Es_eq", "Ec", "Ei", "Pi"],
    ModelVariant.V2: ["Es_eq", "Ec", "Ei", "Pi", "GPP"],
}

# Band order of the period output (and of the exported rasters)
PERIOD_BANDS = {
    ModelVariant.V1: ["Ec", "Es", "Ei", "ET_water", QC_BAND],
    ModelVariant.V2: ["GPP", "Ec", "Es", "Ei", "ET_water", QC_BAND],
}

UNITS = {
    "GPP": "gC m-2 d-1",
    "Ec": "mm d-1",
    "Es": "mm d-1",
    "Es_eq": "mm d-1",
    "Ei": "mm d-1",
    "Pi": "mm d-1",
    "ET_water": "mm d-1",
    QC_BAND: "1",
}

# ============================================================================
# QUANTIZATION
# ============================================================================

QUANTIZATION = {
    "scale": 100.0,
    "dtype": "uint16",
    # Largest uint16 value is reserved for no-data on export
    "nodata": 65535,
    "rounding": "nearest",
}

# ============================================================================
# TEMPORAL AGGREGATION
# ============================================================================

# Backward moving-average window for the soil-water-availability factor
SOIL_MOISTURE_WINDOW = 3

# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

LOGGING = {
    "level": "INFO",
    "format": "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>",
    "file_log": False,
    "log_file": BASE_DIR / "logs" / "pml_et.log"
}

# ============================================================================
# VALIDATION RANGES
# ============================================================================

VALIDATION_RANGES = {
    "LAI": (0.0, 10.0),
    "Albedo": (0.0, 1.0),
    "Emiss": (0.8, 1.0),
    "Tavg": (-70.0, 60.0),   # °C
    "Pa": (30.0, 110.0),     # kPa
    "Prcp": (0.0, 1000.0),   # mm/day
    "U2": (0.0, 60.0),       # m/s
    "q": (0.0, 0.1),         # kg/kg
}


def period_bands(variant, include_qc: bool = True) -> list:
    """Band order of the period output for a variant."""
    bands = list(PERIOD_BANDS[ModelVariant.parse(variant)])
    if not include_qc:
        bands.remove(QC_BAND)
    return bands


def required_forcing_bands(include_qc: bool = True) -> list:
    """Forcing bands a record must carry."""
    return FORCING_BANDS + [QC_BAND] if include_qc else list(FORCING_BANDS)


def clamp_land_cover_year(year: int) -> int:
    """Snap a year into the range covered by the land-cover classification."""
    return min(max(int(year), LAND_COVER_YEAR_MIN), LAND_COVER_YEAR_MAX)
