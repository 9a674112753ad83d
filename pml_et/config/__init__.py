"""Configuration for the PML model."""

from .settings import (
    FORCING_BANDS,
    QC_BAND,
    PARAMETER_BANDS,
    LAND_COVER_YEAR_MIN,
    LAND_COVER_YEAR_MAX,
    WATER_ICE_CODES,
    DAILY_BANDS,
    PERIOD_BANDS,
    QUANTIZATION,
    SOIL_MOISTURE_WINDOW,
    period_bands,
    required_forcing_bands,
    clamp_land_cover_year,
)

__all__ = [
    'FORCING_BANDS',
    'QC_BAND',
    'PARAMETER_BANDS',
    'LAND_COVER_YEAR_MIN',
    'LAND_COVER_YEAR_MAX',
    'WATER_ICE_CODES',
    'DAILY_BANDS',
    'PERIOD_BANDS',
    'QUANTIZATION',
    'SOIL_MOISTURE_WINDOW',
    'period_bands',
    'required_forcing_bands',
    'clamp_land_cover_year',
]
