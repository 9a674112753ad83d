"""Canopy rainfall interception for the PML model."""

from .interception import RainfallInterception

__all__ = ['RainfallInterception']
