"""Command-line interface for the PML model."""

from .interface import cli

__all__ = ['cli']
