"""PML processing pipeline."""

from .pml_pipeline import PMLPipeline, PipelineConfig, load_config

__all__ = ['PMLPipeline', 'PipelineConfig', 'load_config']
