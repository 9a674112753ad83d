"""
Utility modules for the PML pipeline.

Provides logging, validation, and exception handling utilities.
"""

from .logger import Logger, log_step, get_progress_bar, log_execution_time
from .validation import (
    validate_forcing_record,
    validate_grid_shapes,
    validate_time_order,
    check_value_range,
    check_forcing_ranges,
    check_mask_partition,
)
from .exceptions import (
    PMLError,
    DataInputError,
    ForcingBandError,
    TimestampOrderError,
    GridShapeError,
    ParameterError,
    ComputationError,
    RadiationBalanceError,
    ConductanceError,
    QuantizationError,
    OutputError,
    GeoTIFFWriteError,
    ConfigurationError,
    PipelineError,
    handle_exception,
    create_error_context
)

__all__ = [
    # Logger
    "Logger",
    "log_step",
    "get_progress_bar",
    "log_execution_time",

    # Validation
    "validate_forcing_record",
    "validate_grid_shapes",
    "validate_time_order",
    "check_value_range",
    "check_forcing_ranges",
    "check_mask_partition",

    # Exceptions
    "PMLError",
    "DataInputError",
    "ForcingBandError",
    "TimestampOrderError",
    "GridShapeError",
    "ParameterError",
    "ComputationError",
    "RadiationBalanceError",
    "ConductanceError",
    "QuantizationError",
    "OutputError",
    "GeoTIFFWriteError",
    "ConfigurationError",
    "PipelineError",
    "handle_exception",
    "create_error_context"
]
