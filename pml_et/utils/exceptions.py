"""
Custom exceptions for the PML pipeline.

Provides a hierarchical exception system for input-contract violations,
computation failures and output errors. Masked (no-data) values are not
errors and never raise; they propagate through the grids as NaN.
"""


class PMLError(Exception):
    """
    Base exception for PML errors.

    All custom PML exceptions inherit from this class.
    Provides context information about the error location and details.
    """

    def __init__(self, message: str, details: dict = None, *args):
        super().__init__(message, *args)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def add_detail(self, key: str, value) -> None:
        """
        Add detail information to the exception.

        Args:
            key: Detail key
            value: Detail value
        """
        self.details[key] = value


def _merge(details: dict = None, **extra) -> dict:
    merged = {k: v for k, v in extra.items() if v is not None}
    if details:
        merged.update(details)
    return merged


class DataInputError(PMLError):
    """
    Exception raised for invalid input data.

    This includes:
    - Missing forcing or parameter bands
    - Unsorted or duplicated timestamps
    - Grids whose shapes do not match
    """

    def __init__(self, message: str, input_type: str = None, file_path: str = None,
                 details: dict = None):
        super().__init__(message, _merge(details, input_type=input_type, file_path=file_path))


class ForcingBandError(DataInputError):
    """
    Exception raised when a forcing record lacks required bands.
    """

    def __init__(self, message: str, missing_bands: list = None, time=None):
        details = _merge(
            missing_bands=list(missing_bands) if missing_bands else None,
            time=str(time) if time is not None else None,
        )
        super().__init__(message, input_type="forcing", details=details)


class TimestampOrderError(DataInputError):
    """
    Exception raised for an unsorted or non-unique timestamp sequence.
    """

    def __init__(self, message: str, position: int = None, time=None):
        details = _merge(
            position=position,
            time=str(time) if time is not None else None,
        )
        super().__init__(message, input_type="time_series", details=details)


class GridShapeError(DataInputError):
    """
    Exception raised when grids that must be co-registered differ in shape.
    """

    def __init__(self, message: str, expected: tuple = None, actual: tuple = None):
        super().__init__(message, input_type="grid",
                         details=_merge(expected=expected, actual=actual))


class ParameterError(DataInputError):
    """
    Exception raised for a missing or malformed land-cover parameter table.
    """

    def __init__(self, message: str, parameter: str = None, land_cover_class=None):
        super().__init__(message, input_type="parameters",
                         details=_merge(parameter=parameter, land_cover_class=land_cover_class))


class ComputationError(PMLError):
    """
    Exception raised for computational errors in the flux model.

    This includes:
    - Missing intermediate quantities
    - Array dimension mismatches
    """

    def __init__(self, message: str, computation_step: str = None, details: dict = None):
        super().__init__(message, _merge(details, step=computation_step))


class RadiationBalanceError(ComputationError):
    """
    Exception raised for radiation balance calculation errors.
    """

    def __init__(self, message: str, component: str = None):
        super().__init__(message, computation_step="radiation_balance",
                         details=_merge(component=component))


class ConductanceError(ComputationError):
    """
    Exception raised for canopy or aerodynamic conductance errors.
    """

    def __init__(self, message: str, variant: str = None):
        super().__init__(message, computation_step="conductance",
                         details=_merge(variant=variant))


class QuantizationError(PMLError):
    """
    Exception raised for an invalid fixed-point output representation.
    """

    def __init__(self, message: str, dtype: str = None, scale: float = None):
        super().__init__(message, _merge(dtype=dtype, scale=scale))


class OutputError(PMLError):
    """
    Exception raised for output file errors.

    This includes:
    - File write failures
    - Invalid output format
    """

    def __init__(self, message: str, output_path: str = None, output_type: str = None,
                 details: dict = None):
        super().__init__(message, _merge(details, output_path=output_path, output_type=output_type))


class GeoTIFFWriteError(OutputError):
    """
    Exception raised for GeoTIFF write failures.
    """

    def __init__(self, message: str, file_path: str = None):
        super().__init__(message, output_path=file_path, output_type="geotiff")


class ConfigurationError(PMLError):
    """
    Exception raised for configuration errors.

    This includes:
    - Missing configuration parameters
    - Invalid configuration values
    """

    def __init__(self, message: str, config_param: str = None):
        super().__init__(message, _merge(parameter=config_param))


class PipelineError(PMLError):
    """
    Exception raised for pipeline execution errors.
    """

    def __init__(self, message: str, pipeline_stage: str = None, step: str = None):
        super().__init__(message, _merge(stage=pipeline_stage, step=step))


# Error handling utilities

def handle_exception(func):
    """
    Decorator to wrap functions with exception handling.

    Converts exceptions to PML-specific exceptions while preserving
    the original error context.

    Usage:
        @handle_exception
        def my_function():
            pass
    """
    from functools import wraps

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except PMLError:
            raise
        except ValueError as e:
            raise ComputationError(
                f"Value error in {func.__name__}: {e}",
                computation_step=func.__name__
            ) from e
        except FileNotFoundError as e:
            raise DataInputError(
                f"File not found: {e}",
                file_path=str(e.filename)
            ) from e
        except PermissionError as e:
            raise OutputError(
                f"Permission denied: {e}",
                output_path=str(e.filename)
            ) from e
        except Exception as e:
            raise PMLError(
                f"Unexpected error in {func.__name__}: {e}"
            ) from e
    return wrapper


def create_error_context(error: Exception, context: dict) -> dict:
    """
    Create a comprehensive error context dictionary.

    Args:
        error: The exception that occurred
        context: Additional context information

    Returns:
        Dictionary with error details
    """
    context_data = {
        "error_type": type(error).__name__,
        "error_message": str(error),
    }

    if hasattr(error, 'details'):
        context_data["error_details"] = error.details

    if context:
        context_data["additional_context"] = context

    return context_data
