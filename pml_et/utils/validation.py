"""
Validation utilities for the PML pipeline.

Contract checks (`validate_*`) raise on violations that must stop a run
before any computation. Range checks (`check_*`) return a
``(is_valid, message)`` tuple and only log, since out-of-range pixels
are carried as values or no-data rather than rejected.
"""

from typing import Iterable, Sequence, Tuple
import numpy as np
import pandas as pd

from ..config.settings import VALIDATION_RANGES
from .exceptions import ForcingBandError, GridShapeError, TimestampOrderError
from .logger import Logger


def validate_forcing_record(cube, required_bands: Iterable[str]) -> None:
    """
    Check a forcing record carries every required band on one grid.

    Raises:
        ForcingBandError: If bands are missing or the record has no time
        GridShapeError: If the bands differ in shape
    """
    missing = cube.missing_bands(required_bands)
    if missing:
        raise ForcingBandError(
            f"Forcing record is missing required bands: {missing}",
            missing_bands=missing,
            time=cube.time,
        )
    if cube.time is None:
        raise ForcingBandError("Forcing record has no timestamp")
    validate_grid_shapes(cube)


def validate_grid_shapes(cube, expected: Tuple[int, int] = None) -> Tuple[int, int]:
    """
    Check every band of a cube shares one 2-D shape.

    Args:
        cube: DataCube to check
        expected: Shape the bands must match (defaults to the first band)

    Returns:
        The common shape

    Raises:
        GridShapeError: On the first band whose shape differs
    """
    for name in cube.bands():
        shape = tuple(cube.shape(name))
        if len(shape) != 2:
            raise GridShapeError(f"Band '{name}' is not a 2-D grid", actual=shape)
        if expected is None:
            expected = shape
        elif shape != tuple(expected):
            raise GridShapeError(
                f"Band '{name}' does not match the grid shape",
                expected=tuple(expected), actual=shape,
            )
    return expected


def validate_time_order(times: Sequence) -> pd.DatetimeIndex:
    """
    Check a timestamp sequence is strictly ascending (sorted and unique).

    Returns:
        The timestamps as a DatetimeIndex

    Raises:
        TimestampOrderError: At the first position that breaks the order
    """
    index = pd.DatetimeIndex(pd.to_datetime(list(times)))
    if index.hasnans:
        position = int(np.flatnonzero(index.isna())[0])
        raise TimestampOrderError("Missing timestamp in sequence", position=position)
    for position in range(1, len(index)):
        if index[position] == index[position - 1]:
            raise TimestampOrderError(
                "Duplicate timestamp in sequence", position=position, time=index[position]
            )
        if index[position] < index[position - 1]:
            raise TimestampOrderError(
                "Timestamps are not sorted ascending", position=position, time=index[position]
            )
    return index


def check_value_range(name: str, values, valid_range: Tuple[float, float] = None) -> Tuple[bool, str]:
    """
    Check finite values of a grid lie within a valid range.

    Args:
        name: Band name, used to look up the default range
        values: Grid values (numpy array or DataArray)
        valid_range: (min, max); defaults to VALIDATION_RANGES[name]

    Returns:
        Tuple of (is_valid, message)
    """
    if valid_range is None:
        if name not in VALIDATION_RANGES:
            return True, f"No validation range defined for {name}"
        valid_range = VALIDATION_RANGES[name]

    arr = np.asarray(values, dtype=np.float64)
    finite = arr[np.isfinite(arr)]
    if finite.size == 0:
        return True, f"{name} has no finite values"

    lo, hi = valid_range
    outside = (finite < lo) | (finite > hi)
    if np.any(outside):
        count = int(np.sum(outside))
        Logger.warning(
            f"{name} outliers: min={finite.min():.3f}, max={finite.max():.3f}"
        )
        return False, f"{name} values out of range [{lo}, {hi}]: {count} pixels ({count / finite.size * 100:.2f}%)"
    return True, f"{name} values are valid (range: {finite.min():.3f} - {finite.max():.3f})"


def check_forcing_ranges(cube) -> dict:
    """Run check_value_range on every band of a forcing record with a known range."""
    return {
        name: check_value_range(name, cube[name])
        for name in cube.bands() if name in VALIDATION_RANGES
    }


def check_mask_partition(water_mask, vegetated_mask, classified_mask) -> dict:
    """
    Verify the water/ice and vegetated masks partition the classified domain.

    Returns:
        Dictionary with overlap/gap pixel counts and a validity flag
    """
    water = np.asarray(water_mask, dtype=bool)
    vegetated = np.asarray(vegetated_mask, dtype=bool)
    classified = np.asarray(classified_mask, dtype=bool)

    overlap = int(np.sum(water & vegetated))
    gaps = int(np.sum(classified & ~(water | vegetated)))
    outside = int(np.sum((water | vegetated) & ~classified))
    return {
        "valid": overlap == 0 and gaps == 0 and outside == 0,
        "overlap_pixels": overlap,
        "uncovered_pixels": gaps,
        "unclassified_pixels_masked": outside,
        "water_pixels": int(water.sum()),
        "vegetated_pixels": int(vegetated.sum()),
    }
