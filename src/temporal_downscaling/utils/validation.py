"""
Validation module for the temporal downscaling procedure.

Defines the exception hierarchy raised by the package and the validators
that check interval sequences, subdivision counts, search brackets, tabular
input and configuration before any computation starts.
"""

import numbers
import pandas as pd
import numpy as np
from typing import Optional, List, Dict, Any, Sequence, Tuple, Union
import logging

logger = logging.getLogger(__name__)

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class DownscalingError(Exception):
    """Base class for all errors raised by the package."""
    pass


class ValidationError(DownscalingError, ValueError):
    """Base class for validation errors."""
    pass


class LengthMismatchError(ValidationError):
    """Raised when x, y or the subdivision counts have inconsistent lengths."""
    pass


class InsufficientPointsError(ValidationError):
    """Raised when fewer than two intervals are given."""
    pass


class InvalidSubdivisionCountError(ValidationError):
    """Raised when a subdivision count is not a positive integer."""
    pass


class InvalidSearchIntervalError(ValidationError):
    """Raised when the optimizer bracket is empty, reversed or not finite."""
    pass


class DataValidationError(ValidationError):
    """Raised when data validation fails."""
    pass


class ConfigValidationError(ValidationError):
    """Raised when configuration validation fails."""
    pass


class DegenerateIntervalError(DownscalingError, ArithmeticError):
    """
    Raised when an interval centre coincides with its left boundary.

    The two anchor points of the interval's line then share the same
    abscissa and the slope is undefined.
    """

    def __init__(self, index: int, center: float):
        self.index = index
        self.center = center
        super().__init__(
            f"Interval {index} is degenerate: its centre {center!r} coincides with "
            f"its left boundary (duplicate adjacent centres?)"
        )


def as_vector(values: Any, name: str) -> np.ndarray:
    """
    Convert an array-like to a 1-D float array.

    Args:
        values: Scalar sequence, numpy array or pandas Series
        name: Argument name used in error messages

    Returns:
        1-D numpy array of floats

    Raises:
        DataValidationError: If the values are not one-dimensional or not numeric
    """
    try:
        arr = np.asarray(values, dtype=float)
    except (TypeError, ValueError) as e:
        raise DataValidationError(f"{name} must be numeric: {e}")
    if arr.ndim != 1:
        raise DataValidationError(f"{name} must be one-dimensional, got shape {arr.shape}")
    return arr


def validate_intervals(x: np.ndarray, y: Optional[np.ndarray] = None) -> int:
    """
    Check that an interval sequence holds at least two intervals.

    Returns:
        The number of intervals m
    """
    if len(x) < 2:
        raise InsufficientPointsError(f"At least 2 interval centres are needed, got {len(x)}")
    if y is not None and len(y) != len(x):
        raise LengthMismatchError(f"x and y must have the same length, got {len(x)} and {len(y)}")
    return len(x)


def validate_counts(n: Union[int, Sequence[int], np.ndarray], m: int) -> np.ndarray:
    """
    Normalise subdivision counts to one positive integer per interval.

    Args:
        n: A single count shared by every interval, or one count per interval
        m: Number of intervals

    Returns:
        Integer array of length m

    Raises:
        InvalidSubdivisionCountError: If a count is not a positive integer
        LengthMismatchError: If a count sequence does not have length m
    """
    raw = np.atleast_1d(np.asarray(n, dtype=object))
    if raw.ndim != 1:
        raise InvalidSubdivisionCountError(f"Subdivision counts must be a scalar or 1-D, got shape {raw.shape}")

    counts = []
    for value in raw:
        if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
            raise InvalidSubdivisionCountError(f"Subdivision count must be an integer, got {value!r}")
        if not np.isfinite(value) or int(value) != value:
            raise InvalidSubdivisionCountError(f"Subdivision count must be integral, got {value!r}")
        if value <= 0:
            raise InvalidSubdivisionCountError(f"Subdivision count must be positive, got {value!r}")
        counts.append(int(value))

    if len(counts) == 1:
        return np.full(m, counts[0], dtype=int)
    if len(counts) != m:
        raise LengthMismatchError(f"Expected 1 or {m} subdivision counts, got {len(counts)}")
    return np.array(counts, dtype=int)


def validate_search_interval(interval: Sequence[float]) -> Tuple[float, float]:
    """
    Check a user supplied optimizer bracket.

    Returns:
        The bracket as a (lower, upper) tuple of floats
    """
    try:
        lower, upper = (float(v) for v in interval)
    except (TypeError, ValueError):
        raise InvalidSearchIntervalError(f"Search interval must be two numbers, got {interval!r}")
    if not (np.isfinite(lower) and np.isfinite(upper)):
        raise InvalidSearchIntervalError(f"Search interval must be finite, got ({lower}, {upper})")
    if not lower < upper:
        raise InvalidSearchIntervalError(f"Search interval lower bound must be below upper bound, got ({lower}, {upper})")
    return lower, upper


def validate_dataframe(
    df: pd.DataFrame,
    required_columns: Optional[List[str]] = None,
    allow_missing: bool = True,
    numeric_only: bool = True,
    missing_threshold: float = 0.5
) -> None:
    """
    Validate a pandas DataFrame of aggregate series.

    Args:
        df: DataFrame to validate
        required_columns: List of columns that must be present
        allow_missing: Whether to allow missing values
        numeric_only: Whether to require all columns to be numeric
        missing_threshold: Maximum allowed proportion of missing values per column (0-1)

    Raises:
        DataValidationError: If validation fails
    """
    if df.empty:
        raise DataValidationError("DataFrame is empty")

    if required_columns:
        missing_cols = set(required_columns) - set(df.columns)
        if missing_cols:
            raise DataValidationError(f"Missing required columns: {sorted(missing_cols)}")

    if not allow_missing:
        cols_with_missing = df.columns[df.isna().any()].tolist()
        if cols_with_missing:
            raise DataValidationError(f"Missing values found in columns: {cols_with_missing}")
    else:
        # NaN propagates through the downscaling, so only warn here
        missing_ratios = df.isna().mean()
        cols_exceeding_threshold = missing_ratios[missing_ratios > missing_threshold].index.tolist()
        if cols_exceeding_threshold:
            logger.warning(
                f"Columns with more than {missing_threshold*100}% missing values: {cols_exceeding_threshold}"
            )

    if numeric_only:
        non_numeric = df.select_dtypes(exclude=[np.number]).columns
        if not non_numeric.empty:
            raise DataValidationError(f"Non-numeric columns found: {non_numeric.tolist()}")

    logger.debug(f"DataFrame validation passed: {df.shape}")


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate configuration dictionary.

    Args:
        config: Configuration dictionary to validate

    Raises:
        ConfigValidationError: If validation fails
    """
    required_sections = ['data', 'downscaling', 'visualization', 'logging']

    missing_sections = set(required_sections) - set(config.keys())
    if missing_sections:
        raise ConfigValidationError(f"Missing required config sections: {sorted(missing_sections)}")

    data = config['data']
    if 'x_column' not in data or not isinstance(data['x_column'], str):
        raise ConfigValidationError("data.x_column must be a string")
    subdivisions = data.get('subdivisions')
    if isinstance(subdivisions, bool) or not isinstance(subdivisions, int) or subdivisions <= 0:
        raise ConfigValidationError("data.subdivisions must be a positive integer")

    downscaling = config['downscaling']
    for key in ('interval_scale', 'xatol'):
        value = downscaling.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ConfigValidationError(f"downscaling.{key} must be a positive number")
    maxiter = downscaling.get('maxiter')
    if isinstance(maxiter, bool) or not isinstance(maxiter, int) or maxiter <= 0:
        raise ConfigValidationError("downscaling.maxiter must be a positive integer")

    if 'figure_sizes' not in config['visualization']:
        raise ConfigValidationError("Missing figure_sizes in visualization configuration")

    if 'level' not in config['logging']:
        raise ConfigValidationError("Missing logging level configuration")
    level = config['logging']['level']
    if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
        raise ConfigValidationError(f"Unknown logging level: {level!r}")
    if 'format' not in config['logging']:
        raise ConfigValidationError("Missing logging format configuration")

    logger.debug("Configuration validation passed")
