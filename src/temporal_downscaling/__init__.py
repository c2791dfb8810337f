"""
Statistical temporal downscaling.

This package infers fine-grained values from aggregate data measured over
contiguous intervals, such that the values inferred within each interval
average back to its aggregate and the transitions between intervals are as
smooth as possible. It also provides tools to downscale tabular data from
the command line and to plot the results.
"""

from .core import (
    centers,
    subsegment_centers,
    LinearSegment,
    DownscaleResult,
    build_segments,
    unsmoothness,
    default_search_interval,
    optimal_first_value,
    downscale,
    downscale_with_details,
    expand_range,
    proportion,
)
from .utils.validation import (
    DownscalingError,
    ValidationError,
    LengthMismatchError,
    InsufficientPointsError,
    InvalidSubdivisionCountError,
    InvalidSearchIntervalError,
    DegenerateIntervalError,
)

__version__ = "0.1.0"
