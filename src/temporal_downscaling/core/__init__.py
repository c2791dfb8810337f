"""
Core functionality for the temporal downscaling procedure.

This package contains the interval geometry, the downscaling algorithm
itself and a few statistical helpers.
"""

from .intervals import centers, subsegment_centers
from .downscaling import (
    LinearSegment,
    DownscaleResult,
    build_segments,
    unsmoothness,
    default_search_interval,
    optimal_first_value,
    downscale,
    downscale_with_details,
)
from .statistics import expand_range, proportion

__all__ = [
    'centers', 'subsegment_centers',
    'LinearSegment', 'DownscaleResult', 'build_segments', 'unsmoothness',
    'default_search_interval', 'optimal_first_value', 'downscale', 'downscale_with_details',
    'expand_range', 'proportion',
]
