"""
Interval geometry used by the downscaling procedure.

Interval centres are turned into interval boundaries, and each interval is
split into evenly sized subsegments whose centres are the positions of the
downscaled values.
"""

import numpy as np
from typing import List, Sequence, Union
import logging

from ..utils.validation import as_vector, validate_intervals, validate_counts

logger = logging.getLogger(__name__)


def centers(x: Sequence[float], with_borders: bool = False) -> np.ndarray:
    """
    Find the middles of the intervals between consecutive values of x.

    With ``with_borders=True`` the first and last boundaries are found by
    reflection, so that every value of x sits exactly in the middle of two
    consecutive boundaries. For ``x = [1, 2, 4, 7, 11, 16, 22]`` the first
    boundary is 0.5 (1 is the middle of 0.5 and 1.5) and the last is 25
    (22 is the middle of 19 and 25).

    Makes more sense when x is sorted, but doesn't have to be.

    Args:
        x: Interval centres, at least two of them
        with_borders: Whether to extend the midpoints with the two reflected
            outer boundaries

    Returns:
        Array of length len(x) - 1, or len(x) + 1 with borders

    Raises:
        InsufficientPointsError: If x holds fewer than two values
    """
    x = as_vector(x, "x")
    validate_intervals(x)

    ctrs = x[1:] - np.diff(x) / 2
    if with_borders:
        return np.concatenate(([2 * x[0] - ctrs[0]], ctrs, [2 * x[-1] - ctrs[-1]]))
    return ctrs


def subsegment_centers(x: Sequence[float], n: Union[int, Sequence[int]]) -> List[np.ndarray]:
    """
    Centres of the subsegments obtained by splitting each interval evenly.

    The values of x are read as the centres of the intervals [b1, b2],
    [b2, b3], ... whose boundaries come from ``centers(x, True)``. Interval i
    is cut into n[i] slices of equal width and the centre of every slice is
    returned.

    Args:
        x: Interval centres
        n: Number of subsegments, either one value for all intervals or one
            value per interval

    Returns:
        List with one array per interval, holding n[i] increasing positions
    """
    x = as_vector(x, "x")
    m = validate_intervals(x)
    counts = validate_counts(n, m)

    boundaries = centers(x, with_borders=True)
    steps = np.diff(boundaries) / counts
    return [
        boundaries[i] + steps[i] / 2 + steps[i] * np.arange(counts[i])
        for i in range(m)
    ]
