"""
Small statistical helpers that accompany the downscaling procedure.
"""

import numpy as np
import pandas as pd
from typing import Any, Tuple, Union, Sequence
import logging

from scipy.stats import binomtest

from ..utils.validation import ValidationError

logger = logging.getLogger(__name__)


def expand_range(*values: Any, n: float = 1.0, skipna: bool = False) -> Tuple[float, float]:
    """
    Range of values, reduced (n < 1) or extended (n > 1) symmetrically.

    The width of the range is multiplied by n while its midpoint is kept, so
    ``expand_range(x, n=2)`` is twice as wide as ``(min(x), max(x))`` and
    centred on the same value.

    Args:
        *values: Numbers or array-likes; all of them are pooled
        n: Positive expansion factor
        skipna: Whether to ignore NaN values

    Returns:
        (lower, upper) tuple
    """
    if n <= 0:
        raise ValidationError(f"Expansion factor must be positive, got {n}")
    pooled = np.concatenate([np.ravel(np.asarray(v, dtype=float)) for v in values]) if values else np.array([])
    if skipna:
        pooled = pooled[~np.isnan(pooled)]
    if pooled.size == 0:
        raise ValidationError("Cannot compute the range of no values")

    lower, upper = float(pooled.min()), float(pooled.max())
    half_width = n * (upper - lower) / 2
    middle = (lower + upper) / 2
    return middle - half_width, middle + half_width


def _as_counts(values: Union[int, Sequence[int]], name: str) -> np.ndarray:
    arr = np.atleast_1d(np.asarray(values, dtype=float))
    if np.any(~np.isfinite(arr)) or np.any(arr != np.round(arr)):
        raise ValidationError(f"{name} must hold integers")
    if np.any(arr < 0):
        raise ValidationError(f"{name} must be non-negative")
    return arr.astype(int)


def proportion(
    x: Union[int, Sequence[int]],
    n: Union[int, Sequence[int]],
    ci: float = 0.95
) -> pd.DataFrame:
    """
    Estimate proportions with exact binomial confidence intervals.

    Each (x, n) pair gives one estimate x / n with its Clopper-Pearson
    confidence interval. x and n are broadcast against each other.

    Args:
        x: Number(s) of successes
        n: Number(s) of trials
        ci: Confidence level of the intervals

    Returns:
        DataFrame with columns estimate, lower and upper, one row per pair
    """
    if not 0 < ci < 1:
        raise ValidationError(f"Confidence level must be between 0 and 1, got {ci}")
    successes = _as_counts(x, "x")
    trials = _as_counts(n, "n")
    try:
        successes, trials = np.broadcast_arrays(successes, trials)
    except ValueError:
        raise ValidationError(f"x and n cannot be paired, got lengths {len(successes)} and {len(trials)}")
    if np.any(trials == 0):
        raise ValidationError("Number of trials must be positive")
    if np.any(successes > trials):
        raise ValidationError("Number of successes cannot exceed number of trials")

    rows = []
    for k, size in zip(successes, trials):
        test = binomtest(int(k), int(size))
        interval = test.proportion_ci(confidence_level=ci, method="exact")
        rows.append((k / size, interval.low, interval.high))

    logger.debug(f"Estimated {len(rows)} proportions at confidence level {ci}")
    return pd.DataFrame(rows, columns=["estimate", "lower", "upper"])
