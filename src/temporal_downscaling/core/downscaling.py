"""
Statistical temporal downscaling.

Reconstructs a finer-grained series from aggregate values measured over
contiguous intervals. Within each interval the reconstruction is a straight
line through the interval centre point (x[i], y[i]) and through the value
carried over from the previous interval at their common boundary. Because
the subsegment positions of an interval are symmetric about its centre, the
mean of the values inferred in an interval is the aggregate itself, whatever
the carried values are. The only free parameter left is the value at the
first boundary; it is chosen to make the transitions between intervals as
smooth as possible, i.e. to minimise the total change of slope.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union
import logging

from scipy.optimize import minimize_scalar

from .intervals import centers, subsegment_centers
from ..utils.validation import (
    as_vector,
    validate_intervals,
    validate_counts,
    validate_search_interval,
    ValidationError,
    DegenerateIntervalError,
)

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SCALE = 3.0
DEFAULT_XATOL = 1.0e-8
DEFAULT_MAXITER = 500


@dataclass(frozen=True)
class LinearSegment:
    """
    The line fitted over one interval.

    Attributes:
        center: Interval centre x[i]
        value: Aggregate value y[i], reached by the line at the centre
        slope: Slope of the line
    """
    center: float
    value: float
    slope: float

    @classmethod
    def through(cls, boundary: float, carried_value: float, center: float, value: float) -> "LinearSegment":
        """Line through (boundary, carried_value) and (center, value)."""
        return cls(center, value, (value - carried_value) / (center - boundary))

    @property
    def intercept(self) -> float:
        return self.value - self.slope * self.center

    def predict(self, t: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        """Evaluate the line at t."""
        # anchored at the centre point so the interval mean stays exact
        return self.value + self.slope * (np.asarray(t, dtype=float) - self.center)


@dataclass
class DownscaleResult:
    """Container for the outcome of a downscaling run."""
    values: np.ndarray
    positions: np.ndarray
    segments: List[LinearSegment]
    first_value: float
    unsmoothness: float
    counts: np.ndarray
    search_interval: Optional[Tuple[float, float]] = None
    optimized: bool = field(default=True)

    def per_interval(self) -> List[np.ndarray]:
        """Split the flat output back into one array per interval."""
        return np.split(self.values, np.cumsum(self.counts)[:-1])

    def interval_means(self) -> np.ndarray:
        """Mean of the inferred values within each interval."""
        return np.array([chunk.mean() for chunk in self.per_interval()])


def _check_degenerate(x: np.ndarray, boundaries: np.ndarray) -> None:
    runs = x - boundaries[:-1]
    degenerate = np.flatnonzero(runs == 0)
    if degenerate.size:
        index = int(degenerate[0])
        raise DegenerateIntervalError(index, float(x[index]))


def _prepare(y: Sequence[float], x: Sequence[float]) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Validate an interval sequence and compute its boundaries."""
    x = as_vector(x, "x")
    y = as_vector(y, "y")
    validate_intervals(x, y)
    boundaries = centers(x, with_borders=True)
    _check_degenerate(x, boundaries)
    return y, x, boundaries


def _chain(y: np.ndarray, x: np.ndarray, boundaries: np.ndarray, first_value: float) -> List[LinearSegment]:
    segments = []
    carried = float(first_value)
    for i in range(len(x)):
        segment = LinearSegment.through(float(boundaries[i]), carried, float(x[i]), float(y[i]))
        segments.append(segment)
        carried = float(segment.predict(boundaries[i + 1]))
    return segments


def build_segments(
    y: Sequence[float],
    x: Sequence[float],
    first_value: float,
    boundaries: Optional[Sequence[float]] = None
) -> List[LinearSegment]:
    """
    Build the chain of per-interval lines for a given first boundary value.

    The line of interval i goes through (boundary[i], carried[i]) and
    (x[i], y[i]); its value at boundary[i + 1] is carried into interval i + 1.
    carried[0] is first_value.

    Args:
        y: Aggregate values
        x: Interval centres
        first_value: Value at the first (outer) boundary
        boundaries: Precomputed ``centers(x, True)``, computed when omitted

    Returns:
        One LinearSegment per interval

    Raises:
        DegenerateIntervalError: If an interval centre coincides with its left boundary
    """
    if boundaries is None:
        y, x, boundaries = _prepare(y, x)
    else:
        x = as_vector(x, "x")
        y = as_vector(y, "y")
        validate_intervals(x, y)
        boundaries = as_vector(boundaries, "boundaries")
        if len(boundaries) != len(x) + 1:
            raise ValidationError(f"Expected {len(x) + 1} boundaries, got {len(boundaries)}")
        _check_degenerate(x, boundaries)
    return _chain(y, x, boundaries, first_value)


def unsmoothness(segments: Sequence[LinearSegment]) -> float:
    """Total absolute change of slope across the interval boundaries."""
    slopes = np.array([segment.slope for segment in segments])
    return float(np.sum(np.abs(np.diff(slopes))))


def default_search_interval(y: Sequence[float], scale: float = DEFAULT_INTERVAL_SCALE) -> Tuple[float, float]:
    """
    Default bracket for the first boundary value: scale times the range of y.

    Non-finite values of y are ignored. When the bracket collapses to a
    single point (constant y), it is widened to (c - |c|, c + |c|), or to
    (-1, 1) when c is zero, so that it still contains the constant.
    """
    if scale <= 0:
        raise ValidationError(f"Interval scale must be positive, got {scale}")
    y = as_vector(y, "y")
    finite = y[np.isfinite(y)]
    if finite.size == 0:
        lower = upper = 0.0
    else:
        lower, upper = scale * float(finite.min()), scale * float(finite.max())
    if lower == upper:
        half_width = abs(lower) or 1.0
        return lower - half_width, upper + half_width
    return lower, upper


def _optimize(
    y: np.ndarray,
    x: np.ndarray,
    boundaries: np.ndarray,
    bounds: Tuple[float, float],
    xatol: float,
    maxiter: int
) -> float:
    if not (np.all(np.isfinite(x)) and np.all(np.isfinite(y))):
        logger.warning("Non-finite values in x or y; skipping optimisation, results will not be finite")
        return (bounds[0] + bounds[1]) / 2

    result = minimize_scalar(
        lambda y0: unsmoothness(_chain(y, x, boundaries, y0)),
        bounds=bounds,
        method="bounded",
        options={"xatol": xatol, "maxiter": maxiter},
    )
    if not result.success:
        logger.warning(f"Bounded search did not converge ({result.message}); using best value found")
    logger.debug(f"Optimal first boundary value {result.x:.6g} in {bounds}, unsmoothness {result.fun:.6g}")
    return float(result.x)


def optimal_first_value(
    y: Sequence[float],
    x: Sequence[float],
    interval: Optional[Sequence[float]] = None,
    xatol: float = DEFAULT_XATOL,
    maxiter: int = DEFAULT_MAXITER
) -> float:
    """
    Find the first boundary value that minimises the unsmoothness.

    The search is a bounded scalar minimisation (Brent's method with golden
    section steps) over the given bracket. The objective is piecewise linear
    and convex in the first boundary value. The best value found in the
    bracket is returned, even if the true minimum lies outside it.

    Args:
        y: Aggregate values
        x: Interval centres
        interval: (lower, upper) bracket, ``default_search_interval(y)`` when None
        xatol: Absolute tolerance on the returned value
        maxiter: Maximum number of objective evaluations

    Returns:
        The optimal first boundary value
    """
    y, x, boundaries = _prepare(y, x)
    bounds = default_search_interval(y) if interval is None else validate_search_interval(interval)
    return _optimize(y, x, boundaries, bounds, xatol, maxiter)


def downscale_with_details(
    y: Sequence[float],
    x: Sequence[float],
    n: Union[int, Sequence[int]],
    interval: Optional[Sequence[float]] = None,
    *,
    first_value: Optional[float] = None,
    interval_scale: float = DEFAULT_INTERVAL_SCALE,
    xatol: float = DEFAULT_XATOL,
    maxiter: int = DEFAULT_MAXITER
) -> DownscaleResult:
    """
    Downscale aggregate values and keep the intermediate results.

    See ``downscale`` for the arguments. ``interval_scale`` is the factor
    applied to the range of y to build the default bracket.
    A supplied ``interval`` is validated even when ``first_value`` is given;
    the search, and so ``search_interval``, is skipped in that case.

    Returns:
        DownscaleResult with the values, their positions, the fitted segments
        and the first boundary value used
    """
    x = as_vector(x, "x")
    y = as_vector(y, "y")
    m = validate_intervals(x, y)
    counts = validate_counts(n, m)
    bounds = None if interval is None else validate_search_interval(interval)
    if first_value is not None:
        bounds = None
    elif bounds is None:
        bounds = default_search_interval(y, interval_scale)

    boundaries = centers(x, with_borders=True)
    _check_degenerate(x, boundaries)
    # Tolerance scales with the interval width, not with the magnitude of x
    offsets = np.abs((boundaries[:-1] + boundaries[1:]) / 2 - x)
    tolerance = 1e-9 * np.abs(np.diff(boundaries)) + 4 * np.spacing(np.abs(x))
    finite = np.isfinite(offsets)
    if np.any(offsets[finite] > tolerance[finite]):
        logger.warning("Interval centres are not evenly spaced; interval means will only approximate the aggregates")

    if first_value is None:
        logger.debug(f"Searching first boundary value in {bounds}")
        first_value = _optimize(y, x, boundaries, bounds, xatol, maxiter)

    segments = _chain(y, x, boundaries, first_value)
    positions = subsegment_centers(x, counts)
    values = np.concatenate([segment.predict(pos) for segment, pos in zip(segments, positions)])

    return DownscaleResult(
        values=values,
        positions=np.concatenate(positions),
        segments=segments,
        first_value=float(first_value),
        unsmoothness=unsmoothness(segments),
        counts=counts,
        search_interval=bounds,
        optimized=bounds is not None,
    )


def downscale(
    y: Sequence[float],
    x: Sequence[float],
    n: Union[int, Sequence[int]],
    interval: Optional[Sequence[float]] = None,
    *,
    first_value: Optional[float] = None,
    interval_scale: float = DEFAULT_INTERVAL_SCALE,
    xatol: float = DEFAULT_XATOL,
    maxiter: int = DEFAULT_MAXITER
) -> np.ndarray:
    """
    Statistical temporal downscaling of aggregate values.

    Infers n[i] values per interval such that their mean is y[i] and the
    transition between intervals is as smooth as possible. Each interval is
    modelled by a line through its centre point and through the value
    inferred at its left boundary by the previous interval's line. The value
    at the very first boundary is found by minimising the total change of
    slope over ``interval``.

    NaN or infinite values in x or y are not rejected: they propagate into
    the output.

    Args:
        y: Aggregate values, one per interval
        x: Interval centres, same length as y
        n: Number of values to infer per interval, a single integer or one
            per interval
        interval: (lower, upper) bracket searched for the first boundary
            value; (3 * min(y), 3 * max(y)) by default
        first_value: Use this first boundary value instead of searching for one
        interval_scale: Factor applied to the range of y for the default bracket
        xatol: Absolute tolerance of the bounded search
        maxiter: Maximum number of iterations of the bounded search

    Returns:
        Array of sum(n) values, ordered by interval

    Raises:
        LengthMismatchError: If x, y and n have inconsistent lengths
        InsufficientPointsError: If fewer than two intervals are given
        InvalidSubdivisionCountError: If a count is not a positive integer
        InvalidSearchIntervalError: If the bracket is empty, reversed or not finite
        DegenerateIntervalError: If an interval centre coincides with its left boundary
    """
    return downscale_with_details(
        y, x, n, interval,
        first_value=first_value,
        interval_scale=interval_scale,
        xatol=xatol,
        maxiter=maxiter,
    ).values
