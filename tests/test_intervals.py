"""Tests for interval boundaries and subsegment centres."""

import unittest
import numpy as np

from temporal_downscaling.core.intervals import centers, subsegment_centers
from temporal_downscaling.utils.validation import (
    InsufficientPointsError,
    InvalidSubdivisionCountError,
    LengthMismatchError,
    DataValidationError,
)


class TestCenters(unittest.TestCase):
    """Test cases for the boundary computation."""

    def setUp(self):
        self.x = np.array([1, 2, 4, 7, 11, 16, 22], dtype=float)

    def test_lengths(self):
        """Midpoints are one shorter, bordered boundaries one longer than x."""
        for m in range(2, 8):
            x = np.arange(m, dtype=float)
            self.assertEqual(len(centers(x)), m - 1)
            self.assertEqual(len(centers(x, True)), m + 1)

    def test_midpoints(self):
        """Without borders, each value is the middle of two consecutive x."""
        np.testing.assert_allclose(centers(self.x), [1.5, 3, 5.5, 9, 13.5, 19])

    def test_reflected_borders(self):
        """The outer boundaries are reflections about the first and last x."""
        bounds = centers(self.x, True)
        self.assertAlmostEqual(bounds[0], 0.5)
        self.assertAlmostEqual(bounds[-1], 25)
        np.testing.assert_allclose(bounds[1:-1], centers(self.x))

    def test_outer_intervals_are_centred(self):
        """The first and last x sit in the middle of their boundaries for any spacing."""
        bounds = centers(self.x, True)
        self.assertAlmostEqual((bounds[0] + bounds[1]) / 2, self.x[0], places=9)
        self.assertAlmostEqual((bounds[-2] + bounds[-1]) / 2, self.x[-1], places=9)

    def test_evenly_spaced_centres_are_midpoints(self):
        """With even spacing every x is the mean of its two boundaries."""
        for x in (np.arange(1, 11, dtype=float), np.linspace(-3.5, 40.25, 17), np.array([0.0, 0.1])):
            bounds = centers(x, True)
            np.testing.assert_allclose((bounds[:-1] + bounds[1:]) / 2, x, atol=1e-9)

    def test_unsorted_input(self):
        """Unsorted input is accepted."""
        x = np.array([3.0, 1.0, 2.0])
        np.testing.assert_allclose(centers(x), [2.0, 1.5])
        self.assertEqual(len(centers(x, True)), 4)

    def test_accepts_lists(self):
        """Plain lists are converted."""
        np.testing.assert_allclose(centers([0, 2, 4], True), [-1, 1, 3, 5])

    def test_insufficient_points(self):
        """Fewer than two values cannot define a boundary."""
        with self.assertRaises(InsufficientPointsError):
            centers([1.0])
        with self.assertRaises(InsufficientPointsError):
            centers([], True)

    def test_two_dimensional_input(self):
        """Only one-dimensional input is accepted."""
        with self.assertRaises(DataValidationError):
            centers([[1, 2], [3, 4]])


class TestSubsegmentCenters(unittest.TestCase):
    """Test cases for the subsegment partition."""

    def test_scalar_count(self):
        """A single count gives m slots of n values each."""
        slots = subsegment_centers([1, 2, 3], 5)
        self.assertEqual(len(slots), 3)
        for slot in slots:
            self.assertEqual(len(slot), 5)
        self.assertEqual(sum(len(slot) for slot in slots), 15)

    def test_values(self):
        """Subsegment centres split each interval evenly."""
        slots = subsegment_centers([1, 2, 3], 5)
        np.testing.assert_allclose(slots[0], [0.6, 0.8, 1.0, 1.2, 1.4])
        np.testing.assert_allclose(slots[2], [2.6, 2.8, 3.0, 3.2, 3.4])

    def test_per_interval_counts(self):
        """One count per interval is honoured."""
        slots = subsegment_centers([0, 1, 2, 3], [1, 2, 3, 4])
        self.assertEqual([len(slot) for slot in slots], [1, 2, 3, 4])
        np.testing.assert_allclose(slots[0], [0.0])
        np.testing.assert_allclose(slots[1], [0.75, 1.25])

    def test_inside_boundaries_and_increasing(self):
        """Every centre lies strictly inside its interval, in increasing order."""
        x = np.array([1, 2, 4, 7, 11], dtype=float)
        bounds = centers(x, True)
        for i, slot in enumerate(subsegment_centers(x, 7)):
            self.assertTrue(np.all(slot > bounds[i]))
            self.assertTrue(np.all(slot < bounds[i + 1]))
            self.assertTrue(np.all(np.diff(slot) > 0))

    def test_symmetric_about_evenly_spaced_centres(self):
        """Subsegment centres average to the interval centre."""
        x = np.arange(10, dtype=float) * 3 + 1.5
        for xi, slot in zip(x, subsegment_centers(x, 4)):
            self.assertAlmostEqual(slot.mean(), xi, places=9)

    def test_integral_float_count(self):
        """Integral floats are accepted as counts."""
        slots = subsegment_centers([1, 2], 3.0)
        self.assertEqual([len(slot) for slot in slots], [3, 3])

    def test_invalid_counts(self):
        """Non-positive, non-integral and boolean counts are rejected."""
        for n in (0, -2, 2.5, [2, 0, 1], True, "3", float("nan")):
            with self.assertRaises(InvalidSubdivisionCountError, msg=repr(n)):
                subsegment_centers([1, 2, 3], n)

    def test_count_length_mismatch(self):
        """A count sequence must have one entry per interval."""
        with self.assertRaises(LengthMismatchError):
            subsegment_centers([1, 2, 3], [2, 2])


if __name__ == '__main__':
    unittest.main()
