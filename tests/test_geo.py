"""
Tests for geographic helpers and retry_with_backoff.
"""

import math
import unittest

from trailnav.geo import (
    bearing_between,
    bearing_to_compass,
    format_distance,
    haversine_distance,
    retry_with_backoff,
)


class TestHaversine(unittest.TestCase):

    def test_same_point_is_zero(self):
        self.assertEqual(haversine_distance(6.5244, 3.3792, 6.5244, 3.3792), 0.0)

    def test_known_distance(self):
        # Lagos mainland to Victoria Island, roughly 9.7km
        d = haversine_distance(6.5244, 3.3792, 6.4541, 3.4316)
        self.assertAlmostEqual(d, 9740, delta=100)

    def test_one_degree_of_latitude(self):
        self.assertAlmostEqual(haversine_distance(0, 0, 1, 0), 111195, delta=1)

    def test_symmetric(self):
        self.assertAlmostEqual(haversine_distance(51.5, -0.12, 48.85, 2.35),
                               haversine_distance(48.85, 2.35, 51.5, -0.12))

    def test_out_of_range_input_does_not_raise(self):
        d = haversine_distance(95, 200, 0, 0)
        self.assertGreaterEqual(d, 0)

    def test_non_finite_input_is_infinitely_far(self):
        self.assertEqual(haversine_distance(math.nan, 0, 0, 0), math.inf)
        self.assertEqual(haversine_distance(0, 0, math.inf, 0), math.inf)
        self.assertEqual(haversine_distance(0, -math.inf, 0, 0), math.inf)


class TestBearing(unittest.TestCase):

    def test_cardinal_bearings(self):
        self.assertAlmostEqual(bearing_between(0, 0, 1, 0), 0)
        self.assertAlmostEqual(bearing_between(0, 0, 0, 1), 90)
        self.assertAlmostEqual(bearing_between(0, 0, -1, 0), 180)
        self.assertAlmostEqual(bearing_between(0, 0, 0, -1), 270)

    def test_compass(self):
        self.assertEqual(bearing_to_compass(0), "north")
        self.assertEqual(bearing_to_compass(44), "northeast")
        self.assertEqual(bearing_to_compass(181), "south")
        self.assertEqual(bearing_to_compass(350), "north")


class TestFormatDistance(unittest.TestCase):

    def test_short_distances_round_to_ten(self):
        self.assertEqual(format_distance(42), "40 meters")
        self.assertEqual(format_distance(3), "10 meters")

    def test_medium_distances_round_to_fifty(self):
        self.assertEqual(format_distance(420), "400 meters")
        self.assertEqual(format_distance(980), "1 kilometer")

    def test_kilometers(self):
        self.assertEqual(format_distance(1000), "1 kilometer")
        self.assertEqual(format_distance(2000), "2 kilometers")
        self.assertEqual(format_distance(2340), "2.3 kilometers")


class TestRetryWithBackoff(unittest.TestCase):

    def test_returns_first_success(self):
        results = iter([None, None, "ok"])
        sleeps = []
        result = retry_with_backoff(lambda: next(results), initial_delay=1.0,
                                    max_delay=8.0, sleep=sleeps.append)
        self.assertEqual(result, "ok")
        self.assertEqual(sleeps, [1.0, 2.0])

    def test_gives_up_after_max_attempts(self):
        calls = []

        def fail():
            calls.append(1)
            return None

        result = retry_with_backoff(fail, max_attempts=3, sleep=lambda s: None)
        self.assertIsNone(result)
        self.assertEqual(len(calls), 3)

    def test_zero_budget_means_single_try(self):
        calls = []
        retry_with_backoff(lambda: calls.append(1), max_time=0, sleep=lambda s: None)
        self.assertEqual(len(calls), 1)

    def test_delay_is_capped(self):
        sleeps = []
        retry_with_backoff(lambda: None, initial_delay=4.0, max_delay=5.0,
                           max_attempts=4, sleep=sleeps.append)
        self.assertEqual(sleeps, [4.0, 5.0, 5.0])
