import math

import numpy as np

from imu_gestures.signal_processing import Sample
from imu_gestures.signal_processing import statistics as stats


def test_magnitude():
    assert stats.magnitude(3.0, 4.0, 12.0) == 13.0


def test_mean():
    assert stats.mean([]) == 0.0
    assert stats.mean([1.0, 2.0, 3.0, 6.0]) == 3.0


def test_population_variance_by_default():
    values = [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]
    assert stats.variance(values) == 4.0
    assert stats.std(values) == 2.0


def test_sample_variance():
    values = [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]
    assert math.isclose(stats.variance(values, ddof=1), 32.0 / 7.0)


def test_variance_of_short_input():
    assert stats.variance([]) == 0.0
    assert stats.variance([3.0], ddof=1) == 0.0


def test_pure_functions_are_bit_identical():
    values = np.random.default_rng(3).normal(0.0, 1.0, 50).tolist()
    assert stats.mean(values) == stats.mean(values)
    assert stats.variance(values) == stats.variance(values)
    assert stats.magnitude(*values[:3]) == stats.magnitude(*values[:3])


def test_window_helpers():
    window = [Sample(accel_x=3.0, accel_y=4.0, gyro_z=2.0), Sample(accel_z=1.0, gyro_x=-1.0)]
    np.testing.assert_array_equal(stats.accel_magnitudes(window), [5.0, 1.0])
    np.testing.assert_array_equal(stats.gyro_magnitudes(window), [2.0, 1.0])
    np.testing.assert_array_equal(stats.axis_values(window, 'gyro_x'), [0.0, -1.0])
