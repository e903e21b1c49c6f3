import pytest

from imu_gestures.gestures import GestureType
from imu_gestures.ml.heuristics import (
    DEFAULT_THRESHOLDS,
    GestureThresholds,
    count_reversals,
    detect_flutter,
    detect_hold,
    detect_spin,
    detect_stretch,
    detect_tap,
    detect_wave,
    gesture_intensity,
    tap_pending,
)
from imu_gestures.signal_processing import Sample


def gyro_window(values, axis='gyro_x'):
    return [Sample(accel_z=9.81, **{axis: v}) for v in values]


class TestTap:
    def test_spike_and_decay(self, from_magnitudes):
        assert detect_tap(from_magnitudes([5, 5, 30, 5, 5]))

    def test_peak_on_edge(self, from_magnitudes):
        assert not detect_tap(from_magnitudes([5, 5, 5, 5, 30]))
        assert not detect_tap(from_magnitudes([30, 5, 5, 5, 5]))

    def test_below_threshold(self, from_magnitudes):
        assert not detect_tap(from_magnitudes([2, 2, 11, 2, 2]))

    def test_neighbour_too_large(self, from_magnitudes):
        assert not detect_tap(from_magnitudes([5, 20, 30, 5, 5]))

    def test_uses_trailing_window(self, from_magnitudes):
        assert detect_tap(from_magnitudes([9, 9, 9, 9, 5, 5, 30, 5, 5]))
        assert not detect_tap(from_magnitudes([5, 30, 5, 9, 9, 9, 9, 9]))

    def test_short_window(self, from_magnitudes):
        assert not detect_tap(from_magnitudes([5, 30, 5]))

    def test_threshold_override(self, from_magnitudes):
        strict = DEFAULT_THRESHOLDS.with_overrides(tap_threshold=40.0)
        assert not detect_tap(from_magnitudes([5, 5, 30, 5, 5]), strict)

    def test_pending_onset(self, from_magnitudes):
        assert tap_pending(from_magnitudes([5, 5, 5, 5, 30]))
        assert not tap_pending(from_magnitudes([5, 5, 5, 30, 5]))
        assert not tap_pending(from_magnitudes([9, 9, 9, 14, 15]))


class TestWave:
    def test_count_reversals_ignores_small_values(self):
        assert count_reversals([100, -100, 100, 10, -10, -100], floor=50) == 3
        assert count_reversals([10, -10, 10, -10], floor=50) == 0

    def test_horizontal(self):
        window = gyro_window([200 if i % 2 == 0 else -200 for i in range(15)])
        assert detect_wave(window) is GestureType.WAVE_HORIZONTAL

    def test_vertical(self):
        window = gyro_window([200 if i % 2 == 0 else -200 for i in range(15)], axis='gyro_y')
        assert detect_wave(window) is GestureType.WAVE_VERTICAL

    def test_too_little_rotation(self):
        window = gyro_window([60 if i % 2 == 0 else -60 for i in range(15)])
        assert detect_wave(window) is GestureType.NO_GESTURE

    def test_no_reversals(self):
        assert detect_wave(gyro_window([200] * 15)) is GestureType.NO_GESTURE

    def test_short_window(self):
        window = gyro_window([200 if i % 2 == 0 else -200 for i in range(14)])
        assert detect_wave(window) is GestureType.NO_GESTURE


class TestSpin:
    def test_directions(self):
        assert detect_spin(gyro_window([200] * 10, axis='gyro_z')) is GestureType.SPIN_LEFT
        assert detect_spin(gyro_window([-200] * 10, axis='gyro_z')) is GestureType.SPIN_RIGHT

    def test_must_not_cross_zero(self):
        values = [300] * 9 + [-10]
        assert detect_spin(gyro_window(values, axis='gyro_z')) is GestureType.NO_GESTURE

    def test_too_slow(self):
        assert detect_spin(gyro_window([100] * 10, axis='gyro_z')) is GestureType.NO_GESTURE


class TestStretch:
    def test_linear_pull(self, from_magnitudes):
        magnitudes = [9.81 + i * (15.0 - 9.81) / 9 for i in range(10)]
        assert detect_stretch(from_magnitudes(magnitudes))

    def test_rotation_rejects(self, from_magnitudes):
        magnitudes = [9.81 + i * (15.0 - 9.81) / 9 for i in range(10)]
        assert not detect_stretch(from_magnitudes(magnitudes, gyro=(100.0, 0.0, 0.0)))

    def test_small_change(self, from_magnitudes):
        assert not detect_stretch(from_magnitudes([10.0] * 9 + [12.0]))


class TestFlutter:
    def test_jitter(self, from_magnitudes):
        assert detect_flutter(from_magnitudes([12.31, 7.31] * 5))

    def test_large_mean_rejects(self, from_magnitudes):
        assert not detect_flutter(from_magnitudes([20.0, 15.0] * 5))

    def test_still(self, from_magnitudes):
        assert not detect_flutter(from_magnitudes([9.81] * 10))


class TestHold:
    def test_still(self, still_samples):
        assert detect_hold(still_samples(20))

    def test_not_twice_in_a_row(self, still_samples):
        assert not detect_hold(still_samples(20), last_gesture=GestureType.HOLD)
        assert detect_hold(still_samples(20), last_gesture=GestureType.TAP)

    def test_rotation_rejects(self):
        window = gyro_window([5.0 if i % 2 == 0 else -5.0 for i in range(20)])
        assert not detect_hold(window)

    def test_short_window(self, still_samples):
        assert not detect_hold(still_samples(19))


class TestThresholds:
    def test_defaults(self):
        t = GestureThresholds()
        assert t.min_window == 5
        assert t.cooldown_for(GestureType.TAP_SOFT) == 10
        assert t.cooldown_for(GestureType.STROKE_LEFT) == 25
        assert t.cooldown_for(GestureType.HOLD) == 50
        assert t.to_dict()['cooldowns']['wave'] == 40

    def test_overrides_copy(self):
        t = DEFAULT_THRESHOLDS.with_overrides(spin_threshold=50.0)
        assert t.spin_threshold == 50.0
        assert DEFAULT_THRESHOLDS.spin_threshold == 150.0

    def test_unknown_override(self):
        with pytest.raises(TypeError):
            DEFAULT_THRESHOLDS.with_overrides(bounce_threshold=1.0)

    def test_validation(self):
        with pytest.raises(ValueError):
            GestureThresholds(tap_window=2)
        with pytest.raises(ValueError):
            GestureThresholds(hold_window=0)
        with pytest.raises(ValueError):
            GestureThresholds(cooldowns={'tap': -1})

    @pytest.mark.parametrize('overrides', [
        {'tap_threshold': 'abc'},
        {'spin_threshold': None},
        {'flutter_mean_max': float('nan')},
        {'tap_window': 5.5},
        {'wave_min_reversals': True},
        {'tap_onset_holdoff': 'yes'},
        {'cooldowns': 5},
        {'cooldowns': {'bounce': 10}},
        {'cooldowns': {'wave': 'long'}},
    ])
    def test_rejects_bad_values(self, overrides):
        with pytest.raises(ValueError):
            DEFAULT_THRESHOLDS.with_overrides(**overrides)

    def test_numbers_are_coerced(self):
        t = DEFAULT_THRESHOLDS.with_overrides(tap_threshold=20)
        assert isinstance(t.tap_threshold, float)
        assert t.tap_threshold == 20.0

    def test_partial_cooldowns_merge(self):
        t = DEFAULT_THRESHOLDS.with_overrides(cooldowns={'tap': 4})
        assert t.cooldown_for(GestureType.TAP) == 4
        assert t.cooldown_for(GestureType.WAVE_VERTICAL) == 40
        assert t.cooldown_for(GestureType.HOLD) == 50

        direct = GestureThresholds(cooldowns={'spin': 5})
        assert direct.cooldown_for(GestureType.SPIN_LEFT) == 5
        assert direct.cooldown_for(GestureType.STRETCH) == 30

    def test_cooldowns_are_read_only(self):
        exported = DEFAULT_THRESHOLDS.to_dict()['cooldowns']
        exported['hold'] = 0
        assert DEFAULT_THRESHOLDS.cooldown_for(GestureType.HOLD) == 50

        with pytest.raises(TypeError):
            DEFAULT_THRESHOLDS.cooldowns['hold'] = 0


def test_intensity(from_magnitudes, still_samples):
    assert gesture_intensity(GestureType.TAP, from_magnitudes([5, 5, 30, 5, 5])) == 30.0
    assert gesture_intensity(GestureType.HOLD, still_samples(20)) is None
    assert gesture_intensity(GestureType.SPIN_LEFT, gyro_window([200] * 10, axis='gyro_z')) == 200.0
    assert gesture_intensity(GestureType.WAVE_HORIZONTAL, still_samples(3)) is None
