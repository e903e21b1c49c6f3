import pytest

from imu_gestures.gestures import ArbitrationState, GestureType
from imu_gestures.ml.engine import EngineFrame, GestureEngine
from imu_gestures.ml.heuristics import DEFAULT_THRESHOLDS, detect_wave
from imu_gestures.imu_sources import SimulatedSource
from imu_gestures.signal_processing import Sample


def run(engine, samples):
    return [engine.process(s).gesture for s in samples]


@pytest.fixture
def engine():
    return GestureEngine()


def tap_sequence(from_magnitudes):
    # Tap confirmed on index 5, the sample after the spike
    return from_magnitudes([5, 5, 5, 5, 30, 5])


def test_nothing_before_min_window(engine, still_samples):
    assert run(engine, still_samples(4)) == [GestureType.NO_GESTURE] * 4


def test_tap_scenario(engine, from_magnitudes):
    samples = tap_sequence(from_magnitudes)
    events = [engine.process(s) for s in samples]

    assert [e.gesture for e in events[:5]] == [GestureType.NO_GESTURE] * 5
    assert events[5].gesture is GestureType.TAP
    assert events[5].intensity == 30.0
    assert engine.get_state() == ArbitrationState(cooldown=10, last_gesture=GestureType.TAP)


def test_cooldown_suppresses_exactly_k_cycles(engine, from_magnitudes):
    run(engine, tap_sequence(from_magnitudes))
    assert engine.get_state().cooldown == 10

    # Spikes at offsets 4 and 10 of the cooldown; the first would be a tap
    # on offset 5 without the cooldown
    magnitudes = [5, 5, 5, 30, 5, 5, 5, 5, 5, 30]
    for k, s in enumerate(from_magnitudes(magnitudes), start=1):
        assert engine.process(s).gesture is GestureType.NO_GESTURE
        assert engine.get_state().cooldown == 10 - k
        assert engine.get_state().cooldown >= 0

    assert engine.process(from_magnitudes([5])[0]).gesture is GestureType.TAP


def test_tap_wins_over_wave(engine):
    samples = []
    for i in range(15):
        accel_z = 30.0 if i == 13 else 5.0
        gyro_x = 200.0 if i % 2 == 0 else -200.0
        samples.append(Sample(accel_z=accel_z, gyro_x=gyro_x))

    events = run(engine, samples)

    assert detect_wave(engine.get_buffer()) is GestureType.WAVE_HORIZONTAL
    assert events[-1] is GestureType.TAP
    assert GestureType.WAVE_HORIZONTAL not in events


def test_wave_without_tap(engine):
    samples = [Sample(accel_z=9.81, gyro_x=200.0 if i % 2 == 0 else -200.0) for i in range(15)]
    events = run(engine, samples)
    assert events[-1] is GestureType.WAVE_HORIZONTAL
    assert engine.get_state().cooldown == 40


def test_hold_suppression(engine, still_samples, from_magnitudes):
    events = run(engine, still_samples(20))
    assert events[-1] is GestureType.HOLD
    assert events.count(GestureType.HOLD) == 1

    # Still more: never re-fires, even after the cooldown runs out
    events = run(engine, still_samples(100))
    assert GestureType.HOLD not in events
    assert engine.get_state().cooldown == 0

    # An intervening gesture re-arms hold
    assert run(engine, from_magnitudes([30, 5]))[-1] is GestureType.TAP
    events = run(engine, still_samples(30))
    assert events.count(GestureType.HOLD) == 1
    assert events.index(GestureType.HOLD) == 18


def test_no_detection_while_calibrating(engine, from_magnitudes, still_samples):
    engine.start_calibration()
    events = run(engine, still_samples(30) + tap_sequence(from_magnitudes))
    assert set(events) == {GestureType.NO_GESTURE}

    assert engine.stop_calibration()
    assert engine.is_calibrated()
    assert engine.get_calibration().sample_count == 36


def test_failed_calibration(engine, still_samples):
    engine.start_calibration()
    run(engine, still_samples(3))
    assert not engine.finish_calibration()
    assert not engine.is_calibrated()
    progress = engine.get_calibration_progress()
    assert progress['state'] == 'uncalibrated'
    assert progress['last_error']


def test_process_frame(engine, still_samples):
    frame = engine.process_frame(Sample(accel_z=9.81))
    assert isinstance(frame, EngineFrame)
    assert not frame.reading.calibrated
    assert frame.sample == Sample(accel_z=9.81)
    assert set(engine.last_latency) == {'buffering_ms', 'detection_ms', 'output_ms', 'total_ms'}

    engine.start_calibration()
    run(engine, still_samples(20, magnitude=9.81))
    engine.stop_calibration()

    frame = engine.process_frame(Sample(accel_z=12.0))
    assert frame.reading.calibrated
    assert frame.reading.calibrated_magnitude == pytest.approx(12.0 - 9.81)
    assert frame.reading.is_moving
    assert frame.to_dict()['event']['gesture'] == 'no_gesture'


def test_reset_keeps_calibration(engine, still_samples, from_magnitudes):
    engine.start_calibration()
    run(engine, still_samples(20))
    engine.stop_calibration()
    run(engine, tap_sequence(from_magnitudes))

    engine.reset()
    assert engine.get_state() == ArbitrationState()
    assert engine.get_buffer() == ()
    assert engine.is_calibrated()


def test_get_buffer_is_a_copy(engine, still_samples):
    run(engine, still_samples(60))
    buffered = engine.get_buffer()
    assert len(buffered) == 50
    engine.process(Sample())
    assert len(buffered) == 50


def test_set_thresholds(engine, from_magnitudes):
    engine.set_thresholds(DEFAULT_THRESHOLDS.with_overrides(tap_threshold=50.0))
    assert GestureType.TAP not in run(engine, tap_sequence(from_magnitudes))


def test_thresholds_must_fit_buffer(engine):
    with pytest.raises(ValueError):
        engine.set_thresholds(DEFAULT_THRESHOLDS.with_overrides(hold_window=60))
    with pytest.raises(ValueError):
        GestureEngine(buffer_capacity=10)


def test_invalid_mode():
    with pytest.raises(ValueError):
        GestureEngine(mode='neural')


def test_classifier_mode_stroke():
    engine = GestureEngine(mode='classifier')
    samples = [Sample(accel_z=9.81, gyro_x=100.0) for _ in range(20)]
    events = [engine.process(s) for s in samples]

    assert all(e.gesture is GestureType.NO_GESTURE for e in events[:19])
    assert events[19].gesture is GestureType.STROKE_RIGHT
    assert events[19].confidence == 0.70
    assert engine.get_state().cooldown == 25


@pytest.mark.parametrize('pattern, expected', [
    ('tap', GestureType.TAP),
    ('wave', GestureType.WAVE_HORIZONTAL),
    ('spin', GestureType.SPIN_LEFT),
    ('stretch', GestureType.STRETCH),
    ('flutter', GestureType.FLUTTER),
    ('rest', GestureType.HOLD),
])
def test_simulated_patterns(engine, pattern, expected):
    source = SimulatedSource(pattern=pattern, seed=42)
    events = run(engine, source.get_batch(200))
    assert expected in events


def test_partial_cooldown_override_keeps_other_families(engine):
    engine.set_thresholds(DEFAULT_THRESHOLDS.with_overrides(cooldowns={'tap': 10}))
    samples = [Sample(accel_z=9.81, gyro_x=200.0 if i % 2 == 0 else -200.0) for i in range(20)]

    events = run(engine, samples)
    assert events.count(GestureType.WAVE_HORIZONTAL) == 1
    assert engine.get_state().cooldown == 40 - 5


def test_tap_onset_holdoff(from_magnitudes):
    magnitudes = [5] * 9 + [30, 5]

    events = run(GestureEngine(), from_magnitudes(magnitudes))
    assert events[9] is GestureType.NO_GESTURE
    assert events[10] is GestureType.TAP

    # Without the hold-off the spike reads as flutter on arrival
    thresholds = DEFAULT_THRESHOLDS.with_overrides(tap_onset_holdoff=False)
    events = run(GestureEngine(thresholds=thresholds), from_magnitudes(magnitudes))
    assert events[9] is GestureType.FLUTTER
    assert GestureType.TAP not in events
