import pytest

from imu_gestures.monitoring import LatencyTracker, get_latency_tracker


def test_empty_tracker():
    tracker = LatencyTracker()
    stats = tracker.get_current_stats()
    assert stats['sample_count'] == 0
    assert stats['compliance_rate'] == 1.0
    assert tracker.is_within_target()
    assert tracker.get_latest()['total_ms'] == 0.0


def test_record_cycle():
    tracker = LatencyTracker(target_ms=10)
    result = tracker.record_cycle(1.0, 2.5, 0.5)
    assert result['total_ms'] == 4.0
    assert result['within_target']

    result = tracker.record_cycle(5.0, 8.0, 1.0)
    assert not result['within_target']
    assert not tracker.is_within_target()

    stats = tracker.get_current_stats()
    assert stats['sample_count'] == 2
    assert stats['compliance_rate'] == 0.5
    assert stats['max_total_ms'] == 14.0
    assert stats['mean_total_ms'] == 9.0


def test_breakdown_and_latest():
    tracker = LatencyTracker()
    tracker.record_timings({'buffering_ms': 0.2, 'detection_ms': 1.0,
                            'output_ms': 0.1, 'total_ms': 1.3})
    tracker.record_timings({'buffering_ms': 0.4, 'detection_ms': 3.0,
                            'output_ms': 0.1, 'total_ms': 3.5})

    breakdown = tracker.get_breakdown_stats()
    assert set(breakdown) == {'buffering', 'detection', 'output', 'total'}
    assert breakdown['detection']['mean'] == 2.0
    assert breakdown['buffering']['max'] == 0.4
    assert tracker.get_latest()['detection_ms'] == 3.0
    assert tracker.get_latest()['total_ms'] == pytest.approx(3.5)


def test_history_is_bounded():
    tracker = LatencyTracker(history_size=5)
    for i in range(20):
        tracker.record_cycle(float(i), 0.0, 0.0)

    stats = tracker.get_current_stats()
    assert stats['sample_count'] == 5
    assert stats['min_total_ms'] == 15.0


def test_reset():
    tracker = LatencyTracker()
    tracker.record_cycle(20.0, 0.0, 0.0)
    tracker.reset()
    assert tracker.get_current_stats()['sample_count'] == 0
    assert tracker.get_current_stats()['compliance_rate'] == 1.0


def test_global_tracker_is_shared():
    assert get_latency_tracker() is get_latency_tracker()
