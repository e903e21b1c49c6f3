"""
Per-Cycle Latency Monitoring

Tracks how long each processing cycle takes, split into stages:
- Buffering: appending the sample to the live, classifier and
  calibration buffers
- Detection: arbitration and the detector bank (or classifier)
- Output: calibrated/directional readings

At 100 Hz a cycle has 10 ms; anything slower falls behind the sensor.
"""
import statistics
from collections import deque
from typing import Any, Deque, Dict, Optional

from ..config import TARGET_LATENCY_MS

STAGES = ('buffering', 'detection', 'output', 'total')


class LatencyTracker:
    """
    Rolling latency statistics for the engine's processing cycle.

    Attributes:
        target_latency_ms: Cycle budget in milliseconds
        history_size: Number of recent cycles kept for statistics
    """

    def __init__(self, history_size: int = 100, target_ms: float = TARGET_LATENCY_MS):
        """
        Initialize the latency tracker.

        Args:
            history_size: Number of cycles to keep for statistics
            target_ms: Cycle budget in milliseconds
        """
        self.target_latency_ms = target_ms
        self.history_size = history_size

        self._history: Dict[str, Deque[float]] = {
            stage: deque(maxlen=history_size) for stage in STAGES
        }

        self._exceeded_count = 0
        self._total_count = 0

    def record_cycle(self, buffering_ms: float, detection_ms: float, output_ms: float) -> Dict[str, Any]:
        """
        Record one cycle's stage timings.

        Returns:
            Dictionary with the rounded timings and target compliance
        """
        total_ms = buffering_ms + detection_ms + output_ms

        self._history['buffering'].append(buffering_ms)
        self._history['detection'].append(detection_ms)
        self._history['output'].append(output_ms)
        self._history['total'].append(total_ms)

        self._total_count += 1
        if total_ms > self.target_latency_ms:
            self._exceeded_count += 1

        return {
            'buffering_ms': round(buffering_ms, 3),
            'detection_ms': round(detection_ms, 3),
            'output_ms': round(output_ms, 3),
            'total_ms': round(total_ms, 3),
            'within_target': total_ms <= self.target_latency_ms,
        }

    def record_timings(self, timings: Dict[str, float]) -> Dict[str, Any]:
        """Record a ``GestureEngine.last_latency`` dictionary."""
        return self.record_cycle(timings['buffering_ms'], timings['detection_ms'], timings['output_ms'])

    def get_current_stats(self) -> Dict[str, Any]:
        """
        Get total cycle latency statistics.

        Returns:
            Dictionary with mean, median, max, min and compliance rate
        """
        totals = list(self._history['total'])
        if not totals:
            return {
                'mean_total_ms': 0.0,
                'median_total_ms': 0.0,
                'max_total_ms': 0.0,
                'min_total_ms': 0.0,
                'target_ms': self.target_latency_ms,
                'compliance_rate': 1.0,
                'sample_count': 0,
            }

        return {
            'mean_total_ms': round(statistics.mean(totals), 3),
            'median_total_ms': round(statistics.median(totals), 3),
            'max_total_ms': round(max(totals), 3),
            'min_total_ms': round(min(totals), 3),
            'target_ms': self.target_latency_ms,
            'compliance_rate': round(1 - (self._exceeded_count / max(1, self._total_count)), 4),
            'sample_count': len(totals),
        }

    def get_breakdown_stats(self) -> Dict[str, Dict[str, float]]:
        """Mean, median and max per stage."""
        def calc_stats(values: Deque[float]) -> Dict[str, float]:
            if not values:
                return {'mean': 0.0, 'median': 0.0, 'max': 0.0}
            vals = list(values)
            return {
                'mean': round(statistics.mean(vals), 3),
                'median': round(statistics.median(vals), 3),
                'max': round(max(vals), 3),
            }

        return {stage: calc_stats(values) for stage, values in self._history.items()}

    def get_latest(self) -> Dict[str, float]:
        return {
            f'{stage}_ms': (values[-1] if values else 0.0)
            for stage, values in self._history.items()
        }

    def is_within_target(self) -> bool:
        totals = self._history['total']
        if not totals:
            return True
        return totals[-1] <= self.target_latency_ms

    def reset(self) -> None:
        for values in self._history.values():
            values.clear()
        self._exceeded_count = 0
        self._total_count = 0


# Global tracker instance
_global_tracker: Optional[LatencyTracker] = None


def get_latency_tracker() -> LatencyTracker:
    """
    Get or create the global latency tracker.

    Returns:
        LatencyTracker instance (singleton pattern)
    """
    global _global_tracker
    if _global_tracker is None:
        _global_tracker = LatencyTracker()
    return _global_tracker
