"""
Session-Based IMU Calibration

This module establishes a per-session baseline against which movement is
measured. It compensates for:
- Sensor placement and orientation on the garment
- Gravity distribution across the accelerometer axes
- Resting tremor and sensor noise levels

The user holds the sensor still while samples are accumulated. The hold
period is timed by the caller (the core never owns wall-clock time); when
it elapses the caller finishes calibration and the baseline is frozen.
"""
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from ..config import CALIBRATION_DURATION_S, CALIBRATION_MIN_SAMPLES, SAMPLE_RATE_HZ
from ..errors import CalibrationFailed, UncalibratedAccess
from ..signal_processing.samples import Sample

logger = logging.getLogger(__name__)


class CalibrationState(Enum):
    """Lifecycle of a calibration session."""
    UNCALIBRATED = "uncalibrated"
    CALIBRATING = "calibrating"
    CALIBRATED = "calibrated"


@dataclass(frozen=True)
class CalibrationBaseline:
    """
    Frozen baseline captured during a still-hold period.

    Attributes:
        magnitude_mean: Mean acceleration magnitude (m/s^2)
        magnitude_std: Population std of acceleration magnitude
        axis_means: Mean accelerometer reading per axis (x, y, z)
        axis_stds: Population std per accelerometer axis (x, y, z)
        sample_count: Number of samples the baseline was computed from
        calibrated_at: Epoch timestamp of completion
    """
    magnitude_mean: float
    magnitude_std: float
    axis_means: Tuple[float, float, float]
    axis_stds: Tuple[float, float, float]
    sample_count: int
    calibrated_at: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'magnitude_mean': self.magnitude_mean,
            'magnitude_std': self.magnitude_std,
            'axis_means': list(self.axis_means),
            'axis_stds': list(self.axis_stds),
            'sample_count': self.sample_count,
            'calibrated_at': self.calibrated_at,
        }


class CalibrationEngine:
    """
    Per-session calibration state machine.

    The calibration process:
    1. start_calibration() enters CALIBRATING and clears the accumulator
    2. add_sample() is called for every incoming sample during the hold
    3. finish_calibration() computes the baseline and freezes it
    4. reset_calibration() discards everything

    The accumulator is unbounded and separate from the live detection buffer.

    Attributes:
        min_samples: Fewest samples that produce a valid baseline
        state: Current CalibrationState
        last_error: Message from the most recent failed calibration
    """

    def __init__(self, min_samples: int = CALIBRATION_MIN_SAMPLES):
        """
        Initialize the calibration engine.

        Args:
            min_samples: Minimum accumulated samples for a valid baseline
        """
        self.min_samples = max(2, min_samples)
        self.state = CalibrationState.UNCALIBRATED
        self.last_error: Optional[str] = None

        self._baseline: Optional[CalibrationBaseline] = None
        self._accumulator: List[Tuple[float, float, float]] = []

        # Samples expected during the hold, for progress reporting only
        self._expected_samples = int(CALIBRATION_DURATION_S * SAMPLE_RATE_HZ)

    def start_calibration(self) -> None:
        """Begin accumulating a new baseline, discarding any previous one."""
        self._accumulator = []
        self._baseline = None
        self.last_error = None
        self.state = CalibrationState.CALIBRATING
        logger.info("Calibration started; hold the sensor still")

    def add_sample(self, sample: Sample) -> bool:
        """
        Add a sample to the accumulator.

        Args:
            sample: Incoming IMU sample

        Returns:
            True if the sample was accepted (only while calibrating)
        """
        if self.state is not CalibrationState.CALIBRATING:
            return False
        self._accumulator.append(sample.accel)
        return True

    def finish_calibration(self) -> CalibrationBaseline:
        """
        Complete calibration by computing baseline statistics.

        Returns:
            The frozen CalibrationBaseline

        Raises:
            CalibrationFailed: if no calibration was in progress or too few
                samples were accumulated. A failed attempt returns the
                engine to UNCALIBRATED.
        """
        if self.state is not CalibrationState.CALIBRATING:
            raise CalibrationFailed("No calibration in progress")

        collected = len(self._accumulator)
        if collected < self.min_samples:
            self._accumulator = []
            self.state = CalibrationState.UNCALIBRATED
            self.last_error = (
                f"Only {collected} samples collected, need at least {self.min_samples}"
            )
            logger.warning("Calibration failed: %s", self.last_error)
            raise CalibrationFailed(self.last_error)

        accel = np.array(self._accumulator, dtype=np.float64)
        magnitudes = np.sqrt(np.sum(accel ** 2, axis=1))

        axis_means = np.mean(accel, axis=0)
        axis_stds = np.std(accel, axis=0)

        self._baseline = CalibrationBaseline(
            magnitude_mean=float(np.mean(magnitudes)),
            magnitude_std=float(np.std(magnitudes)),
            axis_means=tuple(float(v) for v in axis_means),
            axis_stds=tuple(float(v) for v in axis_stds),
            sample_count=collected,
        )
        self._accumulator = []
        self.state = CalibrationState.CALIBRATED

        logger.info("Calibration complete with %d samples", collected)
        logger.debug("Baseline magnitude %.4f +/- %.4f",
                     self._baseline.magnitude_mean, self._baseline.magnitude_std)
        return self._baseline

    def reset_calibration(self) -> None:
        """Clear the baseline and return to UNCALIBRATED."""
        self._baseline = None
        self._accumulator = []
        self.last_error = None
        self.state = CalibrationState.UNCALIBRATED

    def is_calibrated(self) -> bool:
        return self.state is CalibrationState.CALIBRATED

    def is_calibrating(self) -> bool:
        return self.state is CalibrationState.CALIBRATING

    def get_calibration(self) -> Optional[CalibrationBaseline]:
        """The frozen baseline, or None when not calibrated."""
        return self._baseline if self.is_calibrated() else None

    def require_baseline(self) -> CalibrationBaseline:
        """
        Strict accessor for callers that cannot proceed without a baseline.

        Raises:
            UncalibratedAccess: if calibration has not completed
        """
        baseline = self.get_calibration()
        if baseline is None:
            raise UncalibratedAccess("Calibration has not completed")
        return baseline

    def get_calibration_progress(self) -> Dict[str, Any]:
        """
        Get the current calibration progress.

        Returns:
            Dictionary with state, sample counts and the last failure, if any
        """
        collected = len(self._accumulator)
        if self.is_calibrated():
            collected = self._baseline.sample_count
            percent = 100
        else:
            percent = min(100, int(collected / max(1, self._expected_samples) * 100))

        return {
            'state': self.state.value,
            'is_calibrated': self.is_calibrated(),
            'samples_collected': collected,
            'samples_expected': self._expected_samples,
            'min_samples': self.min_samples,
            'progress_percent': percent,
            'last_error': self.last_error,
            'calibrated_at': self._baseline.calibrated_at if self._baseline else None,
        }
