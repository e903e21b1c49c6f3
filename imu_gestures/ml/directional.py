"""
Directional and Calibrated Outputs

Continuous signals derived from each sample relative to the session
baseline. Unlike gesture events these are produced every cycle and are
meant to drive continuous controls (filter sweeps, panning, levels).
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..config import MOVEMENT_DEADBAND, TILT_MIN_STD
from ..signal_processing.samples import Sample
from .calibration import CalibrationBaseline


def _clamp(value: float, low: float = -1.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class DirectionalReading:
    """
    Continuous outputs for one sample.

    Attributes:
        calibrated_magnitude: Accel magnitude minus baseline magnitude (m/s^2)
        tilt_x, tilt_y, tilt_z: Baseline-normalized axis deviation in [-1, 1]
        is_moving: calibrated_magnitude is above the deadband
        calibrated: False for the neutral reading returned before calibration
    """
    calibrated_magnitude: float = 0.0
    tilt_x: float = 0.0
    tilt_y: float = 0.0
    tilt_z: float = 0.0
    is_moving: bool = False
    calibrated: bool = False

    @classmethod
    def neutral(cls) -> 'DirectionalReading':
        return cls()

    @property
    def tilt(self):
        return (self.tilt_x, self.tilt_y, self.tilt_z)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'calibrated_magnitude': round(self.calibrated_magnitude, 4),
            'tilt': [round(t, 4) for t in self.tilt],
            'is_moving': self.is_moving,
            'calibrated': self.calibrated,
        }


class DirectionalOutputGenerator:
    """
    Computes calibrated magnitude, tilt and movement from a frozen baseline.

    Without a baseline every call returns the neutral reading; callers
    that need to tell the difference check ``reading.calibrated`` or
    ``is_calibrated()`` on the engine.

    Attributes:
        deadband: Calibrated magnitude above which the sensor is moving
        min_std: Floor applied to baseline std before dividing
    """

    def __init__(self, deadband: float = MOVEMENT_DEADBAND, min_std: float = TILT_MIN_STD):
        self.deadband = deadband
        self.min_std = min_std

    def compute(self, sample: Sample,
                baseline: Optional[CalibrationBaseline]) -> DirectionalReading:
        if baseline is None:
            return DirectionalReading.neutral()

        calibrated_magnitude = sample.accel_magnitude - baseline.magnitude_mean

        tilts = []
        for value, axis_mean, axis_std in zip(sample.accel, baseline.axis_means, baseline.axis_stds):
            tilts.append(_clamp((value - axis_mean) / max(axis_std, self.min_std)))

        return DirectionalReading(
            calibrated_magnitude=calibrated_magnitude,
            tilt_x=tilts[0],
            tilt_y=tilts[1],
            tilt_z=tilts[2],
            is_moving=calibrated_magnitude > self.deadband,
            calibrated=True,
        )
