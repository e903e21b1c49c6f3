"""
IMU Sample Model and Rolling Buffer

A Sample is one 9-axis reading (accelerometer, gyroscope, magnetometer).
The RollingBuffer keeps a bounded, ordered history of the most recent
samples; detectors read trailing windows from it.

Units are applied consistently across the package:
- accelerometer: m/s^2
- gyroscope: degrees/second
- magnetometer: microtesla
"""
import math
from collections import deque
from itertools import islice
from dataclasses import dataclass, astuple
from typing import Deque, Iterable, Optional, Sequence, Tuple

import numpy as np

from ..config import AXIS_NAMES, LIVE_BUFFER_CAPACITY, NUM_AXES
from ..errors import InsufficientData


@dataclass(frozen=True)
class Sample:
    """Single immutable 9-axis IMU reading."""
    accel_x: float = 0.0
    accel_y: float = 0.0
    accel_z: float = 0.0
    gyro_x: float = 0.0
    gyro_y: float = 0.0
    gyro_z: float = 0.0
    mag_x: float = 0.0
    mag_y: float = 0.0
    mag_z: float = 0.0

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> 'Sample':
        """
        Build a sample from 9 values in AXIS_NAMES order.

        Raises:
            ValueError: if the sequence does not hold exactly 9 values
        """
        if len(values) != NUM_AXES:
            raise ValueError(f"Expected {NUM_AXES} values, got {len(values)}")
        return cls(*(float(v) for v in values))

    @property
    def accel(self) -> Tuple[float, float, float]:
        return (self.accel_x, self.accel_y, self.accel_z)

    @property
    def gyro(self) -> Tuple[float, float, float]:
        return (self.gyro_x, self.gyro_y, self.gyro_z)

    @property
    def mag(self) -> Tuple[float, float, float]:
        return (self.mag_x, self.mag_y, self.mag_z)

    @property
    def accel_magnitude(self) -> float:
        return math.sqrt(self.accel_x ** 2 + self.accel_y ** 2 + self.accel_z ** 2)

    @property
    def gyro_magnitude(self) -> float:
        return math.sqrt(self.gyro_x ** 2 + self.gyro_y ** 2 + self.gyro_z ** 2)

    def axis(self, name: str) -> float:
        """Value of one axis by name ('accel_x', 'gyro_z', ...)."""
        if name not in AXIS_NAMES:
            raise KeyError(f"Unknown axis '{name}'")
        return getattr(self, name)

    def to_array(self) -> np.ndarray:
        """Values as a float array of shape (9,) in AXIS_NAMES order."""
        return np.array(astuple(self), dtype=np.float64)

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in AXIS_NAMES}


class RollingBuffer:
    """
    Fixed-capacity FIFO of recent samples.

    Appending to a full buffer evicts the oldest sample, so
    ``size() <= capacity`` holds after every push. The buffer is owned by a
    single detector; windows are returned as tuples so callers can never
    mutate the stored history.

    Attributes:
        capacity: Maximum number of samples retained
    """

    def __init__(self, capacity: int = LIVE_BUFFER_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._samples: Deque[Sample] = deque(maxlen=capacity)

    def push(self, sample: Sample) -> None:
        """Append a sample at the tail, evicting the head when full."""
        self._samples.append(sample)

    def extend(self, samples: Iterable[Sample]) -> None:
        for sample in samples:
            self.push(sample)

    def window(self, n: int) -> Tuple[Sample, ...]:
        """
        Return the trailing ``n`` samples, oldest first.

        Args:
            n: Window length

        Returns:
            Tuple of the last n samples

        Raises:
            InsufficientData: if fewer than n samples are buffered
        """
        available = len(self._samples)
        if n < 0 or n > available:
            raise InsufficientData(n, available)
        if n == 0:
            return ()
        return tuple(islice(self._samples, available - n, None))

    def latest(self) -> Optional[Sample]:
        return self._samples[-1] if self._samples else None

    def size(self) -> int:
        return len(self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self):
        return iter(tuple(self._samples))

    def is_full(self) -> bool:
        return len(self._samples) == self.capacity

    def clear(self) -> None:
        self._samples.clear()

    def to_array(self) -> np.ndarray:
        """Buffered samples as an array of shape (size, 9)."""
        if not self._samples:
            return np.empty((0, NUM_AXES), dtype=np.float64)
        return np.array([astuple(s) for s in self._samples], dtype=np.float64)
