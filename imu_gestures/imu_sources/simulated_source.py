"""
Simulated IMU Source

Generates 9-axis IMU streams for development, demos and tests without a
garment attached. Each motion pattern is shaped so the matching detector
fires under the default thresholds:

- rest: sensor lying still, gravity on +Z
- tap: a single sharp accelerometer spike every 0.8 seconds
- wave: fast oscillating rotation about the X axis
- spin: steady rotation about the Z axis
- stretch: acceleration magnitude ramping up, then released
- flutter: fast alternating acceleration jitter
- stroke: short one-directional rotation bursts about the X axis

Every pattern adds Gaussian sensor noise. A seed makes the stream
reproducible.
"""
import time
from threading import Event
from typing import Callable, Dict, Generator, List, Optional

import numpy as np

from ..config import (
    GRAVITY,
    SAMPLE_RATE_HZ,
    SIMULATED_ACCEL_NOISE_STD,
    SIMULATED_GYRO_NOISE_STD,
    SIMULATED_MAG_FIELD,
    SIMULATED_MAG_NOISE_STD,
    SIMULATED_PATTERNS,
    STREAM_INTERVAL_MS,
)
from ..signal_processing.samples import Sample
from .base_source import IMUSource

# Pattern shaping (samples at SAMPLE_RATE_HZ)
TAP_PERIOD = 80
TAP_SPIKE = 25.0
WAVE_FREQUENCY_HZ = 8.0
WAVE_AMPLITUDE = 250.0
SPIN_RATE = 200.0
STRETCH_PERIOD = 60
STRETCH_SLOPE = 0.5
FLUTTER_AMPLITUDE = 2.5
STROKE_PERIOD = 60
STROKE_LENGTH = 20
STROKE_RATE = 150.0


class SimulatedSource(IMUSource):
    """
    IMU source that synthesizes motion patterns.

    Attributes:
        current_pattern: Name of the pattern being generated
        sample_count: Samples generated since the stream (re)started
    """

    def __init__(self, pattern: str = 'rest', seed: Optional[int] = None):
        """
        Initialize the simulated source.

        Args:
            pattern: Initial motion pattern
            seed: Seed for the noise generator; None for a random stream
        """
        super().__init__()
        self.current_pattern = pattern if pattern in SIMULATED_PATTERNS else 'rest'
        self.sample_count = 0
        self.stream_interval = STREAM_INTERVAL_MS / 1000.0

        self._rng = np.random.default_rng(seed)
        self._stop_event = Event()
        self._patterns = self._create_motion_patterns()

    def _create_motion_patterns(self) -> Dict[str, Callable[[int], np.ndarray]]:
        """
        Map each pattern name to a function of the sample index that
        returns the noiseless (accel + gyro) six-vector.
        """
        def rest(n):
            return np.array([0.0, 0.0, GRAVITY, 0.0, 0.0, 0.0])

        def tap(n):
            values = rest(n)
            if n % TAP_PERIOD == TAP_PERIOD // 2:
                values[2] += TAP_SPIKE
            return values

        def wave(n):
            values = rest(n)
            values[3] = WAVE_AMPLITUDE * np.sin(2 * np.pi * WAVE_FREQUENCY_HZ * n / SAMPLE_RATE_HZ)
            return values

        def spin(n):
            values = rest(n)
            values[5] = SPIN_RATE
            return values

        def stretch(n):
            values = rest(n)
            values[2] += STRETCH_SLOPE * (n % STRETCH_PERIOD)
            return values

        def flutter(n):
            values = rest(n)
            values[2] += FLUTTER_AMPLITUDE if n % 2 == 0 else -FLUTTER_AMPLITUDE
            return values

        def stroke(n):
            values = rest(n)
            if n % STROKE_PERIOD < STROKE_LENGTH:
                values[3] = STROKE_RATE
            return values

        return {
            'rest': rest,
            'tap': tap,
            'wave': wave,
            'spin': spin,
            'stretch': stretch,
            'flutter': flutter,
            'stroke': stroke,
        }

    def set_pattern(self, pattern: str) -> bool:
        """
        Switch the motion pattern.

        Returns:
            True if the pattern is known, False otherwise
        """
        pattern = pattern.lower()
        if pattern not in self._patterns:
            return False
        self.current_pattern = pattern
        return True

    def available_patterns(self) -> List[str]:
        return list(self._patterns)

    def get_sample(self) -> Optional[Sample]:
        """
        Generate the next sample; None while the stream is stopped.
        """
        if not self.is_active:
            return None

        motion = self._patterns[self.current_pattern](self.sample_count)
        accel = motion[:3] + self._rng.normal(0, SIMULATED_ACCEL_NOISE_STD, 3)
        gyro = motion[3:] + self._rng.normal(0, SIMULATED_GYRO_NOISE_STD, 3)
        mag = np.array(SIMULATED_MAG_FIELD) + self._rng.normal(0, SIMULATED_MAG_NOISE_STD, 3)

        self.sample_count += 1
        return Sample.from_sequence(np.concatenate([accel, gyro, mag]))

    def get_batch(self, batch_size: int) -> Optional[List[Sample]]:
        """Generate batch_size samples immediately, starting the stream if needed."""
        if not self.is_active:
            self.start_stream()

        samples = []
        for _ in range(batch_size):
            sample = self.get_sample()
            if sample is not None:
                samples.append(sample)
        return samples or None

    def is_streaming(self) -> bool:
        return True

    def start_stream(self) -> bool:
        self.is_active = True
        self._stop_event.clear()
        self.sample_count = 0
        return True

    def stop_stream(self) -> None:
        self.is_active = False
        self._stop_event.set()

    def stream_samples(self) -> Generator[Sample, None, None]:
        """
        Yield samples paced at the configured stream interval.
        """
        self.start_stream()

        while self.is_active and not self._stop_event.is_set():
            sample = self.get_sample()
            if sample is not None:
                yield sample
            time.sleep(self.stream_interval)
