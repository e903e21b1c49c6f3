"""
IMU Feature Extraction

This module reduces a window of IMU samples to a fixed-length feature
vector for the scaled feature classifier and for labelled recordings.

Features extracted per axis:
- Mean: DC level (orientation for the accelerometer, drift for the gyro)
- Variance: population variance, how much the axis moved in the window
- Energy: sum of squared values, an unnormalized measure of signal power

Axis order: accelX, accelY, accelZ, gyroX, gyroY, gyroZ, magX, magY, magZ.
Total features: 27 (3 features x 9 axes)
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..config import AXIS_NAMES, FEATURES_PER_AXIS, NUM_AXES, TOTAL_FEATURES
from .samples import Sample


@dataclass(frozen=True, eq=False)
class FeatureVector:
    """
    Fixed-length feature vector, optionally labelled for supervised logging.

    Attributes:
        values: Array of shape (27,)
        label: Gesture label when the vector was recorded for training data
    """
    values: np.ndarray
    label: Optional[str] = None

    def __post_init__(self):
        values = np.array(self.values, dtype=np.float64)
        if values.shape != (TOTAL_FEATURES,):
            raise ValueError(
                f"Feature vector must have {TOTAL_FEATURES} values, got shape {values.shape}"
            )
        values.setflags(write=False)
        object.__setattr__(self, 'values', values)

    def __len__(self) -> int:
        return len(self.values)

    def __getitem__(self, index):
        return self.values[index]

    def with_label(self, label: str) -> 'FeatureVector':
        return FeatureVector(self.values, label)

    def to_row(self) -> List:
        """Values followed by the label, ready for a CSV row."""
        return [float(v) for v in self.values] + [self.label or '']


class FeatureExtractor:
    """
    Extracts per-axis window statistics from IMU samples.

    For each of the 9 axes three features are computed:
    1. Mean
    2. Variance (population, n denominator)
    3. Energy (sum of squares, not divided by window length)

    Attributes:
        num_axes: Number of sensor axes
        features_per_axis: Number of features computed per axis
        total_features: Length of every extracted vector
    """

    def __init__(self):
        self.num_axes = NUM_AXES
        self.features_per_axis = FEATURES_PER_AXIS
        self.total_features = TOTAL_FEATURES

    def extract(self, window: Sequence[Sample], label: Optional[str] = None) -> FeatureVector:
        """
        Extract features from a window of samples.

        Args:
            window: Samples, oldest first. May be empty.
            label: Optional label attached to the vector

        Returns:
            FeatureVector of length 27. An empty window yields all zeros.
        """
        if len(window) == 0:
            return FeatureVector(np.zeros(self.total_features), label)

        data = np.array([s.to_array() for s in window], dtype=np.float64)
        return FeatureVector(self.extract_array(data), label)

    def extract_array(self, data: np.ndarray) -> np.ndarray:
        """
        Extract features from raw sample rows.

        Args:
            data: Array of shape (n_samples, 9), or (9,) for a single sample

        Returns:
            Feature array of shape (27,)
        """
        if data.ndim == 1:
            data = data.reshape(1, -1)

        features = []
        for axis in range(self.num_axes):
            axis_data = data[:, axis]
            if axis_data.size == 0:
                features.extend([0.0, 0.0, 0.0])
                continue

            features.extend([
                self._compute_mean(axis_data),
                self._compute_variance(axis_data),
                self._compute_energy(axis_data),
            ])

        return np.array(features, dtype=np.float64)

    def extract_batch(self, samples: Sequence[Sample], window_size: int) -> List[FeatureVector]:
        """
        Extract features from consecutive non-overlapping windows.

        Args:
            samples: Full recording, oldest first
            window_size: Samples per window; a trailing partial window is dropped

        Returns:
            One FeatureVector per complete window
        """
        if window_size < 1:
            raise ValueError("window_size must be at least 1")

        n_windows = len(samples) // window_size
        vectors = []
        for i in range(n_windows):
            start_idx = i * window_size
            vectors.append(self.extract(samples[start_idx:start_idx + window_size]))
        return vectors

    def _compute_mean(self, signal: np.ndarray) -> float:
        return float(np.mean(signal))

    def _compute_variance(self, signal: np.ndarray) -> float:
        # Population variance; matches the scaler constants
        return float(np.var(signal))

    def _compute_energy(self, signal: np.ndarray) -> float:
        return float(np.sum(signal ** 2))

    def get_feature_names(self) -> List[str]:
        """
        Get descriptive names for all features.

        Returns:
            List like ['accel_x_mean', 'accel_x_variance', 'accel_x_energy', ...]
        """
        names = []
        for axis in AXIS_NAMES:
            names.append(f'{axis}_mean')
            names.append(f'{axis}_variance')
            names.append(f'{axis}_energy')
        return names

    def get_axis_feature_indices(self, axis: str) -> Tuple[int, int, int]:
        """
        Get the (mean, variance, energy) indices for one axis.

        Args:
            axis: Axis name such as 'gyro_x'
        """
        base_idx = AXIS_NAMES.index(axis) * self.features_per_axis
        return (base_idx, base_idx + 1, base_idx + 2)
