"""
Scaled Feature Classifier

A deterministic rule engine over standardized window features:

    extract 27 features -> (feature - scaler_mean) / scaler_scale -> rules

The scaler constants and the rule cut points are fixed. They can be
replaced from a joblib artifact holding ``scaler_mean`` and
``scaler_scale`` arrays, but nothing here fits or trains a model.

Rules, in order, on aggregates of the scaled features:
1. Summed accelerometer energy high     -> TAP_HARD / TAP_SOFT
2. Gyroscope mean magnitude high        -> STROKE in the dominant axis
3. Summed accelerometer variance medium -> TAP_SOFT (low confidence)
4. Otherwise                            -> NO_GESTURE
"""
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import joblib
import numpy as np

from ..config import (
    CLASSIFIER_BUFFER_CAPACITY,
    CLASSIFIER_CONFIDENCE,
    CLASSIFIER_MIN_SAMPLES,
    CLASSIFIER_SOFT_VARIANCE,
    CLASSIFIER_STROKE_GYRO,
    CLASSIFIER_TAP_ENERGY,
    CLASSIFIER_TAP_HARD_ENERGY,
    CLASSIFIER_UNIT_SCALE,
    SCALER_ARTIFACT_PATH,
    SCALER_MEAN,
    SCALER_SCALE,
    TOTAL_FEATURES,
)
from ..gestures import GestureType
from ..signal_processing.feature_extraction import FeatureExtractor, FeatureVector
from ..signal_processing.samples import RollingBuffer, Sample

logger = logging.getLogger(__name__)

# Feature indices in FeatureExtractor order (axis * 3 + statistic)
_ACCEL_MEAN_IDX = (0, 3, 6)
_ACCEL_VARIANCE_IDX = (1, 4, 7)
_ACCEL_ENERGY_IDX = (2, 5, 8)
_GYRO_MEAN_IDX = (9, 12, 15)


@dataclass(frozen=True)
class ClassifierResult:
    """
    Outcome of one classification.

    ``ready`` is False when the buffer was too short to classify; that is
    distinct from a ready result whose gesture is NO_GESTURE.
    """
    gesture: GestureType = GestureType.NO_GESTURE
    confidence: float = 0.0
    ready: bool = False

    @classmethod
    def not_ready(cls) -> 'ClassifierResult':
        return cls()

    @property
    def is_gesture(self) -> bool:
        return self.ready and self.gesture is not GestureType.NO_GESTURE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'gesture': self.gesture.value,
            'name': self.gesture.display_name,
            'confidence': round(self.confidence, 4),
            'ready': self.ready,
        }


class ScaledFeatureClassifier:
    """
    Fixed-scaler, fixed-rule gesture classifier.

    Keeps its own sliding buffer (up to 200 samples) so it can run
    alongside the heuristic detectors, which use a shorter history.

    Attributes:
        buffer: Sliding window of recent samples
        min_samples: Samples required before classify() is ready
        unit_scale: Per-axis factors converting samples to the scaler's units
        scaler_mean: Per-feature offsets (27,)
        scaler_scale: Per-feature divisors (27,)
    """

    def __init__(self,
                 capacity: int = CLASSIFIER_BUFFER_CAPACITY,
                 min_samples: int = CLASSIFIER_MIN_SAMPLES):
        self.buffer = RollingBuffer(capacity)
        self.min_samples = min_samples
        self.feature_extractor = FeatureExtractor()

        self.unit_scale = np.array(CLASSIFIER_UNIT_SCALE, dtype=np.float64)
        self.scaler_mean = np.array(SCALER_MEAN, dtype=np.float64)
        self.scaler_scale = np.array(SCALER_SCALE, dtype=np.float64)

    # -------------------- Buffer --------------------

    def add_sample(self, sample: Sample) -> None:
        self.buffer.push(sample)

    def clear_buffer(self) -> None:
        self.buffer.clear()

    def is_ready(self) -> bool:
        return self.buffer.size() >= self.min_samples

    # -------------------- Classification --------------------

    def classify(self) -> ClassifierResult:
        """
        Classify the buffered window.

        Returns:
            ClassifierResult; ``ready`` is False until min_samples are buffered
        """
        if not self.is_ready():
            return ClassifierResult.not_ready()

        return self.classify_features(self.extract_features())

    def extract_features(self) -> FeatureVector:
        """Features of the buffered window, in the units the scaler expects."""
        data = self.buffer.to_array() * self.unit_scale
        return FeatureVector(self.feature_extractor.extract_array(data))

    def classify_features(self, features: FeatureVector) -> ClassifierResult:
        """
        Scale an already extracted feature vector and apply the rules.

        The vector must come from data in g, deg/s and gauss, as produced
        by extract_features().
        """
        return self._predict_gesture(self.scale(features))

    def scale(self, features: FeatureVector) -> np.ndarray:
        """Standardize features with the scaler constants."""
        return (features.values - self.scaler_mean) / self.scaler_scale

    def _predict_gesture(self, scaled: np.ndarray) -> ClassifierResult:
        accel_energy = float(np.sum(scaled[list(_ACCEL_ENERGY_IDX)]))
        accel_variance = float(np.sum(scaled[list(_ACCEL_VARIANCE_IDX)]))
        gyro_magnitude = float(np.linalg.norm(scaled[list(_GYRO_MEAN_IDX)]))

        if accel_energy > CLASSIFIER_TAP_ENERGY:
            if accel_energy > CLASSIFIER_TAP_HARD_ENERGY:
                return self._result(GestureType.TAP_HARD, 'tap_hard')
            return self._result(GestureType.TAP_SOFT, 'tap_soft')

        if gyro_magnitude > CLASSIFIER_STROKE_GYRO:
            gyro_x = scaled[_GYRO_MEAN_IDX[0]]
            gyro_y = scaled[_GYRO_MEAN_IDX[1]]
            if abs(gyro_x) > abs(gyro_y):
                gesture = GestureType.STROKE_RIGHT if gyro_x > 0 else GestureType.STROKE_LEFT
            else:
                gesture = GestureType.STROKE_UP if gyro_y > 0 else GestureType.STROKE_DOWN
            return self._result(gesture, 'stroke')

        if accel_variance > CLASSIFIER_SOFT_VARIANCE:
            return self._result(GestureType.TAP_SOFT, 'soft_variance')

        return self._result(GestureType.NO_GESTURE, 'no_gesture')

    def _result(self, gesture: GestureType, rule: str) -> ClassifierResult:
        return ClassifierResult(gesture, CLASSIFIER_CONFIDENCE[rule], ready=True)

    # -------------------- Scaler artifacts --------------------

    def save_scaler(self, filepath: str = SCALER_ARTIFACT_PATH) -> None:
        """Persist the current scaler constants with joblib."""
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        joblib.dump({
            'scaler_mean': self.scaler_mean,
            'scaler_scale': self.scaler_scale,
        }, filepath)

    def load_scaler(self, filepath: str = SCALER_ARTIFACT_PATH) -> bool:
        """
        Replace the scaler constants from a joblib artifact.

        Returns:
            True if the artifact was loaded, False if it was missing or invalid
            (the existing constants are kept).
        """
        if not os.path.exists(filepath):
            logger.info("No scaler artifact at %s, using built-in constants", filepath)
            return False

        try:
            stats = joblib.load(filepath)
            scaler_mean = np.asarray(stats['scaler_mean'], dtype=np.float64)
            scaler_scale = np.asarray(stats['scaler_scale'], dtype=np.float64)
        except (OSError, KeyError, TypeError, ValueError) as e:
            logger.error("Error loading scaler artifact %s: %s", filepath, e)
            return False

        if scaler_mean.shape != (TOTAL_FEATURES,) or scaler_scale.shape != (TOTAL_FEATURES,):
            logger.error("Scaler artifact %s has wrong shape", filepath)
            return False
        if np.any(scaler_scale == 0):
            logger.error("Scaler artifact %s has zero scale entries", filepath)
            return False

        self.scaler_mean = scaler_mean
        self.scaler_scale = scaler_scale
        logger.info("Loaded scaler constants from %s", filepath)
        return True

    def get_scaler(self) -> Dict[str, list]:
        return {
            'scaler_mean': self.scaler_mean.tolist(),
            'scaler_scale': self.scaler_scale.tolist(),
        }
