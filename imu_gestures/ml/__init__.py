"""
Gesture Detection Package

This package contains the calibration engine, both classifier strategies
(heuristic detectors and the scaled feature classifier), the continuous
output generator and the arbitration engine that combines them.
"""
from .calibration import CalibrationBaseline, CalibrationEngine, CalibrationState
from .classifier import ClassifierResult, ScaledFeatureClassifier
from .directional import DirectionalOutputGenerator, DirectionalReading
from .engine import DetectionMode, EngineFrame, GestureEngine
from .heuristics import DEFAULT_THRESHOLDS, GestureThresholds
from .recording import FeatureLogger, record_window

__all__ = [
    'CalibrationBaseline', 'CalibrationEngine', 'CalibrationState',
    'ClassifierResult', 'ScaledFeatureClassifier',
    'DirectionalOutputGenerator', 'DirectionalReading',
    'DetectionMode', 'EngineFrame', 'GestureEngine',
    'DEFAULT_THRESHOLDS', 'GestureThresholds',
    'FeatureLogger', 'record_window',
]
