"""
IMU Gesture Engine

Streaming gesture detection for a 9-axis IMU (accelerometer, gyroscope,
magnetometer) sampled at 100 Hz:
- signal_processing: sample model, rolling buffer, statistics, features
- ml: calibration, heuristic detectors, scaled feature classifier,
  directional outputs and the arbitration engine
- imu_sources: CSV, simulated and device-thread sample sources
- routing: gesture to outbound address mapping
- monitoring: per-cycle latency tracking
"""
from .errors import CalibrationFailed, GestureEngineError, InsufficientData, UncalibratedAccess
from .gestures import ArbitrationState, GestureEvent, GestureType
from .ml import GestureEngine, GestureThresholds
from .signal_processing import RollingBuffer, Sample

__version__ = '1.0.0'

__all__ = [
    'GestureEngine', 'GestureThresholds',
    'GestureEvent', 'GestureType', 'ArbitrationState',
    'Sample', 'RollingBuffer',
    'GestureEngineError', 'InsufficientData', 'CalibrationFailed', 'UncalibratedAccess',
]
