"""
IMU Data Sources - Hardware Abstraction Layer

This module provides a unified interface for IMU data acquisition. The
engine receives identical Sample objects regardless of source.

Supported sources:
- CSVSource: Replay of recorded 9-column sample files
- SimulatedSource: Synthetic motion patterns for demos and tests
- StoreSource: Polls readings handed over by a device thread
"""
from .base_source import IMUSource
from .csv_source import CSVSource
from .shared_store import SensorValueStore, StoreSnapshot, StoreSource
from .simulated_source import SimulatedSource

__all__ = [
    'IMUSource', 'CSVSource', 'SimulatedSource',
    'SensorValueStore', 'StoreSnapshot', 'StoreSource',
]
