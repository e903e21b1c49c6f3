"""
Abstract Base Class for IMU Data Sources

This module defines the contract that all IMU input sources must implement.
Whether samples come from a recorded CSV file, the simulator or a device
connection thread, the engine receives the same Sample objects at the
same fixed rate.

DEVICE INTEGRATION:
-------------------
A device driver (serial, BLE, ...) runs on its own thread and writes the
latest accelerometer, gyroscope and magnetometer triples into a
SensorValueStore. The processing loop polls a StoreSource once per tick.
The driver never calls the engine directly.
"""
from abc import ABC, abstractmethod
from typing import Generator, List, Optional

import numpy as np

from ..config import NUM_AXES
from ..signal_processing.samples import Sample


class IMUSource(ABC):
    """
    Abstract base class defining the interface for all IMU data sources.

    Attributes:
        num_axes: Number of sensor axes per sample (always 9)
        is_active: Whether the source is currently providing data
    """

    def __init__(self):
        self.num_axes = NUM_AXES
        self.is_active = False

    @abstractmethod
    def get_sample(self) -> Optional[Sample]:
        """
        Get the next IMU sample.

        Returns:
            Sample, or None if no data is available.
        """
        pass

    @abstractmethod
    def get_batch(self, batch_size: int) -> Optional[List[Sample]]:
        """
        Get multiple samples at once.

        Args:
            batch_size: Maximum number of samples to retrieve

        Returns:
            List of up to batch_size samples, or None if no data.
        """
        pass

    @abstractmethod
    def is_streaming(self) -> bool:
        """
        Check if this source provides real-time streaming data.

        Returns:
            True for live sources, False for batch sources (CSV file).
        """
        pass

    def is_connected(self) -> bool:
        """Whether the underlying sensor is reachable. Sources without a device are always connected."""
        return True

    def start_stream(self) -> bool:
        """
        Start the data stream (for live sources).

        Returns:
            True if stream started successfully, False otherwise.
        """
        self.is_active = True
        return True

    def stop_stream(self) -> None:
        self.is_active = False

    def stream_samples(self) -> Generator[Sample, None, None]:
        """
        Generator that yields samples while the source is active.

        Default implementation calls get_sample() repeatedly and stops at
        the first None.
        """
        while self.is_active:
            sample = self.get_sample()
            if sample is None:
                break
            yield sample

    def validate_sample(self, sample: Optional[Sample]) -> bool:
        """
        Validate that a sample is present and every axis is finite.

        NaN or infinite readings usually mean a dropped or corrupted packet.
        """
        if sample is None:
            return False
        values = sample.to_array()
        if values.shape != (self.num_axes,):
            return False
        return bool(np.isfinite(values).all())

    def get_source_info(self) -> dict:
        """
        Get metadata about this IMU source.

        Returns:
            Dictionary containing source type, axes and status.
        """
        return {
            'source_type': self.__class__.__name__,
            'num_axes': self.num_axes,
            'is_streaming': self.is_streaming(),
            'is_connected': self.is_connected(),
            'is_active': self.is_active,
        }
