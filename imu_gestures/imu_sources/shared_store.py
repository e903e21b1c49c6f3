"""
Thread-Safe Sensor Hand-off

A device driver thread writes the most recent readings into a
SensorValueStore; the fixed-rate processing loop reads them through a
StoreSource. The store keeps only the latest value per sensor, so a slow
consumer sees the freshest reading instead of a backlog.
"""
import logging
import threading
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..signal_processing.samples import Sample
from .base_source import IMUSource

logger = logging.getLogger(__name__)

Triple = Tuple[float, float, float]


def _as_triple(values: Sequence[float]) -> Triple:
    if len(values) != 3:
        raise ValueError(f"Expected 3 values, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


@dataclass(frozen=True)
class StoreSnapshot:
    """Consistent copy of the store taken under its lock."""
    accel: Triple
    gyro: Triple
    mag: Triple
    connected: bool
    updates: int

    def to_sample(self) -> Sample:
        return Sample(*self.accel, *self.gyro, *self.mag)


class SensorValueStore:
    """
    Latest accelerometer, gyroscope and magnetometer triples plus a
    connected flag, guarded by one lock.

    Writers call the set_* methods from any thread; snapshot() returns all
    values from the same instant.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._accel: Triple = (0.0, 0.0, 0.0)
        self._gyro: Triple = (0.0, 0.0, 0.0)
        self._mag: Triple = (0.0, 0.0, 0.0)
        self._connected = False
        self._updates = 0

    def set_accelerometer(self, values: Sequence[float]) -> None:
        triple = _as_triple(values)
        with self._lock:
            self._accel = triple
            self._updates += 1

    def set_gyroscope(self, values: Sequence[float]) -> None:
        triple = _as_triple(values)
        with self._lock:
            self._gyro = triple
            self._updates += 1

    def set_magnetometer(self, values: Sequence[float]) -> None:
        triple = _as_triple(values)
        with self._lock:
            self._mag = triple
            self._updates += 1

    def set_sample(self, sample: Sample) -> None:
        """Write all three sensors at once."""
        with self._lock:
            self._accel = sample.accel
            self._gyro = sample.gyro
            self._mag = sample.mag
            self._updates += 1

    def set_connected(self, connected: bool) -> None:
        with self._lock:
            changed = self._connected != connected
            self._connected = connected
        if changed:
            logger.info("Sensor %s", "connected" if connected else "disconnected")

    def is_connected(self) -> bool:
        with self._lock:
            return self._connected

    def snapshot(self) -> StoreSnapshot:
        with self._lock:
            return StoreSnapshot(
                accel=self._accel,
                gyro=self._gyro,
                mag=self._mag,
                connected=self._connected,
                updates=self._updates,
            )


class StoreSource(IMUSource):
    """
    Polls a SensorValueStore once per tick.

    While the sensor is disconnected get_sample() returns None so the
    processing loop skips the cycle instead of feeding stale values.

    Attributes:
        store: The shared SensorValueStore written by the device thread
    """

    def __init__(self, store: Optional[SensorValueStore] = None):
        super().__init__()
        self.store = store or SensorValueStore()

    def get_sample(self) -> Optional[Sample]:
        if not self.is_active:
            return None
        snapshot = self.store.snapshot()
        if not snapshot.connected:
            return None
        return snapshot.to_sample()

    def get_batch(self, batch_size: int) -> Optional[List[Sample]]:
        # The store only holds the latest reading
        sample = self.get_sample()
        return [sample] if sample is not None else None

    def is_streaming(self) -> bool:
        return True

    def is_connected(self) -> bool:
        return self.store.is_connected()
