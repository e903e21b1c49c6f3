import pytest

from imu_gestures.signal_processing import Sample


def sample(accel=(0.0, 0.0, 9.81), gyro=(0.0, 0.0, 0.0), mag=(0.0, 0.0, 0.0)):
    return Sample(*accel, *gyro, *mag)


@pytest.fixture
def make_sample():
    return sample


@pytest.fixture
def from_magnitudes():
    """Samples whose acceleration magnitude equals each given value (all on Z)."""
    def _build(magnitudes, gyro=(0.0, 0.0, 0.0)):
        return [sample(accel=(0.0, 0.0, m), gyro=gyro) for m in magnitudes]
    return _build


@pytest.fixture
def still_samples():
    def _build(n, magnitude=5.0):
        return [sample(accel=(0.0, 0.0, magnitude)) for _ in range(n)]
    return _build
