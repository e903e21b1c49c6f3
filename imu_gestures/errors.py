"""
Exceptions raised inside the gesture engine.

None of these escape the per-sample detection cycle: the engine converts
them into a "no gesture" result or a neutral reading so a fixed-rate
polling loop never stalls.
"""


class GestureEngineError(Exception):
    """Base class for all gesture engine errors."""


class InsufficientData(GestureEngineError):
    """
    The buffer does not yet hold enough samples for the requested window.

    Always recoverable: keep feeding samples.
    """

    def __init__(self, requested: int, available: int):
        super().__init__(
            f"Window of {requested} samples requested but only {available} buffered"
        )
        self.requested = requested
        self.available = available


class CalibrationFailed(GestureEngineError):
    """Calibration could not produce a baseline (too few samples, or not started)."""


class UncalibratedAccess(GestureEngineError):
    """A calibrated value was requested before calibration completed."""
