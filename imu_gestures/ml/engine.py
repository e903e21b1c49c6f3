"""
Gesture Arbitration Engine

The per-sample entry point of the package. GestureEngine owns the live
rolling buffer, the calibration engine and both classifier strategies, and
turns a stream of samples into at most one gesture event per cycle.

Per-cycle algorithm:
1. Append the sample (live buffer, classifier buffer, and the calibration
   accumulator while calibrating)
2. Too few samples for the smallest detector window -> NO_GESTURE
3. Calibration in progress -> NO_GESTURE (the hold must not fire gestures)
4. Cooldown active -> decrement it, NO_GESTURE
5. Evaluate detectors in priority order, stopping at the first hit:
   tap, flutter, stretch, wave, spin, hold
   (or the scaled feature classifier in classifier mode). While the newest
   sample may be the rising edge of a tap, the lower-priority detectors
   wait one cycle for the tap to be confirmed (``tap_onset_holdoff``).
6. On a hit, start that gesture family's cooldown and remember it as the
   last emitted gesture

One cooldown counter is shared by every detector, so gestures are mutually
exclusive: a hard tap that also jolts the gyroscope reports only the tap.
"""
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..config import DEFAULT_DETECTION_MODE, LIVE_BUFFER_CAPACITY
from ..errors import CalibrationFailed, InsufficientData
from ..gestures import ArbitrationState, GestureEvent, GestureType
from ..signal_processing.samples import RollingBuffer, Sample
from .calibration import CalibrationBaseline, CalibrationEngine
from .classifier import ScaledFeatureClassifier
from .directional import DirectionalOutputGenerator, DirectionalReading
from .heuristics import (
    DEFAULT_THRESHOLDS,
    GestureThresholds,
    detect_flutter,
    detect_hold,
    detect_spin,
    detect_stretch,
    detect_tap,
    detect_wave,
    gesture_intensity,
    tap_pending,
)

logger = logging.getLogger(__name__)


class DetectionMode(Enum):
    """Which classifier strategy drives arbitration."""
    HEURISTIC = "heuristic"
    CLASSIFIER = "classifier"


@dataclass(frozen=True)
class EngineFrame:
    """
    Everything one cycle produces for the transport layer.

    Attributes:
        event: Discrete gesture event (possibly NO_GESTURE)
        reading: Continuous calibrated/directional outputs
        sample: Raw passthrough of the input sample
    """
    event: GestureEvent
    reading: DirectionalReading
    sample: Sample

    def to_dict(self) -> Dict[str, Any]:
        return {
            'event': self.event.to_dict(),
            'direction': self.reading.to_dict(),
            'raw': self.sample.to_dict(),
        }


class GestureEngine:
    """
    Streaming gesture detector with cooldown-based arbitration.

    Not thread-safe: exactly one thread should call process(). Readings
    from a device thread should be handed over through a SensorValueStore.

    Attributes:
        thresholds: GestureThresholds used by the heuristic detectors
        mode: Active DetectionMode
        buffer: Live RollingBuffer
        calibration: CalibrationEngine
        classifier: ScaledFeatureClassifier
        directional: DirectionalOutputGenerator
        last_latency: Stage timings of the most recent process_frame() call
    """

    def __init__(self,
                 thresholds: Optional[GestureThresholds] = None,
                 mode: str = DEFAULT_DETECTION_MODE,
                 buffer_capacity: int = LIVE_BUFFER_CAPACITY,
                 classifier: Optional[ScaledFeatureClassifier] = None,
                 calibration: Optional[CalibrationEngine] = None,
                 directional: Optional[DirectionalOutputGenerator] = None):
        """
        Initialize the engine.

        Args:
            thresholds: Detector configuration; config defaults if None
            mode: 'heuristic' or 'classifier'
            buffer_capacity: Live buffer size; must cover the largest window
            classifier: Scaled feature classifier instance to use
            calibration: Calibration engine instance to use
            directional: Output generator instance to use
        """
        self.thresholds = thresholds or DEFAULT_THRESHOLDS
        self.mode = DetectionMode(mode)
        self.buffer = RollingBuffer(buffer_capacity)
        self.calibration = calibration or CalibrationEngine()
        self.classifier = classifier or ScaledFeatureClassifier()
        self.directional = directional or DirectionalOutputGenerator()

        self._check_capacity(self.thresholds)

        self._cooldown = 0
        self._last_gesture = GestureType.NO_GESTURE

        self.last_latency: Dict[str, float] = {
            'buffering_ms': 0.0,
            'detection_ms': 0.0,
            'output_ms': 0.0,
            'total_ms': 0.0,
        }

    def _check_capacity(self, thresholds: GestureThresholds) -> None:
        largest = max(thresholds.tap_window, thresholds.flutter_window,
                      thresholds.stretch_window, thresholds.wave_window,
                      thresholds.spin_window, thresholds.hold_window)
        if largest > self.buffer.capacity:
            raise ValueError(
                f"Buffer capacity {self.buffer.capacity} is smaller than the "
                f"largest detector window ({largest})"
            )

    # -------------------- Main processing --------------------

    def process(self, sample: Sample) -> GestureEvent:
        """
        Run one detection cycle.

        Args:
            sample: The newest IMU sample

        Returns:
            The gesture detected this cycle, or a NO_GESTURE event
        """
        self._ingest(sample)
        return self._arbitrate()

    def process_frame(self, sample: Sample) -> EngineFrame:
        """
        Run one cycle and also compute the continuous outputs.

        Stage timings are stored in ``last_latency``.
        """
        start_time = time.perf_counter()

        self._ingest(sample)
        buffered = time.perf_counter()

        event = self._arbitrate()
        detected = time.perf_counter()

        reading = self.directional.compute(sample, self.calibration.get_calibration())
        finished = time.perf_counter()

        self.last_latency = {
            'buffering_ms': (buffered - start_time) * 1000,
            'detection_ms': (detected - buffered) * 1000,
            'output_ms': (finished - detected) * 1000,
            'total_ms': (finished - start_time) * 1000,
        }
        return EngineFrame(event=event, reading=reading, sample=sample)

    def directional_output(self, sample: Sample) -> DirectionalReading:
        """Continuous outputs for a sample without running a detection cycle."""
        return self.directional.compute(sample, self.calibration.get_calibration())

    def _ingest(self, sample: Sample) -> None:
        self.buffer.push(sample)
        self.classifier.add_sample(sample)
        if self.calibration.is_calibrating():
            self.calibration.add_sample(sample)

    def _arbitrate(self) -> GestureEvent:
        if self.buffer.size() < self.thresholds.min_window:
            return GestureEvent.none()

        if self.calibration.is_calibrating():
            return GestureEvent.none()

        if self._cooldown > 0:
            self._cooldown -= 1
            return GestureEvent.none()

        try:
            if self.mode is DetectionMode.CLASSIFIER:
                event = self._detect_with_classifier()
            else:
                event = self._detect_with_heuristics()
        except InsufficientData as e:
            logger.debug("Skipping detection: %s", e)
            return GestureEvent.none()

        if event.is_gesture:
            self._cooldown = self.thresholds.cooldown_for(event.gesture)
            self._last_gesture = event.gesture
            logger.debug("Detected %s (cooldown %d)", event.gesture.display_name, self._cooldown)

        return event

    def _window(self, n: int) -> Tuple[Sample, ...]:
        """Trailing window, or an empty one while the buffer is still filling."""
        try:
            return self.buffer.window(n)
        except InsufficientData:
            return ()

    def _detect_with_heuristics(self) -> GestureEvent:
        t = self.thresholds

        # Priority order: shortest-horizon tactile gestures first
        if detect_tap(self._window(t.tap_window), t):
            return self._event(GestureType.TAP, t.tap_window)

        # Spike on the newest sample: wait one cycle for the tap to be confirmed
        if t.tap_onset_holdoff and tap_pending(self._window(t.tap_window), t):
            return GestureEvent.none()

        if detect_flutter(self._window(t.flutter_window), t):
            return self._event(GestureType.FLUTTER, t.flutter_window)

        if detect_stretch(self._window(t.stretch_window), t):
            return self._event(GestureType.STRETCH, t.stretch_window)

        wave = detect_wave(self._window(t.wave_window), t)
        if wave is not GestureType.NO_GESTURE:
            return self._event(wave, t.wave_window)

        spin = detect_spin(self._window(t.spin_window), t)
        if spin is not GestureType.NO_GESTURE:
            return self._event(spin, t.spin_window)

        if detect_hold(self._window(t.hold_window), t, self._last_gesture):
            return GestureEvent(GestureType.HOLD)

        return GestureEvent.none()

    def _event(self, gesture: GestureType, window_size: int) -> GestureEvent:
        intensity = gesture_intensity(gesture, self._window(window_size), self.thresholds)
        return GestureEvent(gesture, intensity=intensity)

    def _detect_with_classifier(self) -> GestureEvent:
        result = self.classifier.classify()
        if not result.is_gesture:
            return GestureEvent.none()
        return GestureEvent(result.gesture, confidence=result.confidence)

    # -------------------- Calibration surface --------------------

    def start_calibration(self) -> None:
        self.calibration.start_calibration()

    def stop_calibration(self) -> bool:
        """
        Finish the calibration hold.

        Returns:
            True if a baseline was captured, False if calibration failed
            (see ``get_calibration_progress()['last_error']``)
        """
        try:
            self.calibration.finish_calibration()
        except CalibrationFailed as e:
            logger.warning("Calibration not completed: %s", e)
            return False
        return True

    finish_calibration = stop_calibration

    def reset_calibration(self) -> None:
        self.calibration.reset_calibration()

    def is_calibrated(self) -> bool:
        return self.calibration.is_calibrated()

    def is_calibrating(self) -> bool:
        return self.calibration.is_calibrating()

    def get_calibration(self) -> Optional[CalibrationBaseline]:
        return self.calibration.get_calibration()

    def get_calibration_progress(self) -> Dict[str, Any]:
        return self.calibration.get_calibration_progress()

    # -------------------- State --------------------

    def get_state(self) -> ArbitrationState:
        return ArbitrationState(cooldown=self._cooldown, last_gesture=self._last_gesture)

    def set_thresholds(self, thresholds: GestureThresholds) -> None:
        """Swap detector configuration; takes effect on the next cycle."""
        self._check_capacity(thresholds)
        self.thresholds = thresholds

    def set_mode(self, mode: str) -> None:
        self.mode = DetectionMode(mode)

    def get_buffer(self) -> Tuple[Sample, ...]:
        """Copy of the live buffer, oldest first."""
        return self.buffer.window(self.buffer.size())

    def reset(self) -> None:
        """Clear buffers and arbitration state; calibration is kept."""
        self.buffer.clear()
        self.classifier.clear_buffer()
        self._cooldown = 0
        self._last_gesture = GestureType.NO_GESTURE

    def get_status(self) -> Dict[str, Any]:
        return {
            'mode': self.mode.value,
            'buffered_samples': self.buffer.size(),
            'buffer_capacity': self.buffer.capacity,
            'cooldown': self._cooldown,
            'last_gesture': self._last_gesture.value,
            'calibration': self.calibration.get_calibration_progress(),
        }
