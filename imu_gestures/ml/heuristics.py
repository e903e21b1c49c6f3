"""
Heuristic Gesture Detectors

A bank of independent detectors, each a pure function of a trailing
window of samples and a GestureThresholds value. None of them keeps state:
everything they need (including the previously emitted gesture for hold)
is passed in.

Each detector needs a minimum window. Given fewer samples it returns its
negative result (False or NO_GESTURE); given more it only looks at the
trailing samples it needs.

Detectors:
- Tap: sharp spike-and-decay in acceleration magnitude
- Wave: repeated rotation reversals about gyro X (horizontal) or Y (vertical)
- Spin: sustained one-directional rotation about gyro Z
- Stretch: linear change in acceleration magnitude with little rotation
- Flutter: fast, small acceleration jitter
- Hold: near-zero variance on every accelerometer and gyroscope axis
"""
import math
import numbers
from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence

import numpy as np

from .. import config
from ..gestures import GestureType
from ..signal_processing.samples import Sample
from ..signal_processing.statistics import (
    accel_magnitudes,
    axis_values,
    gyro_magnitudes,
    mean,
    variance,
)


COOLDOWN_FAMILIES = frozenset(g.family for g in GestureType if g is not GestureType.NO_GESTURE)


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _check_cooldowns(cooldowns: Any) -> Dict[str, int]:
    if not isinstance(cooldowns, Mapping):
        raise ValueError("cooldowns must be a mapping of gesture family to cycles")

    unknown = set(cooldowns) - COOLDOWN_FAMILIES
    if unknown:
        raise ValueError(f"Unknown gesture families in cooldowns: {sorted(unknown)}")

    checked = {}
    for family, cycles in cooldowns.items():
        if not isinstance(cycles, numbers.Integral) or isinstance(cycles, bool):
            raise ValueError(f"cooldown for '{family}' must be an integer")
        if cycles < 0:
            raise ValueError("cooldowns cannot be negative")
        checked[family] = int(cycles)
    return checked


@dataclass(frozen=True)
class GestureThresholds:
    """
    Every tunable constant of the detector bank in one value.

    Defaults come from config; build a variant with ``with_overrides``.
    Units: m/s^2 for acceleration, deg/s for rotation.

    Values are checked on construction, so a bad override fails here with
    ValueError rather than inside a detection cycle. ``cooldowns`` is a
    read-only mapping; families left out keep their config defaults.
    """
    # Windows (samples)
    tap_window: int = config.TAP_WINDOW
    flutter_window: int = config.FLUTTER_WINDOW
    stretch_window: int = config.STRETCH_WINDOW
    wave_window: int = config.WAVE_WINDOW
    spin_window: int = config.SPIN_WINDOW
    hold_window: int = config.HOLD_WINDOW

    # Tap
    tap_threshold: float = config.TAP_THRESHOLD
    tap_spike_ratio: float = config.TAP_SPIKE_RATIO
    tap_onset_holdoff: bool = config.TAP_ONSET_HOLDOFF

    # Wave
    wave_threshold: float = config.WAVE_THRESHOLD
    wave_reversal_floor: float = config.WAVE_REVERSAL_FLOOR
    wave_min_reversals: int = config.WAVE_MIN_REVERSALS

    # Spin
    spin_threshold: float = config.SPIN_THRESHOLD

    # Stretch
    stretch_threshold: float = config.STRETCH_THRESHOLD
    stretch_rotation_max: float = config.STRETCH_ROTATION_MAX

    # Flutter
    flutter_variance_threshold: float = config.FLUTTER_VARIANCE_THRESHOLD
    flutter_mean_max: float = config.FLUTTER_MEAN_MAX

    # Hold
    hold_accel_variance_max: float = config.HOLD_ACCEL_VARIANCE_MAX
    hold_gyro_variance_max: float = config.HOLD_GYRO_VARIANCE_MAX

    # Cycles of suppression after each gesture family fires
    cooldowns: Mapping[str, int] = field(
        default_factory=lambda: MappingProxyType(dict(config.GESTURE_COOLDOWNS)))

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if f.type is bool:
                if not isinstance(value, bool):
                    raise ValueError(f"{f.name} must be true or false")
            elif f.type is int:
                if not isinstance(value, numbers.Integral) or isinstance(value, bool):
                    raise ValueError(f"{f.name} must be an integer, got {value!r}")
                object.__setattr__(self, f.name, int(value))
            elif f.type is float:
                if not _is_number(value) or not math.isfinite(value):
                    raise ValueError(f"{f.name} must be a finite number, got {value!r}")
                object.__setattr__(self, f.name, float(value))

        for name in ('tap_window', 'flutter_window', 'stretch_window',
                     'wave_window', 'spin_window', 'hold_window'):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1")
        if self.tap_window < 3:
            raise ValueError("tap_window must be at least 3 so the peak has neighbours")

        cooldowns = dict(config.GESTURE_COOLDOWNS)
        cooldowns.update(_check_cooldowns(self.cooldowns))
        object.__setattr__(self, 'cooldowns', MappingProxyType(cooldowns))

    @property
    def min_window(self) -> int:
        """Smallest window any detector needs."""
        return min(self.tap_window, self.flutter_window, self.stretch_window,
                   self.wave_window, self.spin_window, self.hold_window)

    def cooldown_for(self, gesture: GestureType) -> int:
        return self.cooldowns.get(gesture.family, 0)

    def with_overrides(self, **overrides: Any) -> 'GestureThresholds':
        """
        Copy with some fields replaced; unknown names raise TypeError.

        A ``cooldowns`` override is merged onto the current cooldowns, so
        ``with_overrides(cooldowns={'tap': 5})`` changes only the tap family.
        """
        cooldowns = overrides.get('cooldowns')
        if isinstance(cooldowns, Mapping):
            overrides['cooldowns'] = {**self.cooldowns, **cooldowns}
        return replace(self, **overrides)

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data['cooldowns'] = dict(self.cooldowns)
        return data


DEFAULT_THRESHOLDS = GestureThresholds()


def _trailing(window: Sequence[Sample], n: int) -> Optional[Sequence[Sample]]:
    """Last n samples of the window, or None if it is too short."""
    if len(window) < n:
        return None
    return window[len(window) - n:]


# -------------------- Tap --------------------

def detect_tap(window: Sequence[Sample],
               thresholds: GestureThresholds = DEFAULT_THRESHOLDS) -> bool:
    """
    Detect a sharp spike-and-decay in acceleration magnitude.

    True only when the window's peak magnitude:
    - is not on either window edge (both neighbours exist)
    - exceeds ``tap_threshold``
    - is at least ``tap_spike_ratio`` times both neighbours
    """
    recent = _trailing(window, thresholds.tap_window)
    if recent is None:
        return False

    magnitudes = accel_magnitudes(recent)
    peak_idx = int(np.argmax(magnitudes))
    if peak_idx == 0 or peak_idx == len(magnitudes) - 1:
        return False

    peak = magnitudes[peak_idx]
    before = magnitudes[peak_idx - 1]
    after = magnitudes[peak_idx + 1]

    return bool(
        peak > thresholds.tap_threshold
        and peak >= thresholds.tap_spike_ratio * before
        and peak >= thresholds.tap_spike_ratio * after
    )


def tap_pending(window: Sequence[Sample],
                thresholds: GestureThresholds = DEFAULT_THRESHOLDS) -> bool:
    """
    True when the newest sample could be the rising edge of a tap.

    A tap is only confirmed once the sample after the peak has decayed,
    so on the cycle the spike arrives the peak sits on the window edge.
    """
    if len(window) < 2:
        return False
    peak = window[-1].accel_magnitude
    before = window[-2].accel_magnitude
    return peak > thresholds.tap_threshold and peak >= thresholds.tap_spike_ratio * before


# -------------------- Wave --------------------

def count_reversals(values: Sequence[float], floor: float) -> int:
    """
    Count direction reversals among samples whose magnitude exceeds ``floor``.

    Samples at or below the floor are ignored entirely, so noise around
    zero between two strong swings does not add reversals.
    """
    reversals = 0
    last_sign = 0
    for v in values:
        if abs(v) <= floor:
            continue
        sign = 1 if v > 0 else -1
        if last_sign != 0 and sign != last_sign:
            reversals += 1
        last_sign = sign
    return reversals


def detect_wave(window: Sequence[Sample],
                thresholds: GestureThresholds = DEFAULT_THRESHOLDS) -> GestureType:
    """
    Detect a back-and-forth wave.

    Returns:
        WAVE_HORIZONTAL if gyro X reverses often enough with enough summed
        rotation, else WAVE_VERTICAL under the same test on gyro Y, else
        NO_GESTURE. X is checked first.
    """
    recent = _trailing(window, thresholds.wave_window)
    if recent is None:
        return GestureType.NO_GESTURE

    for axis, gesture in (('gyro_x', GestureType.WAVE_HORIZONTAL),
                          ('gyro_y', GestureType.WAVE_VERTICAL)):
        values = axis_values(recent, axis)
        total = float(np.sum(np.abs(values)))
        reversals = count_reversals(values, thresholds.wave_reversal_floor)
        if reversals >= thresholds.wave_min_reversals and total > thresholds.wave_threshold:
            return gesture

    return GestureType.NO_GESTURE


# -------------------- Spin --------------------

def detect_spin(window: Sequence[Sample],
                thresholds: GestureThresholds = DEFAULT_THRESHOLDS) -> GestureType:
    """
    Detect sustained rotation about the Z axis.

    The window must never cross zero on gyro Z and its mean must exceed
    ``spin_threshold``. Positive rotation (counter-clockwise about +Z) is
    SPIN_LEFT, negative is SPIN_RIGHT.
    """
    recent = _trailing(window, thresholds.spin_window)
    if recent is None:
        return GestureType.NO_GESTURE

    gz = axis_values(recent, 'gyro_z')
    gz_mean = float(np.mean(gz))
    one_signed = gz.min() > 0 or gz.max() < 0

    if one_signed and abs(gz_mean) > thresholds.spin_threshold:
        return GestureType.SPIN_LEFT if gz_mean > 0 else GestureType.SPIN_RIGHT
    return GestureType.NO_GESTURE


# -------------------- Stretch --------------------

def detect_stretch(window: Sequence[Sample],
                   thresholds: GestureThresholds = DEFAULT_THRESHOLDS) -> bool:
    """
    Detect a linear pull: the acceleration magnitude changes between the
    first and last sample of the window while rotation stays low.
    """
    recent = _trailing(window, thresholds.stretch_window)
    if recent is None:
        return False

    delta = abs(recent[-1].accel_magnitude - recent[0].accel_magnitude)
    rotation = mean(gyro_magnitudes(recent))

    return delta > thresholds.stretch_threshold and rotation < thresholds.stretch_rotation_max


# -------------------- Flutter --------------------

def detect_flutter(window: Sequence[Sample],
                   thresholds: GestureThresholds = DEFAULT_THRESHOLDS) -> bool:
    """
    Detect fast jitter: high variance of acceleration magnitude while the
    mean magnitude stays below a ceiling.
    """
    recent = _trailing(window, thresholds.flutter_window)
    if recent is None:
        return False

    magnitudes = accel_magnitudes(recent)
    return (variance(magnitudes) > thresholds.flutter_variance_threshold
            and mean(magnitudes) < thresholds.flutter_mean_max)


# -------------------- Hold --------------------

def detect_hold(window: Sequence[Sample],
                thresholds: GestureThresholds = DEFAULT_THRESHOLDS,
                last_gesture: GestureType = GestureType.NO_GESTURE) -> bool:
    """
    Detect the sensor being held still.

    Summed per-axis variance must stay under the ceiling separately for
    the accelerometer and the gyroscope. Never fires twice in a row: once
    HOLD was the last emitted gesture it stays silent until something
    else fires.
    """
    if last_gesture is GestureType.HOLD:
        return False

    recent = _trailing(window, thresholds.hold_window)
    if recent is None:
        return False

    accel_var = sum(variance(axis_values(recent, a)) for a in ('accel_x', 'accel_y', 'accel_z'))
    gyro_var = sum(variance(axis_values(recent, a)) for a in ('gyro_x', 'gyro_y', 'gyro_z'))

    return (accel_var < thresholds.hold_accel_variance_max
            and gyro_var < thresholds.hold_gyro_variance_max)


# -------------------- Intensity --------------------

def gesture_intensity(gesture: GestureType,
                      window: Sequence[Sample],
                      thresholds: GestureThresholds = DEFAULT_THRESHOLDS) -> Optional[float]:
    """
    Scalar strength of a detected gesture, for velocity-style outputs.

    Returns:
        Peak magnitude for a tap, summed rotation for a wave, mean gyro Z
        magnitude for a spin, magnitude change for a stretch, magnitude
        variance for a flutter; None for hold or when the window is too short.
    """
    family = gesture.family

    if family == 'tap':
        recent = _trailing(window, thresholds.tap_window)
        return float(accel_magnitudes(recent).max()) if recent else None

    if family == 'wave':
        recent = _trailing(window, thresholds.wave_window)
        if not recent:
            return None
        axis = 'gyro_x' if gesture is GestureType.WAVE_HORIZONTAL else 'gyro_y'
        return float(np.sum(np.abs(axis_values(recent, axis))))

    if family == 'spin':
        recent = _trailing(window, thresholds.spin_window)
        return abs(mean(axis_values(recent, 'gyro_z'))) if recent else None

    if family == 'stretch':
        recent = _trailing(window, thresholds.stretch_window)
        if not recent:
            return None
        return abs(recent[-1].accel_magnitude - recent[0].accel_magnitude)

    if family == 'flutter':
        recent = _trailing(window, thresholds.flutter_window)
        return variance(accel_magnitudes(recent)) if recent else None

    return None
