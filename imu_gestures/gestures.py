"""
Gesture vocabulary shared by every detector.

GestureType names the discrete events the engine can emit. GestureEvent
is what one processing cycle hands to the caller, and ArbitrationState is
the small amount of memory the arbitration state machine keeps between
cycles.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class GestureType(Enum):
    """
    Enumeration of gesture events.

    Values are lowercase identifiers so they can be used directly as
    dictionary keys in configuration (cooldowns, routing addresses).
    """
    NO_GESTURE = "no_gesture"
    TAP = "tap"
    TAP_SOFT = "tap_soft"
    TAP_HARD = "tap_hard"
    STROKE_UP = "stroke_up"
    STROKE_DOWN = "stroke_down"
    STROKE_LEFT = "stroke_left"
    STROKE_RIGHT = "stroke_right"
    STRETCH = "stretch"
    FLUTTER = "flutter"
    WAVE_HORIZONTAL = "wave_horizontal"
    WAVE_VERTICAL = "wave_vertical"
    SPIN_LEFT = "spin_left"
    SPIN_RIGHT = "spin_right"
    HOLD = "hold"

    @property
    def display_name(self) -> str:
        """Human-readable name, e.g. 'Tap Soft' or 'None'."""
        if self is GestureType.NO_GESTURE:
            return "None"
        return self.value.replace('_', ' ').title()

    @property
    def family(self) -> str:
        """
        Gesture family used for cooldown lookup.

        Directional variants share a family: every stroke is 'stroke',
        all tap grades are 'tap', and so on.
        """
        if self in (GestureType.TAP, GestureType.TAP_SOFT, GestureType.TAP_HARD):
            return 'tap'
        return self.value.split('_')[0]


@dataclass(frozen=True)
class GestureEvent:
    """
    Result of one processing cycle.

    Attributes:
        gesture: The detected gesture, or NO_GESTURE
        intensity: Optional gesture-specific strength (peak magnitude for a
                   tap, summed rotation for a wave, ...)
        confidence: Optional confidence in [0, 1] (classifier strategy only)
    """
    gesture: GestureType = GestureType.NO_GESTURE
    intensity: Optional[float] = None
    confidence: Optional[float] = None

    @classmethod
    def none(cls) -> 'GestureEvent':
        return cls()

    @property
    def is_gesture(self) -> bool:
        return self.gesture is not GestureType.NO_GESTURE

    def __bool__(self) -> bool:
        return self.is_gesture

    def to_dict(self) -> dict:
        return {
            'gesture': self.gesture.value,
            'name': self.gesture.display_name,
            'intensity': self.intensity,
            'confidence': self.confidence,
        }


@dataclass(frozen=True)
class ArbitrationState:
    """Snapshot of the arbitration state machine between cycles."""
    cooldown: int = 0
    last_gesture: GestureType = GestureType.NO_GESTURE

    @property
    def is_idle(self) -> bool:
        return self.cooldown == 0
