"""
Gesture-to-Address Routing

Maps detected gestures to outbound address strings for the transport
layer (OSC-style paths by default) and notifies registered listeners.
Encoding and sending are left to the listeners; the router only decides
what goes where.

Each EngineFrame produces up to three messages:
- the gesture address, when a gesture fired this cycle
- the continuous directional reading
- the raw sample passthrough
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..config import CONTINUOUS_ADDRESS, GESTURE_ADDRESS_MAP, RAW_ADDRESS
from ..gestures import GestureEvent, GestureType
from ..ml.engine import EngineFrame

logger = logging.getLogger(__name__)

Listener = Callable[[GestureEvent, str], None]
Message = Tuple[str, Dict[str, Any]]


class GestureRouter:
    """
    Routes gesture events to addresses.

    Attributes:
        address_map: Gesture value ('tap_soft', 'spin_left', ...) to address
        last_gesture: The most recently routed gesture
        routed_count: Number of gesture events routed
    """

    def __init__(self, custom_mapping: Optional[Dict[str, str]] = None):
        """
        Initialize the router.

        Args:
            custom_mapping: Replaces the default address map from config
        """
        self.address_map = dict(custom_mapping or GESTURE_ADDRESS_MAP)
        self._listeners: List[Listener] = []

        self.last_gesture: Optional[GestureType] = None
        self.routed_count = 0

    def get_address(self, gesture: GestureType) -> Optional[str]:
        """Address for a gesture, or None for NO_GESTURE and unmapped gestures."""
        if gesture is GestureType.NO_GESTURE:
            return None
        return self.address_map.get(gesture.value)

    def route(self, event: GestureEvent) -> Optional[str]:
        """
        Route one gesture event and notify listeners.

        Returns:
            The address the event was routed to, or None if it was dropped
        """
        address = self.get_address(event.gesture)
        if address is None:
            if event.is_gesture:
                logger.debug("No address mapped for %s", event.gesture.value)
            return None

        self.last_gesture = event.gesture
        self.routed_count += 1
        self._notify_listeners(event, address)
        return address

    def route_frame(self, frame: EngineFrame) -> List[Message]:
        """
        Route the gesture in a frame and build all outbound messages.

        Returns:
            List of (address, payload) pairs, gesture message first
        """
        messages: List[Message] = []

        address = self.route(frame.event)
        if address is not None:
            messages.append((address, frame.event.to_dict()))

        messages.append((CONTINUOUS_ADDRESS, frame.reading.to_dict()))
        messages.append((RAW_ADDRESS, frame.sample.to_dict()))
        return messages

    def set_mapping(self, gesture: GestureType, address: str) -> None:
        self.address_map[gesture.value] = address

    def get_mapping(self) -> Dict[str, str]:
        return dict(self.address_map)

    def reset_to_defaults(self) -> None:
        self.address_map = dict(GESTURE_ADDRESS_MAP)

    def add_listener(self, callback: Listener) -> None:
        """
        Add a listener called with (event, address) for every routed gesture.
        """
        self._listeners.append(callback)

    def remove_listener(self, callback: Listener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify_listeners(self, event: GestureEvent, address: str) -> None:
        for listener in self._listeners:
            try:
                listener(event, address)
            except Exception:
                logger.exception("Error in gesture listener")

    def get_state(self) -> Dict[str, Any]:
        return {
            'last_gesture': self.last_gesture.value if self.last_gesture else None,
            'routed_count': self.routed_count,
            'mapping': self.get_mapping(),
        }
