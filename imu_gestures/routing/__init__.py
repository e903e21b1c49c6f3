"""
Routing Package - Gesture to Address Mapping
"""
from .gesture_router import GestureRouter

__all__ = ['GestureRouter']
