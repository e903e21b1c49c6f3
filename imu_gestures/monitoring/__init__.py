"""
Monitoring Package - Cycle Latency Tracking
"""
from .latency_tracker import LatencyTracker, get_latency_tracker

__all__ = ['LatencyTracker', 'get_latency_tracker']
