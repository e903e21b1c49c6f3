"""
Signal Processing Package

This package contains the IMU sample model, the rolling buffer, shared
window statistics and feature extraction. Every detector and classifier
reads its input through these modules.
"""
from .samples import Sample, RollingBuffer
from .feature_extraction import FeatureExtractor, FeatureVector
from . import statistics

__all__ = ['Sample', 'RollingBuffer', 'FeatureExtractor', 'FeatureVector', 'statistics']
