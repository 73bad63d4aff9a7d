"""Classification of raw device messages into typed events."""

from .telemetry_classifier import (
    TelemetryClassifier,
    ULTRASONIC_THRESHOLD,
    TOF_THRESHOLD
)

__all__ = [
    'TelemetryClassifier',
    'ULTRASONIC_THRESHOLD',
    'TOF_THRESHOLD'
]
