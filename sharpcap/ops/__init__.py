"""Operational helpers."""

from sharpcap.ops.logging import configure_logging
from sharpcap.ops.metrics import InMemoryMetricsRecorder, MetricsRecorder, NullMetricsRecorder

__all__ = ["configure_logging", "InMemoryMetricsRecorder", "MetricsRecorder", "NullMetricsRecorder"]
