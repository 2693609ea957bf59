"""Performance metrics helpers."""

from __future__ import annotations

from localsight.pipeline.metrics.performance import PerformanceTracker
from localsight.pipeline.metrics.system import SystemMonitor


__all__ = ["PerformanceTracker", "SystemMonitor"]
