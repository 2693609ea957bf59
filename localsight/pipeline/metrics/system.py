"""Host resource sampling for the monitor's status logs."""

from __future__ import annotations

import psutil

from localsight.pipeline.types import SystemStats


class SystemMonitor:
    """Sample system-wide and per-process CPU and memory usage."""

    def __init__(self) -> None:
        # First cpu_percent() calls only prime the counters.
        psutil.cpu_percent(interval=None)
        self.process = psutil.Process()
        self.process.cpu_percent()

    def get_stats(self) -> SystemStats:
        stats = SystemStats()
        stats.cpu_percent = psutil.cpu_percent(interval=None)
        stats.process_cpu_percent = self.process.cpu_percent()

        ram = psutil.virtual_memory()
        stats.ram_percent = ram.percent
        stats.ram_used_gb = ram.used / (1024**3)
        stats.ram_total_gb = ram.total / (1024**3)
        stats.process_rss_mb = self.process.memory_info().rss / (1024**2)
        return stats
