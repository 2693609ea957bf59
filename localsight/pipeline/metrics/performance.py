"""Rolling frame-rate and inference-latency tracking."""

from __future__ import annotations

import time
from collections import deque

from localsight.pipeline.types import PerformanceMetrics


class PerformanceTracker:
    """Track tick periods and inference latency with moving averages."""

    def __init__(self, avg_frames: int = 30) -> None:
        """Initialize the tracker with a rolling window size."""
        self.avg_frames = avg_frames
        self.frame_periods: deque[float] = deque(maxlen=avg_frames)
        self.inference_times: deque[float] = deque(maxlen=avg_frames)
        self.last_frame_time: float | None = None
        self.frame_count = 0
        self.inference_count = 0
        self.start_time = time.perf_counter()

    def tick_frame(self) -> None:
        """Record a displayed frame for FPS estimation."""
        now = time.perf_counter()
        if self.last_frame_time is not None:
            self.frame_periods.append(now - self.last_frame_time)
        self.last_frame_time = now
        self.frame_count += 1

    def add_inference_time(self, elapsed_ms: float) -> None:
        """Record a single pipeline duration in milliseconds."""
        self.inference_times.append(elapsed_ms)
        self.inference_count += 1

    def reset(self) -> None:
        self.frame_periods.clear()
        self.inference_times.clear()
        self.last_frame_time = None
        self.frame_count = 0
        self.inference_count = 0
        self.start_time = time.perf_counter()

    def get_metrics(self) -> PerformanceMetrics:
        """Compute aggregated performance metrics."""
        metrics = PerformanceMetrics()

        if self.frame_periods:
            avg_period = sum(self.frame_periods) / len(self.frame_periods)
            metrics.camera_fps = 1.0 / avg_period if avg_period > 0 else 0.0

        if self.inference_times:
            metrics.inference_ms = sum(self.inference_times) / len(self.inference_times)
            metrics.inference_capacity_fps = (
                1000.0 / metrics.inference_ms if metrics.inference_ms > 0 else 0.0
            )
            if metrics.camera_fps > 0:
                frame_budget_ms = 1000.0 / metrics.camera_fps
                metrics.frame_budget_percent = (
                    metrics.inference_ms / frame_budget_ms
                ) * 100

        # Throughput counts completed inferences, not displayed frames.
        elapsed = time.perf_counter() - self.start_time
        metrics.actual_throughput_fps = (
            self.inference_count / elapsed if elapsed > 0 else 0.0
        )
        return metrics
