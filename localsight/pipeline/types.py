"""Shared data structures for detection pipelines."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SourceKind(Enum):
    """Kind of frame source feeding the pipeline."""

    IMAGE = "image"
    STREAM = "stream"


class SchedulerPhase(Enum):
    """Lifecycle phases of a frame scheduler."""

    IDLE = "idle"
    ACTIVE = "active"
    STOPPING = "stopping"


@dataclass
class CameraConfig:
    """Camera or video-file configuration settings."""

    device_index: int = 0
    width: int = 640
    height: int = 480
    fps: int = 30
    video_path: str | None = None
    loop: bool = True


@dataclass
class DetectorConfig:
    """Tunables for the detection pipeline and its scheduler."""

    target_size: int = 640
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    min_interval_s: float = 0.08
    refresh_hz: float = 60.0
    pad_value: int = 114
    output_name: str = "output0"
    class_agnostic_nms: bool = True


@dataclass(frozen=True)
class LetterboxParams:
    """Uniform scale and centering pads mapping a frame into a square."""

    scale: float
    pad_x: float
    pad_y: float
    target_size: int


@dataclass(frozen=True)
class Detection:
    """One labeled box in frame coordinates."""

    x1: float
    y1: float
    x2: float
    y2: float
    score: float
    class_index: int

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)

    def as_xyxy(self) -> tuple[float, float, float, float]:
        return self.x1, self.y1, self.x2, self.y2


@dataclass
class SchedulerState:
    """Admission state of one active stream."""

    last_run_timestamp: float = float("-inf")
    in_flight: bool = False
    frame_counter: int = 0


@dataclass
class SystemStats:
    """Host CPU and memory usage."""

    cpu_percent: float = 0.0
    process_cpu_percent: float = 0.0
    ram_percent: float = 0.0
    ram_used_gb: float = 0.0
    ram_total_gb: float = 0.0
    process_rss_mb: float = 0.0


@dataclass
class PerformanceMetrics:
    """Container for performance metrics."""

    camera_fps: float = 0.0
    inference_ms: float = 0.0
    inference_capacity_fps: float = 0.0
    frame_budget_percent: float = 0.0
    actual_throughput_fps: float = 0.0
