from __future__ import annotations

from localsight.pipeline.capture import (
    CaptureProtocol,
    FrameSource,
    ImageSource,
    OpenCVCapture,
    StreamSource,
)
from localsight.pipeline.errors import (
    EngineUnavailable,
    InferenceFailure,
    InvalidFrame,
    LocalSightError,
    MonitorInitError,
    ResourceAcquisitionFailure,
)
from localsight.pipeline.logging import configure_logging
from localsight.pipeline.metrics import PerformanceTracker, SystemMonitor
from localsight.pipeline.scheduler import FrameScheduler
from localsight.pipeline.types import (
    CameraConfig,
    Detection,
    DetectorConfig,
    LetterboxParams,
    PerformanceMetrics,
    SchedulerPhase,
    SchedulerState,
    SourceKind,
    SystemStats,
)


__all__ = [
    "CameraConfig",
    "CaptureProtocol",
    "Detection",
    "DetectorConfig",
    "EngineUnavailable",
    "FrameScheduler",
    "FrameSource",
    "ImageSource",
    "InferenceFailure",
    "InvalidFrame",
    "LetterboxParams",
    "LocalSightError",
    "MonitorInitError",
    "OpenCVCapture",
    "PerformanceMetrics",
    "PerformanceTracker",
    "ResourceAcquisitionFailure",
    "SchedulerPhase",
    "SchedulerState",
    "SourceKind",
    "StreamSource",
    "SystemMonitor",
    "SystemStats",
    "configure_logging",
]
