"""LocalSight: on-device object detection with a throttled overlay pipeline."""

from localsight.pipeline import (
    DetectorConfig,
    FrameScheduler,
    ImageSource,
    StreamSource,
)
from localsight.yolo import DetectionPipeline, DetectionSession, OnnxEngine


__all__ = [
    "DetectionPipeline",
    "DetectionSession",
    "DetectorConfig",
    "FrameScheduler",
    "ImageSource",
    "OnnxEngine",
    "StreamSource",
]
