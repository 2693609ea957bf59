"""Frame sources for detection pipelines."""

from __future__ import annotations

from localsight.pipeline.capture.core import (
    CaptureProtocol,
    FrameSource,
    ImageSource,
    StreamSource,
)
from localsight.pipeline.capture.opencv import OpenCVCapture


__all__ = [
    "CaptureProtocol",
    "FrameSource",
    "ImageSource",
    "OpenCVCapture",
    "StreamSource",
]
