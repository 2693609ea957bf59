"""Frame sources: still images and live streams behind one interface."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import cv2
from loguru import logger

from localsight.pipeline.capture.opencv import OpenCVCapture
from localsight.pipeline.errors import ResourceAcquisitionFailure
from localsight.pipeline.types import SourceKind


if TYPE_CHECKING:
    from pathlib import Path

    import numpy as np

    from localsight.pipeline.types import CameraConfig


class CaptureProtocol(Protocol):
    """Protocol for stream capture backends."""

    def open(self) -> bool:
        """Open the capture backend."""
        ...

    def read(self) -> tuple[bool, np.ndarray | None]:
        """Read a frame from the backend."""
        ...

    def release(self) -> None:
        """Release backend resources."""
        ...

    def is_opened(self) -> bool:
        """Return True when the backend is open."""
        ...

    def get_info(self) -> dict:
        """Return backend metadata for diagnostics."""
        ...


class FrameSource(Protocol):
    """Uniform view over image and stream sources."""

    kind: SourceKind

    @property
    def dimensions(self) -> tuple[int, int]:
        """Native (width, height) of the most recent frame."""
        ...

    def read(self) -> np.ndarray | None:
        """Return the current frame, or None when none is ready."""
        ...

    def release(self) -> None:
        """Release the underlying resource."""
        ...


class ImageSource:
    """A decoded still image."""

    kind = SourceKind.IMAGE

    def __init__(self, frame: np.ndarray, name: str = "<array>") -> None:
        self._frame: np.ndarray | None = frame
        self.name = name

    @classmethod
    def from_path(cls, path: str | Path) -> ImageSource:
        """Decode an image file, raising when it cannot be read."""
        frame = cv2.imread(str(path), cv2.IMREAD_COLOR)
        if frame is None:
            message = f"Cannot read image: {path}"
            raise ResourceAcquisitionFailure(message)
        logger.info("Loaded image {} ({}x{})", path, frame.shape[1], frame.shape[0])
        return cls(frame, name=str(path))

    @property
    def dimensions(self) -> tuple[int, int]:
        if self._frame is None:
            return 0, 0
        return int(self._frame.shape[1]), int(self._frame.shape[0])

    def read(self) -> np.ndarray | None:
        return self._frame

    def release(self) -> None:
        self._frame = None


class StreamSource:
    """A live camera or video file delivering frames on demand."""

    kind = SourceKind.STREAM

    def __init__(
        self,
        config: CameraConfig,
        capture: CaptureProtocol | None = None,
    ) -> None:
        """Wrap a capture backend (OpenCV unless one is given)."""
        self.config = config
        self._capture: CaptureProtocol = capture or OpenCVCapture(config)
        self._width = 0
        self._height = 0
        self.failed_reads = 0

    def open(self) -> None:
        """Open the backend; failures surface synchronously."""
        if not self._capture.open():
            message = f"Cannot open stream: {self.describe()}"
            raise ResourceAcquisitionFailure(message)
        info = self._capture.get_info()
        self._width = int(info.get("width", 0))
        self._height = int(info.get("height", 0))

    def describe(self) -> str:
        if self.config.video_path is not None:
            return f"video {self.config.video_path}"
        return f"camera {self.config.device_index}"

    @property
    def dimensions(self) -> tuple[int, int]:
        return self._width, self._height

    def read(self) -> np.ndarray | None:
        ok, frame = self._capture.read()
        if not ok or frame is None:
            self.failed_reads += 1
            return None
        self.failed_reads = 0
        # Native resolution may change over the stream's lifetime.
        self._height, self._width = frame.shape[:2]
        return frame

    def is_opened(self) -> bool:
        return self._capture.is_opened()

    def get_info(self) -> dict:
        return self._capture.get_info()

    def release(self) -> None:
        self._capture.release()
