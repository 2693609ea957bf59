"""OpenCV capture backend for cameras and video files."""

from __future__ import annotations

from contextlib import suppress
from typing import TYPE_CHECKING

import cv2
from loguru import logger


if TYPE_CHECKING:
    import numpy as np

    from localsight.pipeline.types import CameraConfig


class OpenCVCapture:
    """OpenCV video capture wrapper."""

    def __init__(self, config: CameraConfig) -> None:
        """Create an OpenCV capture instance."""
        self.config = config
        self.cap: cv2.VideoCapture | None = None
        self.actual_width = 0
        self.actual_height = 0
        self.actual_fps = 0.0

    @property
    def is_file(self) -> bool:
        return self.config.video_path is not None

    def open(self) -> bool:
        """Open the camera device or video file."""
        if self.is_file:
            logger.info("Opening video file {} with OpenCV...", self.config.video_path)
            self.cap = cv2.VideoCapture(self.config.video_path)
        else:
            logger.info("Opening camera {} with OpenCV...", self.config.device_index)
            self.cap = cv2.VideoCapture(self.config.device_index)

        if not self.cap.isOpened():
            logger.error("Cannot open capture source with OpenCV!")
            self.cap.release()
            self.cap = None
            return False

        if not self.is_file:
            self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
            self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)
            self.cap.set(cv2.CAP_PROP_FPS, self.config.fps)
            with suppress(Exception):
                self.cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        self.actual_width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.actual_height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        self.actual_fps = float(self.cap.get(cv2.CAP_PROP_FPS))

        logger.success(
            "Capture opened: {}x{} @ {:.1f} FPS",
            self.actual_width,
            self.actual_height,
            self.actual_fps,
        )
        return True

    def read(self) -> tuple[bool, np.ndarray | None]:
        """Read a frame, rewinding looped video files at the end."""
        if self.cap is None:
            return False, None
        ok, frame = self.cap.read()
        if not ok and self.is_file and self.config.loop:
            logger.debug("End of video reached; rewinding")
            self.cap.set(cv2.CAP_PROP_POS_FRAMES, 0)
            ok, frame = self.cap.read()
        return ok, frame

    def release(self) -> None:
        """Release the OpenCV capture handle."""
        if self.cap:
            self.cap.release()
            self.cap = None

    def is_opened(self) -> bool:
        """Return True if the capture is open."""
        return self.cap is not None and self.cap.isOpened()

    def get_info(self) -> dict:
        """Return backend metadata for diagnostics."""
        if self.is_file:
            pipeline = f"OpenCV file ({self.config.video_path})"
        else:
            pipeline = f"OpenCV device {self.config.device_index}"
        return {
            "backend": "OpenCV",
            "pipeline": pipeline,
            "width": self.actual_width,
            "height": self.actual_height,
            "fps": self.actual_fps,
        }
