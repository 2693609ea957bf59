"""Detection session owning the single active source."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from loguru import logger

from localsight.pipeline.errors import InvalidFrame
from localsight.pipeline.scheduler import FrameScheduler
from localsight.pipeline.types import SourceKind
from localsight.yolo.ui.draw import OverlaySurface


if TYPE_CHECKING:
    from collections.abc import Callable

    import numpy as np

    from localsight.pipeline.capture.core import ImageSource, StreamSource
    from localsight.pipeline.types import Detection
    from localsight.yolo.detector import DetectionPipeline


class DetectionSession:
    """Route frames from exactly one source (image XOR stream) to the pipeline."""

    def __init__(
        self,
        pipeline: DetectionPipeline,
        overlay: OverlaySurface | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.pipeline = pipeline
        self.overlay = overlay or OverlaySurface()
        self.scheduler: FrameScheduler | None = None
        self.image: ImageSource | None = None
        self.last_frame: np.ndarray | None = None
        self.last_inference_ms: float | None = None
        self._clock = clock

    @property
    def active_kind(self) -> SourceKind | None:
        if self.scheduler is not None and self.scheduler.active:
            return SourceKind.STREAM
        if self.image is not None:
            return SourceKind.IMAGE
        return None

    def _remember_frame(self, frame: np.ndarray) -> None:
        self.last_frame = frame

    def start_stream(
        self,
        source: StreamSource,
        on_result: Callable[[list[Detection], float], None] | None = None,
    ) -> FrameScheduler:
        """Open a stream and start scheduling; must run inside an event loop.

        Raises ResourceAcquisitionFailure without starting any loop when the
        source cannot be opened.
        """
        self.stop()
        source.open()
        logger.info("Stream ready: {}", source.describe())

        self.scheduler = FrameScheduler(
            self.pipeline,
            source,
            self.overlay,
            self.pipeline.config,
            clock=self._clock,
            on_frame=self._remember_frame,
            on_result=on_result,
        )
        self.scheduler.start()
        return self.scheduler

    async def detect_image(self, image: ImageSource) -> list[Detection]:
        """Stop any stream, then run the pipeline once on a still image."""
        self.stop()
        self.image = image

        frame = image.read()
        if frame is None:
            message = "Image source has no frame"
            raise InvalidFrame(message)
        self.last_frame = frame

        start = time.perf_counter()
        detections = await self.pipeline.run(frame, self.overlay)
        self.last_inference_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "Image {}: {} detections in {:.1f} ms",
            image.name,
            len(detections),
            self.last_inference_ms,
        )
        return detections

    def stop(self) -> None:
        """Stop the active stream or drop the active image."""
        if self.scheduler is not None:
            self.scheduler.stop()
            self.scheduler = None
        if self.image is not None:
            self.image.release()
            self.image = None
        self.overlay.clear()
        self.last_frame = None
        self.last_inference_ms = None
