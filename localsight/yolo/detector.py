"""One-shot detection pipeline: letterbox, infer, decode, suppress, render."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from localsight.pipeline.errors import (
    EngineUnavailable,
    InferenceFailure,
    InvalidFrame,
    LocalSightError,
)
from localsight.pipeline.types import DetectorConfig
from localsight.yolo.core.constants import CLASS_NAMES
from localsight.yolo.core.letterbox import compute_letterbox
from localsight.yolo.core.postprocess import postprocess
from localsight.yolo.core.preprocess import Preprocessor
from localsight.yolo.ui.draw import render_detections


if TYPE_CHECKING:
    from collections.abc import Sequence

    import numpy as np

    from localsight.pipeline.types import Detection
    from localsight.yolo.core.engine import InferenceEngine
    from localsight.yolo.ui.draw import OverlaySurface


class DetectionPipeline:
    """Run the full frame-to-overlay pipeline for a single frame."""

    def __init__(
        self,
        engine: InferenceEngine,
        config: DetectorConfig | None = None,
        class_names: Sequence[str] = CLASS_NAMES,
    ) -> None:
        self.engine = engine
        self.config = config or DetectorConfig()
        self.class_names = class_names
        self.preprocessor = Preprocessor(
            target_size=self.config.target_size, pad_value=self.config.pad_value
        )
        self._output_shape_logged = False

    @property
    def ready(self) -> bool:
        return bool(self.engine.ready)

    async def run(self, frame: np.ndarray, overlay: OverlaySurface) -> list[Detection]:
        """Detect objects in ``frame`` and draw them onto ``overlay``.

        Raises:
            EngineUnavailable: the engine has not finished loading.
            InvalidFrame: the frame is missing or has a zero dimension.
            InferenceFailure: the engine errored or returned malformed output.
        """
        if not self.ready:
            message = "Inference engine is not ready"
            raise EngineUnavailable(message)
        if frame is None:
            message = "No frame available"
            raise InvalidFrame(message)

        height, width = frame.shape[:2]
        size = self.config.target_size
        params = compute_letterbox(width, height, size)
        overlay.resize(width, height)

        flat, params = self.preprocessor(frame, params)
        inputs = {self.engine.input_name: flat.reshape(1, 3, size, size)}

        try:
            outputs = await self.engine.run(inputs)
        except LocalSightError:
            raise
        except Exception as exc:
            message = f"Engine call failed: {exc}"
            raise InferenceFailure(message) from exc

        detections = postprocess(
            outputs,
            params,
            output_name=self.config.output_name,
            conf_threshold=self.config.conf_threshold,
            iou_threshold=self.config.iou_threshold,
            class_agnostic=self.config.class_agnostic_nms,
            debug_output=not self._output_shape_logged,
        )
        self._output_shape_logged = True

        render_detections(overlay, detections, self.class_names)
        logger.debug("Frame {}x{}: {} detections", width, height, len(detections))
        return detections
