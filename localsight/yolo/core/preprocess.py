"""Frame preprocessing into the planar float tensor the model expects."""

from __future__ import annotations

from typing import TYPE_CHECKING

import cv2
import numpy as np

from localsight.pipeline.errors import InvalidFrame
from localsight.yolo.core.letterbox import compute_letterbox


if TYPE_CHECKING:
    from localsight.pipeline.types import LetterboxParams


def infer_input_size(input_shape: list[object] | None, default: int = 640) -> int:
    """Infer the square input side from an ONNX input shape."""

    if not input_shape or len(input_shape) < 4:
        return default

    height = input_shape[-2]
    width = input_shape[-1]

    if isinstance(height, int) and isinstance(width, int) and height == width:
        return height

    return default


class Preprocessor:
    """Letterbox a frame onto a reused gray square and normalize it.

    The scratch square is allocated once and fully overwritten on every
    call, so consecutive calls never see each other's pixels.
    """

    def __init__(self, target_size: int = 640, pad_value: int = 114) -> None:
        self.pad_value = pad_value
        self._scratch = np.empty((0, 0, 3), dtype=np.uint8)
        self.target_size = target_size

    @property
    def target_size(self) -> int:
        return self._target_size

    @target_size.setter
    def target_size(self, value: int) -> None:
        self._target_size = int(value)
        if self._scratch.shape[:2] != (value, value):
            self._scratch = np.empty((value, value, 3), dtype=np.uint8)

    def __call__(
        self,
        frame: np.ndarray,
        params: LetterboxParams | None = None,
    ) -> tuple[np.ndarray, LetterboxParams]:
        """Return (flat planar RGB tensor in [0, 1], letterbox params)."""
        if frame is None or frame.ndim != 3 or frame.shape[2] != 3:
            message = "Frame must be an HxWx3 array"
            raise InvalidFrame(message)

        height, width = frame.shape[:2]
        if params is None:
            params = compute_letterbox(width, height, self._target_size)

        size = self._target_size
        new_w = min(size, max(1, int(round(width * params.scale))))
        new_h = min(size, max(1, int(round(height * params.scale))))
        left = min(size - new_w, int(round(params.pad_x)))
        top = min(size - new_h, int(round(params.pad_y)))

        square = self._scratch
        square[:] = self.pad_value
        square[top : top + new_h, left : left + new_w] = cv2.resize(
            frame, (new_w, new_h), interpolation=cv2.INTER_LINEAR
        )

        # HWC BGR -> CHW RGB, flattened channel by channel.
        planar = square[:, :, ::-1].transpose(2, 0, 1)
        tensor = np.ascontiguousarray(planar, dtype=np.float32)
        tensor /= 255.0
        return tensor.reshape(-1), params
