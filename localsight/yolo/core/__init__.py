"""Core YOLO utilities (constants, geometry, preprocess, postprocess, engine)."""

from __future__ import annotations

from localsight.yolo.core.constants import CLASS_NAMES, COLORS
from localsight.yolo.core.engine import InferenceEngine, OnnxEngine
from localsight.yolo.core.letterbox import (
    compute_letterbox,
    size_to_frame,
    to_frame,
    to_square,
)
from localsight.yolo.core.postprocess import (
    decode_boxes,
    iou,
    non_max_suppression,
    postprocess,
)
from localsight.yolo.core.preprocess import Preprocessor, infer_input_size


__all__ = [
    "CLASS_NAMES",
    "COLORS",
    "InferenceEngine",
    "OnnxEngine",
    "Preprocessor",
    "compute_letterbox",
    "decode_boxes",
    "infer_input_size",
    "iou",
    "non_max_suppression",
    "postprocess",
    "size_to_frame",
    "to_frame",
    "to_square",
]
