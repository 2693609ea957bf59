from __future__ import annotations

import importlib

from localsight.yolo.cli import parse_args
from localsight.yolo.core.constants import CLASS_NAMES, COLORS
from localsight.yolo.core.engine import InferenceEngine, OnnxEngine
from localsight.yolo.core.letterbox import compute_letterbox, to_frame, to_square
from localsight.yolo.core.postprocess import decode_boxes, iou, non_max_suppression
from localsight.yolo.core.preprocess import Preprocessor, infer_input_size
from localsight.yolo.detector import DetectionPipeline
from localsight.yolo.session import DetectionSession
from localsight.yolo.ui.draw import OverlaySurface, composite, render_detections


def run_detector(*args: object, **kwargs: object) -> int:
    """Run the detector entry point via lazy import."""
    module = importlib.import_module("localsight.yolo.monitor")
    return module.run_detector(*args, **kwargs)


__all__ = [
    "CLASS_NAMES",
    "COLORS",
    "DetectionPipeline",
    "DetectionSession",
    "InferenceEngine",
    "OnnxEngine",
    "OverlaySurface",
    "Preprocessor",
    "composite",
    "compute_letterbox",
    "decode_boxes",
    "infer_input_size",
    "iou",
    "non_max_suppression",
    "parse_args",
    "render_detections",
    "run_detector",
    "to_frame",
    "to_square",
]
