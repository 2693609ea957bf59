"""Post-processing utilities for YOLO model outputs."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from loguru import logger

from localsight.pipeline.errors import InferenceFailure
from localsight.pipeline.types import Detection


if TYPE_CHECKING:
    from collections.abc import Iterable

    from localsight.pipeline.types import LetterboxParams


def _channels_by_anchors(raw: np.ndarray) -> np.ndarray:
    data = np.asarray(raw)
    if data.ndim == 3:
        if data.shape[0] != 1:
            message = f"Batch > 1 is not supported (got shape {data.shape})"
            raise InferenceFailure(message)
        data = data[0]
    if data.ndim != 2 or data.shape[0] < 5:
        message = f"Unsupported detection output shape: {data.shape}"
        raise InferenceFailure(message)
    return data


def decode_boxes(
    raw: np.ndarray,
    conf_threshold: float,
    params: LetterboxParams,
) -> list[Detection]:
    """Decode a (4 + C, A) tensor into frame-space detections.

    Each anchor takes its best class (first maximum wins) and is kept when
    that probability is strictly above ``conf_threshold``. Anchors with a
    non-finite box value are dropped. Boxes are mapped back through the
    letterbox and are not clamped to the frame.
    """
    data = _channels_by_anchors(raw)
    class_scores = data[4:]
    if class_scores.shape[1] == 0:
        return []

    class_ids = np.argmax(class_scores, axis=0)
    scores = class_scores[class_ids, np.arange(class_scores.shape[1])]
    passing = scores > conf_threshold
    finite = np.isfinite(data[0:4]).all(axis=0)
    if (passing & ~finite).any():
        logger.warning(
            "Dropping {} anchors with non-finite box values",
            int((passing & ~finite).sum()),
        )
    keep = np.flatnonzero(passing & finite)
    if keep.size == 0:
        return []

    cx = (data[0, keep] - params.pad_x) / params.scale
    cy = (data[1, keep] - params.pad_y) / params.scale
    half_w = data[2, keep] / params.scale / 2
    half_h = data[3, keep] / params.scale / 2

    return [
        Detection(
            x1=float(x - w),
            y1=float(y - h),
            x2=float(x + w),
            y2=float(y + h),
            score=float(score),
            class_index=int(cls_id),
        )
        for x, y, w, h, score, cls_id in zip(
            cx, cy, half_w, half_h, scores[keep], class_ids[keep], strict=True
        )
    ]


def iou(a: Detection, b: Detection) -> float:
    """Intersection over union of two boxes; 0 when the union is empty."""
    inter_w = max(0.0, min(a.x2, b.x2) - max(a.x1, b.x1))
    inter_h = max(0.0, min(a.y2, b.y2) - max(a.y1, b.y1))
    inter = inter_w * inter_h
    union = a.area + b.area - inter
    if union <= 0.0:
        return 0.0
    return inter / union


def non_max_suppression(
    candidates: Iterable[Detection],
    iou_threshold: float = 0.45,
    *,
    class_agnostic: bool = True,
) -> list[Detection]:
    """Greedy NMS returning survivors in descending score order.

    Suppression ignores class labels unless ``class_agnostic`` is False.
    """
    remaining = sorted(candidates, key=lambda det: det.score, reverse=True)
    kept: list[Detection] = []

    while remaining:
        best = remaining.pop(0)
        kept.append(best)
        remaining = [
            det
            for det in remaining
            if (not class_agnostic and det.class_index != best.class_index)
            or iou(best, det) <= iou_threshold
        ]

    return kept


def postprocess(
    outputs: dict[str, np.ndarray],
    params: LetterboxParams,
    *,
    output_name: str = "output0",
    conf_threshold: float = 0.25,
    iou_threshold: float = 0.45,
    class_agnostic: bool = True,
    debug_output: bool = False,
) -> list[Detection]:
    """Decode and suppress the named output of one inference call."""
    if output_name not in outputs:
        message = f"Model output {output_name!r} missing (got {sorted(outputs)})"
        raise InferenceFailure(message)

    raw = outputs[output_name]
    if debug_output:
        logger.info("Model outputs: {}", {k: np.shape(v) for k, v in outputs.items()})

    candidates = decode_boxes(raw, conf_threshold, params)
    detections = non_max_suppression(
        candidates, iou_threshold, class_agnostic=class_agnostic
    )
    logger.trace(
        "Decoded {} candidates, {} after NMS", len(candidates), len(detections)
    )
    return detections
