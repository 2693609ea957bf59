"""Overlay surface and detection rendering."""

from __future__ import annotations

from typing import TYPE_CHECKING

import cv2
import numpy as np

from localsight.yolo.core.constants import CLASS_NAMES, COLORS, UNKNOWN_LABEL


if TYPE_CHECKING:
    from collections.abc import Sequence

    from localsight.pipeline.types import Detection, PerformanceMetrics


FONT = cv2.FONT_HERSHEY_SIMPLEX
TEXT_COLOR = (0, 0, 0)
CHIP_PADDING = 3


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


class OverlaySurface:
    """Transparent BGRA drawing surface sized to the frame."""

    def __init__(self, width: int = 0, height: int = 0) -> None:
        self._pixels = np.zeros((max(0, height), max(0, width), 4), dtype=np.uint8)

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    def resize(self, width: int, height: int) -> None:
        """Match the frame's native size; reallocating clears the surface."""
        if (width, height) == (self.width, self.height):
            return
        self._pixels = np.zeros((max(0, height), max(0, width), 4), dtype=np.uint8)

    def clear(self) -> None:
        self._pixels[:] = 0

    def pixels(self) -> np.ndarray:
        """Read back the BGRA pixel buffer (a copy)."""
        return self._pixels.copy()

    def is_blank(self) -> bool:
        return not self._pixels[..., 3].any()

    def fill_rect(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        color: tuple[int, int, int],
    ) -> None:
        cv2.rectangle(
            self._pixels,
            (int(round(x1)), int(round(y1))),
            (int(round(x2)), int(round(y2))),
            (*color, 255),
            -1,
        )

    def stroke_rect(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        color: tuple[int, int, int],
        line_width: int,
    ) -> None:
        cv2.rectangle(
            self._pixels,
            (int(round(x1)), int(round(y1))),
            (int(round(x2)), int(round(y2))),
            (*color, 255),
            max(1, int(line_width)),
            cv2.LINE_AA,
        )

    @staticmethod
    def measure_text(text: str, font_px: float, thickness: int = 2) -> tuple[int, int]:
        scale = cv2.getFontScaleFromHeight(FONT, int(round(font_px)), thickness)
        (tw, th), _ = cv2.getTextSize(text, FONT, scale, thickness)
        return int(tw), int(th)

    def draw_text(
        self,
        text: str,
        x: float,
        top: float,
        font_px: float,
        color: tuple[int, int, int],
        thickness: int = 2,
    ) -> None:
        """Draw text whose top edge sits at ``top``."""
        scale = cv2.getFontScaleFromHeight(FONT, int(round(font_px)), thickness)
        _, th = self.measure_text(text, font_px, thickness)
        cv2.putText(
            self._pixels,
            text,
            (int(round(x)), int(round(top)) + th),
            FONT,
            scale,
            (*color, 255),
            thickness,
            cv2.LINE_AA,
        )


def format_label(
    class_index: int, score: float, class_names: Sequence[str] = CLASS_NAMES
) -> str:
    """Return ``"<name> <percent>%"`` with the percentage rounded half up."""
    if 0 <= class_index < len(class_names):
        name = class_names[class_index]
    else:
        name = UNKNOWN_LABEL
    return f"{name} {int(score * 100 + 0.5)}%"


def render_detections(
    surface: OverlaySurface,
    detections: Sequence[Detection],
    class_names: Sequence[str] = CLASS_NAMES,
) -> None:
    """Clear the surface, then draw one outlined box and label chip per detection."""

    surface.clear()
    if surface.width == 0 or surface.height == 0:
        return

    line_width = int(round(_clamp(surface.width / 150, 2, 8)))
    font_px = _clamp(surface.width / 50, 14, 24)
    chip_h = font_px + 2 * CHIP_PADDING

    for det in detections:
        color = COLORS[det.class_index % len(COLORS)]
        text = format_label(det.class_index, det.score, class_names)

        surface.stroke_rect(det.x1, det.y1, det.x2, det.y2, color, line_width)

        text_w, _ = surface.measure_text(text, font_px)
        label_y = det.y1 - chip_h
        if label_y < 0:
            label_y = det.y1
        surface.fill_rect(
            det.x1, label_y, det.x1 + text_w + 2 * CHIP_PADDING, label_y + chip_h, color
        )
        surface.draw_text(
            text, det.x1 + CHIP_PADDING, label_y + CHIP_PADDING, font_px, TEXT_COLOR
        )


def composite(frame: np.ndarray, surface: OverlaySurface) -> np.ndarray:
    """Alpha-blend the overlay onto a copy of a BGR frame."""
    if surface.height != frame.shape[0] or surface.width != frame.shape[1]:
        return frame.copy()

    overlay = surface.pixels()
    alpha = overlay[..., 3:4].astype(np.float32) / 255.0
    blended = frame.astype(np.float32) * (1.0 - alpha) + overlay[..., :3] * alpha
    return blended.astype(np.uint8)


def draw_status(
    frame: np.ndarray,
    perf_metrics: PerformanceMetrics,
    detections_count: int,
    inference_ms: float | None = None,
) -> np.ndarray:
    """Draw inference latency and detection count in the top-left corner."""
    latency = perf_metrics.inference_ms if inference_ms is None else inference_ms
    lines = [
        f"Inference: {latency:.1f} ms",
        f"Display: {perf_metrics.camera_fps:.1f} FPS",
        f"Detections: {detections_count}",
    ]
    y_offset = 25
    for line in lines:
        cv2.putText(frame, line, (10, y_offset), FONT, 0.6, (0, 255, 255), 2)
        y_offset += 24
    return frame
