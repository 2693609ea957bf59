"""Overlay rendering for detections."""

from __future__ import annotations

from localsight.yolo.ui.draw import (
    OverlaySurface,
    composite,
    draw_status,
    format_label,
    render_detections,
)


__all__ = [
    "OverlaySurface",
    "composite",
    "draw_status",
    "format_label",
    "render_detections",
]
