"""Letterbox geometry shared by preprocessing and box decoding."""

from __future__ import annotations

from localsight.pipeline.errors import InvalidFrame
from localsight.pipeline.types import LetterboxParams


def compute_letterbox(
    frame_width: int, frame_height: int, target_size: int = 640
) -> LetterboxParams:
    """Fit a frame into a square target, preserving aspect ratio."""
    if frame_width <= 0 or frame_height <= 0:
        message = f"Frame has no area: {frame_width}x{frame_height}"
        raise InvalidFrame(message)

    scale = min(target_size / frame_width, target_size / frame_height)
    pad_x = (target_size - frame_width * scale) / 2
    pad_y = (target_size - frame_height * scale) / 2
    return LetterboxParams(
        scale=scale,
        pad_x=max(0.0, pad_x),
        pad_y=max(0.0, pad_y),
        target_size=target_size,
    )


def to_square(params: LetterboxParams, x: float, y: float) -> tuple[float, float]:
    """Map a frame point into square (model input) space."""
    return x * params.scale + params.pad_x, y * params.scale + params.pad_y


def to_frame(params: LetterboxParams, x: float, y: float) -> tuple[float, float]:
    """Map a square-space point back to frame coordinates."""
    return (x - params.pad_x) / params.scale, (y - params.pad_y) / params.scale


def size_to_frame(
    params: LetterboxParams, width: float, height: float
) -> tuple[float, float]:
    """Map a square-space extent back to frame units."""
    return width / params.scale, height / params.scale
