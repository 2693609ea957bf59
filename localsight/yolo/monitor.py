"""Main entry point for the on-device detection monitor."""

from __future__ import annotations

import asyncio
import platform
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import cv2
import onnxruntime as ort
from loguru import logger

from localsight.pipeline.capture import ImageSource, StreamSource
from localsight.pipeline.errors import (
    EngineUnavailable,
    InferenceFailure,
    InvalidFrame,
    MonitorInitError,
    ResourceAcquisitionFailure,
)
from localsight.pipeline.logging import configure_logging
from localsight.pipeline.metrics import SystemMonitor
from localsight.pipeline.types import CameraConfig, DetectorConfig
from localsight.yolo.cli import parse_args
from localsight.yolo.core.engine import OnnxEngine
from localsight.yolo.detector import DetectionPipeline
from localsight.yolo.session import DetectionSession
from localsight.yolo.ui.draw import composite, draw_status, format_label


if TYPE_CHECKING:
    import argparse

    import numpy as np

    from localsight.pipeline.scheduler import FrameScheduler


WINDOW_TITLE = "LocalSight Detection"
# Consecutive empty reads after which a stream is considered finished.
MAX_FAILED_READS = 60


@dataclass
class MonitorContext:
    """Static context for running the monitor."""

    args: argparse.Namespace
    engine: OnnxEngine
    pipeline: DetectionPipeline
    session: DetectionSession
    system_monitor: SystemMonitor


@dataclass
class LogState:
    """Timestamps for throttled log output."""

    last_log_time: float = field(default_factory=time.perf_counter)
    detections: int = 0


def build_detector_config(args: argparse.Namespace, input_size: int) -> DetectorConfig:
    """Translate CLI arguments into a detector configuration."""
    return DetectorConfig(
        target_size=args.size or input_size,
        conf_threshold=args.conf,
        iou_threshold=args.iou,
        min_interval_s=args.interval_ms / 1000.0,
        refresh_hz=args.refresh_hz,
        class_agnostic_nms=not args.per_class_nms,
    )


def build_camera_config(args: argparse.Namespace) -> CameraConfig:
    return CameraConfig(
        device_index=args.camera,
        width=args.width,
        height=args.height,
        fps=args.fps,
        video_path=args.video,
        loop=not args.no_loop,
    )


def _build_context(args: argparse.Namespace) -> MonitorContext:
    logger.info("=" * 60)
    logger.info("LocalSight on-device object detection")
    logger.info("=" * 60)
    logger.info("Platform: {} {}", platform.system(), platform.release())
    logger.info("Python: {}", platform.python_version())
    logger.info("OpenCV: {}", cv2.__version__)
    logger.info("ONNX Runtime: {}", ort.__version__)

    engine = OnnxEngine(args.model, gpu=args.gpu)
    try:
        engine.load()
    except Exception as exc:
        logger.error("Failed to load model: {}", exc)
        message = "Failed to load model"
        raise MonitorInitError(message) from exc

    config = build_detector_config(args, engine.input_size)
    logger.info(
        "Input {}px | conf {:.2f} | iou {:.2f} | min interval {:.0f} ms",
        config.target_size,
        config.conf_threshold,
        config.iou_threshold,
        config.min_interval_s * 1000,
    )
    pipeline = DetectionPipeline(engine, config)
    return MonitorContext(
        args=args,
        engine=engine,
        pipeline=pipeline,
        session=DetectionSession(pipeline),
        system_monitor=SystemMonitor(),
    )


def _show(frame: np.ndarray, ctx: MonitorContext, count: int, wait_ms: int = 1) -> bool:
    """Display the frame with the overlay; return False when quit is requested."""
    view = composite(frame, ctx.session.overlay)
    metrics = (
        ctx.session.scheduler.perf_tracker.get_metrics()
        if ctx.session.scheduler is not None
        else None
    )
    if metrics is not None:
        draw_status(view, metrics, count, ctx.session.scheduler.last_inference_ms)
    cv2.imshow(WINDOW_TITLE, view)
    if cv2.waitKey(wait_ms) & 0xFF == ord("q"):
        logger.info("Quit requested by user")
        return False
    return True


def _log_periodic_metrics(
    scheduler: FrameScheduler, system_monitor: SystemMonitor, log_state: LogState
) -> None:
    current_time = time.perf_counter()
    if current_time - log_state.last_log_time < 2.0:
        return
    metrics = scheduler.perf_tracker.get_metrics()
    stats = system_monitor.get_stats()
    logger.info(
        "Display: {:.1f} FPS | Inference: {:.1f}ms | Throughput: {:.1f} FPS | "
        "Detections: {} | CPU: {:.0f}% (proc {:.0f}%) | RAM: {:.1f}/{:.1f} GB",
        metrics.camera_fps,
        metrics.inference_ms,
        metrics.actual_throughput_fps,
        log_state.detections,
        stats.cpu_percent,
        stats.process_cpu_percent,
        stats.ram_used_gb,
        stats.ram_total_gb,
    )
    log_state.last_log_time = current_time


async def _run_image(ctx: MonitorContext) -> int:
    try:
        image = ImageSource.from_path(ctx.args.image)
    except ResourceAcquisitionFailure as exc:
        logger.error("{}", exc)
        return 1

    try:
        detections = await ctx.session.detect_image(image)
    except (InvalidFrame, EngineUnavailable, InferenceFailure) as exc:
        logger.error("Detection failed: {}", exc)
        return 1

    for det in detections:
        logger.info(
            "{} at ({:.0f}, {:.0f}, {:.0f}, {:.0f})",
            format_label(det.class_index, det.score, ctx.pipeline.class_names),
            *det.as_xyxy(),
        )

    if not ctx.args.no_display and ctx.session.last_frame is not None:
        view = composite(ctx.session.last_frame, ctx.session.overlay)
        cv2.imshow(WINDOW_TITLE, view)
        cv2.waitKey(0)
    ctx.session.stop()
    return 0


async def _run_stream(ctx: MonitorContext) -> int:
    source = StreamSource(build_camera_config(ctx.args))
    log_state = LogState()

    def _on_result(detections: list, _elapsed_ms: float) -> None:
        log_state.detections = len(detections)

    try:
        scheduler = ctx.session.start_stream(source, on_result=_on_result)
    except ResourceAcquisitionFailure as exc:
        logger.error("{}", exc)
        return 1

    logger.info("-" * 60)
    logger.info("Starting detection loop. Press 'q' to quit.")
    logger.info("-" * 60)

    try:
        while scheduler.active:
            await asyncio.sleep(scheduler.tick_interval)
            if source.failed_reads >= MAX_FAILED_READS:
                logger.warning("No frames from {}; stopping", source.describe())
                break
            _log_periodic_metrics(scheduler, ctx.system_monitor, log_state)
            frame = ctx.session.last_frame
            if ctx.args.no_display or frame is None:
                continue
            if not _show(frame, ctx, log_state.detections):
                break
    finally:
        final_metrics = scheduler.perf_tracker.get_metrics()
        logger.info("=" * 60)
        logger.info("Session Summary")
        logger.info("Source: {}", source.describe())
        logger.info("Pipeline runs: {}", scheduler.state.frame_counter)
        logger.info("Avg display rate: {:.1f} FPS", final_metrics.camera_fps)
        logger.info("Avg inference: {:.1f}ms", final_metrics.inference_ms)
        logger.info("Avg throughput: {:.1f} FPS", final_metrics.actual_throughput_fps)
        stats = ctx.system_monitor.get_stats()
        logger.info("Process memory: {:.0f} MB", stats.process_rss_mb)
        ctx.session.stop()
        if not ctx.args.no_display:
            cv2.destroyAllWindows()
        logger.success("Cleanup complete. Goodbye!")
    return 0


def run_detector(argv: list[str] | None = None) -> int:
    """Entry point for running the detection monitor."""
    args = parse_args(argv)
    configure_logging(args.log_level, args.log_dir, json_logs=args.json_logs)
    try:
        ctx = _build_context(args)
    except MonitorInitError:
        return 1

    runner = _run_image if args.image else _run_stream
    try:
        return asyncio.run(runner(ctx))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0


def main() -> None:
    raise SystemExit(run_detector())


if __name__ == "__main__":
    main()
