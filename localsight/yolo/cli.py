from __future__ import annotations

import argparse


def parse_args(argv: list | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="On-device YOLO object detection with a live overlay",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  localsight --camera 0
  localsight --video clip.mp4 --interval-ms 120
  localsight --image street.jpg --conf 0.4
		""",
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument("--image", type=str, help="Run detection once on an image")
    source.add_argument("--video", type=str, help="Stream detections over a video file")
    source.add_argument("--camera", type=int, default=0, help="Camera device index")

    parser.add_argument("--width", type=int, default=640)
    parser.add_argument("--height", type=int, default=480)
    parser.add_argument("--fps", type=int, default=30)
    parser.add_argument(
        "--no-loop",
        action="store_true",
        help="Stop at the end of a video file instead of rewinding",
    )
    parser.add_argument("--model", type=str, default="resources/models/yolo11s.onnx")
    parser.add_argument("--conf", type=float, default=0.25)
    parser.add_argument("--iou", type=float, default=0.45)
    parser.add_argument(
        "--size",
        type=int,
        default=0,
        help="Square model input size (0 reads it from the model)",
    )
    parser.add_argument(
        "--interval-ms",
        type=float,
        default=80.0,
        help="Minimum milliseconds between inference runs on a stream",
    )
    parser.add_argument("--refresh-hz", type=float, default=60.0)
    parser.add_argument(
        "--per-class-nms",
        action="store_true",
        help="Only suppress overlapping boxes of the same class",
    )
    parser.add_argument("--gpu", type=int, default=0)
    parser.add_argument("--no-display", action="store_true")
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Also write serialized JSONL logs",
    )
    parser.add_argument("--log-dir", type=str, default="logs")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )

    args = parser.parse_args(argv)
    if not 0.0 < args.conf < 1.0:
        parser.error("--conf must be between 0 and 1")
    if not 0.0 < args.iou < 1.0:
        parser.error("--iou must be between 0 and 1")
    if args.refresh_hz <= 0:
        parser.error("--refresh-hz must be positive")
    if args.interval_ms < 0:
        parser.error("--interval-ms must be non-negative")
    return args
