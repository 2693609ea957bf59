"""Single-flight, throttled scheduling of pipeline runs over a live stream."""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Protocol

from loguru import logger

from localsight.pipeline.errors import EngineUnavailable, InferenceFailure, InvalidFrame
from localsight.pipeline.metrics.performance import PerformanceTracker
from localsight.pipeline.types import DetectorConfig, SchedulerPhase, SchedulerState


if TYPE_CHECKING:
    from collections.abc import Callable

    import numpy as np

    from localsight.pipeline.capture.core import FrameSource
    from localsight.pipeline.types import Detection


# Inference latency shown to the user is refreshed every N admitted frames.
DISPLAY_REFRESH_FRAMES = 5


class PipelineProtocol(Protocol):
    """What the scheduler needs from a detection pipeline."""

    @property
    def ready(self) -> bool:
        """Return True when the pipeline may run."""
        ...

    async def run(self, frame: np.ndarray, overlay: object) -> list[Detection]:
        """Run the pipeline for one frame."""
        ...


class OverlayProtocol(Protocol):
    def clear(self) -> None:
        """Erase everything drawn on the surface."""
        ...


class FrameScheduler:
    """Drive a pipeline over a stream at a bounded rate.

    Ticks fire at the display refresh cadence. A tick admits a pipeline run
    only when ``min_interval_s`` has elapsed since the last admitted run and
    no run is in flight; every other tick is dropped, never queued.
    """

    def __init__(
        self,
        pipeline: PipelineProtocol,
        source: FrameSource,
        overlay: OverlayProtocol,
        config: DetectorConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        on_frame: Callable[[np.ndarray], None] | None = None,
        on_result: Callable[[list[Detection], float], None] | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.source = source
        self.overlay = overlay
        self.config = config or DetectorConfig()
        self._clock = clock
        self._on_frame = on_frame
        self._on_result = on_result

        self.state = SchedulerState()
        self.phase = SchedulerPhase.IDLE
        self.perf_tracker = PerformanceTracker()
        self.last_inference_ms: float | None = None
        self.last_detections: list[Detection] = []

        self._tick_handle: asyncio.TimerHandle | None = None
        self._task: asyncio.Task | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def active(self) -> bool:
        return self.phase is SchedulerPhase.ACTIVE

    @property
    def tick_interval(self) -> float:
        return 1.0 / self.config.refresh_hz if self.config.refresh_hz > 0 else 0.0

    def start(self) -> None:
        """Begin ticking on the running event loop."""
        if self.phase is not SchedulerPhase.IDLE:
            return
        if self.config.refresh_hz <= 0:
            message = f"refresh_hz must be positive (got {self.config.refresh_hz})"
            raise ValueError(message)
        self._loop = asyncio.get_running_loop()
        self.state = SchedulerState()
        self.perf_tracker.reset()
        self.phase = SchedulerPhase.ACTIVE
        logger.info(
            "Scheduler started (min interval {:.0f} ms, refresh {:.0f} Hz)",
            self.config.min_interval_s * 1000,
            self.config.refresh_hz,
        )
        self._schedule_next()

    def _schedule_next(self) -> None:
        if self._loop is None or not self.active:
            return
        self._tick_handle = self._loop.call_later(self.tick_interval, self._on_tick)

    def _on_tick(self) -> None:
        self._tick_handle = None
        if not self.active:
            return
        try:
            self.tick()
        except Exception:
            logger.exception("Tick failed; continuing with the next one")
        finally:
            self._schedule_next()

    def tick(self) -> bool:
        """Handle one refresh tick; return True when a run was admitted."""
        if not self.active:
            return False

        frame = self.source.read()
        if frame is None:
            return False
        self.perf_tracker.tick_frame()
        if self._on_frame is not None:
            self._on_frame(frame)

        state = self.state
        now = self._clock()
        if state.in_flight:
            return False
        if now - state.last_run_timestamp < self.config.min_interval_s:
            return False
        if not self.pipeline.ready:
            logger.debug("Engine not ready; skipping tick")
            return False

        state.in_flight = True
        state.last_run_timestamp = now
        state.frame_counter += 1
        self._task = asyncio.ensure_future(self._execute(frame, state))
        return True

    async def _execute(self, frame: np.ndarray, state: SchedulerState) -> None:
        start = time.perf_counter()
        try:
            detections = await self.pipeline.run(frame, self.overlay)
        except InvalidFrame as exc:
            logger.debug("Skipping frame: {}", exc)
        except EngineUnavailable as exc:
            logger.debug("Engine unavailable: {}", exc)
        except InferenceFailure as exc:
            logger.warning("Inference failed on frame {}: {}", state.frame_counter, exc)
        except Exception:
            logger.exception("Unexpected error on frame {}", state.frame_counter)
        else:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self.perf_tracker.add_inference_time(elapsed_ms)
            self.last_detections = detections
            if (
                self.last_inference_ms is None
                or state.frame_counter % DISPLAY_REFRESH_FRAMES == 0
            ):
                self.last_inference_ms = elapsed_ms
            if self._on_result is not None:
                self._on_result(detections, elapsed_ms)
        finally:
            state.in_flight = False

    def stop(self) -> None:
        """Cancel pending work, release the source and reset state.

        Synchronous: the next tick is cancelled before the source is
        released so no tick can run against a torn-down source.
        """
        if self.phase is SchedulerPhase.IDLE:
            return
        self.phase = SchedulerPhase.STOPPING

        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

        self.source.release()
        self.overlay.clear()
        frames = self.state.frame_counter
        self.state = SchedulerState()
        self.last_detections = []
        self.last_inference_ms = None
        self._loop = None
        self.phase = SchedulerPhase.IDLE
        logger.info("Scheduler stopped after {} pipeline runs", frames)
