"""Unit tests for the single-flight frame scheduler."""

from __future__ import annotations

import asyncio

import pytest

from fakes import FakeClock, FakePipeline, FakeStreamSource, settle
from localsight.pipeline.errors import EngineUnavailable, InferenceFailure, InvalidFrame
from localsight.pipeline.scheduler import FrameScheduler
from localsight.pipeline.types import DetectorConfig, SchedulerPhase
from localsight.yolo.ui.draw import OverlaySurface


def _manual_config(min_interval_s: float = 0.08) -> DetectorConfig:
    # A near-zero refresh rate keeps the timer from firing so tests drive ticks.
    return DetectorConfig(min_interval_s=min_interval_s, refresh_hz=0.001)


def _scheduler(pipeline, source=None, *, clock=None, config=None, **kwargs):
    return FrameScheduler(
        pipeline,
        source or FakeStreamSource(),
        OverlaySurface(64, 48),
        config or _manual_config(),
        clock=clock or FakeClock(),
        **kwargs,
    )


class TestAdmission:
    """Tests for tick admission rules."""

    def test_single_flight(self) -> None:
        """No second run is admitted while one is in flight."""

        async def scenario() -> None:
            clock = FakeClock()
            pipeline = FakePipeline(gated=True)
            sched = _scheduler(pipeline, clock=clock)
            sched.start()

            assert sched.tick() is True
            await settle()
            assert sched.state.in_flight

            for _ in range(5):
                clock.advance(1.0)
                assert sched.tick() is False
            await settle()
            assert pipeline.calls == 1

            pipeline.release()
            await settle()
            assert not sched.state.in_flight
            assert pipeline.completed == 1

            clock.advance(1.0)
            assert sched.tick() is True
            sched.stop()

        asyncio.run(scenario())

    def test_min_interval_throttles(self) -> None:
        async def scenario() -> None:
            clock = FakeClock()
            pipeline = FakePipeline()
            sched = _scheduler(pipeline, clock=clock)
            sched.start()

            assert sched.tick() is True
            await settle()
            clock.advance(0.05)
            assert sched.tick() is False
            clock.advance(0.05)
            assert sched.tick() is True
            await settle()

            assert pipeline.calls == 2
            assert sched.state.frame_counter == 2
            sched.stop()

        asyncio.run(scenario())

    def test_last_run_recorded_at_admission(self) -> None:
        """The throttle window starts when a run is admitted, not when it ends."""

        async def scenario() -> None:
            clock = FakeClock(start=100.0)
            pipeline = FakePipeline(gated=True)
            sched = _scheduler(pipeline, clock=clock)
            sched.start()

            sched.tick()
            await settle()
            clock.advance(0.5)
            pipeline.release()
            await settle()

            assert sched.state.last_run_timestamp == 100.0
            assert sched.tick() is True
            sched.stop()

        asyncio.run(scenario())

    def test_not_ready_pipeline_is_skipped(self) -> None:
        """Frames still reach the display while the engine loads."""

        async def scenario() -> None:
            frames = []
            source = FakeStreamSource()
            pipeline = FakePipeline(ready=False)
            sched = _scheduler(pipeline, source, on_frame=frames.append)
            sched.start()

            assert sched.tick() is False
            await settle()

            assert pipeline.calls == 0
            assert sched.state.frame_counter == 0
            assert len(frames) == 1
            assert source.reads == 1
            sched.stop()

        asyncio.run(scenario())

    def test_missing_frame_is_skipped(self) -> None:
        async def scenario() -> None:
            source = FakeStreamSource()
            source.released = True
            pipeline = FakePipeline()
            sched = _scheduler(pipeline, source)
            sched.start()

            assert sched.tick() is False
            assert sched.perf_tracker.frame_count == 0
            sched.stop()

        asyncio.run(scenario())

    def test_tick_before_start_is_ignored(self) -> None:
        pipeline = FakePipeline()
        sched = _scheduler(pipeline)

        assert sched.tick() is False
        assert pipeline.calls == 0

    def test_start_requires_running_loop(self) -> None:
        sched = _scheduler(FakePipeline())

        with pytest.raises(RuntimeError):
            sched.start()


class TestFailures:
    """Tests for failure isolation."""

    @pytest.mark.parametrize(
        "error",
        [
            InferenceFailure("engine exploded"),
            InvalidFrame("empty"),
            EngineUnavailable("still loading"),
        ],
    )
    def test_failed_run_releases_admission(self, error: Exception) -> None:
        """A failing run clears the in-flight flag and the stream keeps going."""

        async def scenario() -> None:
            clock = FakeClock()
            results = []
            pipeline = FakePipeline(error=error)
            sched = _scheduler(
                pipeline, clock=clock, on_result=lambda d, ms: results.append(d)
            )
            sched.start()

            assert sched.tick() is True
            await settle()

            assert not sched.state.in_flight
            assert sched.active
            assert results == []
            assert sched.last_detections == []

            clock.advance(1.0)
            assert sched.tick() is True
            await settle()
            assert pipeline.calls == 2
            sched.stop()

        asyncio.run(scenario())


    def test_unexpected_pipeline_error_is_isolated(self) -> None:
        """Errors outside the pipeline's own hierarchy also release admission."""

        async def scenario() -> None:
            clock = FakeClock()
            pipeline = FakePipeline(error=OverflowError("cannot convert"))
            sched = _scheduler(pipeline, clock=clock)
            sched.start()

            assert sched.tick() is True
            await settle()

            assert not sched.state.in_flight
            assert sched._task.done()
            assert sched._task.exception() is None

            clock.advance(1.0)
            assert sched.tick() is True
            sched.stop()

        asyncio.run(scenario())

    def test_failing_tick_keeps_timer_running(self) -> None:
        """A tick that raises does not stop later ticks from being scheduled."""

        async def scenario() -> None:
            seen = []

            def on_frame(frame) -> None:
                seen.append(frame)
                if len(seen) == 1:
                    message = "display failed"
                    raise RuntimeError(message)

            source = FakeStreamSource()
            pipeline = FakePipeline()
            config = DetectorConfig(min_interval_s=0.0, refresh_hz=200.0)
            sched = FrameScheduler(
                pipeline, source, OverlaySurface(), config, on_frame=on_frame
            )
            sched.start()

            await asyncio.sleep(0.2)

            assert sched.active
            assert len(seen) >= 2
            assert pipeline.calls >= 1
            assert sched._tick_handle is not None
            sched.stop()

        asyncio.run(scenario())

    def test_non_positive_refresh_rate_is_rejected(self) -> None:
        async def scenario() -> None:
            sched = _scheduler(
                FakePipeline(), config=DetectorConfig(refresh_hz=0.0)
            )

            with pytest.raises(ValueError, match="refresh_hz"):
                sched.start()
            assert not sched.active

        asyncio.run(scenario())


class TestResults:
    """Tests for result delivery."""

    def test_on_result_receives_detections(self) -> None:
        async def scenario() -> None:
            results = []
            pipeline = FakePipeline()
            sched = _scheduler(
                pipeline, on_result=lambda d, ms: results.append((d, ms))
            )
            sched.start()

            sched.tick()
            await settle()

            assert len(results) == 1
            detections, elapsed_ms = results[0]
            assert len(detections) == 1
            assert elapsed_ms >= 0.0
            assert sched.last_detections == detections
            assert sched.last_inference_ms == elapsed_ms
            assert sched.perf_tracker.inference_count == 1
            sched.stop()

        asyncio.run(scenario())


class TestLifecycle:
    """Tests for start and stop."""

    def test_stop_tears_everything_down(self) -> None:
        async def scenario() -> None:
            source = FakeStreamSource()
            pipeline = FakePipeline(gated=True)
            sched = _scheduler(pipeline, source)
            sched.start()
            sched.overlay.fill_rect(0, 0, 10, 10, (0, 255, 0))

            sched.tick()
            await settle()
            task = sched._task
            sched.stop()
            await settle()

            assert task.cancelled()
            assert pipeline.completed == 0
            assert source.released
            assert sched.overlay.is_blank()
            assert sched.phase is SchedulerPhase.IDLE
            assert not sched.state.in_flight
            assert sched.state.frame_counter == 0
            assert sched.last_inference_ms is None
            assert sched.tick() is False

        asyncio.run(scenario())

    def test_stop_is_idempotent(self) -> None:
        async def scenario() -> None:
            source = FakeStreamSource()
            sched = _scheduler(FakePipeline(), source)
            sched.start()

            sched.stop()
            source.released = False
            sched.stop()

            assert not source.released

        asyncio.run(scenario())

    def test_timer_drives_ticks_until_stopped(self) -> None:
        """Ticks reschedule themselves at the refresh rate and stop cleanly."""

        async def scenario() -> None:
            source = FakeStreamSource()
            pipeline = FakePipeline()
            config = DetectorConfig(min_interval_s=0.0, refresh_hz=200.0)
            sched = FrameScheduler(pipeline, source, OverlaySurface(), config)
            sched.start()

            await asyncio.sleep(0.2)
            assert source.reads >= 2
            assert pipeline.calls >= 2

            sched.stop()
            calls, reads = pipeline.calls, source.reads
            await asyncio.sleep(0.05)

            assert pipeline.calls == calls
            assert source.reads == reads
            assert sched._tick_handle is None

        asyncio.run(scenario())

    def test_start_twice_is_noop(self) -> None:
        async def scenario() -> None:
            clock = FakeClock()
            sched = _scheduler(FakePipeline(), clock=clock)
            sched.start()
            sched.tick()
            await settle()

            sched.start()

            assert sched.state.frame_counter == 1
            sched.stop()

        asyncio.run(scenario())
