import threading
import time
from datetime import datetime, timedelta
from typing import List, Optional

import numpy as np
import pytest

from grab_push.adaptors.video.frame_converter import OpenCVFrameConverter
from grab_push.adaptors.video.watermarker import Watermarker
from grab_push.entities.frame import Frame
from grab_push.frameworks.exceptions import (
    OutputEmitError,
    OutputInitError,
    SourceInitError,
    ValidationError,
)
from grab_push.usecases.capture_loop import CaptureLoop, ThroughputPacedCaptureLoop
from grab_push.usecases.interfaces.frame_source import FrameSource
from grab_push.usecases.interfaces.output_sink import OutputSink


class FakeSource(FrameSource):
    def __init__(
        self,
        size=(64, 48),
        exhaust_on_grab: Optional[int] = None,
        fail_start: bool = False,
        fail_stop: bool = False,
        events: Optional[List[str]] = None,
    ):
        self.size = size
        self.exhaust_on_grab = exhaust_on_grab
        self.fail_start = fail_start
        self.fail_stop = fail_stop
        self.events = events if events is not None else []
        self.start_calls = 0
        self.grab_calls = 0
        self.stop_calls = 0

    def start(self):
        self.start_calls += 1
        self.events.append("source.start")
        if self.fail_start:
            raise SourceInitError("camera unplugged")
        return self.size

    def grab(self):
        self.grab_calls += 1
        if self.exhaust_on_grab is not None and self.grab_calls >= self.exhaust_on_grab:
            return None
        width, height = self.size
        return Frame(
            image=np.zeros((max(height, 1), max(width, 1), 3), dtype=np.uint8),
            index=self.grab_calls - 1,
        )

    def stop(self):
        self.stop_calls += 1
        self.events.append("source.stop")
        if self.fail_stop:
            raise RuntimeError("device busy")


class FakeSink(OutputSink):
    def __init__(
        self,
        fail_init: bool = False,
        fail_emit_on: Optional[int] = None,
        fail_release: bool = False,
        events: Optional[List[str]] = None,
    ):
        self.fail_init = fail_init
        self.fail_emit_on = fail_emit_on
        self.fail_release = fail_release
        self.events = events if events is not None else []
        self.init_calls = 0
        self.emit_calls = 0
        self.release_calls = 0
        self.frames: List[Frame] = []
        self.session = None

    def init(self, session):
        self.init_calls += 1
        self.session = session
        self.events.append("sink.init")
        if self.fail_init:
            raise OutputInitError("writer refused to open")

    def emit(self, frame):
        self.emit_calls += 1
        if self.fail_emit_on is not None and self.emit_calls >= self.fail_emit_on:
            raise OutputEmitError("connection reset")
        self.frames.append(frame)

    def release(self):
        self.release_calls += 1
        self.events.append("sink.release")
        if self.fail_release:
            raise RuntimeError("writer already closed")


def make_loop(source, sink, frame_rate=1000.0, loop_class=CaptureLoop, **kwargs):
    return loop_class(
        source_factory=lambda: source,
        sink_factory=lambda: sink,
        converter=OpenCVFrameConverter(),
        watermarker=kwargs.pop("watermarker", Watermarker()),
        frame_rate=frame_rate,
        **kwargs,
    )


class TestInterval:
    @pytest.mark.parametrize(
        "frame_rate,expected",
        [(15.0, 67), (16.0, 63), (25.0, 40), (30.0, 33), (1.0, 1000), (0.5, 2000)],
    )
    def test_interval_is_rounded_milliseconds(self, frame_rate, expected):
        loop = make_loop(FakeSource(), FakeSink(), frame_rate=frame_rate)

        assert loop.get_interval() == expected

    def test_interval_never_negative_for_high_rates(self):
        loop = make_loop(FakeSource(), FakeSink(), frame_rate=5000.0)

        assert loop.get_interval() == 0

    @pytest.mark.parametrize("frame_rate", [0, -15.0])
    def test_non_positive_frame_rate_rejected(self, frame_rate):
        with pytest.raises(ValidationError):
            make_loop(FakeSource(), FakeSink(), frame_rate=frame_rate)


class TestLifecycle:
    def test_stream_end_on_fifth_grab(self):
        source = FakeSource(exhaust_on_grab=5)
        sink = FakeSink()
        loop = make_loop(source, sink)

        loop.action(5)

        assert sink.emit_calls == 4
        assert len(sink.frames) == 4
        assert source.grab_calls == 5
        assert sink.release_calls == 1
        assert source.stop_calls == 1
        assert loop.session.frames_emitted == 4

    def test_stream_end_on_first_grab(self):
        source = FakeSource(exhaust_on_grab=1)
        sink = FakeSink()

        make_loop(source, sink).run(5)

        assert sink.emit_calls == 0
        assert sink.release_calls == 1
        assert source.stop_calls == 1

    def test_dimensions_read_back_from_source(self):
        source = FakeSource(size=(640, 480), exhaust_on_grab=2)
        sink = FakeSink()
        loop = make_loop(source, sink)

        assert loop.camera_image_width == 0
        assert loop.camera_image_height == 0

        loop.run(1)

        assert loop.camera_image_width == 640
        assert loop.camera_image_height == 480
        assert sink.session.image_width == 640
        assert sink.frames[0].image.shape == (480, 640, 3)

    def test_init_order(self):
        events = []
        source = FakeSource(exhaust_on_grab=1, events=events)
        sink = FakeSink(events=events)
        loop = make_loop(
            source,
            sink,
            configure_media_logging=lambda: events.append("media_logging"),
        )

        loop.run(1)

        assert events == [
            "media_logging",
            "source.start",
            "sink.init",
            "sink.release",
            "source.stop",
        ]

    def test_zero_duration_never_grabs(self):
        source = FakeSource()
        sink = FakeSink()

        make_loop(source, sink).run(0)

        assert source.grab_calls == 0
        assert sink.init_calls == 1
        assert sink.release_calls == 1
        assert source.stop_calls == 1

    def test_each_run_gets_fresh_source_and_sink(self):
        sources = []
        sinks = []

        def source_factory():
            sources.append(FakeSource(exhaust_on_grab=2))
            return sources[-1]

        def sink_factory():
            sinks.append(FakeSink())
            return sinks[-1]

        loop = CaptureLoop(
            source_factory=source_factory,
            sink_factory=sink_factory,
            converter=OpenCVFrameConverter(),
            watermarker=Watermarker(),
            frame_rate=1000.0,
        )

        loop.run(1)
        loop.run(1)

        assert len(sources) == 2
        assert len(sinks) == 2
        assert sources[0] is not sources[1]
        assert all(s.stop_calls == 1 for s in sources)
        assert all(s.release_calls == 1 for s in sinks)


class TestFailureHandling:
    def test_source_start_failure_still_cleans_up(self):
        source = FakeSource(fail_start=True)
        sink = FakeSink()

        make_loop(source, sink).run(5)

        assert sink.init_calls == 0
        assert source.grab_calls == 0
        assert sink.release_calls == 1
        assert source.stop_calls == 1

    def test_invalid_source_dimensions_abort_session(self):
        source = FakeSource(size=(0, 0))
        sink = FakeSink()
        loop = make_loop(source, sink)

        loop.run(5)

        assert sink.init_calls == 0
        assert source.grab_calls == 0
        assert sink.release_calls == 1
        assert source.stop_calls == 1
        assert loop.camera_image_width == 0

    def test_sink_init_failure_skips_loop(self):
        source = FakeSource()
        sink = FakeSink(fail_init=True)

        make_loop(source, sink).run(5)

        assert source.grab_calls == 0
        assert sink.emit_calls == 0
        assert sink.release_calls == 1
        assert source.stop_calls == 1

    def test_unexpected_sink_init_error_is_contained(self):
        class DiskFullSink(FakeSink):
            def init(self, session):
                super().init(session)
                raise IOError("disk full")

        source = FakeSource()
        sink = DiskFullSink()

        make_loop(source, sink).run(5)

        assert source.grab_calls == 0
        assert sink.release_calls == 1
        assert source.stop_calls == 1

    def test_emit_failure_ends_session(self):
        source = FakeSource()
        sink = FakeSink(fail_emit_on=3)

        make_loop(source, sink).run(5)

        assert len(sink.frames) == 2
        assert source.grab_calls == 3
        assert sink.release_calls == 1
        assert source.stop_calls == 1

    def test_watermark_failure_ends_session(self):
        class BrokenWatermarker(Watermarker):
            def stamp(self, image):
                raise RuntimeError("font missing")

        source = FakeSource()
        sink = FakeSink()

        make_loop(source, sink, watermarker=BrokenWatermarker()).run(5)

        assert sink.emit_calls == 0
        assert sink.release_calls == 1
        assert source.stop_calls == 1

    def test_release_failure_does_not_block_source_stop(self):
        source = FakeSource(exhaust_on_grab=3)
        sink = FakeSink(fail_release=True)

        make_loop(source, sink).run(5)

        assert sink.release_calls == 1
        assert source.stop_calls == 1

    def test_double_fault_in_cleanup_is_swallowed(self):
        source = FakeSource(fail_start=True, fail_stop=True)
        sink = FakeSink(fail_release=True)

        make_loop(source, sink).run(5)

        assert sink.release_calls == 1
        assert source.stop_calls == 1

    def test_source_factory_failure_releases_sink(self):
        sink = FakeSink()

        def broken_source_factory():
            raise RuntimeError("no camera driver")

        loop = CaptureLoop(
            source_factory=broken_source_factory,
            sink_factory=lambda: sink,
            converter=OpenCVFrameConverter(),
            watermarker=Watermarker(),
            frame_rate=15.0,
        )

        loop.run(5)

        assert loop.source is None
        assert sink.release_calls == 1

    def test_negative_duration_is_contained(self):
        source = FakeSource()
        sink = FakeSink()

        make_loop(source, sink).run(-1)

        assert source.grab_calls == 0
        assert sink.release_calls == 1
        assert source.stop_calls == 1


class TestWatermarkTiming:
    def test_each_iteration_stamps_its_own_draw_time(self):
        base = datetime(2024, 3, 1, 12, 0, 0)
        ticks = iter(base + timedelta(seconds=i) for i in range(100))
        stamped = []

        class RecordingWatermarker(Watermarker):
            def format_text(self):
                text = super().format_text()
                stamped.append(text)
                return text

        source = FakeSource(exhaust_on_grab=4)
        sink = FakeSink()
        watermarker = RecordingWatermarker(clock=lambda: next(ticks))

        make_loop(source, sink, watermarker=watermarker).run(5)

        assert stamped == [
            "2024-03-01 12:00:00",
            "2024-03-01 12:00:01",
            "2024-03-01 12:00:02",
        ]

    def test_stamp_changes_emitted_pixels(self):
        source = FakeSource(size=(320, 80), exhaust_on_grab=2)
        sink = FakeSink()

        make_loop(source, sink).run(1)

        assert sink.frames[0].image[:40, :].any()


class TestPacing:
    def test_duration_bounds_emissions(self):
        source = FakeSource()
        sink = FakeSink()
        loop = make_loop(source, sink, frame_rate=50.0)

        started = time.monotonic()
        loop.run(1)
        elapsed = time.monotonic() - started

        assert elapsed < 1.5
        assert 1 <= sink.emit_calls <= 1000 // loop.get_interval() + 1
        assert sink.release_calls == 1

    def test_fifteen_fps_for_two_seconds(self):
        source = FakeSource()
        sink = FakeSink()
        loop = make_loop(source, sink, frame_rate=15.0)

        started = time.monotonic()
        loop.action(2)
        elapsed = time.monotonic() - started

        assert loop.session.interval_ms == 67
        assert elapsed < 2.5
        assert sink.emit_calls <= 2000 // 67 + 1

    def test_stop_interrupts_pacing_wait(self):
        source = FakeSource()
        sink = FakeSink()
        loop = make_loop(source, sink, frame_rate=0.5)

        timer = threading.Timer(0.2, loop.stop)
        started = time.monotonic()
        timer.start()
        loop.run(30)
        elapsed = time.monotonic() - started
        timer.join()

        assert elapsed < 1.5
        assert sink.emit_calls == 1
        assert sink.release_calls == 1
        assert source.stop_calls == 1

    def test_new_run_clears_previous_stop(self):
        source = FakeSource(exhaust_on_grab=3)
        sink = FakeSink()
        loop = make_loop(source, sink)

        loop.stop()
        loop.run(1)

        assert sink.emit_calls == 2


class TestThroughputPacedCaptureLoop:
    def test_pause_subtracts_time_spent(self):
        loop = make_loop(
            FakeSource(),
            FakeSink(),
            frame_rate=15.0,
            loop_class=ThroughputPacedCaptureLoop,
            clock=lambda: 10.030,
        )

        assert loop._next_pause(67, 10.0) == pytest.approx(37.0)

    def test_pause_never_negative_for_slow_iterations(self):
        loop = make_loop(
            FakeSource(),
            FakeSink(),
            frame_rate=15.0,
            loop_class=ThroughputPacedCaptureLoop,
            clock=lambda: 10.5,
        )

        assert loop._next_pause(67, 10.0) == 0.0

    def test_keeps_lifecycle_contract(self):
        source = FakeSource(exhaust_on_grab=5)
        sink = FakeSink()

        make_loop(source, sink, loop_class=ThroughputPacedCaptureLoop).run(5)

        assert sink.emit_calls == 4
        assert sink.release_calls == 1
        assert source.stop_calls == 1
