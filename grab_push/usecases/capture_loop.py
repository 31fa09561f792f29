import threading
import time
from typing import Callable, Optional, Tuple

from ..adaptors.video.watermarker import Watermarker
from ..entities.session import Session, interval_for_rate
from ..frameworks.exceptions import OutputInitError, SourceInitError, ValidationError
from ..frameworks.logging_config import get_logger
from .interfaces.frame_converter import FrameConverter
from .interfaces.frame_source import FrameSource
from .interfaces.output_sink import OutputSink

logger = get_logger(__name__)


class CaptureLoop:
    """
    Grab frames from a source, stamp them with the current time and hand them
    to an output sink at a fixed pace for a bounded duration.

    Every call to run() creates a fresh source and sink from the factories,
    and releases both exactly once however the run ends. run() never raises.
    """

    def __init__(
        self,
        source_factory: Callable[[], FrameSource],
        sink_factory: Callable[[], OutputSink],
        converter: FrameConverter,
        watermarker: Watermarker,
        frame_rate: float,
        configure_media_logging: Optional[Callable[[], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if frame_rate <= 0:
            raise ValidationError(f"Frame rate must be positive, got {frame_rate}")

        self.source_factory = source_factory
        self.sink_factory = sink_factory
        self.converter = converter
        self.watermarker = watermarker
        self.frame_rate = frame_rate
        self.configure_media_logging = configure_media_logging
        self.clock = clock

        self.source: Optional[FrameSource] = None
        self.sink: Optional[OutputSink] = None
        self.session: Optional[Session] = None
        self._stop_event = threading.Event()

    @property
    def camera_image_width(self) -> int:
        return self.session.image_width if self.session else 0

    @property
    def camera_image_height(self) -> int:
        return self.session.image_height if self.session else 0

    def get_interval(self) -> int:
        """Milliseconds to wait between two emitted frames."""
        return interval_for_rate(self.frame_rate)

    def stop(self):
        """Ask a running loop to finish early. Safe to call from another thread."""
        self._stop_event.set()

    def run(self, duration_seconds: int) -> None:
        self._stop_event.clear()
        self.source = None
        self.sink = None
        self.session = None

        try:
            self._init(duration_seconds)
            self._grab_and_output(duration_seconds)
        except Exception as e:
            logger.error(f"Capture session failed: {e}", exc_info=True)
        finally:
            self._safe_release()

    action = run

    def _init(self, duration_seconds: int):
        started = self.clock()

        self.sink = self.sink_factory()
        self.source = self.source_factory()
        self.session = Session(
            frame_rate=self.frame_rate, duration_seconds=duration_seconds
        )

        if self.configure_media_logging is not None:
            self.configure_media_logging()

        width, height = self._start_source()
        self._init_output()

        logger.info(
            f"Initialization finished in {(self.clock() - started) * 1000:.0f} ms, "
            f"frame rate: {self.frame_rate}, "
            f"image width: {width}, image height: {height}"
        )

    def _start_source(self) -> Tuple[int, int]:
        try:
            width, height = self.source.start()
        except SourceInitError:
            raise
        except Exception as e:
            raise SourceInitError(f"Failed to start frame source: {e}") from e

        try:
            self.session.resolve_dimensions(width, height)
        except ValidationError as e:
            raise SourceInitError(str(e)) from e

        return width, height

    def _init_output(self):
        try:
            self.sink.init(self.session)
        except OutputInitError:
            raise
        except Exception as e:
            raise OutputInitError(f"Failed to initialize output: {e}") from e

    def _grab_and_output(self, duration_seconds: int):
        interval = self.get_interval()
        self.session.interval_ms = interval

        loop_started = self.clock()
        end_time = loop_started + duration_seconds

        while self.clock() < end_time and not self._stop_event.is_set():
            iteration_started = self.clock()

            frame = self.source.grab()
            if frame is None:
                logger.error("Frame source returned no frame, ending capture")
                break

            image = self.converter.to_image(frame)
            self.watermarker.stamp(image)
            self.sink.emit(self.converter.to_frame(image, frame))
            self.session.frames_emitted += 1

            pause_ms = self._next_pause(interval, iteration_started)
            self._pause(min(pause_ms / 1000.0, end_time - self.clock()))

        logger.info(
            f"Output finished: {self.session.frames_emitted} frames in "
            f"{self.clock() - loop_started:.2f}s "
            f"(interval {interval} ms, stopped early: {self._stop_event.is_set()})"
        )

    def _next_pause(self, interval: int, iteration_started: float) -> float:
        return interval

    def _pause(self, seconds: float):
        if seconds > 0:
            self._stop_event.wait(seconds)

    def _safe_release(self):
        if self.sink is not None:
            try:
                self.sink.release()
            except Exception as e:
                logger.error(f"Failed to release output resource: {e}", exc_info=True)

        if self.source is not None:
            try:
                self.source.stop()
            except Exception as e:
                logger.error(f"Failed to stop frame source: {e}", exc_info=True)


class ThroughputPacedCaptureLoop(CaptureLoop):
    """Pauses only for what is left of the interval after grab, draw and emit."""

    def _next_pause(self, interval: int, iteration_started: float) -> float:
        spent_ms = (self.clock() - iteration_started) * 1000.0
        return max(0.0, interval - spent_ms)
