from pathlib import Path
from typing import Optional

import cv2

from ...entities.frame import Frame
from ...entities.session import Session
from ...frameworks.exceptions import OutputEmitError, OutputInitError
from ...frameworks.logging_config import get_logger
from ...usecases.interfaces.output_sink import OutputSink

logger = get_logger(__name__)


class VideoFileSink(OutputSink):
    """Records frames to a video file with cv2.VideoWriter."""

    def __init__(self, file_path: str, fourcc: str = "mp4v"):
        self.file_path = Path(file_path)
        self.fourcc = fourcc
        self.writer: Optional[cv2.VideoWriter] = None
        self.frames_written = 0

    def init(self, session: Session):
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

        self.writer = cv2.VideoWriter(
            str(self.file_path),
            cv2.VideoWriter_fourcc(*self.fourcc),
            session.frame_rate,
            (session.image_width, session.image_height),
        )
        if not self.writer.isOpened():
            self.writer = None
            raise OutputInitError(f"Cannot open video writer: {self.file_path}")

        logger.info(
            f"Recording to {self.file_path} ({self.fourcc}, "
            f"{session.image_width}x{session.image_height} @ {session.frame_rate} FPS)"
        )

    def emit(self, frame: Frame):
        if self.writer is None:
            raise OutputEmitError("Video writer is not open")

        self.writer.write(frame.image)
        self.frames_written += 1

    def release(self):
        if self.writer is None:
            return

        self.writer.release()
        self.writer = None
        logger.info(f"Closed {self.file_path} after {self.frames_written} frames")
