from datetime import datetime
from typing import Optional, Tuple, Union

import cv2

from ...entities.frame import Frame
from ...frameworks.exceptions import SourceInitError
from ...frameworks.logging_config import get_logger
from ...usecases.interfaces.frame_source import FrameSource

logger = get_logger(__name__)


class OpenCVFrameSource(FrameSource):
    def __init__(
        self,
        device: Union[int, str] = 0,
        width: Optional[int] = None,
        height: Optional[int] = None,
        buffer_size: Optional[int] = None,
    ):
        self.device = self._normalize_device(device)
        self.requested_width = width
        self.requested_height = height
        self.buffer_size = buffer_size

        self.capture: Optional[cv2.VideoCapture] = None
        self.frame_count = 0

    @staticmethod
    def _normalize_device(device: Union[int, str]) -> Union[int, str]:
        if isinstance(device, str) and device.strip().isdigit():
            return int(device.strip())
        return device

    def start(self) -> Tuple[int, int]:
        if isinstance(self.device, str) and self.device.lower().startswith(
            ("rtsp://", "rtmp://", "http://", "https://")
        ):
            self.capture = cv2.VideoCapture(self.device, cv2.CAP_FFMPEG)
        else:
            self.capture = cv2.VideoCapture(self.device)

        if not self.capture.isOpened():
            raise SourceInitError(f"Failed to open video source: {self.device}")

        if self.requested_width:
            self.capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.requested_width)
        if self.requested_height:
            self.capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.requested_height)
        if self.buffer_size:
            self.capture.set(cv2.CAP_PROP_BUFFERSIZE, self.buffer_size)

        width = int(self.capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(self.capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        if width <= 0 or height <= 0:
            raise SourceInitError(
                f"Video source {self.device} reported invalid size {width}x{height}"
            )

        logger.info(
            f"Opened video source {self.device}: {width}x{height} "
            f"@ {self.capture.get(cv2.CAP_PROP_FPS)} FPS"
        )
        return width, height

    def grab(self) -> Optional[Frame]:
        if self.capture is None:
            return None

        ret, image = self.capture.read()
        if not ret or image is None:
            logger.warning(f"End of stream or read error from {self.device}")
            return None

        frame = Frame(image=image, index=self.frame_count, captured_at=datetime.now())
        self.frame_count += 1
        return frame

    def stop(self):
        if self.capture is None:
            return

        self.capture.release()
        self.capture = None
        logger.info(f"Closed video source {self.device} after {self.frame_count} frames")
