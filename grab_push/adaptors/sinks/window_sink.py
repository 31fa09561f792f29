import cv2

from ...entities.frame import Frame
from ...entities.session import Session
from ...frameworks.exceptions import OutputEmitError, OutputInitError
from ...frameworks.logging_config import get_logger
from ...usecases.interfaces.output_sink import OutputSink

logger = get_logger(__name__)


class PreviewWindowSink(OutputSink):
    """Shows frames in a local OpenCV window."""

    def __init__(self, window_name: str = "grab_push preview"):
        self.window_name = window_name
        self.is_open = False

    def init(self, session: Session):
        try:
            cv2.namedWindow(self.window_name, cv2.WINDOW_NORMAL)
            cv2.resizeWindow(
                self.window_name, session.image_width, session.image_height
            )
        except cv2.error as e:
            raise OutputInitError(f"Cannot open preview window: {e}") from e

        self.is_open = True
        logger.info(f"Opened preview window '{self.window_name}'")

    def emit(self, frame: Frame):
        if not self.is_open:
            raise OutputEmitError("Preview window is not open")

        try:
            cv2.imshow(self.window_name, frame.image)
            cv2.waitKey(1)
        except cv2.error as e:
            raise OutputEmitError(f"Failed to show frame {frame.index}: {e}") from e

    def release(self):
        if not self.is_open:
            return

        self.is_open = False
        cv2.destroyWindow(self.window_name)
        cv2.waitKey(1)
        logger.info(f"Closed preview window '{self.window_name}'")
