import cv2
import numpy as np

from ...entities.frame import Frame
from ...usecases.interfaces.frame_converter import FrameConverter


class OpenCVFrameConverter(FrameConverter):
    """Normalizes captured images to contiguous, writable 8-bit BGR buffers."""

    def to_image(self, frame: Frame) -> np.ndarray:
        image = frame.image

        if image.dtype != np.uint8:
            image = cv2.convertScaleAbs(image)

        if image.ndim == 2:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        elif image.shape[2] == 1:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        elif image.shape[2] == 4:
            image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)

        if not image.flags.writeable or not image.flags.c_contiguous:
            image = np.ascontiguousarray(image).copy()

        return image

    def to_frame(self, image: np.ndarray, source: Frame) -> Frame:
        return Frame(image=image, index=source.index, captured_at=source.captured_at)
