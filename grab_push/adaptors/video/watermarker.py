from datetime import datetime
from typing import Callable, Tuple

import cv2
import numpy as np

from ...frameworks.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_PATTERN = "%Y-%m-%d %H:%M:%S"


class Watermarker:
    """
    Burns the current local time into an image, in place.

    The text reflects the clock when stamp() runs, not when the frame was
    captured.
    """

    def __init__(
        self,
        pattern: str = DEFAULT_PATTERN,
        anchor: Tuple[int, int] = (15, 35),
        font_scale: float = 0.8,
        color: Tuple[int, int, int] = (0, 200, 255),
        thickness: int = 1,
        font_face: int = cv2.FONT_HERSHEY_SIMPLEX,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.pattern = pattern
        self.anchor = tuple(anchor)
        self.font_scale = font_scale
        self.color = tuple(color)
        self.thickness = thickness
        self.font_face = font_face
        self.clock = clock

    def format_text(self) -> str:
        return self.clock().strftime(self.pattern)

    def stamp(self, image: np.ndarray) -> None:
        cv2.putText(
            image,
            self.format_text(),
            self.anchor,
            self.font_face,
            self.font_scale,
            self.color,
            self.thickness,
            cv2.LINE_8,
            False,
        )
