from abc import ABC, abstractmethod

import numpy as np

from ...entities.frame import Frame


class FrameConverter(ABC):
    @abstractmethod
    def to_image(self, frame: Frame) -> np.ndarray:
        """Return a writable image buffer that drawing operations can modify."""
        pass

    @abstractmethod
    def to_frame(self, image: np.ndarray, source: Frame) -> Frame:
        """Wrap a processed image back into a frame carrying source's metadata."""
        pass
