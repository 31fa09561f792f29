from abc import ABC, abstractmethod
from typing import Optional, Tuple

from ...entities.frame import Frame


class FrameSource(ABC):
    @abstractmethod
    def start(self) -> Tuple[int, int]:
        """
        Open the device and report its native resolution.

        Returns:
            (width, height) of the frames this source will produce

        Raises:
            SourceInitError: if the device cannot be opened
        """
        pass

    @abstractmethod
    def grab(self) -> Optional[Frame]:
        """Return the next frame, or None at end of stream / read failure."""
        pass

    @abstractmethod
    def stop(self):
        """Release the device. Safe to call when start() never succeeded."""
        pass
