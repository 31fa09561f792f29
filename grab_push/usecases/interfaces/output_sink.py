from abc import ABC, abstractmethod

from ...entities.frame import Frame
from ...entities.session import Session


class OutputSink(ABC):
    @abstractmethod
    def init(self, session: Session):
        """
        Prepare the destination for frames of the session's resolution.

        Raises:
            OutputInitError: if the destination cannot be opened
        """
        pass

    @abstractmethod
    def emit(self, frame: Frame):
        """
        Hand one processed frame to the destination.

        Raises:
            OutputEmitError: if the frame cannot be delivered
        """
        pass

    @abstractmethod
    def release(self):
        """Free destination resources. Must tolerate init() never having run."""
        pass
