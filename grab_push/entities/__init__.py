from .frame import Frame
from .session import Session, interval_for_rate

__all__ = [
    "Frame",
    "Session",
    "interval_for_rate",
]
