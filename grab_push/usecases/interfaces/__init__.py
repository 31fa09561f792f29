from .frame_converter import FrameConverter
from .frame_source import FrameSource
from .output_sink import OutputSink

__all__ = [
    "FrameSource",
    "FrameConverter",
    "OutputSink",
]
