from .file_sink import VideoFileSink
from .stream_sink import StreamPushSink
from .window_sink import PreviewWindowSink

__all__ = ["VideoFileSink", "PreviewWindowSink", "StreamPushSink"]
