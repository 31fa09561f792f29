from .camera_source import OpenCVFrameSource
from .frame_converter import OpenCVFrameConverter
from .watermarker import Watermarker

__all__ = ["OpenCVFrameSource", "OpenCVFrameConverter", "Watermarker"]
