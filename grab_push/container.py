from functools import partial

from dependency_injector import containers, providers

from .adaptors.sinks.file_sink import VideoFileSink
from .adaptors.sinks.stream_sink import StreamPushSink
from .adaptors.sinks.window_sink import PreviewWindowSink
from .adaptors.video.camera_source import OpenCVFrameSource
from .adaptors.video.frame_converter import OpenCVFrameConverter
from .adaptors.video.watermarker import Watermarker
from .frameworks.config import AppConfig, OutputConfig
from .frameworks.exceptions import ConfigurationError
from .frameworks.logging_config import configure_media_logging
from .usecases.capture_loop import CaptureLoop, ThroughputPacedCaptureLoop


def _create_output_sink(output_config: OutputConfig):
    output_type = output_config.type.lower()
    if output_type == "file":
        return VideoFileSink(
            file_path=output_config.file_path, fourcc=output_config.fourcc
        )
    elif output_type == "window":
        return PreviewWindowSink(window_name=output_config.window_name)
    elif output_type == "stream":
        return StreamPushSink(
            stream_url=output_config.stream_url,
            ffmpeg_path=output_config.ffmpeg_path,
            stream_format=output_config.stream_format,
        )
    else:
        raise ConfigurationError(f"Unsupported output type: {output_config.type}")


def _create_capture_loop(pacing: str, **kwargs) -> CaptureLoop:
    if pacing.lower() == "fixed":
        return CaptureLoop(**kwargs)
    elif pacing.lower() == "throughput":
        return ThroughputPacedCaptureLoop(**kwargs)
    else:
        raise ConfigurationError(f"Unsupported pacing policy: {pacing}")


class ApplicationContainer(containers.DeclarativeContainer):
    config = providers.Singleton(AppConfig.from_yaml_or_default)

    # Fresh instances on every call: each capture run owns its own pair
    frame_source = providers.Factory(
        OpenCVFrameSource,
        device=config.provided.source.device,
        width=config.provided.source.width,
        height=config.provided.source.height,
        buffer_size=config.provided.source.buffer_size,
    )

    output_sink = providers.Factory(
        _create_output_sink,
        output_config=config.provided.output,
    )

    frame_converter = providers.Singleton(OpenCVFrameConverter)

    watermarker = providers.Singleton(
        Watermarker,
        pattern=config.provided.watermark.pattern,
        anchor=config.provided.watermark.anchor,
        font_scale=config.provided.watermark.font_scale,
        color=config.provided.watermark.color,
        thickness=config.provided.watermark.thickness,
    )

    media_logging = providers.Factory(
        partial,
        configure_media_logging,
        config.provided.logging.media_level,
    )

    capture_loop = providers.Factory(
        _create_capture_loop,
        pacing=config.provided.capture.pacing,
        source_factory=frame_source.provider,
        sink_factory=output_sink.provider,
        converter=frame_converter,
        watermarker=watermarker,
        frame_rate=config.provided.capture.frame_rate,
        configure_media_logging=media_logging,
    )
