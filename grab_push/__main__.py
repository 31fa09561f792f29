import argparse
import signal
import sys

from dependency_injector import providers

from grab_push.container import ApplicationContainer
from grab_push.frameworks.config import AppConfig
from grab_push.frameworks.logging_config import apply_logging_config, get_logger

logger = get_logger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Grab camera frames, stamp the time and push them to an output"
    )
    parser.add_argument(
        "--config", default="config.yaml", help="Path to YAML configuration"
    )
    parser.add_argument(
        "--duration", type=int, default=None, help="Capture duration in seconds"
    )
    parser.add_argument(
        "--frame-rate", type=float, default=None, help="Target frames per second"
    )
    parser.add_argument(
        "--source", default=None, help="Camera index, video file or stream URL"
    )
    parser.add_argument(
        "--output",
        choices=["file", "window", "stream"],
        default=None,
        help="Where processed frames go",
    )
    parser.add_argument("--file-path", default=None, help="Output video file")
    parser.add_argument("--stream-url", default=None, help="Push URL, e.g. rtmp://")
    return parser.parse_args(argv)


def build_config(args) -> AppConfig:
    config = AppConfig.from_yaml_or_default(args.config).model_dump()

    if args.duration is not None:
        config["capture"]["duration_seconds"] = args.duration
    if args.frame_rate is not None:
        config["capture"]["frame_rate"] = args.frame_rate
    if args.source is not None:
        config["source"]["device"] = args.source
    if args.output is not None:
        config["output"]["type"] = args.output
    if args.file_path is not None:
        config["output"]["file_path"] = args.file_path
    if args.stream_url is not None:
        config["output"]["stream_url"] = args.stream_url

    return AppConfig(**config)


def main(argv=None):
    args = parse_args(argv)

    try:
        app_config = build_config(args)
    except Exception as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    apply_logging_config(app_config.logging)

    container = ApplicationContainer()
    container.config.override(providers.Object(app_config))

    try:
        capture_loop = container.capture_loop()
    except Exception as e:
        logger.error(f"Critical error in main: {e}")
        sys.exit(1)

    signal.signal(signal.SIGINT, lambda signum, frame: capture_loop.stop())

    logger.info(
        f"Starting capture for {app_config.capture.duration_seconds}s "
        f"to {app_config.output.type} output"
    )
    capture_loop.action(app_config.capture.duration_seconds)


if __name__ == "__main__":
    main()
