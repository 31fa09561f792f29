import logging
import logging.config
import sys
from pathlib import Path
from typing import Optional

import cv2
import yaml

from grab_push import DEFAULT_PATH
from grab_push.frameworks.config import LoggingConfig

# OpenCV's numeric levels (cv::utils::logging::LogLevel)
OPENCV_LOG_LEVELS = {
    "SILENT": 0,
    "FATAL": 1,
    "ERROR": 2,
    "WARNING": 3,
    "INFO": 4,
    "DEBUG": 5,
    "VERBOSE": 6,
}


def load_logging_config():
    config_path = DEFAULT_PATH / "config.yaml"
    try:
        with open(config_path, "r") as file:
            config = yaml.safe_load(file) or {}
            return config.get("logging", {})
    except FileNotFoundError:
        return {}
    except yaml.YAMLError:
        return {}


class ColoredFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }

    BOLD = "\033[1m"
    RESET = "\033[0m"

    def __init__(self, *args, use_colors=True, **kwargs):
        super().__init__(*args, **kwargs)
        self.use_colors = use_colors and self._supports_color()

    def _supports_color(self):
        """Check if the terminal supports color output."""
        return (
            hasattr(sys.stderr, "isatty")
            and sys.stderr.isatty()
            and hasattr(sys.stdout, "isatty")
            and sys.stdout.isatty()
        )

    def format(self, record):
        """Format the log record with colors."""
        if not self.use_colors:
            return super().format(record)

        formatted = super().format(record)
        level_color = self.COLORS.get(record.levelname, "")
        if not level_color:
            return formatted

        colored_level = f"{self.BOLD}{level_color}{record.levelname}{self.RESET}"
        return formatted.replace(record.levelname, colored_level, 1)


class LoggerFactory:
    _initialized = False
    _log_dir: Optional[Path] = None

    @classmethod
    def setup_logging(
        cls,
        log_level: str = "INFO",
        log_dir: Optional[str] = None,
        console_output: bool = True,
        file_output: bool = True,
        format_type: str = "detailed",
        use_colors: bool = True,
        force: bool = False,
    ) -> None:
        """
        Configure logging for the entire application.

        Args:
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files. If None, uses project root/logs
            console_output: Whether to log to console
            file_output: Whether to log to files
            format_type: Format type ('detailed', 'simple', 'json')
            use_colors: Whether to use colors in console output
            force: Reconfigure even if logging was already set up
        """
        if cls._initialized and not force:
            return

        cls._log_dir = Path(log_dir) if log_dir else DEFAULT_PATH / "logs"

        formats = {
            "simple": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "detailed": (
                "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - "
                "%(funcName)s() - %(message)s"
            ),
            "json": (
                "%(asctime)s | %(name)s | %(levelname)s | %(filename)s:%(lineno)d | "
                "%(funcName)s | %(message)s"
            ),
        }

        log_format = formats.get(format_type, formats["detailed"])

        config = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {"format": log_format, "datefmt": "%Y-%m-%d %H:%M:%S"},
                "colored": {
                    "()": ColoredFormatter,
                    "format": log_format,
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                    "use_colors": use_colors,
                },
            },
            "handlers": {},
            "loggers": {
                "grab_push": {
                    "level": log_level,
                    "handlers": [],
                    "propagate": False,
                },
                "root": {"level": "WARNING", "handlers": []},
            },
        }

        if console_output:
            config["handlers"]["console"] = {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "colored",
                "stream": "ext://sys.stdout",
            }
            config["loggers"]["grab_push"]["handlers"].append("console")
            config["loggers"]["root"]["handlers"].append("console")

        if file_output:
            cls._log_dir.mkdir(parents=True, exist_ok=True)

            config["handlers"]["file"] = {
                "class": "logging.handlers.RotatingFileHandler",
                "level": log_level,
                "formatter": "standard",
                "filename": str(cls._log_dir / "grab_push.log"),
                "maxBytes": 10485760,
                "backupCount": 5,
            }

            config["handlers"]["error_file"] = {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "ERROR",
                "formatter": "standard",
                "filename": str(cls._log_dir / "grab_push_errors.log"),
                "maxBytes": 10485760,
                "backupCount": 5,
            }

            config["loggers"]["grab_push"]["handlers"].extend(["file", "error_file"])
            config["loggers"]["root"]["handlers"].extend(["file", "error_file"])

        logging.config.dictConfig(config)
        cls._initialized = True

        logger = logging.getLogger("grab_push.logging_config")
        logger.info(
            f"Logging initialized - Level: {log_level}, Log dir: {cls._log_dir}"
        )

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        Get a logger instance for the given name.

        Args:
            name: Logger name, typically __name__ from the calling module

        Returns:
            Configured logger instance
        """
        if not cls._initialized:
            logging_config = load_logging_config()
            cls.setup_logging(
                log_level=logging_config.get("level", "INFO"),
                console_output=logging_config.get("console_output", True),
                file_output=logging_config.get("file_output", True),
                format_type=logging_config.get("format_type", "detailed"),
                use_colors=logging_config.get("use_colors", True),
            )

        if not name.startswith("grab_push"):
            if name == "__main__":
                name = "grab_push.main"
            else:
                name = f"grab_push.{name}"

        return logging.getLogger(name)

    @classmethod
    def get_log_directory(cls) -> Optional[Path]:
        return cls._log_dir


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance. Convenience function for easy importing.

    Args:
        name: Logger name. If None, uses the calling module's __name__

    Returns:
        Configured logger instance
    """
    if name is None:
        frame = sys._getframe(1)
        name = frame.f_globals.get("__name__", "unknown")

    return LoggerFactory.get_logger(name)


def setup_logging(**kwargs) -> None:
    LoggerFactory.setup_logging(**kwargs)


def apply_logging_config(logging_config: LoggingConfig) -> None:
    """Reconfigure application logging from a loaded configuration section."""
    LoggerFactory.setup_logging(
        log_level=logging_config.level.upper(),
        console_output=logging_config.console_output,
        file_output=logging_config.file_output,
        format_type=logging_config.format_type,
        use_colors=logging_config.use_colors,
        force=True,
    )


def configure_media_logging(level: str = "INFO") -> None:
    """Set OpenCV's process-wide log level by name (e.g. "ERROR", "INFO")."""
    numeric_level = OPENCV_LOG_LEVELS.get(level.upper())
    if numeric_level is None:
        raise ValueError(
            f"Unknown OpenCV log level '{level}'. "
            f"Expected one of: {', '.join(OPENCV_LOG_LEVELS)}"
        )

    cv2.setLogLevel(numeric_level)
    logging.getLogger("grab_push.logging_config").debug(
        f"OpenCV log level set to {level.upper()} ({numeric_level})"
    )
