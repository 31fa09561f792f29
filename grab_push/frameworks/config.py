from pathlib import Path
from typing import Optional, Tuple, Union

import yaml
from pydantic import BaseModel, Field, field_validator


class CaptureConfig(BaseModel):
    frame_rate: float = Field(default=15.0, gt=0)
    duration_seconds: int = Field(default=10, ge=0)
    pacing: str = Field(default="fixed")


class SourceConfig(BaseModel):
    device: Union[int, str] = Field(default=0)
    width: Optional[int] = Field(default=None, gt=0)
    height: Optional[int] = Field(default=None, gt=0)
    buffer_size: Optional[int] = Field(default=None, ge=1)


class WatermarkConfig(BaseModel):
    pattern: str = Field(default="%Y-%m-%d %H:%M:%S")
    anchor_x: int = Field(default=15, ge=0)
    anchor_y: int = Field(default=35, ge=0)
    font_scale: float = Field(default=0.8, gt=0)
    color: Tuple[int, int, int] = Field(default=(0, 200, 255))
    thickness: int = Field(default=1, ge=1)

    @field_validator("color")
    @classmethod
    def validate_color(cls, v):
        if any(channel < 0 or channel > 255 for channel in v):
            raise ValueError("Watermark color channels must be within 0-255")
        return v

    @property
    def anchor(self) -> Tuple[int, int]:
        return (self.anchor_x, self.anchor_y)


class OutputConfig(BaseModel):
    type: str = Field(default="file")
    file_path: str = Field(default="output/capture.mp4")
    fourcc: str = Field(default="mp4v", min_length=4, max_length=4)
    window_name: str = Field(default="grab_push preview")
    stream_url: Optional[str] = Field(default=None)
    ffmpeg_path: str = Field(default="ffmpeg")
    stream_format: str = Field(default="flv")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format_type: str = Field(default="detailed")
    console_output: bool = Field(default=True)
    file_output: bool = Field(default=True)
    use_colors: bool = Field(default=True)
    media_level: str = Field(default="INFO")


class AppConfig(BaseModel):
    app_name: str = Field(default="Grab Push")
    debug: bool = Field(default=False)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    watermark: WatermarkConfig = Field(default_factory=WatermarkConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, config_path: str) -> "AppConfig":
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(path, "r") as f:
            config_dict = yaml.safe_load(f) or {}

        return cls(**config_dict)

    @classmethod
    def from_yaml_or_default(cls, config_path: str = "config.yaml") -> "AppConfig":
        try:
            return cls.from_yaml(config_path)
        except FileNotFoundError:
            return cls()
