import math
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, PrivateAttr

from ..frameworks.exceptions import ValidationError


def interval_for_rate(frame_rate: float) -> int:
    """Milliseconds between two emitted frames, rounded half up."""
    if frame_rate <= 0:
        raise ValidationError(f"Frame rate must be positive, got {frame_rate}")
    return int(math.floor(1000.0 / frame_rate + 0.5))


class Session(BaseModel):
    frame_rate: float = Field(..., gt=0, description="Target frames per second")
    duration_seconds: int = Field(..., ge=0, description="Requested run length")
    started_at: datetime = Field(default_factory=datetime.now)
    interval_ms: Optional[int] = Field(default=None, ge=0)
    frames_emitted: int = Field(default=0, ge=0)

    # Set once by resolve_dimensions, read-only afterwards
    _image_width: int = PrivateAttr(default=0)
    _image_height: int = PrivateAttr(default=0)

    @property
    def image_width(self) -> int:
        return self._image_width

    @property
    def image_height(self) -> int:
        return self._image_height

    @property
    def dimensions_resolved(self) -> bool:
        return self._image_width > 0 and self._image_height > 0

    def resolve_dimensions(self, width: int, height: int) -> None:
        if self.dimensions_resolved:
            raise ValidationError(
                f"Session dimensions already resolved to "
                f"{self._image_width}x{self._image_height}"
            )
        if width <= 0 or height <= 0:
            raise ValidationError(f"Invalid frame dimensions: {width}x{height}")

        self._image_width = width
        self._image_height = height
