from datetime import datetime

import numpy as np
from pydantic import BaseModel, ConfigDict, Field


class Frame(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    image: np.ndarray = Field(..., description="Captured image (H x W x C)")
    index: int = Field(default=0, ge=0, description="Arrival order within session")
    captured_at: datetime = Field(
        default_factory=datetime.now, description="Frame acquisition time"
    )

    @property
    def width(self) -> int:
        return self.image.shape[1] if self.image is not None else 0

    @property
    def height(self) -> int:
        return self.image.shape[0] if self.image is not None else 0
