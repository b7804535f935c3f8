"""Run metadata recorded with each written annotation."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class AnnotationInfo(BaseModel, frozen=True):
    """Model and quantization context a prediction was produced under."""

    model: str
    top_k: int
    input_scale: float
    output_scale: float
    image_width: int | None = None
    image_height: int | None = None
    created_at: str = Field(default_factory=lambda: datetime.now(tz=UTC).isoformat())
