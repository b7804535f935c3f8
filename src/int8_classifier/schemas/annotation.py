"""Classification result and annotation schemas.

One result per image with top-K predictions sorted by confidence.
"""

from __future__ import annotations

from pydantic import BaseModel

from int8_classifier.schemas.info import AnnotationInfo


class ClassificationPrediction(BaseModel, frozen=True):
    """A single ranked classification prediction."""

    rank: int
    class_id: int
    label: str
    confidence: float


class ClassificationResult(BaseModel, frozen=True):
    """Top-K predictions for one image, highest confidence first."""

    filename: str
    predictions: list[ClassificationPrediction]
    image_width: int | None = None
    image_height: int | None = None


class ClassificationAnnotation(BaseModel, frozen=True):
    """A :class:`ClassificationResult` persisted with its run metadata."""

    filename: str
    info: AnnotationInfo
    predictions: list[ClassificationPrediction]
