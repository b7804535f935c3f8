"""Abstract base class for result reporters."""

from __future__ import annotations

from abc import ABC, abstractmethod

from int8_classifier.config import PipelineConfig
from int8_classifier.schemas.annotation import ClassificationResult


class BaseResultReporter(ABC):
    """Receives each image's result as soon as it is produced."""

    def start(self, config: PipelineConfig) -> None:  # noqa: B027
        """Called once before the first batch."""

    @abstractmethod
    def report(self, result: ClassificationResult) -> None:
        """Handle a single image result."""
