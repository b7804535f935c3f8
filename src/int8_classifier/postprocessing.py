"""Output dequantization, softmax and top-K selection."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from int8_classifier.config import PipelineConfig
from int8_classifier.errors import ConfigurationError
from int8_classifier.preprocessing import DecodedImage
from int8_classifier.quantization import softmax, top_k
from int8_classifier.schemas.annotation import (
    ClassificationPrediction,
    ClassificationResult,
)


class PostProcessor:
    """Convert one image's raw output codes into ranked predictions.

    Args:
        config: Pipeline shapes, output scale and ``top_k``.
        labels: Class names indexed by class id.  Must have exactly
            ``config.num_classes`` entries.
    """

    def __init__(self, config: PipelineConfig, labels: Sequence[str]) -> None:
        if len(labels) != config.num_classes:
            raise ConfigurationError(
                f"Label file has {len(labels)} entries but the model "
                f"outputs {config.num_classes} classes"
            )
        self.config = config
        self.labels = list(labels)

    def process(
        self,
        codes: np.ndarray,  # type: ignore[type-arg]
        image: DecodedImage,
    ) -> ClassificationResult:
        """Softmax over ``codes`` and keep the ``top_k`` classes."""
        codes = codes.reshape(-1)
        if codes.shape[0] != self.config.out_size:
            raise ValueError(
                f"expected {self.config.out_size} output codes, got {codes.shape[0]}"
            )
        probs = softmax(codes, self.config.output_scale)
        predictions = [
            ClassificationPrediction(
                rank=rank,
                class_id=idx,
                label=self.labels[idx],
                confidence=float(probs[idx]),
            )
            for rank, idx in enumerate(top_k(probs, self.config.top_k))
        ]
        return ClassificationResult(
            filename=image.filename,
            predictions=predictions,
            image_width=image.width,
            image_height=image.height,
        )
