"""Per-image JSON annotations written with orjson."""

from __future__ import annotations

from pathlib import Path

import orjson

from int8_classifier.config import PipelineConfig
from int8_classifier.io.base import BaseResultReporter
from int8_classifier.schemas.annotation import (
    ClassificationAnnotation,
    ClassificationResult,
)
from int8_classifier.schemas.info import AnnotationInfo


class AnnotationReporter(BaseResultReporter):
    """Write ``{image_stem}.json`` into ``output_dir`` for every result.

    Each file carries the ranked predictions plus the model name, ``top_k``
    and quantization scales of the run.

    Args:
        output_dir: Created on construction if missing.
        model: Model name recorded in ``info.model``.
    """

    def __init__(self, output_dir: Path, model: str) -> None:
        self.output_dir = output_dir
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.model = model
        self._config: PipelineConfig | None = None

    def start(self, config: PipelineConfig) -> None:
        self._config = config

    def report(self, result: ClassificationResult) -> None:
        self.write(self.annotate(result))

    def annotate(self, result: ClassificationResult) -> ClassificationAnnotation:
        if self._config is None:
            raise RuntimeError("AnnotationReporter.start() must run before report()")
        return ClassificationAnnotation(
            filename=result.filename,
            info=AnnotationInfo(
                model=self.model,
                top_k=self._config.top_k,
                input_scale=self._config.input_scale,
                output_scale=self._config.output_scale,
                image_width=result.image_width,
                image_height=result.image_height,
            ),
            predictions=result.predictions,
        )

    def write(self, annotation: ClassificationAnnotation) -> Path:
        """Serialize one annotation. Returns the output path."""
        out_path = self.output_dir / f"{Path(annotation.filename).stem}.json"
        out_path.write_bytes(
            orjson.dumps(annotation.model_dump(), option=orjson.OPT_INDENT_2)
        )
        return out_path
