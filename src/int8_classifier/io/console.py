"""Plain-text result reporter for standard output."""

from __future__ import annotations

import sys
from typing import TextIO

from int8_classifier.config import PipelineConfig
from int8_classifier.io.base import BaseResultReporter
from int8_classifier.schemas.annotation import ClassificationResult


class ConsoleReporter(BaseResultReporter):
    """Print tensor diagnostics, then a ranked block per image.

    Args:
        stream: Output stream.  Defaults to ``sys.stdout`` at write time.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def start(self, config: PipelineConfig) -> None:
        out = self.stream
        out.write(f"OUT  size {config.out_size}\n")
        out.write(f"IN   size {config.in_size}\n")
        out.write(f"IN Height {config.in_height}\n")
        out.write(f"IN Width  {config.in_width}\n")
        out.write(f"batchSize {config.batch_capacity}\n")

    def report(self, result: ClassificationResult) -> None:
        out = self.stream
        out.write(f"\nImage: {result.filename}\n")
        for pred in result.predictions:
            out.write(
                f"top[{pred.rank}] prob = {pred.confidence:<8f}  name = {pred.label}\n"
            )
        out.flush()
