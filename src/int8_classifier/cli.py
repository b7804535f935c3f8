"""Command-line entrypoint for batched int8 classification.

Usage::

    int8-classify model.xmodel images/ labels.txt
    int8-classify model.onnx images/ labels.txt --runtime onnx --batch-size 8
    int8-classify model.xmodel images/ labels.txt --timeout 5000 --output-dir results
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.table import Table

from int8_classifier.config import DecodeErrorPolicy, PipelineConfig
from int8_classifier.data.utils import list_images, load_labels
from int8_classifier.errors import (
    AcceleratorError,
    ConfigurationError,
    ImageDecodeError,
)
from int8_classifier.io.annotation import AnnotationReporter
from int8_classifier.io.base import BaseResultReporter
from int8_classifier.io.console import ConsoleReporter
from int8_classifier.postprocessing import PostProcessor
from int8_classifier.preprocessing import Preprocessor
from int8_classifier.runtime.base import INFINITE_WAIT, BaseAcceleratorRuntime
from int8_classifier.scheduler import BatchScheduler, RunSummary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="int8-classify",
        description="Top-K image classification on an int8 accelerator",
    )
    parser.add_argument("model", type=Path, help="Compiled model (.xmodel or .onnx)")
    parser.add_argument("image_dir", type=Path, help="Directory of .jpg/.jpeg/.png images")
    parser.add_argument("labels", type=Path, help="Label file, one class name per line")
    parser.add_argument(
        "--runtime",
        choices=["auto", "vart", "onnx"],
        default="auto",
        help="Accelerator runtime (default: by model extension)",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=INFINITE_WAIT,
        help="Job wait timeout in ms (default: -1, wait forever)",
    )
    parser.add_argument(
        "--on-decode-error",
        choices=[p.value for p in DecodeErrorPolicy],
        default=DecodeErrorPolicy.SKIP.value,
        help="Policy for undecodable images (default: skip)",
    )
    parser.add_argument(
        "--top-k", type=int, default=5, help="Predictions per image (default: 5)"
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Also write one JSON annotation per image here",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=4,
        help="Batch capacity for ONNX models with a dynamic batch dim (default: 4)",
    )
    parser.add_argument(
        "--input-fix-point",
        type=int,
        default=6,
        help="ONNX runtime input fixed-point position (default: 6)",
    )
    parser.add_argument(
        "--output-fix-point",
        type=int,
        default=4,
        help="ONNX runtime output fixed-point position (default: 4)",
    )
    parser.add_argument("--log-level", default="INFO", help="Log level (default: INFO)")
    return parser


def create_runtime(args: argparse.Namespace) -> BaseAcceleratorRuntime:
    """Load the model into the runtime selected by ``--runtime``."""
    kind = args.runtime
    if kind == "auto":
        kind = "onnx" if args.model.suffix.lower() == ".onnx" else "vart"
    if not args.model.is_file():
        raise ConfigurationError(f"Model file not found: {args.model}")

    if kind == "onnx":
        from int8_classifier.runtime.onnx_runtime import OnnxAcceleratorRuntime

        return OnnxAcceleratorRuntime(
            args.model,
            batch_size=args.batch_size,
            input_fix_point=args.input_fix_point,
            output_fix_point=args.output_fix_point,
        )

    from int8_classifier.runtime.vart_runtime import create_vart_runtime

    return create_vart_runtime(args.model)


def print_summary(summary: RunSummary) -> None:
    """Print a Rich table summarizing the run to stderr."""
    table = Table(title="Run Summary")
    table.add_column("Images", justify="right")
    table.add_column("Classified", justify="right", style="green")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Batches", justify="right")
    table.add_row(
        str(summary.images_total),
        str(summary.images_classified),
        str(summary.images_skipped),
        str(summary.batches),
    )
    Console(stderr=True).print(table)


def run(args: argparse.Namespace) -> RunSummary:
    """Validate inputs, load the model and classify every image."""
    images = list_images(args.image_dir)
    labels = load_labels(args.labels)

    with create_runtime(args) as runtime:
        config = PipelineConfig.from_runtime(
            runtime,
            top_k=args.top_k,
            wait_timeout_ms=args.timeout,
            decode_error_policy=DecodeErrorPolicy(args.on_decode_error),
        )
        postprocessor = PostProcessor(config, labels)
        reporters: list[BaseResultReporter] = [ConsoleReporter()]
        if args.output_dir is not None:
            reporters.append(AnnotationReporter(args.output_dir, model=args.model.name))
        scheduler = BatchScheduler(runtime, config, Preprocessor(config), postprocessor)
        return scheduler.run(images, reporters)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level=args.log_level)

    try:
        summary = run(args)
    except (ConfigurationError, ImageDecodeError, AcceleratorError) as e:
        logger.error(f"Error: {e}")
        return 1

    print_summary(summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
