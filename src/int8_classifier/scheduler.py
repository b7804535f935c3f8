"""Batch assembly and execution around the asynchronous accelerator call."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from pathlib import Path

import numpy as np
from loguru import logger
from pydantic import BaseModel

from int8_classifier.config import DecodeErrorPolicy, PipelineConfig
from int8_classifier.errors import AcceleratorError, ImageDecodeError
from int8_classifier.io.base import BaseResultReporter
from int8_classifier.postprocessing import PostProcessor
from int8_classifier.preprocessing import DecodedImage, Preprocessor
from int8_classifier.runtime.base import BaseAcceleratorRuntime, TensorBuffer
from int8_classifier.schemas.tensor import TensorDescriptor


class SchedulerState(Enum):
    IDLE = "idle"
    FILLING = "filling"
    SUBMITTED = "submitted"
    WAITING = "waiting"
    DRAINING = "draining"


class RunSummary(BaseModel, frozen=True):
    """Counts for a completed run."""

    images_total: int
    images_classified: int
    images_skipped: int
    batches: int


class FixedPointArena:
    """Owns the run's input and output int8 buffers.

    ``input`` is shaped ``(B, H, W, C)`` and ``output`` ``(B, num_classes)``.
    Both are reused by every batch and dropped on :meth:`release`, which the
    context manager calls on every exit path.
    """

    def __init__(self, config: PipelineConfig) -> None:
        self.capacity = config.batch_capacity
        self.input: np.ndarray | None = np.zeros(  # type: ignore[type-arg]
            (config.batch_capacity, config.in_height, config.in_width, config.in_channels),
            dtype=np.int8,
        )
        self.output: np.ndarray | None = np.zeros(  # type: ignore[type-arg]
            (config.batch_capacity, config.out_size), dtype=np.int8
        )

    @property
    def released(self) -> bool:
        return self.input is None and self.output is None

    def _buffers(self) -> tuple[np.ndarray, np.ndarray]:  # type: ignore[type-arg]
        if self.input is None or self.output is None:
            raise RuntimeError("FixedPointArena used after release")
        return self.input, self.output

    def input_slot(self, slot: int) -> np.ndarray:  # type: ignore[type-arg]
        """View of image slot ``slot`` in the input buffer, ``(H, W, C)``."""
        if not 0 <= slot < self.capacity:
            raise IndexError(f"input slot {slot} out of range [0, {self.capacity})")
        return self._buffers()[0][slot]

    def output_slot(self, slot: int) -> np.ndarray:  # type: ignore[type-arg]
        """View of image slot ``slot`` in the output buffer, ``(num_classes,)``."""
        if not 0 <= slot < self.capacity:
            raise IndexError(f"output slot {slot} out of range [0, {self.capacity})")
        return self._buffers()[1][slot]

    def input_view(self, run_size: int) -> np.ndarray:  # type: ignore[type-arg]
        return self._buffers()[0][:run_size]

    def output_view(self) -> np.ndarray:  # type: ignore[type-arg]
        return self._buffers()[1]

    def release(self) -> None:
        self.input = None
        self.output = None

    def __enter__(self) -> FixedPointArena:
        return self

    def __exit__(self, *exc: object) -> None:
        self.release()


class BatchScheduler:
    """Drive a full run: fill, submit, wait and drain one batch at a time.

    The input descriptor of each batch carries ``run_size`` as its batch
    dimension while the output descriptor always carries the full capacity.
    Output slots at or beyond ``run_size`` may hold stale codes from an
    earlier batch and are never read.

    Args:
        runtime: Accelerator runtime executing the subgraph.
        config: Pipeline configuration derived from the runtime.
        preprocessor: Fills input slots.
        postprocessor: Ranks output slots.
    """

    def __init__(
        self,
        runtime: BaseAcceleratorRuntime,
        config: PipelineConfig,
        preprocessor: Preprocessor,
        postprocessor: PostProcessor,
    ) -> None:
        self.runtime = runtime
        self.config = config
        self.preprocessor = preprocessor
        self.postprocessor = postprocessor
        self.state = SchedulerState.IDLE

    def _transition(self, state: SchedulerState) -> None:
        logger.debug(f"Scheduler {self.state.value} -> {state.value}")
        self.state = state

    def descriptors(self, run_size: int) -> tuple[TensorDescriptor, TensorDescriptor]:
        """Input and output descriptors for a batch of ``run_size`` images."""
        cfg = self.config
        in_desc = TensorDescriptor(
            name=cfg.input_name,
            shape=(run_size, cfg.in_height, cfg.in_width, cfg.in_channels),
        )
        out_desc = TensorDescriptor(
            name=cfg.output_name,
            shape=(cfg.batch_capacity, cfg.out_size),
        )
        return in_desc, out_desc

    def run(
        self,
        images: Sequence[Path],
        reporters: Sequence[BaseResultReporter] = (),
    ) -> RunSummary:
        """Classify every image in ``images``, reporting results in order.

        Raises:
            ImageDecodeError: With the ``abort`` decode policy.
            AcceleratorError: If the runtime reports a failed job or a
                bounded wait expires.
        """
        capacity = self.config.batch_capacity
        classified = skipped = batches = 0
        for reporter in reporters:
            reporter.start(self.config)

        try:
            with FixedPointArena(self.config) as arena:
                for start in range(0, len(images), capacity):
                    stride = images[start : start + capacity]
                    self._transition(SchedulerState.FILLING)
                    decoded = self._fill(stride, arena)
                    skipped += len(stride) - len(decoded)
                    if not decoded:
                        logger.warning(
                            f"No decodable images in batch starting at {start}, "
                            "nothing submitted"
                        )
                        self._transition(SchedulerState.IDLE)
                        continue

                    self._execute(len(decoded), arena)
                    batches += 1

                    self._transition(SchedulerState.DRAINING)
                    for slot, image in enumerate(decoded):
                        result = self.postprocessor.process(
                            arena.output_slot(slot), image
                        )
                        for reporter in reporters:
                            reporter.report(result)
                        classified += 1
                    self._transition(SchedulerState.IDLE)
        finally:
            self.state = SchedulerState.IDLE

        logger.info(
            f"Classified {classified}/{len(images)} images in {batches} batch(es)"
        )
        return RunSummary(
            images_total=len(images),
            images_classified=classified,
            images_skipped=skipped,
            batches=batches,
        )

    def _fill(self, paths: Sequence[Path], arena: FixedPointArena) -> list[DecodedImage]:
        """Decode and quantize ``paths`` into consecutive input slots."""
        decoded: list[DecodedImage] = []
        policy = self.config.decode_error_policy
        for path in paths:
            try:
                image = self.preprocessor.load(path)
            except ImageDecodeError as e:
                if policy is DecodeErrorPolicy.ABORT:
                    raise
                if policy is DecodeErrorPolicy.SKIP:
                    logger.warning(f"Skipping {path.name}: {e}")
                    continue
                logger.warning(f"Substituting blank image for {path.name}: {e}")
                image = self.preprocessor.blank(path.name)
            self.preprocessor.fill(image, arena.input_slot(len(decoded)))
            decoded.append(image)
        return decoded

    def _execute(self, run_size: int, arena: FixedPointArena) -> None:
        """Submit the filled batch and block until the runtime is done."""
        in_desc, out_desc = self.descriptors(run_size)
        logger.debug(f"Submitting batch: input {in_desc.shape}, output {out_desc.shape}")
        inputs = [TensorBuffer(in_desc, arena.input_view(run_size))]
        outputs = [TensorBuffer(out_desc, arena.output_view())]

        self._transition(SchedulerState.SUBMITTED)
        job_id, status = self.runtime.execute_async(inputs, outputs)
        if status != 0:
            raise AcceleratorError(f"execute_async failed with status {status}")

        self._transition(SchedulerState.WAITING)
        status = self.runtime.wait(job_id, self.config.wait_timeout_ms)
        if status != 0:
            raise AcceleratorError(f"Job {job_id} failed with status {status}")
