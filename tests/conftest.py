"""Shared pytest fixtures for int8_classifier tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from int8_classifier.config import PipelineConfig
from int8_classifier.runtime.base import BaseAcceleratorRuntime, TensorBuffer
from int8_classifier.schemas.tensor import TensorInfo


class FakeRuntime(BaseAcceleratorRuntime):
    """In-memory accelerator.

    Job ``j`` writes code 100 at class ``(j * capacity + slot) % num_classes``
    for every submitted slot, so image ``n`` of the run ranks class
    ``n % num_classes`` first.  Output slots past the submitted batch are
    filled with a stale pattern favouring the last class.
    """

    def __init__(
        self,
        capacity: int = 4,
        height: int = 8,
        width: int = 6,
        num_classes: int = 10,
        wait_status: int = 0,
    ) -> None:
        self.capacity = capacity
        self.height = height
        self.width = width
        self.num_classes = num_classes
        self.wait_status = wait_status
        self.submitted: list[tuple[tuple[int, ...], tuple[int, ...]]] = []
        self.inputs_seen: list[np.ndarray] = []
        self.waits: list[tuple[int, int]] = []
        self.outstanding: int | None = None
        self.on_execute: Callable[[], None] | None = None
        self.closed = False

    def get_input_tensors(self) -> list[TensorInfo]:
        return [
            TensorInfo(
                name="in",
                shape=(self.capacity, self.height, self.width, 3),
                fix_point=6,
            )
        ]

    def get_output_tensors(self) -> list[TensorInfo]:
        return [
            TensorInfo(name="out", shape=(self.capacity, self.num_classes), fix_point=4)
        ]

    def execute_async(
        self, inputs: list[TensorBuffer], outputs: list[TensorBuffer]
    ) -> tuple[int, int]:
        assert self.outstanding is None, "two jobs in flight"
        if self.on_execute is not None:
            self.on_execute()
        job_id = len(self.submitted)
        self.submitted.append((inputs[0].descriptor.shape, outputs[0].descriptor.shape))
        self.inputs_seen.append(inputs[0].data.copy())
        run_size = inputs[0].data.shape[0]
        out = outputs[0].data
        out[...] = 0
        out[run_size:, -1] = 120
        for slot in range(run_size):
            out[slot, (job_id * self.capacity + slot) % self.num_classes] = 100
        self.outstanding = job_id
        return job_id, 0

    def wait(self, job_id: int, timeout: int = -1) -> int:
        assert self.outstanding == job_id
        self.waits.append((job_id, timeout))
        self.outstanding = None
        return self.wait_status

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def fake_runtime() -> FakeRuntime:
    return FakeRuntime()


@pytest.fixture()
def config(fake_runtime: FakeRuntime) -> PipelineConfig:
    return PipelineConfig.from_runtime(fake_runtime)


@pytest.fixture()
def labels() -> list[str]:
    return [f"class_{i}" for i in range(10)]


@pytest.fixture()
def image_dir(tmp_path: Path) -> Callable[[int], Path]:
    """Factory creating a flat directory with ``n`` small PNG/JPEG images."""

    def _make(n: int) -> Path:
        root = tmp_path / "images"
        root.mkdir(exist_ok=True)
        for i in range(n):
            img = Image.new("RGB", (16, 12), color=(i * 20 % 256, 100, 150))
            suffix = ".png" if i % 2 == 0 else ".jpg"
            img.save(root / f"img_{i:03d}{suffix}")
        return root

    return _make


@pytest.fixture()
def labels_file(tmp_path: Path, labels: list[str]) -> Path:
    path = tmp_path / "labels.txt"
    path.write_text("\n".join(labels) + "\n")
    return path


@pytest.fixture()
def make_runtime() -> type[FakeRuntime]:
    """The :class:`FakeRuntime` class, for tests needing custom shapes."""
    return FakeRuntime
