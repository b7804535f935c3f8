"""Abstract interface to the accelerator runtime."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from int8_classifier.schemas.tensor import TensorDescriptor, TensorInfo

INFINITE_WAIT = -1


@dataclass(frozen=True)
class TensorBuffer:
    """A tensor descriptor bound to a view of an arena buffer.

    The view shares memory with the arena; the runtime reads inputs from
    and writes outputs into it in place.
    """

    descriptor: TensorDescriptor
    data: np.ndarray  # type: ignore[type-arg]

    def __post_init__(self) -> None:
        if tuple(self.data.shape) != self.descriptor.shape:
            raise ValueError(
                f"buffer shape {self.data.shape} does not match descriptor "
                f"{self.descriptor.name} {self.descriptor.shape}"
            )
        if self.data.dtype != np.int8:
            raise ValueError(f"buffer must be int8, got {self.data.dtype}")


class BaseAcceleratorRuntime(ABC):
    """Base class for accelerator runtimes executing a quantized subgraph.

    Subclasses expose tensor metadata and an asynchronous
    submit/wait pair.  Callers must not reuse the submitted buffers
    until ``wait`` has returned for the job.
    """

    @abstractmethod
    def get_input_tensors(self) -> list[TensorInfo]:
        """Input tensor metadata; ``shape[0]`` is the batch capacity."""

    @abstractmethod
    def get_output_tensors(self) -> list[TensorInfo]:
        """Output tensor metadata."""

    @abstractmethod
    def execute_async(
        self, inputs: list[TensorBuffer], outputs: list[TensorBuffer]
    ) -> tuple[int, int]:
        """Submit one batch.  Returns ``(job_id, status)``, status 0 on success."""

    @abstractmethod
    def wait(self, job_id: int, timeout: int = INFINITE_WAIT) -> int:
        """Block until ``job_id`` completes.

        ``timeout`` is in milliseconds, ``-1`` waits forever.  Returns the
        job status, 0 on success.

        Raises:
            AcceleratorTimeoutError: If a bounded wait expires.
        """

    def close(self) -> None:  # noqa: B027
        """Release runtime resources."""

    def __enter__(self) -> BaseAcceleratorRuntime:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
