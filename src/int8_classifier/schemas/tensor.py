"""Tensor metadata exchanged with the accelerator runtime."""

from __future__ import annotations

import math

from pydantic import BaseModel, field_validator


class TensorInfo(BaseModel, frozen=True):
    """Shape and fixed-point position of a runtime input or output tensor.

    ``shape[0]`` is the batch capacity.  Input tensors are NHWC.
    """

    name: str
    shape: tuple[int, ...]
    fix_point: int

    @field_validator("shape")
    @classmethod
    def _non_empty_shape(cls, shape: tuple[int, ...]) -> tuple[int, ...]:
        if len(shape) < 2 or any(d <= 0 for d in shape):
            raise ValueError(f"tensor shape must have a batch dim and positive dims, got {shape}")
        return shape

    @property
    def batch(self) -> int:
        return self.shape[0]

    @property
    def size(self) -> int:
        """Number of elements per batch item."""
        return math.prod(self.shape[1:])


class TensorDescriptor(BaseModel, frozen=True):
    """Per-batch name and shape of an int8 tensor handed to ``execute_async``.

    Runtimes receive only the bound array; the descriptor fixes the shape
    the array must have for this batch.
    """

    name: str
    shape: tuple[int, ...]
