"""Accelerator runtime adapters."""

from int8_classifier.runtime.base import (
    INFINITE_WAIT,
    BaseAcceleratorRuntime,
    TensorBuffer,
)

__all__ = [
    "INFINITE_WAIT",
    "BaseAcceleratorRuntime",
    "TensorBuffer",
]
