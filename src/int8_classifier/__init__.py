"""Batched int8 image classification on an accelerator runtime."""

__version__ = "0.0.1"
