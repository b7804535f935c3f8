"""Pydantic frozen configuration models for int8_classifier."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, PositiveFloat, PositiveInt, model_validator

from int8_classifier.errors import ConfigurationError
from int8_classifier.quantization import input_scale, output_scale

if TYPE_CHECKING:
    from int8_classifier.runtime.base import BaseAcceleratorRuntime


class DecodeErrorPolicy(StrEnum):
    """What to do with an image file that cannot be decoded."""

    SKIP = "skip"
    ABORT = "abort"
    BLANK = "blank"


class PipelineConfig(BaseModel, frozen=True):
    """Shapes, scales and run options shared by every pipeline stage.

    Built once from accelerator metadata (see :meth:`from_runtime`) and
    passed to the preprocessor, scheduler and post-processor.  Frozen, no
    mutation after creation.
    """

    input_name: str = "input"
    output_name: str = "output"
    in_height: PositiveInt
    in_width: PositiveInt
    in_channels: PositiveInt = 3
    num_classes: PositiveInt
    batch_capacity: PositiveInt
    input_scale: PositiveFloat
    output_scale: PositiveFloat
    top_k: PositiveInt = 5
    wait_timeout_ms: int = -1
    decode_error_policy: DecodeErrorPolicy = DecodeErrorPolicy.SKIP

    @model_validator(mode="after")
    def _check_consistency(self) -> "PipelineConfig":
        if self.in_channels != 3:
            raise ValueError(f"expected a 3-channel input tensor, got {self.in_channels}")
        if self.top_k > self.num_classes:
            raise ValueError(
                f"top_k={self.top_k} exceeds the model's {self.num_classes} classes"
            )
        if self.wait_timeout_ms < -1:
            raise ValueError("wait_timeout_ms must be -1 (infinite) or >= 0")
        return self

    @property
    def in_size(self) -> int:
        """Codes per image in the input buffer."""
        return self.in_height * self.in_width * self.in_channels

    @property
    def out_size(self) -> int:
        """Codes per image in the output buffer."""
        return self.num_classes

    @classmethod
    def from_runtime(
        cls, runtime: BaseAcceleratorRuntime, **overrides: Any
    ) -> "PipelineConfig":
        """Derive shapes, batch capacity and scales from runtime metadata.

        Raises:
            ConfigurationError: If the runtime does not expose exactly one
                NHWC input and one output tensor, or the result is invalid.
        """
        inputs = runtime.get_input_tensors()
        outputs = runtime.get_output_tensors()
        if len(inputs) != 1 or len(outputs) != 1:
            raise ConfigurationError(
                f"expected one input and one output tensor, got "
                f"{len(inputs)} and {len(outputs)}"
            )
        in_t, out_t = inputs[0], outputs[0]
        if len(in_t.shape) != 4:
            raise ConfigurationError(f"input tensor must be NHWC, got shape {in_t.shape}")
        _, height, width, channels = in_t.shape
        values: dict[str, Any] = {
            "input_name": in_t.name,
            "output_name": out_t.name,
            "in_height": height,
            "in_width": width,
            "in_channels": channels,
            "num_classes": out_t.size,
            "batch_capacity": in_t.batch,
            "input_scale": input_scale(in_t.fix_point),
            "output_scale": output_scale(out_t.fix_point),
        }
        values.update(overrides)
        try:
            return cls(**values)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
