"""Host emulation of an int8 accelerator on top of onnxruntime."""

from __future__ import annotations

import itertools
import math
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

import numpy as np
import onnxruntime as ort
from loguru import logger

from int8_classifier.errors import AcceleratorTimeoutError, ConfigurationError
from int8_classifier.quantization import input_scale, output_scale, quantize
from int8_classifier.runtime.base import (
    INFINITE_WAIT,
    BaseAcceleratorRuntime,
    TensorBuffer,
)
from int8_classifier.schemas.tensor import TensorInfo


class OnnxAcceleratorRuntime(BaseAcceleratorRuntime):
    """Run a float ONNX classifier behind the int8 accelerator interface.

    Input codes are dequantized with ``2**input_fix_point``, the model runs
    on a single worker thread, and its logits are quantized back into the
    output buffer with ``2**-output_fix_point``.  NCHW models are fed a
    transposed view of the NHWC input buffer.

    Args:
        model_path: Path to the ``.onnx`` file.
        batch_size: Batch capacity when the model's batch dim is dynamic.
        input_fix_point: Fixed-point position of the input codes.
        output_fix_point: Fixed-point position of the output codes.
    """

    def __init__(
        self,
        model_path: str | Path,
        batch_size: int = 4,
        input_fix_point: int = 6,
        output_fix_point: int = 4,
    ) -> None:
        if batch_size < 1:
            raise ConfigurationError(f"batch_size must be >= 1, got {batch_size}")
        try:
            self.session = ort.InferenceSession(
                str(model_path),
                providers=ort.get_available_providers(),
            )
        except Exception as e:
            raise ConfigurationError(f"Cannot load ONNX model {model_path}: {e}") from e
        model_in = self.session.get_inputs()[0]
        model_out = self.session.get_outputs()[0]
        self.input_name = model_in.name

        in_shape = list(model_in.shape)
        if len(in_shape) != 4 or not all(isinstance(d, int) for d in in_shape[1:]):
            raise ConfigurationError(
                f"ONNX input must be 4-D with static spatial dims, got {in_shape}"
            )
        self.fixed_batch = in_shape[0] if isinstance(in_shape[0], int) else None
        batch = self.fixed_batch or batch_size
        self.channels_first = in_shape[1] == 3 and in_shape[3] != 3
        if self.channels_first:
            _, channels, height, width = in_shape
        else:
            _, height, width, channels = in_shape

        out_dims = list(model_out.shape[1:])
        if not all(isinstance(d, int) for d in out_dims):
            raise ConfigurationError(f"ONNX output must have static class dims, got {out_dims}")

        self._inputs = [
            TensorInfo(
                name=model_in.name,
                shape=(batch, height, width, channels),
                fix_point=input_fix_point,
            )
        ]
        self._outputs = [
            TensorInfo(
                name=model_out.name,
                shape=(batch, math.prod(out_dims)),
                fix_point=output_fix_point,
            )
        ]
        self.input_scale = input_scale(input_fix_point)
        self.output_scale = output_scale(output_fix_point)

        self._executor = ThreadPoolExecutor(max_workers=1)
        self._jobs: dict[int, Future[None]] = {}
        self._job_ids = itertools.count()
        logger.info(
            f"ONNX runtime ready: input {self._inputs[0].shape} "
            f"({'NCHW' if self.channels_first else 'NHWC'}), "
            f"output {self._outputs[0].shape}"
        )

    def get_input_tensors(self) -> list[TensorInfo]:
        return list(self._inputs)

    def get_output_tensors(self) -> list[TensorInfo]:
        return list(self._outputs)

    def execute_async(
        self, inputs: list[TensorBuffer], outputs: list[TensorBuffer]
    ) -> tuple[int, int]:
        job_id = next(self._job_ids)
        self._jobs[job_id] = self._executor.submit(
            self._run, inputs[0].data, outputs[0].data
        )
        return job_id, 0

    def wait(self, job_id: int, timeout: int = INFINITE_WAIT) -> int:
        future = self._jobs[job_id]
        try:
            future.result(timeout=None if timeout < 0 else timeout / 1000.0)
        except TimeoutError as e:
            raise AcceleratorTimeoutError(
                f"Job {job_id} did not finish within {timeout} ms"
            ) from e
        except Exception as e:
            logger.error(f"Job {job_id} failed: {e}")
            return 1
        finally:
            if future.done():
                del self._jobs[job_id]
        return 0

    def _run(
        self,
        codes: np.ndarray,  # type: ignore[type-arg]
        out: np.ndarray,  # type: ignore[type-arg]
    ) -> None:
        run_size = codes.shape[0]
        x = codes.astype(np.float32) / np.float32(self.input_scale)
        if self.fixed_batch is not None and run_size < self.fixed_batch:
            pad = np.zeros((self.fixed_batch - run_size, *x.shape[1:]), dtype=np.float32)
            x = np.concatenate([x, pad])
        if self.channels_first:
            x = np.ascontiguousarray(x.transpose(0, 3, 1, 2))
        logits = self.session.run(None, {self.input_name: x})[0]
        logits = np.asarray(logits).reshape(logits.shape[0], -1)[:run_size]
        out[:run_size] = quantize(logits, 1.0 / self.output_scale)

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
