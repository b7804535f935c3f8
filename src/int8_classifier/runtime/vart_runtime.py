"""Vitis AI (xir/vart) accelerator runtime adapter."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from loguru import logger

from int8_classifier.errors import ConfigurationError
from int8_classifier.runtime.base import (
    INFINITE_WAIT,
    BaseAcceleratorRuntime,
    TensorBuffer,
)
from int8_classifier.schemas.tensor import TensorInfo


def find_dpu_subgraphs(graph: Any) -> list[Any]:
    """Children of the root subgraph assigned to the ``DPU`` device."""
    root = graph.get_root_subgraph()
    if root.is_leaf:
        return []
    return [
        sg
        for sg in root.toposort_child_subgraph()
        if sg.has_attr("device") and str(sg.get_attr("device")).upper() == "DPU"
    ]


def _tensor_info(tensor: Any) -> TensorInfo:
    return TensorInfo(
        name=tensor.name,
        shape=tuple(int(d) for d in tensor.dims),
        fix_point=int(tensor.get_attr("fix_point")),
    )


class VartAcceleratorRuntime(BaseAcceleratorRuntime):
    """Wrap a ``vart.Runner`` created for a single DPU subgraph.

    Args:
        runner: The VART runner.
        graph: The deserialized ``xir.Graph`` the runner's subgraph belongs
            to.  Held so it outlives the runner.
    """

    def __init__(self, runner: Any, graph: Any = None) -> None:
        self.runner = runner
        self.graph = graph
        self._jobs: dict[int, Any] = {}

    def get_input_tensors(self) -> list[TensorInfo]:
        return [_tensor_info(t) for t in self.runner.get_input_tensors()]

    def get_output_tensors(self) -> list[TensorInfo]:
        return [_tensor_info(t) for t in self.runner.get_output_tensors()]

    def execute_async(
        self, inputs: list[TensorBuffer], outputs: list[TensorBuffer]
    ) -> tuple[int, int]:
        job = self.runner.execute_async(
            [b.data for b in inputs], [b.data for b in outputs]
        )
        job_id, status = int(job[0]), int(job[1])
        self._jobs[job_id] = job
        return job_id, status

    def wait(self, job_id: int, timeout: int = INFINITE_WAIT) -> int:
        return int(self.runner.wait(self._jobs.pop(job_id), timeout))

    def close(self) -> None:
        self.runner = None


def create_vart_runtime(model_path: str | Path) -> VartAcceleratorRuntime:
    """Deserialize an ``.xmodel`` and create a runner for its DPU subgraph.

    Raises:
        ConfigurationError: If xir/vart are not installed, the model cannot
            be deserialized, or it does not contain exactly one DPU subgraph.
    """
    try:
        import vart
        import xir
    except ImportError as e:
        raise ConfigurationError(
            f"Vitis AI runtime (xir, vart) is required for {model_path}: {e}"
        ) from e

    try:
        graph = xir.Graph.deserialize(str(model_path))
    except RuntimeError as e:
        raise ConfigurationError(f"Cannot load xmodel {model_path}: {e}") from e
    subgraphs = find_dpu_subgraphs(graph)
    if len(subgraphs) != 1:
        raise ConfigurationError(
            f"Model {model_path} must have exactly one DPU subgraph, "
            f"found {len(subgraphs)}"
        )
    logger.info(f"Creating runner for subgraph: {subgraphs[0].get_name()}")
    runner = vart.Runner.create_runner(subgraphs[0], "run")
    return VartAcceleratorRuntime(runner, graph)
