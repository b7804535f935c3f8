"""Fixed-point quantization and ranking helpers shared by pre/post-processing."""

from __future__ import annotations

import numpy as np

INT8_MIN = -128
INT8_MAX = 127


def input_scale(fix_point: int) -> float:
    """Scale mapping real input activations to codes: ``code = x * scale``."""
    return float(2.0**fix_point)


def output_scale(fix_point: int) -> float:
    """Scale mapping output codes to real scores: ``x = code * scale``."""
    return float(2.0**-fix_point)


def quantize(
    values: np.ndarray,  # type: ignore[type-arg]
    scale: float,
) -> np.ndarray:  # type: ignore[type-arg]
    """Quantize real values to int8 codes.

    Rounds half to even and saturates to ``[-128, 127]``.
    """
    codes = np.rint(np.asarray(values, dtype=np.float64) * scale)
    return np.clip(codes, INT8_MIN, INT8_MAX).astype(np.int8)


def dequantize(
    codes: np.ndarray,  # type: ignore[type-arg]
    scale: float,
) -> np.ndarray:  # type: ignore[type-arg]
    """Map int8 codes back to real values as float64."""
    return np.asarray(codes, dtype=np.float64) * scale


def softmax(
    codes: np.ndarray,  # type: ignore[type-arg]
    scale: float,
) -> np.ndarray:  # type: ignore[type-arg]
    """Softmax over dequantized scores of a 1-D code vector.

    Accumulates in float64.  The max score is subtracted before ``exp``,
    which leaves the normalised distribution unchanged.
    """
    scores = dequantize(codes, scale)
    exp = np.exp(scores - scores.max())
    return exp / exp.sum()


def top_k(
    probabilities: np.ndarray,  # type: ignore[type-arg]
    k: int,
) -> list[int]:
    """Indices of the ``k`` largest probabilities, highest first.

    Equal probabilities keep ascending class-index order.
    """
    if k <= 0 or k > probabilities.shape[0]:
        raise ValueError(f"k must be in [1, {probabilities.shape[0]}], got {k}")
    order = np.argsort(-probabilities, kind="stable")
    return [int(i) for i in order[:k]]
