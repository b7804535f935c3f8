"""Image decoding, resizing and input quantization."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image

from int8_classifier.config import PipelineConfig
from int8_classifier.errors import ImageDecodeError
from int8_classifier.quantization import quantize


@dataclass(frozen=True)
class DecodedImage:
    """Decoded pixel grid, shape ``(height, width, 3)``, uint8, BGR order."""

    filename: str
    pixels: np.ndarray  # type: ignore[type-arg]

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])


class Preprocessor:
    """Turn image files into fixed-point input codes.

    Each image is resized to the model's ``in_height x in_width`` with
    nearest-neighbour sampling (aspect ratio is not preserved), mapped from
    ``[0, 255]`` to ``[-1, 1]`` and quantized with the input scale.  Channel
    order stays BGR.

    Args:
        config: Pipeline shapes and input scale.
    """

    def __init__(self, config: PipelineConfig) -> None:
        self.config = config

    def load(self, path: Path) -> DecodedImage:
        """Decode ``path`` into a BGR pixel grid.

        Raises:
            ImageDecodeError: If Pillow cannot open or decode the file.
        """
        try:
            with Image.open(path) as img:
                rgb = np.asarray(img.convert("RGB"), dtype=np.uint8)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise ImageDecodeError(f"Cannot decode image {path}: {e}") from e
        return DecodedImage(filename=path.name, pixels=rgb[..., ::-1])

    def blank(self, filename: str) -> DecodedImage:
        """All-zero image at the model's input size."""
        cfg = self.config
        pixels = np.zeros((cfg.in_height, cfg.in_width, 3), dtype=np.uint8)
        return DecodedImage(filename=filename, pixels=pixels)

    def resize(self, image: DecodedImage) -> np.ndarray:  # type: ignore[type-arg]
        """Nearest-neighbour resize to ``(in_height, in_width, 3)``."""
        cfg = self.config
        if image.height == cfg.in_height and image.width == cfg.in_width:
            return image.pixels
        resized = Image.fromarray(np.ascontiguousarray(image.pixels)).resize(
            (cfg.in_width, cfg.in_height), Image.Resampling.NEAREST
        )
        return np.asarray(resized, dtype=np.uint8)

    def quantize(self, image: DecodedImage) -> np.ndarray:  # type: ignore[type-arg]
        """Fixed-point codes of shape ``(in_height, in_width, 3)``."""
        pixels = self.resize(image).astype(np.float64)
        normalized = (pixels / 255.0 - 0.5) * 2.0
        return quantize(normalized, self.config.input_scale)

    def fill(self, image: DecodedImage, slot: np.ndarray) -> None:  # type: ignore[type-arg]
        """Write the image's codes into one batch slot of the input buffer."""
        slot[...] = self.quantize(image)
