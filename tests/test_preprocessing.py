"""Tests for Preprocessor."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from int8_classifier.config import PipelineConfig
from int8_classifier.errors import ImageDecodeError
from int8_classifier.preprocessing import DecodedImage, Preprocessor


def _image(pixels: np.ndarray, name: str = "x.png") -> DecodedImage:
    return DecodedImage(filename=name, pixels=pixels.astype(np.uint8))


class TestLoad:
    def test_converts_to_bgr(self, config: PipelineConfig, tmp_path: Path) -> None:
        path = tmp_path / "red.png"
        Image.new("RGB", (5, 4), color=(255, 10, 0)).save(path)
        image = Preprocessor(config).load(path)
        assert image.filename == "red.png"
        assert (image.height, image.width) == (4, 5)
        assert image.pixels[0, 0].tolist() == [0, 10, 255]

    def test_grayscale_expanded_to_three_channels(
        self, config: PipelineConfig, tmp_path: Path
    ) -> None:
        path = tmp_path / "gray.png"
        Image.new("L", (3, 3), color=77).save(path)
        image = Preprocessor(config).load(path)
        assert image.pixels.shape == (3, 3, 3)
        assert np.all(image.pixels == 77)

    def test_corrupt_file_raises(self, config: PipelineConfig, tmp_path: Path) -> None:
        path = tmp_path / "broken.jpg"
        path.write_bytes(b"not an image")
        with pytest.raises(ImageDecodeError, match="broken.jpg"):
            Preprocessor(config).load(path)

    def test_missing_file_raises(self, config: PipelineConfig, tmp_path: Path) -> None:
        with pytest.raises(ImageDecodeError):
            Preprocessor(config).load(tmp_path / "missing.png")

    def test_oversized_image_raises(
        self,
        config: PipelineConfig,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        path = tmp_path / "huge.png"
        Image.new("RGB", (200, 200)).save(path)
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        with pytest.raises(ImageDecodeError, match="huge.png"):
            Preprocessor(config).load(path)


class TestQuantize:
    def test_shape_and_range(self, config: PipelineConfig) -> None:
        rng = np.random.default_rng(1)
        pixels = rng.integers(0, 256, size=(37, 23, 3))
        codes = Preprocessor(config).quantize(_image(pixels))
        assert codes.shape == (config.in_height, config.in_width, 3)
        assert codes.size == config.in_size
        assert codes.dtype == np.int8
        assert codes.min() >= -128 and codes.max() <= 127

    def test_formula(self, config: PipelineConfig) -> None:
        pixels = np.zeros((config.in_height, config.in_width, 3))
        pixels[..., 0] = 0
        pixels[..., 1] = 128
        pixels[..., 2] = 255
        codes = Preprocessor(config).quantize(_image(pixels))
        # scale 64: 0 -> -64, 128 -> round(0.0039 * 64) = 0, 255 -> 64
        assert codes[0, 0].tolist() == [-64, 0, 64]

    def test_saturates_with_large_scale(self, config: PipelineConfig) -> None:
        cfg = config.model_copy(update={"input_scale": 256.0})
        pixels = np.zeros((cfg.in_height, cfg.in_width, 3))
        pixels[..., 2] = 255
        codes = Preprocessor(cfg).quantize(_image(pixels))
        assert codes[0, 0].tolist() == [-128, -128, 127]

    def test_monotonic_in_pixel_value(self, config: PipelineConfig) -> None:
        values = np.arange(256)
        pixels = np.broadcast_to(
            values[:, None, None], (256, config.in_width, 3)
        ).copy()
        cfg = config.model_copy(update={"in_height": 256})
        codes = Preprocessor(cfg).quantize(_image(pixels)).astype(np.int32)
        assert np.all(np.diff(codes[:, 0, 0]) >= 0)

    def test_channel_order_preserved(self, config: PipelineConfig) -> None:
        pixels = np.zeros((10, 10, 3))
        pixels[..., 0] = 255
        codes = Preprocessor(config).quantize(_image(pixels))
        assert np.all(codes[..., 0] == 64)
        assert np.all(codes[..., 1:] == -64)

    def test_nearest_neighbour_keeps_exact_values(self, config: PipelineConfig) -> None:
        pixels = np.zeros((2, 2, 3))
        pixels[0, 0] = 255
        codes = Preprocessor(config).quantize(_image(pixels))
        assert set(np.unique(codes).tolist()) <= {-64, 64}
        assert codes[0, 0, 0] == 64
        assert codes[-1, -1, 0] == -64


class TestFill:
    def test_writes_only_its_slot(self, config: PipelineConfig) -> None:
        buffer = np.zeros(
            (config.batch_capacity, config.in_height, config.in_width, 3), dtype=np.int8
        )
        pixels = np.full((4, 4, 3), 255)
        Preprocessor(config).fill(_image(pixels), buffer[1])
        assert np.all(buffer[1] == 64)
        assert np.all(buffer[0] == 0)
        assert np.all(buffer[2:] == 0)
        flat = buffer.reshape(-1)
        assert np.all(flat[config.in_size : 2 * config.in_size] == 64)

    def test_blank_image(self, config: PipelineConfig) -> None:
        image = Preprocessor(config).blank("bad.jpg")
        assert image.filename == "bad.jpg"
        assert image.pixels.shape == (config.in_height, config.in_width, 3)
        codes = Preprocessor(config).quantize(image)
        assert np.all(codes == -64)
