"""Shared pytest fixtures for card_forensics tests."""

import io

import numpy as np
import pytest
from PIL import Image

from card_forensics.types import PixelBuffer


def gray_buffer(values) -> PixelBuffer:
    """RGBA buffer whose three color channels all carry ``values``."""
    values = np.asarray(values, dtype=np.uint8)
    rgba = np.stack([values, values, values, np.full_like(values, 255)], axis=2)
    return PixelBuffer(rgba)


def encode_png(buffer: PixelBuffer) -> bytes:
    out = io.BytesIO()
    Image.fromarray(np.array(buffer.pixels)).save(out, format="PNG")
    return out.getvalue()


@pytest.fixture()
def black_4x4():
    """4x4 all-black opaque image."""
    return gray_buffer(np.zeros((4, 4)))


@pytest.fixture()
def step_10x10():
    """10x10 image, left half black and right half white."""
    values = np.zeros((10, 10))
    values[:, 5:] = 255
    return gray_buffer(values)


@pytest.fixture()
def checkerboard_8x8():
    """Single-pixel checkerboard; (x + y) odd pixels are white."""
    y, x = np.indices((8, 8))
    return gray_buffer(((x + y) % 2) * 255)


@pytest.fixture()
def noise_image():
    """Deterministic 64x48 RGB noise image."""
    rng = np.random.default_rng(1234)
    return PixelBuffer.from_array(rng.integers(0, 256, (48, 64, 3), dtype=np.uint8))


@pytest.fixture()
def png_bytes(noise_image):
    return encode_png(noise_image)
