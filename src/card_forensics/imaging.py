"""Image decoding and canvas standardization.

Decodes encoded images into RGBA PixelBuffers and fits them onto a fixed
canvas so that comparison inputs share identical dimensions.
"""

import io
import logging
from pathlib import Path
from typing import BinaryIO, Tuple, Union

import numpy as np
from PIL import Image, UnidentifiedImageError
from pydantic import Field, field_validator
from pydantic.dataclasses import dataclass

from card_forensics.constants import STANDARD_FILL, STANDARD_HEIGHT, STANDARD_WIDTH
from card_forensics.errors import ImageDecodeError
from card_forensics.types import PixelBuffer

logger = logging.getLogger(__name__)

__all__ = ['SUPPORTED_SUFFIXES', 'decode_image', 'ImageStandardizer', 'load_standardized']

ImageSource = Union[str, Path, bytes, bytearray, BinaryIO]

SUPPORTED_SUFFIXES = frozenset({".jpg", ".jpeg", ".png", ".webp", ".gif", ".bmp", ".tif", ".tiff"})


def _read_source(source: ImageSource) -> Tuple[bytes, str]:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source), "<bytes>"
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Image not found: {source}")
        if path.suffix.lower() not in SUPPORTED_SUFFIXES:
            raise ImageDecodeError(f"Unsupported image format: {path.suffix}")
        return path.read_bytes(), str(path)
    return source.read(), getattr(source, "name", "<stream>")


def decode_image(source: ImageSource) -> PixelBuffer:
    """
    Decode an encoded image into an RGBA PixelBuffer.

    Args:
        source: File path, encoded bytes or a binary file object

    Returns:
        PixelBuffer with one byte per RGBA channel

    Raises:
        FileNotFoundError: If a path does not exist
        ImageDecodeError: If the data cannot be decoded
    """
    data, label = _read_source(source)
    if not data:
        raise ImageDecodeError(f"Empty image data: {label}")

    logger.debug(f"Decoding image: {label} ({len(data)} bytes)")
    try:
        img = Image.open(io.BytesIO(data))
        # verify() leaves the image unusable, so reopen afterwards
        img.verify()
        img = Image.open(io.BytesIO(data))
        img = img.convert("RGBA")
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise ImageDecodeError(f"Failed to decode image {label}: {e}") from e

    return PixelBuffer(np.array(img, dtype=np.uint8))


@dataclass
class ImageStandardizer:
    """Fits images onto a fixed canvas for cross-image comparison."""

    width: int = Field(default=STANDARD_WIDTH, ge=1, le=8192)
    height: int = Field(default=STANDARD_HEIGHT, ge=1, le=8192)
    fill: Tuple[int, int, int, int] = STANDARD_FILL

    @field_validator("fill")
    @classmethod
    def validate_fill(cls, v: Tuple[int, int, int, int]) -> Tuple[int, int, int, int]:
        """Fill must be an RGBA tuple of bytes."""
        if any(channel < 0 or channel > 255 for channel in v):
            raise ValueError(f"Fill channels must lie in [0, 255], got {v}")
        return v

    def resize_with_padding(self, image: PixelBuffer) -> Tuple[PixelBuffer, Tuple[int, int]]:
        """
        Resize an image to fit the canvas while maintaining aspect ratio.

        The resized image is centered and the remaining area is filled with
        ``fill``.

        Args:
            image: Decoded RGBA buffer

        Returns:
            Tuple of (standardized_buffer, original_size) where original_size is (width, height)
        """
        original_size = (image.width, image.height)
        scale = min(self.width / image.width, self.height / image.height)

        new_w = max(1, min(self.width, int(image.width * scale)))
        new_h = max(1, min(self.height, int(image.height * scale)))

        resized = Image.fromarray(np.array(image.pixels))
        if (new_w, new_h) != original_size:
            resized = resized.resize((new_w, new_h), Image.Resampling.LANCZOS)

        pad_left = (self.width - new_w) // 2
        pad_top = (self.height - new_h) // 2

        canvas = Image.new("RGBA", (self.width, self.height), tuple(self.fill))
        canvas.paste(resized, (pad_left, pad_top))

        logger.debug(
            f"Standardized image from {original_size[0]}x{original_size[1]} to "
            f"{self.width}x{self.height} (scale: {scale:.3f}, offset: ({pad_left}, {pad_top}))"
        )

        return PixelBuffer(np.array(canvas, dtype=np.uint8)), original_size

    def standardize(self, image: PixelBuffer) -> PixelBuffer:
        standardized, _ = self.resize_with_padding(image)
        return standardized

    def load(self, source: ImageSource) -> PixelBuffer:
        """Decode and standardize in one step."""
        return self.standardize(decode_image(source))


def load_standardized(
    source: ImageSource,
    width: int = STANDARD_WIDTH,
    height: int = STANDARD_HEIGHT,
    fill: Tuple[int, int, int, int] = STANDARD_FILL,
) -> PixelBuffer:
    return ImageStandardizer(width=width, height=height, fill=fill).load(source)
