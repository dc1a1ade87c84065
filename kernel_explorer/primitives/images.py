"""
Grayscale Images
================
Decoded 8-bit grayscale pixel buffers shared by every stage.

Decoding goes through Pillow, the same way the MNIST loaders do it:
``Image.open(...).convert('L')`` then ``np.array``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from io import BytesIO

import numpy as np
from PIL import Image

from ..config import PIXEL_MAX


@dataclass(frozen=True)
class GrayscaleImage:
    """
    width, height: positive ints.
    pixels: (height, width) uint8 array, row-major, read-only.
    """
    width: int
    height: int
    pixels: np.ndarray

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")
        array = np.asarray(self.pixels)
        if array.shape != (self.height, self.width):
            raise ValueError(
                f"Pixel array has shape {array.shape}, "
                f"expected {(self.height, self.width)}"
            )
        if not np.all(np.isfinite(array)):
            raise ValueError("Pixel intensities must be finite")
        if array.min() < 0 or array.max() > 255:
            raise ValueError("Pixel intensities must lie in [0, 255]")
        # Own a read-only copy so later changes to the caller's array do not leak in
        pixels = array.astype(np.uint8, copy=True)
        pixels.setflags(write=False)
        object.__setattr__(self, 'pixels', pixels)

    @classmethod
    def from_array(cls, array) -> GrayscaleImage:
        """Build from a 2D array of intensities in [0, 255]. The data is copied."""
        array = np.asarray(array)
        if array.ndim != 2:
            raise ValueError(f"Expected a 2D array, got shape {array.shape}")
        height, width = array.shape
        return cls(width=width, height=height, pixels=array)

    @classmethod
    def from_buffer(cls, data, width: int, height: int) -> GrayscaleImage:
        """Build from a flat row-major buffer of width*height bytes."""
        flat = np.frombuffer(bytes(data), dtype=np.uint8)
        if flat.size != width * height:
            raise ValueError(
                f"Buffer holds {flat.size} pixels, expected {width}x{height}={width * height}"
            )
        return cls.from_array(flat.reshape(height, width))

    def as_float(self) -> np.ndarray:
        """Pixels normalized to [0, 1] as float32."""
        return self.pixels.astype(np.float32) / np.float32(PIXEL_MAX)

    def to_bytes(self) -> bytes:
        return self.pixels.tobytes()


def decode_grayscale(data: bytes) -> GrayscaleImage:
    """Decode PNG (or any Pillow-readable) bytes to a grayscale image."""
    with Image.open(BytesIO(data)) as img:
        return GrayscaleImage.from_array(np.array(img.convert('L')))


def load_grayscale(path) -> GrayscaleImage:
    """Load an image file from disk as grayscale."""
    with Image.open(os.fspath(path)) as img:
        return GrayscaleImage.from_array(np.array(img.convert('L')))
