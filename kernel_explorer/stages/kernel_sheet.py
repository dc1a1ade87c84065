"""
Kernel Sheet Splitting
======================
Cuts a grayscale sheet image into a grid of fixed-size kernels and maps
each pixel intensity onto a centered weight in [-1, 1].
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

import numpy as np

from ..config import PIXEL_MAX, WEIGHT_MAX, WEIGHT_MIN
from ..errors import DimensionMismatch
from ..primitives.images import GrayscaleImage

logger = logging.getLogger(__name__)


class KernelShape(enum.Enum):
    """Supported kernel sizes as (width, height)."""
    THREE_BY_SIX = (3, 6)
    SIX_BY_THREE = (6, 3)

    @property
    def width(self) -> int:
        return self.value[0]

    @property
    def height(self) -> int:
        return self.value[1]

    @property
    def label(self) -> str:
        return f"{self.width} x {self.height}"

    @classmethod
    def parse(cls, text: str) -> KernelShape:
        """Accepts '3x6', '6x3', '3 x 6' and similar."""
        normalized = text.lower().replace(" ", "")
        for shape in cls:
            if normalized == f"{shape.width}x{shape.height}":
                return shape
        choices = [f"{s.width}x{s.height}" for s in cls]
        raise ValueError(f"Unknown kernel shape: {text}. Choose from {choices}")


@dataclass(frozen=True)
class KernelBank:
    """
    shape: the KernelShape the sheet was cut with.
    rows, cols: grid dimensions of the sheet.
    kernels: (rows*cols, kh, kw) float32 array, grid order (row-major).
    """
    shape: KernelShape
    rows: int
    cols: int
    kernels: np.ndarray

    @classmethod
    def empty(cls, shape: KernelShape) -> KernelBank:
        kernels = np.zeros((0, shape.height, shape.width), dtype=np.float32)
        return cls(shape=shape, rows=0, cols=0, kernels=kernels)

    def __len__(self) -> int:
        return self.kernels.shape[0]

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def kernel(self, index: int) -> np.ndarray:
        """(kh, kw) weights of one kernel."""
        return self.kernels[index]

    def flat(self, index: int) -> np.ndarray:
        """Row-major flat weights of one kernel (kw*kh values)."""
        return self.kernels[index].reshape(-1)

    def grid_position(self, index: int) -> tuple[int, int]:
        """(row, col) of a kernel on the sheet."""
        if not 0 <= index < len(self):
            raise IndexError(f"Kernel index {index} out of range for {len(self)} kernels")
        return divmod(index, self.cols)


def pixels_to_weights(pixels) -> np.ndarray:
    """Map intensities in [0, 255] linearly onto weights in [-1, 1] (float32)."""
    pixels = np.asarray(pixels, dtype=np.float32)
    return (pixels / np.float32(PIXEL_MAX)) * np.float32(2.0) - np.float32(1.0)


def weights_to_pixels(weights) -> np.ndarray:
    """Inverse of pixels_to_weights, rounded and clamped to uint8."""
    weights = np.clip(np.asarray(weights, dtype=np.float64), WEIGHT_MIN, WEIGHT_MAX)
    pixels = np.floor((weights + 1.0) / 2.0 * PIXEL_MAX + 0.5)
    return np.clip(pixels, 0, 255).astype(np.uint8)


def split_kernel_sheet(sheet: GrayscaleImage, shape: KernelShape) -> KernelBank:
    """
    Partition the sheet into a rows x cols grid of shape-sized kernels.

    Kernels are enumerated row by row over the grid; inside a kernel the
    weights are row-major. Raises DimensionMismatch when the sheet is not an
    exact multiple of the kernel size.
    """
    kw, kh = shape.width, shape.height
    if sheet.width % kw != 0 or sheet.height % kh != 0:
        raise DimensionMismatch((sheet.width, sheet.height), (kw, kh))

    cols = sheet.width // kw
    rows = sheet.height // kh

    # (rows, kh, cols, kw) -> (rows, cols, kh, kw): each [r, c] is one tile
    tiles = sheet.pixels.reshape(rows, kh, cols, kw).transpose(0, 2, 1, 3)
    kernels = pixels_to_weights(tiles.reshape(rows * cols, kh, kw))
    kernels = np.ascontiguousarray(kernels)
    kernels.setflags(write=False)

    logger.debug("Split %dx%d sheet into %d kernels (%d rows x %d cols)",
                 sheet.width, sheet.height, rows * cols, rows, cols)
    return KernelBank(shape=shape, rows=rows, cols=cols, kernels=kernels)
