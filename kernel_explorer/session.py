"""
Explorer Session
================
Mutable state around the stateless stages: the two loaded images, the
chosen kernel shape, the current bank and previews, the selected kernel
and a human-readable status line.

Operations never raise for recoverable conditions. They return False and
leave the reason in ``status``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError

from .config import DEFAULT_KERNEL_SHAPE, PREVIEW_MAX_SIZE
from .errors import DimensionMismatch, EmptyKernelBank, MissingImage
from .primitives.images import GrayscaleImage, decode_grayscale, load_grayscale
from .stages.convolution import convolve_bank
from .stages.kernel_sheet import KernelBank, KernelShape, split_kernel_sheet
from .stages.preview import ConvolutionResult

logger = logging.getLogger(__name__)

INITIAL_STATUS = (
    "Load two images: first the histological slide, then the kernels sheet."
)


@dataclass
class LoadedImage:
    name: str = ""
    image: Optional[GrayscaleImage] = None

    @property
    def loaded(self) -> bool:
        return self.image is not None


class ExplorerSession:
    """Single slide / single sheet workspace. A max_dim below 1 raises ValueError."""

    def __init__(self, max_dim: int = PREVIEW_MAX_SIZE):
        if max_dim < 1:
            raise ValueError(f"max_dim must be at least 1, got {max_dim}")
        self.max_dim = max_dim
        self.reset()

    def reset(self) -> None:
        self.slide = LoadedImage()
        self.kernel_sheet = LoadedImage()
        self.kernel_shape = KernelShape.parse(DEFAULT_KERNEL_SHAPE)
        self.bank: Optional[KernelBank] = None
        self.previews: list[ConvolutionResult] = []
        self.selected_kernel = 0
        self.status = INITIAL_STATUS

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load_image(self, image: GrayscaleImage, name: str = "") -> bool:
        """Fill the slide slot first, then the kernels sheet slot."""
        if not self.slide.loaded:
            target = self.slide
        elif not self.kernel_sheet.loaded:
            target = self.kernel_sheet
        else:
            self.status = "Both image slots are already filled. Use Reset to load different files."
            return False

        target.name = name
        target.image = image
        self._clear_results()
        self.status = "Image loaded. Choose kernel shape and press Split kernels."
        logger.info("Loaded %s (%dx%d)", name or "<unnamed>", image.width, image.height)
        return True

    def load_bytes(self, data: bytes, name: str = "") -> bool:
        try:
            image = decode_grayscale(data)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            self.status = f"Failed to decode image: {e}"
            logger.warning(self.status)
            return False
        return self.load_image(image, name)

    def load_file(self, path) -> bool:
        try:
            image = load_grayscale(path)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            self.status = f"Failed to decode image: {e}"
            logger.warning(self.status)
            return False
        return self.load_image(image, os.path.basename(os.fspath(path)))

    # -------------------------------------------------------------------------
    # Kernels and convolutions
    # -------------------------------------------------------------------------

    def set_kernel_shape(self, shape: KernelShape) -> None:
        if shape is self.kernel_shape:
            return
        self.kernel_shape = shape
        # Existing kernels were cut with the old shape
        self._clear_results()

    def split_kernels(self) -> bool:
        if not self.kernel_sheet.loaded:
            self.status = "Load the kernels sheet first."
            return False

        try:
            bank = split_kernel_sheet(self.kernel_sheet.image, self.kernel_shape)
        except DimensionMismatch as e:
            self.status = str(e)
            logger.warning(self.status)
            return False

        self._clear_results()
        self.bank = bank
        self.status = f"Split into {len(bank)} kernels ({bank.rows} rows x {bank.cols} cols)."
        logger.info(self.status)
        return True

    def run_all_convolutions(self, workers: Optional[int] = None) -> bool:
        try:
            previews = convolve_bank(self.slide.image, self.bank, self.max_dim, workers=workers)
        except (MissingImage, EmptyKernelBank) as e:
            self.status = str(e)
            logger.warning(self.status)
            return False

        self.previews = previews
        self.selected_kernel = 0
        self.status = f"Computed {len(previews)} convolution maps."
        return True

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def select_kernel(self, index: int) -> int:
        """Clamp index into the preview range and select it."""
        if not self.previews:
            self.selected_kernel = 0
        else:
            self.selected_kernel = min(max(index, 0), len(self.previews) - 1)
        return self.selected_kernel

    @property
    def selected_preview(self) -> Optional[ConvolutionResult]:
        if 0 <= self.selected_kernel < len(self.previews):
            return self.previews[self.selected_kernel]
        return None

    @property
    def selected_score(self) -> Optional[float]:
        preview = self.selected_preview
        return preview.score if preview is not None else None

    def _clear_results(self) -> None:
        self.bank = None
        self.previews = []
        self.selected_kernel = 0
