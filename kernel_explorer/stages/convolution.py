"""
Convolution Engine
==================
Same-size 2D correlation of one kernel over the target image, plus the
per-kernel score and preview.

Key design:
- Output has the target's dimensions whatever the kernel shape
- Anchor is (kw // 2, kh // 2), so even-sized kernels sit off-centre
- Samples falling outside the target are skipped (implicit zero padding)
- Uses NumPy slicing: one multiply-add over the valid window per kernel tap
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from ..config import PREVIEW_MAX_SIZE
from ..errors import EmptyKernelBank, MissingImage
from ..primitives.images import GrayscaleImage
from .preview import ConvolutionResult, build_preview

logger = logging.getLogger(__name__)


# =============================================================================
# CORRELATION
# =============================================================================

def correlate_same(target: GrayscaleImage, kernel: np.ndarray) -> np.ndarray:
    """
    target: grayscale image, normalized to [0, 1] before use.
    kernel: (kh, kw) weights.

    Returns: (H, W) float32 response where
        out[y, x] = sum_{ky, kx} in[y + ky - kh//2, x + kx - kw//2] * kernel[ky, kx]
    over the in-range samples only.
    """
    image = target.as_float()
    return _correlate_array(image, np.asarray(kernel, dtype=np.float32))


def _correlate_array(image: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    height, width = image.shape
    kh, kw = kernel.shape
    kcy, kcx = kh // 2, kw // 2
    output = np.zeros((height, width), dtype=np.float32)

    for ky in range(kh):
        dy = ky - kcy
        # Output rows whose sample row y + dy lands inside the image
        y0, y1 = max(0, -dy), min(height, height - dy)
        if y0 >= y1:
            continue
        for kx in range(kw):
            dx = kx - kcx
            x0, x1 = max(0, -dx), min(width, width - dx)
            if x0 >= x1:
                continue
            output[y0:y1, x0:x1] += image[y0 + dy:y1 + dy, x0 + dx:x1 + dx] * kernel[ky, kx]

    return output


def mean_abs_score(response: np.ndarray) -> float:
    """Mean absolute activation; exactly 0.0 for an all-zero map."""
    if response.size == 0:
        return 0.0
    return float(np.abs(response, dtype=np.float64).sum() / response.size)


# =============================================================================
# PER-KERNEL AND BANK-WIDE RUNS
# =============================================================================

def convolve_kernel(target: GrayscaleImage, kernel: np.ndarray,
                    max_dim: int = PREVIEW_MAX_SIZE) -> ConvolutionResult:
    """Correlate one kernel, score it and build its preview."""
    response = correlate_same(target, kernel)
    score = mean_abs_score(response)
    out_w, out_h, pixels = build_preview(response, max_dim)
    return ConvolutionResult(score=score, width=out_w, height=out_h, pixels=pixels)


def convolve_bank(target, bank, max_dim=PREVIEW_MAX_SIZE, workers=None):
    """
    Run every kernel of the bank against the target.

    Args:
        target: GrayscaleImage or None
        bank: KernelBank or None
        max_dim: Longest preview side
        workers: Thread count; None or 1 runs sequentially

    Returns:
        List of ConvolutionResult, index-aligned with the bank
    """
    if target is None:
        raise MissingImage()
    if bank is None or bank.is_empty:
        raise EmptyKernelBank()
    if max_dim < 1:
        raise ValueError(f"max_dim must be at least 1, got {max_dim}")

    def run(index):
        return convolve_kernel(target, bank.kernel(index), max_dim)

    indices = range(len(bank))
    if workers is not None and workers > 1:
        logger.debug("Convolving %d kernels on %d threads", len(bank), workers)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            # map yields in submission order, keeping results aligned with the bank
            results = list(pool.map(run, indices))
    else:
        results = [run(i) for i in indices]

    logger.info("Computed %d convolution maps on a %dx%d target",
                len(results), target.width, target.height)
    return results

