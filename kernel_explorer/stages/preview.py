"""
Preview Normalization
=====================
Shrinks a float response map to a bounded size with nearest-neighbor
sampling and rescales it to 8-bit grayscale for display.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ..config import PREVIEW_MAX_SIZE, RANGE_FLOOR


@dataclass(frozen=True)
class ConvolutionResult:
    """
    score: mean absolute response of the full-size map.
    width, height: preview dimensions (>= 1).
    pixels: (height, width) uint8 preview.
    """
    score: float
    width: int
    height: int
    pixels: np.ndarray

    def to_bytes(self) -> bytes:
        """Row-major preview bytes, width*height long."""
        return self.pixels.tobytes()


def _round_half_up(values):
    """Round half away from zero for non-negative inputs."""
    return np.floor(np.asarray(values, dtype=np.float64) + 0.5)


def preview_size(width: int, height: int, max_dim: int = PREVIEW_MAX_SIZE) -> tuple[int, int]:
    """Output (width, height): shrinks to fit max_dim, never enlarges, never 0."""
    if max_dim < 1:
        raise ValueError(f"max_dim must be at least 1, got {max_dim}")
    scale = min(1.0, max_dim / max(width, height))
    out_w = max(1, int(_round_half_up(width * scale)))
    out_h = max(1, int(_round_half_up(height * scale)))
    return out_w, out_h


def resize_nearest(src: np.ndarray, out_w: int, out_h: int) -> np.ndarray:
    """
    src: (H, W) array.
    Destination pixel (x, y) samples source (x*W // out_w, y*H // out_h).
    """
    src_h, src_w = src.shape
    xs = np.arange(out_w) * src_w // out_w
    ys = np.arange(out_h) * src_h // out_h
    return src[ys[:, np.newaxis], xs[np.newaxis, :]]


def min_max(values: np.ndarray) -> tuple[float, float]:
    """
    Min and max ignoring NaN. Both collapse to 0.0 when there are no values
    or when either bound is infinite.
    """
    values = np.asarray(values, dtype=np.float64)
    values = values[~np.isnan(values)]
    if values.size == 0:
        return 0.0, 0.0
    min_v = float(values.min())
    max_v = float(values.max())
    if not (np.isfinite(min_v) and np.isfinite(max_v)):
        return 0.0, 0.0
    return min_v, max_v


def normalize_to_bytes(values: np.ndarray) -> np.ndarray:
    """Stretch values over [0, 255] using their own min/max; NaN becomes 0."""
    min_v, max_v = min_max(values)
    value_range = max(max_v - min_v, RANGE_FLOOR)
    scaled = (np.asarray(values, dtype=np.float64) - min_v) / value_range * 255.0
    scaled = np.nan_to_num(scaled, nan=0.0, posinf=255.0, neginf=0.0)
    return np.clip(_round_half_up(np.clip(scaled, 0.0, 255.0)), 0, 255).astype(np.uint8)


def build_preview(response: np.ndarray, max_dim: int = PREVIEW_MAX_SIZE) -> tuple[int, int, np.ndarray]:
    """
    response: (H, W) float array.
    Returns (out_w, out_h, pixels) with pixels a (out_h, out_w) uint8 array.
    """
    height, width = response.shape
    out_w, out_h = preview_size(width, height, max_dim)
    resized = resize_nearest(response, out_w, out_h)
    return out_w, out_h, normalize_to_bytes(resized)
