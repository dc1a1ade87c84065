"""Kernel bank extraction, same-size correlation and preview rendering."""

from .errors import DimensionMismatch, EmptyKernelBank, ExplorerError, MissingImage
from .primitives.images import GrayscaleImage, decode_grayscale, load_grayscale
from .session import ExplorerSession
from .stages.convolution import convolve_bank, convolve_kernel, correlate_same, mean_abs_score
from .stages.kernel_sheet import KernelBank, KernelShape, split_kernel_sheet
from .stages.preview import ConvolutionResult, build_preview

__version__ = "0.1.0"
