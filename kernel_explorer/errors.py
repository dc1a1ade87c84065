"""Recoverable error conditions raised by the explorer stages."""


class ExplorerError(ValueError):
    """Base class for conditions the caller can report and recover from."""


class DimensionMismatch(ExplorerError):
    """The sheet image cannot be tiled exactly by the kernel shape."""

    def __init__(self, sheet_size, kernel_size):
        self.sheet_size = tuple(sheet_size)
        self.kernel_size = tuple(kernel_size)
        sw, sh = self.sheet_size
        kw, kh = self.kernel_size
        super().__init__(
            f"Kernel sheet size {sw}x{sh} is not divisible by kernel size {kw}x{kh}."
        )


class MissingImage(ExplorerError):
    """An operation needed an image that has not been loaded."""

    def __init__(self, message="Load the histological slide first."):
        super().__init__(message)


class EmptyKernelBank(ExplorerError):
    """Convolution was requested before any kernels were split out."""

    def __init__(self, message="Split kernels first."):
        super().__init__(message)
