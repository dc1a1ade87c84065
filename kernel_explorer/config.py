"""
Configuration Constants for the Kernel Explorer
================================================
Defaults shared by the numeric stages, the session and the command line
runner. CLI flags override the ones that make sense to tune per run.
"""

# =============================================================================
# KERNEL WEIGHTS
# =============================================================================

WEIGHT_MIN = -1.0             # Weight of a black (0) sheet pixel
WEIGHT_MAX = 1.0              # Weight of a white (255) sheet pixel
PIXEL_MAX = 255.0             # Full-scale 8-bit intensity

DEFAULT_KERNEL_SHAPE = "3x6"  # Parsed by KernelShape.parse

# =============================================================================
# PREVIEWS
# =============================================================================

PREVIEW_MAX_SIZE = 256        # Longest preview side, in pixels
RANGE_FLOOR = 1e-6            # Smallest value range used when normalizing

# =============================================================================
# OUTPUT
# =============================================================================

DEFAULT_OUTPUT_DIR = "explorer_output"
PREVIEW_PREFIX = "preview"
KERNEL_SHEET_FILENAME = "kernels.png"
SCORES_FILENAME = "scores.txt"
SCORES_PLOT_FILENAME = "scores.png"
KERNEL_RENDER_SCALE = 8       # Upscale factor when saving the kernel bank
