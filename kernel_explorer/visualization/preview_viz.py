"""
Visualization Tools
===================
Saving previews, the kernel bank and the score summary to disk.
"""

import os

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from PIL import Image

from ..config import KERNEL_RENDER_SCALE, PREVIEW_PREFIX
from ..stages.kernel_sheet import weights_to_pixels


def save_previews(results, output_dir, prefix=PREVIEW_PREFIX):
    """
    Save each preview as a grayscale PNG.

    Args:
        results: List of ConvolutionResult
        output_dir: Directory to save images
        prefix: Prefix for filenames

    Returns:
        List of written file paths, in result order
    """
    os.makedirs(output_dir, exist_ok=True)

    paths = []
    for idx, result in enumerate(results):
        img = Image.fromarray(result.pixels)
        filepath = os.path.join(output_dir, f"{prefix}_{idx:03d}.png")
        img.save(filepath)
        paths.append(filepath)
    return paths


def kernel_bank_image(bank, scale=KERNEL_RENDER_SCALE, separator=1):
    """
    Lay the bank back out on its grid, one tile per kernel, with a gray
    separator between tiles, upscaled for visibility.
    """
    kw, kh = bank.shape.width, bank.shape.height
    rows, cols = bank.rows, bank.cols
    height = rows * kh + max(rows - 1, 0) * separator
    width = cols * kw + max(cols - 1, 0) * separator

    sheet = np.full((max(height, 1), max(width, 1)), 128, dtype=np.uint8)
    for idx in range(len(bank)):
        row, col = bank.grid_position(idx)
        y = row * (kh + separator)
        x = col * (kw + separator)
        sheet[y:y + kh, x:x + kw] = weights_to_pixels(bank.kernel(idx))

    img = Image.fromarray(sheet)
    return img.resize((img.width * scale, img.height * scale), Image.NEAREST)


def save_kernel_bank(bank, filepath, scale=KERNEL_RENDER_SCALE):
    """Save the bank rendered by kernel_bank_image."""
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)
    kernel_bank_image(bank, scale).save(filepath)
    return filepath


def write_scores(results, filepath):
    """Plain-text table of scores with a crude bar per kernel."""
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)

    scores = [r.score for r in results]
    top = max(scores) if scores else 0.0
    with open(filepath, 'w', encoding='utf-8') as f:
        f.write("Kernel scores (mean abs response)\n")
        f.write("=" * 40 + "\n\n")
        for idx, result in enumerate(results):
            bar = "█" * (int(result.score / top * 30) if top > 0 else 0)
            f.write(f"Kernel {idx:3d}: {result.score:.5f} "
                    f"({result.width}x{result.height}) |{bar}\n")
        if scores:
            f.write(f"\nMean: {np.mean(scores):.5f}\n")
            f.write(f"Best: kernel {int(np.argmax(scores))}\n")
    return filepath


def plot_scores(results, filepath, title="Kernel activation scores"):
    """Bar chart of score per kernel index."""
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)

    scores = [r.score for r in results]
    fig, ax = plt.subplots(figsize=(max(6, len(scores) * 0.4), 4))
    ax.bar(range(len(scores)), scores, color='steelblue')
    ax.set_title(title, fontsize=14)
    ax.set_xlabel('Kernel index')
    ax.set_ylabel('Mean |response|')
    ax.grid(True, axis='y', alpha=0.3)

    plt.tight_layout()
    fig.savefig(filepath, dpi=150)
    plt.close(fig)
    return filepath
