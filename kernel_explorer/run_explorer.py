"""
Kernel Explorer - Main Entry Point
==================================
Splits a kernels sheet into a bank of small filters, correlates each one
with a histological slide and saves a preview per kernel with its score.

Usage:
    kernel-explorer slide.png kernels.png                 # 3x6 kernels
    kernel-explorer slide.png kernels.png --shape 6x3 --workers 4
"""

import argparse
import logging
import os
import sys

from .config import (
    DEFAULT_KERNEL_SHAPE, DEFAULT_OUTPUT_DIR, PREVIEW_MAX_SIZE,
    KERNEL_SHEET_FILENAME, SCORES_FILENAME, SCORES_PLOT_FILENAME
)
from .logging_config import setup_logging
from .session import ExplorerSession
from .stages.kernel_sheet import KernelShape
from .visualization.preview_viz import (
    save_previews,
    save_kernel_bank,
    write_scores,
    plot_scores
)


def build_parser():
    parser = argparse.ArgumentParser(
        description="Correlate a bank of sheet-derived kernels with a slide image"
    )
    parser.add_argument('slide', help='Target (histological slide) image')
    parser.add_argument('sheet', help='Kernels sheet image')
    parser.add_argument(
        '--shape', type=str, default=DEFAULT_KERNEL_SHAPE,
        choices=[f"{s.width}x{s.height}" for s in KernelShape],
        help=f'Kernel width x height (default: {DEFAULT_KERNEL_SHAPE})'
    )
    parser.add_argument(
        '--max-dim', type=int, default=PREVIEW_MAX_SIZE,
        help=f'Longest preview side in pixels (default: {PREVIEW_MAX_SIZE})'
    )
    parser.add_argument(
        '--out-dir', type=str, default=DEFAULT_OUTPUT_DIR,
        help=f'Where previews and summaries are written (default: {DEFAULT_OUTPUT_DIR})'
    )
    parser.add_argument(
        '--workers', type=int, default=None,
        help='Convolve kernels on this many threads (default: sequential)'
    )
    parser.add_argument(
        '--no-plot', action='store_true',
        help='Skip the matplotlib score chart'
    )
    parser.add_argument('--verbose', action='store_true', help='Debug logging')
    parser.add_argument('--log-file', type=str, default=None, help='Also log to this file')
    return parser


def run(args):
    """Run the full pipeline for parsed arguments. Returns a process exit code."""
    if args.max_dim < 1:
        print(f"Error: --max-dim must be at least 1, got {args.max_dim}")
        return 1

    session = ExplorerSession(max_dim=args.max_dim)

    for path in (args.slide, args.sheet):
        if not session.load_file(path):
            print(f"Error: {session.status}")
            return 1
        print(f"  Loaded {path}")

    session.set_kernel_shape(KernelShape.parse(args.shape))

    steps = (session.split_kernels, lambda: session.run_all_convolutions(workers=args.workers))
    for step in steps:
        ok = step()
        print(f"  {session.status}")
        if not ok:
            return 1

    out_dir = args.out_dir
    paths = save_previews(session.previews, out_dir)
    save_kernel_bank(session.bank, os.path.join(out_dir, KERNEL_SHEET_FILENAME))
    write_scores(session.previews, os.path.join(out_dir, SCORES_FILENAME))
    if not args.no_plot:
        plot_scores(
            session.previews,
            os.path.join(out_dir, SCORES_PLOT_FILENAME),
            title=f"Kernel scores - {session.kernel_shape.label} kernels"
        )

    print(f"\nSaved {len(paths)} previews to {out_dir}/")
    best = max(range(len(session.previews)), key=lambda i: session.previews[i].score)
    row, col = session.bank.grid_position(best)
    print(f"Strongest response: kernel {best} (row {row}, col {col}), "
          f"score {session.previews[best].score:.5f}")
    return 0


def main(argv=None):
    """Main entry point for the explorer."""
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING, args.log_file)

    print("\n" + "=" * 60)
    print("KERNEL EXPLORER")
    print("=" * 60)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
