"""
Tests for preview_viz.py and the command line runner.
"""
import logging
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

import numpy as np
import pytest
from PIL import Image

from kernel_explorer.primitives.images import GrayscaleImage
from kernel_explorer.run_explorer import main
from kernel_explorer.stages.convolution import convolve_bank
from kernel_explorer.stages.kernel_sheet import KernelShape, split_kernel_sheet
from kernel_explorer.visualization.preview_viz import (
    kernel_bank_image, plot_scores, save_kernel_bank, save_previews, write_scores
)


@pytest.fixture
def bank_and_results():
    rng = np.random.default_rng(5)
    sheet = GrayscaleImage.from_array(rng.integers(0, 256, size=(12, 6)))
    target = GrayscaleImage.from_array(rng.integers(0, 256, size=(40, 50)))
    bank = split_kernel_sheet(sheet, KernelShape.THREE_BY_SIX)
    return bank, convolve_bank(target, bank, max_dim=25)


class TestPreviewExport:

    def test_save_previews_round_trip(self, tmp_path, bank_and_results):
        _, results = bank_and_results
        paths = save_previews(results, str(tmp_path / "out"))

        assert [os.path.basename(p) for p in paths] == [
            "preview_000.png", "preview_001.png", "preview_002.png", "preview_003.png"
        ]
        for path, result in zip(paths, results):
            with Image.open(path) as img:
                assert img.mode == "L"
                assert img.size == (result.width, result.height) == (25, 20)
                np.testing.assert_array_equal(np.array(img), result.pixels)

    def test_kernel_bank_image_layout(self, bank_and_results):
        bank, _ = bank_and_results
        img = kernel_bank_image(bank, scale=2, separator=1)
        # 2 cols of 3 + 1 separator, 2 rows of 6 + 1 separator
        assert img.size == ((2 * 3 + 1) * 2, (2 * 6 + 1) * 2)

    def test_save_kernel_bank(self, tmp_path, bank_and_results):
        bank, _ = bank_and_results
        path = save_kernel_bank(bank, str(tmp_path / "k" / "kernels.png"), scale=1)
        with Image.open(path) as img:
            pixels = np.array(img)
        np.testing.assert_array_equal(pixels[0:6, 0:3], np.round((bank.kernel(0) + 1) / 2 * 255))

    def test_write_scores(self, tmp_path, bank_and_results):
        _, results = bank_and_results
        path = write_scores(results, str(tmp_path / "scores.txt"))
        text = open(path, encoding="utf-8").read()
        for idx, result in enumerate(results):
            assert f"Kernel {idx:3d}: {result.score:.5f}" in text
        assert "Best: kernel" in text

    def test_plot_scores(self, tmp_path, bank_and_results):
        _, results = bank_and_results
        path = plot_scores(results, str(tmp_path / "scores.png"))
        assert os.path.getsize(path) > 0


def _write_png(path, array):
    Image.fromarray(np.asarray(array, dtype=np.uint8)).save(path)


class TestCommandLine:

    def test_full_run(self, tmp_path, capsys):
        rng = np.random.default_rng(9)
        slide = tmp_path / "slide.png"
        sheet = tmp_path / "sheet.png"
        _write_png(slide, rng.integers(0, 256, size=(30, 40)))
        _write_png(sheet, rng.integers(0, 256, size=(6, 12)))
        out_dir = tmp_path / "out"

        code = main([str(slide), str(sheet), "--shape", "6x3", "--max-dim", "20",
                     "--out-dir", str(out_dir), "--workers", "2"])

        assert code == 0
        # 12x6 sheet with 6x3 kernels -> 2 cols x 2 rows
        for idx in range(4):
            assert (out_dir / f"preview_{idx:03d}.png").exists()
        assert (out_dir / "kernels.png").exists()
        assert (out_dir / "scores.txt").exists()
        assert (out_dir / "scores.png").exists()
        assert "Computed 4 convolution maps." in capsys.readouterr().out

    def test_indivisible_sheet_fails(self, tmp_path, capsys):
        slide = tmp_path / "slide.png"
        sheet = tmp_path / "sheet.png"
        _write_png(slide, np.zeros((8, 8)))
        _write_png(sheet, np.zeros((6, 7)))

        code = main([str(slide), str(sheet), "--out-dir", str(tmp_path / "out"), "--no-plot"])

        assert code == 1
        assert "not divisible" in capsys.readouterr().out

    def test_missing_input_fails(self, tmp_path, capsys):
        code = main([str(tmp_path / "nope.png"), str(tmp_path / "nope2.png")])
        assert code == 1
        assert "Failed to decode image" in capsys.readouterr().out

    def test_verbose_run_writes_log_file(self, tmp_path):
        slide = tmp_path / "slide.png"
        sheet = tmp_path / "sheet.png"
        log_file = tmp_path / "explorer.log"
        _write_png(slide, np.full((8, 8), 100))
        _write_png(sheet, np.full((6, 3), 200))

        code = main([str(slide), str(sheet), "--out-dir", str(tmp_path / "out"), "--no-plot",
                     "--verbose", "--log-file", str(log_file)])

        logger = logging.getLogger("kernel_explorer")
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

        assert code == 0
        text = log_file.read_text(encoding="utf-8")
        assert "DEBUG" in text
        assert "Split into 1 kernels (1 rows x 1 cols)." in text
        assert "Computed 1 convolution maps" in text
