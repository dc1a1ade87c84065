"""
Tests for images.py: construction and decoding of grayscale buffers.
"""
import sys
import os
from io import BytesIO

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

import numpy as np
import pytest
from PIL import Image

from kernel_explorer.primitives.images import GrayscaleImage, decode_grayscale, load_grayscale


class TestGrayscaleImage:

    def test_from_buffer_is_row_major(self):
        img = GrayscaleImage.from_buffer(bytes(range(6)), width=3, height=2)
        assert (img.width, img.height) == (3, 2)
        np.testing.assert_array_equal(img.pixels, [[0, 1, 2], [3, 4, 5]])
        assert img.to_bytes() == bytes(range(6))

    def test_wrong_buffer_length(self):
        with pytest.raises(ValueError):
            GrayscaleImage.from_buffer(bytes(5), width=3, height=2)

    def test_pixels_are_read_only_copy(self):
        source = np.zeros((2, 2), dtype=np.uint8)
        img = GrayscaleImage.from_array(source)
        source[0, 0] = 9
        assert img.pixels[0, 0] == 0
        with pytest.raises(ValueError):
            img.pixels[0, 0] = 1

    @pytest.mark.parametrize("array", [np.zeros((0, 3)), np.zeros((3,)), np.full((2, 2), 300)])
    def test_invalid_arrays(self, array):
        with pytest.raises(ValueError):
            GrayscaleImage.from_array(array)

    def test_constructor_copies_caller_array(self):
        source = np.zeros((2, 3), dtype=np.uint8)
        img = GrayscaleImage(3, 2, source)
        source[0, 0] = 5
        assert img.pixels[0, 0] == 0
        assert not img.pixels.flags.writeable

    @pytest.mark.parametrize("bad", [np.nan, np.inf])
    def test_non_finite_pixels_are_rejected(self, bad):
        array = np.zeros((2, 2))
        array[1, 1] = bad
        with pytest.raises(ValueError):
            GrayscaleImage.from_array(array)

    def test_as_float_range(self):
        img = GrayscaleImage.from_array(np.array([[0, 255]]))
        np.testing.assert_array_equal(img.as_float(), [[0.0, 1.0]])
        assert img.as_float().dtype == np.float32


class TestDecoding:

    def test_color_png_is_converted_to_luma(self, tmp_path):
        rgb = np.zeros((2, 3, 3), dtype=np.uint8)
        rgb[..., 0] = 255
        path = tmp_path / "red.png"
        Image.fromarray(rgb).save(path)

        img = load_grayscale(path)
        expected = np.array(Image.fromarray(rgb).convert('L'))
        assert (img.width, img.height) == (3, 2)
        np.testing.assert_array_equal(img.pixels, expected)

    def test_decode_bytes(self):
        buffer = BytesIO()
        Image.fromarray(np.arange(12, dtype=np.uint8).reshape(3, 4)).save(buffer, format="PNG")
        img = decode_grayscale(buffer.getvalue())
        np.testing.assert_array_equal(img.pixels, np.arange(12).reshape(3, 4))
