"""
Tests for bilinear resizing and canvas fitting.
"""

import unittest
import numpy as np

from ..processing.buffer import PixelBuffer, InvalidCanvasSizeError, InvalidTargetSizeError
from ..processing.canvas import WHITE, bilinear_resize, fitted_size, resize_to_canvas


RED = (1.0, 0.0, 0.0, 1.0)


class TestBilinearResize(unittest.TestCase):
    """Test cases for bilinear_resize."""

    def test_same_size_is_identity(self):
        rng = np.random.default_rng(5)
        source = PixelBuffer(rng.random((7, 9, 4)))
        self.assertEqual(bilinear_resize(source, 9, 7), source)

    def test_uniform_color_stays_exact(self):
        source = PixelBuffer.filled(10, 10, RED)
        result = bilinear_resize(source, 37, 23)
        self.assertEqual(result.size, (37, 23))
        self.assertTrue(np.all(result.pixels == RED))

    def test_blends_neighbours(self):
        source = PixelBuffer.from_samples([(0, 0, 0, 1), (1, 1, 1, 1)], 2, 1)
        result = bilinear_resize(source, 4, 1)
        # Source x positions 0, 0.5, 1, 1.5; the right edge repeats the last column
        np.testing.assert_allclose(result.pixels[0, :, 0], [0.0, 0.5, 1.0, 1.0])

    def test_alpha_is_interpolated(self):
        source = PixelBuffer.from_samples([(1, 0, 0, 0), (1, 0, 0, 1)], 2, 1)
        result = bilinear_resize(source, 4, 1)
        np.testing.assert_allclose(result.pixels[0, :, 3], [0.0, 0.5, 1.0, 1.0])

    def test_invalid_size(self):
        source = PixelBuffer.filled(2, 2, RED)
        with self.assertRaises(InvalidTargetSizeError):
            bilinear_resize(source, 0, 4)


class TestFittedSize(unittest.TestCase):

    def test_square_into_square(self):
        self.assertEqual(fitted_size(10, 10, 256, 256), (256, 256))

    def test_wide_source(self):
        self.assertEqual(fitted_size(200, 100, 256, 256), (256, 128))

    def test_tall_source(self):
        self.assertEqual(fitted_size(30, 90, 300, 150), (50, 150))

    def test_never_below_one_pixel(self):
        self.assertEqual(fitted_size(1000, 1, 10, 10), (10, 1))


class TestResizeToCanvas(unittest.TestCase):
    """Test cases for resize_to_canvas."""

    def test_exact_canvas_size(self):
        source = PixelBuffer.filled(13, 7, RED)
        for width, height in [(256, 256), (64, 32), (5, 9)]:
            result = resize_to_canvas(source, width, height)
            self.assertEqual(result.size, (width, height))

    def test_output_is_opaque(self):
        rng = np.random.default_rng(9)
        source = PixelBuffer(rng.random((12, 20, 4)))
        result = resize_to_canvas(source, 64, 64)
        self.assertTrue(np.all(result.pixels[..., 3] == 1.0))

    def test_square_source_fills_canvas(self):
        result = resize_to_canvas(PixelBuffer.filled(10, 10, RED), 256, 256)
        self.assertTrue(np.all(result.pixels == RED))

    def test_wide_source_is_centered_with_padding(self):
        result = resize_to_canvas(PixelBuffer.filled(20, 10, RED), 100, 100)

        self.assertTrue(np.all(result.pixels[:25] == (1.0, 1.0, 1.0, 1.0)))
        self.assertTrue(np.all(result.pixels[25:75] == RED))
        self.assertTrue(np.all(result.pixels[75:] == (1.0, 1.0, 1.0, 1.0)))

    def test_tall_source_with_odd_padding_is_centered(self):
        result = resize_to_canvas(PixelBuffer.filled(10, 30, RED), 101, 90)

        row = result.pixels[45]
        red_columns = np.flatnonzero(np.all(row == RED, axis=-1))
        self.assertEqual(len(red_columns), 30)
        left = red_columns[0]
        right = result.width - red_columns[-1] - 1
        self.assertEqual((left, right), (35, 36))
        self.assertLessEqual(abs(left - right), 1)

    def test_custom_background(self):
        result = resize_to_canvas(PixelBuffer.filled(10, 20, RED), 40, 40, (0.0, 0.0, 0.0))
        self.assertEqual(result.get_pixel(0, 0), (0.0, 0.0, 0.0, 1.0))
        self.assertEqual(result.get_pixel(20, 20), RED)

    def test_background_alpha_ignored(self):
        result = resize_to_canvas(PixelBuffer.filled(10, 20, RED), 40, 40, (0.0, 0.0, 1.0, 0.0))
        self.assertEqual(result.get_pixel(0, 0), (0.0, 0.0, 1.0, 1.0))

    def test_background_argument_not_modified(self):
        background = np.array([0.2, 0.4, 0.6, 0.0])
        resize_to_canvas(PixelBuffer.filled(4, 2, RED), 8, 8, background)
        np.testing.assert_array_equal(background, [0.2, 0.4, 0.6, 0.0])

    def test_transparent_pixels_become_background(self):
        source = PixelBuffer.filled(4, 4, (1.0, 0.0, 1.0, 0.0))
        result = resize_to_canvas(source, 16, 16)
        self.assertTrue(np.all(result.pixels == (1.0, 1.0, 1.0, 1.0)))

    def test_translucent_pixels_are_composited(self):
        source = PixelBuffer.filled(4, 4, (0.0, 0.0, 0.0, 0.5))
        result = resize_to_canvas(source, 8, 8, WHITE)
        self.assertEqual(result.get_pixel(3, 3), (0.5, 0.5, 0.5, 1.0))

    def test_invalid_canvas_size(self):
        source = PixelBuffer.filled(2, 2, RED)
        with self.assertRaises(InvalidCanvasSizeError):
            resize_to_canvas(source, 0, 10)
        with self.assertRaises(InvalidTargetSizeError):
            resize_to_canvas(source, 10, -1)


if __name__ == '__main__':
    unittest.main()
