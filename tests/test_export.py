"""Tests for gamma correction, quantization and image writers."""

import io

import numpy as np
import pytest
from PIL import Image as PILImage


class TestGammaCorrectAndQuantize:
    def test_pure_red_single_sample(self):
        from pathtracer.preview.export import gamma_correct_and_quantize

        pixel = gamma_correct_and_quantize(np.array([1.0, 0.0, 0.0]), 1)
        assert pixel.tolist() == [255, 0, 0]
        assert pixel.dtype == np.uint8

    def test_averages_over_samples(self):
        """A sum of 0.25 per sample over 4 samples averages to 0.25, sqrt 0.5."""
        from pathtracer.preview.export import gamma_correct_and_quantize

        pixel = gamma_correct_and_quantize(np.array([1.0, 1.0, 1.0]), 4)
        assert pixel.tolist() == [128, 128, 128]

    def test_values_above_one_clamp(self):
        from pathtracer.preview.export import gamma_correct_and_quantize

        pixel = gamma_correct_and_quantize(np.array([50.0, 1.0, 0.999999]), 1)
        assert pixel.tolist() == [255, 255, 255]

    def test_truncates_rather_than_rounds(self):
        """256 * sqrt(0.01) = 25.6 is stored as 25."""
        from pathtracer.preview.export import gamma_correct_and_quantize

        pixel = gamma_correct_and_quantize(np.array([0.01, 0.0, 0.0]), 1)
        assert pixel.tolist() == [25, 0, 0]

    def test_image_shape_preserved(self):
        from pathtracer.preview.export import gamma_correct_and_quantize

        image = np.full((3, 5, 3), 2.0, dtype=np.float32)
        pixels = gamma_correct_and_quantize(image, 2)
        assert pixels.shape == (3, 5, 3)
        assert (pixels == 255).all()

    def test_invalid_sample_count(self):
        from pathtracer.preview.export import gamma_correct_and_quantize

        with pytest.raises(ValueError):
            gamma_correct_and_quantize(np.zeros(3), 0)


class TestWriters:
    def _pixels(self):
        pixels = np.zeros((2, 3, 3), dtype=np.uint8)
        pixels[0, 0] = (255, 0, 0)
        pixels[0, 2] = (0, 0, 255)
        pixels[1, 1] = (10, 20, 30)
        return pixels

    def test_write_ppm_format(self):
        from pathtracer.preview.export import write_ppm

        stream = io.StringIO()
        write_ppm(stream, self._pixels())

        assert stream.getvalue() == (
            "P3\n3 2\n255\n"
            "255 0 0\n0 0 0\n0 0 255\n"
            "0 0 0\n10 20 30\n0 0 0\n"
        )

    def test_write_ppm_rejects_bad_shape(self):
        from pathtracer.preview.export import write_ppm

        with pytest.raises(ValueError):
            write_ppm(io.StringIO(), np.zeros((2, 3), dtype=np.uint8))

    def test_save_ppm_and_png_round_trip(self, tmp_path):
        from pathtracer.preview.export import save_png, save_ppm

        pixels = self._pixels()
        for name, save in (("out.ppm", save_ppm), ("out.png", save_png)):
            path = tmp_path / name
            save(path, pixels)
            with PILImage.open(path) as image:
                assert np.array_equal(np.asarray(image.convert("RGB")), pixels)
