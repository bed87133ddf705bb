"""Tests for photo swatch color extraction."""

import numpy as np

from inventory_match.swatch import (
    as_rgb8, average_rgb, center_crop, classify_swatch,
)


class TestAverageRgb:
    """Tests for center-patch color averaging."""

    def test_center_of_red_square(self, red_square_image):
        assert average_rgb(red_square_image, patch_size=100) == (200, 30, 30)

    def test_full_patch_mixes_background(self, red_square_image):
        r, g, b = average_rgb(red_square_image, patch_size=200)
        assert 200 < r < 255
        assert g > 30

    def test_float_image_accepted(self):
        img = np.ones((50, 50, 3), dtype=np.float32) * 0.5
        r, g, b = average_rgb(img)
        assert r == g == b
        assert 120 <= r <= 130

    def test_grayscale_image_accepted(self):
        img = np.full((40, 40), 90, dtype=np.uint8)
        assert average_rgb(img) == (90, 90, 90)

    def test_empty_image(self):
        assert average_rgb(np.zeros((0, 0, 3), dtype=np.uint8)) is None


class TestClassifySwatch:
    """Tests for photo to cluster color classification."""

    def test_red(self, red_square_image):
        assert classify_swatch(red_square_image, patch_size=100) == "Red"

    def test_green(self, green_field_image):
        assert classify_swatch(green_field_image) == "Green"

    def test_empty_image_gives_empty(self):
        assert classify_swatch(np.zeros((0, 0, 3), dtype=np.uint8)) == ""


class TestImageHelpers:
    """Tests for pixel conversion and cropping."""

    def test_crop_clamped_to_short_side(self):
        img = np.zeros((30, 80, 3), dtype=np.uint8)
        assert center_crop(img, patch_size=500).shape == (30, 30, 3)

    def test_crop_is_centered(self):
        img = np.zeros((10, 10, 3), dtype=np.uint8)
        img[4:6, 4:6] = 255
        assert center_crop(img, patch_size=2).min() == 255

    def test_rgba_dropped_to_rgb(self):
        img = np.zeros((10, 10, 4), dtype=np.uint8)
        assert as_rgb8(img).shape == (10, 10, 3)

    def test_float_values_above_one_clipped(self):
        img = np.full((4, 4, 3), 300.0)
        rgb = as_rgb8(img)
        assert rgb.dtype == np.uint8
        assert rgb.max() == 255
