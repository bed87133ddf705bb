"""Tests for color-name resolution and distance."""

import math

import pytest

from inventory_match.colors import (
    CLUSTER_COLORS, PALETTE, UNKNOWN_DISTANCE,
    closest_cluster_color, closest_cluster_for_rgb, color_distance,
    palette_names, resolve_color,
)


class TestResolveColor:
    """Tests for free-text color resolution."""

    def test_exact_match(self):
        assert resolve_color("Pink") == (255, 192, 203)

    def test_multi_word_exact_match(self):
        assert resolve_color("Dusty Pink") == (216, 167, 177)

    def test_trims_and_lowercases(self):
        assert resolve_color("  RED  ") == (255, 0, 0)

    def test_first_recognized_token(self):
        # "dk" is not a palette key, "pink" is
        assert resolve_color("Dk Pink/Cream") == (255, 192, 203)

    def test_slash_separated(self):
        assert resolve_color("cream/white") == (255, 253, 208)

    def test_ampersand_and_comma_separators(self):
        assert resolve_color("speckle&ivory") == (255, 255, 240)
        assert resolve_color("speckle,gold") == (255, 215, 0)

    def test_substring_scan_uses_palette_order(self):
        # Both "pink" and "dark pink" are substrings; "pink" is listed first
        assert resolve_color("dark pinkish") == (255, 192, 203)

    def test_joined_words_fall_to_shorter_name(self):
        # "dark pink" has a space, so only "pink" is a substring here
        assert resolve_color("darkpink") == (255, 192, 203)

    def test_substring_inside_word(self):
        assert resolve_color("burgundyish") == (128, 0, 32)

    def test_unresolved(self):
        assert resolve_color("Speckled") is None

    def test_blank_and_none(self):
        assert resolve_color("") is None
        assert resolve_color("   ") is None
        assert resolve_color(None) is None


class TestColorDistance:
    """Tests for Euclidean RGB distance."""

    def test_identity(self):
        assert color_distance(resolve_color("Red"), resolve_color("Red")) == 0

    def test_dusty_pink_to_pink(self):
        d = color_distance(resolve_color("Dusty Pink"), resolve_color("Pink"))
        assert d == pytest.approx(53.1, abs=0.5)

    def test_black_to_white_is_cube_diagonal(self):
        d = color_distance((0, 0, 0), (255, 255, 255))
        assert d == pytest.approx(math.sqrt(3 * 255 ** 2))

    def test_unknown_returns_sentinel(self):
        assert color_distance(None, (1, 2, 3)) == UNKNOWN_DISTANCE
        assert color_distance((1, 2, 3), None) == UNKNOWN_DISTANCE

    def test_sentinel_exceeds_any_real_distance(self):
        assert UNKNOWN_DISTANCE > color_distance((0, 0, 0), (255, 255, 255))

    def test_symmetric(self):
        a, b = resolve_color("Navy"), resolve_color("Gold")
        assert color_distance(a, b) == pytest.approx(color_distance(b, a))


class TestClosestClusterColor:
    """Tests for cluster bucket classification."""

    def test_cluster_name_maps_to_itself(self):
        assert closest_cluster_color("Red") == "Red"
        assert closest_cluster_color("dusty pink") == "Dusty Pink"

    def test_red_is_minimal_over_clusters(self):
        red = resolve_color("Red")
        chosen = closest_cluster_color("Red")
        best = min(color_distance(red, resolve_color(c)) for c in CLUSTER_COLORS)
        assert color_distance(red, resolve_color(chosen)) == best

    def test_non_cluster_color(self):
        # Lime (50, 205, 50) sits nearest to Green's neighbourhood, not Red
        assert closest_cluster_color("Lime") in CLUSTER_COLORS
        assert closest_cluster_color("Lime") != "Red"

    def test_exact_tie_first_listed_wins(self):
        # Grey and Mixed share (128, 128, 128); Grey is listed first
        assert closest_cluster_color("Grey") == "Grey"
        assert closest_cluster_color("Mixed") == "Grey"

    def test_unresolved_returns_empty(self):
        assert closest_cluster_color("Speckled") == ""
        assert closest_cluster_color("") == ""

    def test_rgb_entry_point(self):
        assert closest_cluster_for_rgb((250, 5, 5)) == "Red"
        assert closest_cluster_for_rgb(None) == ""


class TestPalette:
    """Tests for palette shape."""

    def test_every_cluster_resolves(self):
        for name in CLUSTER_COLORS:
            assert resolve_color(name) is not None, name

    def test_channels_in_range(self):
        for _, rgb in PALETTE:
            assert all(0 <= c <= 255 for c in rgb)

    def test_names_in_order(self):
        names = palette_names()
        assert names[0] == "red"
        assert names.index("pink") < names.index("dark pink")
        assert len(names) == len(set(names))
