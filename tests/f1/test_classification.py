"""Tests for the classification resolver (F1)."""

import pytest

from gradetrack.core.classification import (
    CLASSIFICATION_COLORS,
    NEUTRAL_DARK,
    NEUTRAL_LIGHT,
    UK_HONOURS,
    Band,
    BandScheme,
    Classification,
    classify,
    color_for,
)


class TestClassify:
    """Tests for classify()."""

    @pytest.mark.parametrize(
        "percentage,expected",
        [
            (100, Classification.FIRST),
            (70, Classification.FIRST),
            (69.999, Classification.UPPER_SECOND),
            (60, Classification.UPPER_SECOND),
            (59.99, Classification.LOWER_SECOND),
            (50, Classification.LOWER_SECOND),
            (40, Classification.THIRD),
            (39.5, Classification.FAIL),
            (0, Classification.FAIL),
        ],
    )
    def test_band_boundaries(self, percentage, expected):
        """Lower bounds are inclusive and the raw value is compared."""
        assert classify(percentage) == expected

    def test_none_is_not_available(self):
        """No grade resolves to N/A."""
        assert classify(None) == Classification.NOT_AVAILABLE

    def test_default_scheme_is_uk_honours(self):
        assert classify(65) == classify(65, UK_HONOURS)

    def test_custom_scheme(self):
        """A different banding can be plugged in."""
        pass_fail = BandScheme(name="pass_fail", bands=(Band(50, Classification.THIRD),))
        assert classify(55, pass_fail) == Classification.THIRD
        assert classify(49, pass_fail) == Classification.FAIL

    def test_display_values(self):
        assert Classification.UPPER_SECOND.value == "2:1"
        assert Classification.NOT_AVAILABLE.value == "N/A"


class TestColorFor:
    """Tests for color_for()."""

    def test_every_band_has_a_color(self):
        for classification in Classification:
            if classification is Classification.NOT_AVAILABLE:
                continue
            assert color_for(classification) == CLASSIFICATION_COLORS[classification]

    def test_band_color_ignores_theme(self):
        assert color_for(Classification.FIRST, True) == color_for(Classification.FIRST, False)

    def test_not_available_uses_theme_neutral(self):
        """N/A gets a different neutral in dark and light mode."""
        assert color_for(Classification.NOT_AVAILABLE, dark_mode=True) == NEUTRAL_DARK
        assert color_for(Classification.NOT_AVAILABLE, dark_mode=False) == NEUTRAL_LIGHT
        assert NEUTRAL_DARK != NEUTRAL_LIGHT
