"""Classification resolver.

Maps a percentage to a degree classification band and a display colour.

Bands are described by a BandScheme so alternative conventions can be
plugged in; UK_HONOURS is the default:

    >= 70  First
    >= 60  2:1
    >= 50  2:2
    >= 40  Third
    else   Fail
    None   N/A

Lower bounds are inclusive and the raw value is compared, without rounding.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Classification(str, Enum):
    """Degree classification band."""

    FIRST = "First"
    UPPER_SECOND = "2:1"
    LOWER_SECOND = "2:2"
    THIRD = "Third"
    FAIL = "Fail"
    NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class Band:
    """A classification reached at or above lower_bound."""

    lower_bound: float
    classification: Classification


@dataclass(frozen=True)
class BandScheme:
    """Ordered set of bands plus the classification below all of them."""

    name: str
    bands: tuple[Band, ...]
    below: Classification = Classification.FAIL

    def resolve(self, percentage: float) -> Classification:
        for band in sorted(self.bands, key=lambda b: b.lower_bound, reverse=True):
            if percentage >= band.lower_bound:
                return band.classification
        return self.below


UK_HONOURS = BandScheme(
    name="uk_honours",
    bands=(
        Band(70, Classification.FIRST),
        Band(60, Classification.UPPER_SECOND),
        Band(50, Classification.LOWER_SECOND),
        Band(40, Classification.THIRD),
    ),
)

# Display colours per band
CLASSIFICATION_COLORS: dict[Classification, str] = {
    Classification.FIRST: "#00BA7C",
    Classification.UPPER_SECOND: "#4A90F2",
    Classification.LOWER_SECOND: "#FFB800",
    Classification.THIRD: "#FF6B35",
    Classification.FAIL: "#F4212E",
}

NEUTRAL_DARK = "#536471"
NEUTRAL_LIGHT = "#8899A6"


def classify(
    percentage: float | None,
    scheme: BandScheme = UK_HONOURS,
) -> Classification:
    """Resolve a percentage to its classification.

    Args:
        percentage: Aggregate percentage, or None when no grade exists
        scheme: Banding convention (default: UK honours)

    Returns:
        Classification, NOT_AVAILABLE for None
    """
    if percentage is None:
        return Classification.NOT_AVAILABLE
    return scheme.resolve(percentage)


def color_for(classification: Classification, dark_mode: bool = False) -> str:
    """Display colour for a classification. N/A uses a theme neutral."""
    if classification in CLASSIFICATION_COLORS:
        return CLASSIFICATION_COLORS[classification]
    return NEUTRAL_DARK if dark_mode else NEUTRAL_LIGHT
