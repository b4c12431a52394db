"""Color classification for dominant-color filtering.

A file's dominant color is stored as a hex string; color filters name one of
ten fixed category swatches. Membership is decided in HSL space:

- hue categories: hue inside one of the category ranges and saturation > 15
  (washed-out colors are not considered hued)
- neutral: saturation < 15 and lightness > 60
- dark: lightness < 25
"""

import re
from dataclasses import dataclass
from typing import NamedTuple

HEX_PATTERN = re.compile(r"^#?([0-9a-f]{2})([0-9a-f]{2})([0-9a-f]{2})$", re.IGNORECASE)

MIN_HUE_SATURATION = 15.0
NEUTRAL_MAX_SATURATION = 15.0
NEUTRAL_MIN_LIGHTNESS = 60.0
DARK_MAX_LIGHTNESS = 25.0


class HSL(NamedTuple):
    h: float  # degrees, [0, 360)
    s: float  # percent
    l: float  # percent  # noqa: E741


@dataclass(frozen=True)
class ColorCategory:
    name: str
    color: str
    hue_ranges: tuple[tuple[float, float], ...] = ()
    is_neutral: bool = False
    is_dark: bool = False

    def contains(self, hsl: HSL) -> bool:
        if self.is_neutral:
            return hsl.s < NEUTRAL_MAX_SATURATION and hsl.l > NEUTRAL_MIN_LIGHTNESS
        if self.is_dark:
            return hsl.l < DARK_MAX_LIGHTNESS
        if hsl.s <= MIN_HUE_SATURATION:
            return False
        return any(low <= hsl.h < high for low, high in self.hue_ranges)


COLOR_CATEGORIES: tuple[ColorCategory, ...] = (
    # red wraps across 0 degrees
    ColorCategory("red", "#ef4444", hue_ranges=((0, 15), (345, 360))),
    ColorCategory("orange", "#f97316", hue_ranges=((15, 45),)),
    ColorCategory("yellow", "#eab308", hue_ranges=((45, 70),)),
    ColorCategory("green", "#22c55e", hue_ranges=((70, 160),)),
    ColorCategory("cyan", "#14b8a6", hue_ranges=((160, 200),)),
    ColorCategory("blue", "#3b82f6", hue_ranges=((200, 260),)),
    ColorCategory("purple", "#8b5cf6", hue_ranges=((260, 290),)),
    ColorCategory("pink", "#ec4899", hue_ranges=((290, 345),)),
    ColorCategory("neutral", "#9ca3af", is_neutral=True),
    ColorCategory("dark", "#374151", is_dark=True),
)

_CATEGORIES_BY_COLOR = {category.color: category for category in COLOR_CATEGORIES}


def hex_to_hsl(hex_color: str | None) -> HSL | None:
    """Convert #RRGGBB (the # is optional) to HSL.

    Returns:
        HSL triple, or None when the input is not a 6-digit hex color
    """
    if not isinstance(hex_color, str):
        return None
    match = HEX_PATTERN.match(hex_color.strip())
    if not match:
        return None

    r, g, b = (int(part, 16) / 255 for part in match.groups())
    high = max(r, g, b)
    low = min(r, g, b)
    lightness = (high + low) / 2
    hue = 0.0
    saturation = 0.0

    if high != low:
        d = high - low
        saturation = d / (2 - high - low) if lightness > 0.5 else d / (high + low)
        if high == r:
            hue = ((g - b) / d + (6 if g < b else 0)) / 6
        elif high == g:
            hue = ((b - r) / d + 2) / 6
        else:
            hue = ((r - g) / d + 4) / 6

    return HSL(hue * 360, saturation * 100, lightness * 100)


def get_category(category_color: str) -> ColorCategory | None:
    """Category whose swatch is category_color (case-insensitive)."""
    if not isinstance(category_color, str):
        return None
    return _CATEGORIES_BY_COLOR.get(category_color.strip().lower())


def matches_category(dominant_color: str | None, category_color: str) -> bool:
    """True if dominant_color falls into the category named by its swatch.

    Unknown categories and malformed colors never match.
    """
    category = get_category(category_color)
    if category is None:
        return False
    hsl = hex_to_hsl(dominant_color)
    if hsl is None:
        return False
    return category.contains(hsl)


def matches_any_category(dominant_color: str | None, category_colors: list[str]) -> bool:
    """True if dominant_color belongs to at least one of the categories."""
    if not dominant_color:
        return False
    return any(matches_category(dominant_color, color) for color in category_colors)
