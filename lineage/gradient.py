# lineage/gradient.py
"""
Age-to-color gradient for line age bars.

Maps the age of a line (in days) onto a color between a "fresh" and an "old"
endpoint. The position along the gradient follows a concave curve so that
recent edits move away from the fresh color quickly while very old content
barely changes near the tail:

    x  = min(age, max_age_days) / max_age_days
    x' = x ** (1 / 2.3)
    channel = floor(fresh + (old - fresh) * x' + 0.5)
"""

from __future__ import annotations

import math
from typing import Any, NamedTuple

# Exponent of the response curve; a root keeps the curve concave.
AGE_CURVE_EXPONENT = 1 / 2.3


class RGBColor(NamedTuple):
    r: int
    g: int
    b: int

    def css(self) -> str:
        """Return the color in the ``rgb(r, g, b)`` form used in style attributes."""
        return f"rgb({self.r}, {self.g}, {self.b})"

    @classmethod
    def from_value(cls, value: Any) -> "RGBColor":
        """
        Coerce a settings value into an RGBColor.

        Accepts an RGBColor, a mapping with ``r``/``g``/``b`` keys or a
        three-item sequence. Raises ValueError for anything else, including
        channels outside 0-255.
        """
        if isinstance(value, cls):
            return value

        if isinstance(value, dict):
            try:
                channels = (value["r"], value["g"], value["b"])
            except KeyError as exc:
                raise ValueError(f"Color mapping is missing channel {exc}") from exc
        elif isinstance(value, (list, tuple)) and len(value) == 3:
            channels = tuple(value)
        else:
            raise ValueError(f"Cannot interpret {value!r} as an RGB color")

        for channel in channels:
            if isinstance(channel, bool) or not isinstance(channel, int):
                raise ValueError(f"Color channel {channel!r} is not an integer")
            if not 0 <= channel <= 255:
                raise ValueError(f"Color channel {channel} is outside 0-255")

        return cls(*channels)


DEFAULT_FRESH_COLOR = RGBColor(34, 197, 94)  # green-500
DEFAULT_OLD_COLOR = RGBColor(156, 163, 175)  # gray-400
DEFAULT_MAX_AGE_DAYS = 365


def gradient_position(age_days: float, max_age_days: float) -> float:
    """Return the curved position (0 = fresh, 1 = old) of an age on the gradient."""
    age = min(max(age_days, 0.0), max_age_days)
    return (age / max_age_days) ** AGE_CURVE_EXPONENT


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def interpolate(fresh: RGBColor, old: RGBColor, position: float) -> RGBColor:
    # Halves round up (2.5 -> 3), not to even
    return RGBColor(
        *(
            round_half_up(start + (end - start) * position)
            for start, end in zip(fresh, old)
        )
    )


def color_for(age_days: float, options) -> RGBColor:
    """
    Compute the bar color for a line of the given age.

    Args:
        age_days: Age of the line in days; negative ages (clock skew) count as 0
        options: Any object exposing ``max_age_days``, ``fresh_color`` and
            ``old_color`` (normally a LineAgeOptions)

    Returns:
        RGBColor between options.fresh_color and options.old_color
    """
    position = gradient_position(age_days, options.max_age_days)
    return interpolate(options.fresh_color, options.old_color, position)
