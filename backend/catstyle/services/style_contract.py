"""
Hex color rule and the lightening transform shared by every suggestion path
"""
import math
import re
from typing import Any, Optional

from catstyle.models.suggestion import StyleSuggestion

HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")

# Share of the distance to white added to each channel
LIGHTEN_AMOUNT = 0.8


def is_valid_hex_color(value: Any) -> bool:
    """Check for '#' followed by exactly six hex digits"""
    return isinstance(value, str) and HEX_COLOR_RE.fullmatch(value) is not None


def _round_half_up(value: float) -> int:
    # Math.round semantics; Python's round() would send 0.5 to the even neighbour
    return int(math.floor(value + 0.5))


def lighten_color(hex_color: str) -> str:
    """
    Blend a color towards white to use it as a background

    Each channel becomes channel + (255 - channel) * 0.8, rounded half up.

    Args:
        hex_color: Color in #RRGGBB form

    Returns:
        Lightened color as lowercase #rrggbb

    Raises:
        ValueError: If hex_color is not a valid #RRGGBB string
    """
    if not is_valid_hex_color(hex_color):
        raise ValueError(f"Invalid hex color: {hex_color!r}")

    channels = (int(hex_color[i:i + 2], 16) for i in (1, 3, 5))
    lightened = (_round_half_up(c + (255 - c) * LIGHTEN_AMOUNT) for c in channels)
    return "#" + "".join(f"{c:02x}" for c in lightened)


def build_suggestion(icon: str, color: str, reasoning: Optional[str] = None) -> StyleSuggestion:
    """Build a suggestion whose background is derived from its color"""
    return StyleSuggestion(
        icon=icon,
        color=color,
        background_color=lighten_color(color),
        reasoning=reasoning,
    )
