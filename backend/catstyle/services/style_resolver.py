"""
Offline, deterministic style suggestions for category names

Names are matched against an ordered keyword table first; anything that does
not match is mapped through a 32-bit string hash onto the icon vocabulary and
the color presets. No network access and no randomness.
"""
from typing import NamedTuple, Optional, Tuple

from catstyle.core.logging_config import LoggingConfig
from catstyle.models.suggestion import StyleSuggestion
from catstyle.services.style_contract import build_suggestion

logger = LoggingConfig.get_logger(__name__)


class ColorPreset(NamedTuple):
    color: str
    background_color: str


class KeywordStyle(NamedTuple):
    keyword: str
    icon: str
    color_index: int


# Fixed icon vocabulary (Ionicons, outline variant)
CATEGORY_ICONS: Tuple[str, ...] = (
    "briefcase-outline",
    "home-outline",
    "bulb-outline",
    "person-outline",
    "fitness-outline",
    "airplane-outline",
    "cart-outline",
    "school-outline",
    "heart-outline",
    "star-outline",
    "restaurant-outline",
    "film-outline",
    "musical-note-outline",
    "football-outline",
    "color-palette-outline",
    "code-slash-outline",
    "paw-outline",
    "umbrella-outline",
    "medkit-outline",
    "car-outline",
)

# background_color is the preset's display hint; suggestions always derive
# their own background from color
CATEGORY_COLOR_PRESETS: Tuple[ColorPreset, ...] = (
    ColorPreset("#007AFF", "#E3F2FD"),  # blue
    ColorPreset("#FF9500", "#FFF3E0"),  # orange
    ColorPreset("#B8860B", "#FFF9C4"),  # dark yellow
    ColorPreset("#9C27B0", "#F3E5F5"),  # purple
    ColorPreset("#10B981", "#D1FAE5"),  # emerald
    ColorPreset("#DC2626", "#FEE2E2"),  # red
    ColorPreset("#EC4899", "#FCE7F3"),  # pink
    ColorPreset("#14B8A6", "#CCFBF1"),  # teal
    ColorPreset("#F59E0B", "#FEF3C7"),  # amber
    ColorPreset("#6366F1", "#E0E7FF"),  # indigo
    ColorPreset("#8B5CF6", "#EDE9FE"),  # violet
    ColorPreset("#E11D48", "#FFE4E6"),  # rose
    ColorPreset("#F97316", "#FFEDD5"),  # deep orange
    ColorPreset("#A16207", "#FEF9C3"),  # brown
    ColorPreset("#65A30D", "#ECFCCB"),  # lime
    ColorPreset("#475569", "#E2E8F0"),  # slate
    ColorPreset("#EA580C", "#FFEDD5"),  # burnt orange
)

# Order matters: the first keyword contained in the name wins
KEYWORD_STYLES: Tuple[KeywordStyle, ...] = (
    # work and productivity
    KeywordStyle("trabajo", "briefcase-outline", 0),
    KeywordStyle("oficina", "briefcase-outline", 0),
    KeywordStyle("proyecto", "code-slash-outline", 6),
    KeywordStyle("reunión", "people-outline", 0),
    # home and personal
    KeywordStyle("casa", "home-outline", 1),
    KeywordStyle("hogar", "home-outline", 1),
    KeywordStyle("personal", "person-outline", 8),
    KeywordStyle("familia", "heart-outline", 7),
    # education
    KeywordStyle("estudio", "school-outline", 2),
    KeywordStyle("universidad", "school-outline", 2),
    KeywordStyle("curso", "book-outline", 2),
    KeywordStyle("aprendizaje", "bulb-outline", 3),
    # health and fitness
    KeywordStyle("salud", "medkit-outline", 7),
    KeywordStyle("ejercicio", "fitness-outline", 4),
    KeywordStyle("gimnasio", "fitness-outline", 4),
    KeywordStyle("deporte", "football-outline", 4),
    # shopping and money
    KeywordStyle("compras", "cart-outline", 5),
    KeywordStyle("mercado", "cart-outline", 5),
    KeywordStyle("dinero", "cash-outline", 5),
    # leisure
    KeywordStyle("viaje", "airplane-outline", 9),
    KeywordStyle("vacaciones", "airplane-outline", 9),
    KeywordStyle("película", "film-outline", 10),
    KeywordStyle("música", "musical-note-outline", 11),
    KeywordStyle("arte", "color-palette-outline", 12),
    # pets and nature
    KeywordStyle("mascota", "paw-outline", 13),
    KeywordStyle("perro", "paw-outline", 13),
    KeywordStyle("gato", "paw-outline", 13),
    KeywordStyle("jardín", "sunny-outline", 14),
    # transport
    KeywordStyle("carro", "car-outline", 15),
    KeywordStyle("auto", "car-outline", 15),
    KeywordStyle("transporte", "car-outline", 15),
    # food
    KeywordStyle("comida", "restaurant-outline", 16),
    KeywordStyle("cocina", "restaurant-outline", 16),
    KeywordStyle("recetas", "restaurant-outline", 16),
)

HASH_REASONING = "local name-based suggestion"


def normalize_name(category_name: str) -> str:
    return category_name.strip().lower()


def hash_name(normalized_name: str) -> int:
    """
    32-bit signed polynomial string hash (h = h * 31 + code unit)

    Iterates UTF-16 code units and wraps to a signed 32-bit integer after
    every step, so the result matches the same hash computed by JavaScript
    clients.
    """
    h = 0
    data = normalized_name.encode("utf-16-le")
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + code_unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


class DeterministicStyleResolver:
    """Keyword table + hash fallback, total over all strings"""

    def __init__(
        self,
        keyword_styles: Tuple[KeywordStyle, ...] = KEYWORD_STYLES,
        icons: Tuple[str, ...] = CATEGORY_ICONS,
        color_presets: Tuple[ColorPreset, ...] = CATEGORY_COLOR_PRESETS,
    ):
        if not icons or not color_presets:
            raise ValueError("icon vocabulary and color presets must not be empty")
        for entry in keyword_styles:
            if not 0 <= entry.color_index < len(color_presets):
                raise ValueError(f"keyword {entry.keyword!r} points at missing color preset {entry.color_index}")
        self.keyword_styles = keyword_styles
        self.icons = icons
        self.color_presets = color_presets

    def hash_indices(self, category_name: str) -> Tuple[int, int]:
        """Independent (icon_index, color_index) derived from one name hash"""
        h = abs(hash_name(normalize_name(category_name)))
        return h % len(self.icons), h % len(self.color_presets)

    def match_keyword(self, category_name: str) -> Optional[KeywordStyle]:
        normalized = normalize_name(category_name)
        for entry in self.keyword_styles:
            if entry.keyword in normalized:
                return entry
        return None

    def fallback_color(self, category_name: str) -> str:
        """Preset color used to repair an invalid color for this name"""
        _, color_index = self.hash_indices(category_name)
        return self.color_presets[color_index].color

    def fallback_icon(self, category_name: str) -> str:
        """Vocabulary icon used to repair a missing icon for this name"""
        icon_index, _ = self.hash_indices(category_name)
        return self.icons[icon_index]

    def resolve(self, category_name: str) -> StyleSuggestion:
        """
        Suggest a style for a category name without any network access

        Args:
            category_name: Raw category name as typed by the user

        Returns:
            StyleSuggestion; the same input always yields the same output
        """
        entry = self.match_keyword(category_name)
        if entry is not None:
            preset = self.color_presets[entry.color_index]
            return build_suggestion(
                entry.icon,
                preset.color,
                reasoning=f'matched keyword "{entry.keyword}"',
            )

        icon_index, color_index = self.hash_indices(category_name)
        icon = self.icons[icon_index]
        color = self.color_presets[color_index].color
        logger.debug(
            "No keyword matched, using name hash",
            extra={"category_name": normalize_name(category_name), "icon": icon, "color": color},
        )
        return build_suggestion(icon, color, reasoning=HASH_REASONING)
