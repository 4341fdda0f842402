"""UI package for the gacha pull simulator."""

from ui.constants import RARITY_COLORS, RARITY_LABELS
from ui.defaults import (
    create_default_banners,
    create_default_catalog,
    create_default_templates,
    create_item_pool,
)

__all__ = [
    "RARITY_COLORS",
    "RARITY_LABELS",
    "create_item_pool",
    "create_default_catalog",
    "create_default_templates",
    "create_default_banners",
]
