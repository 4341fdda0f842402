"""UI constants."""

from banner import Rarity

RARITY_COLORS = {
    Rarity.COMMON: "#9CA3AF",
    Rarity.UNCOMMON: "#10B981",
    Rarity.RARE: "#3B82F6",
    Rarity.EPIC: "#8B5CF6",
    Rarity.LEGENDARY: "#F59E0B",
}

RARITY_LABELS = {rarity: rarity.value.title() for rarity in Rarity}
