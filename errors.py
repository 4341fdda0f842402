"""Error taxonomy for the gacha engine."""

from typing import Optional


class GachaError(Exception):
    """Base class for all engine and content errors."""


class InvalidRateTable(GachaError, ValueError):
    """Rate table probabilities do not sum to 1 within tolerance."""

    def __init__(self, total: float, banner_id: Optional[str] = None):
        self.total = total
        self.banner_id = banner_id
        where = f" on banner '{banner_id}'" if banner_id else ""
        super().__init__(f"Rates sum to {total!r}{where}, expected 1.0")


class EmptyTierPool(GachaError):
    """A rarity with positive probability has no eligible items."""

    def __init__(self, rarity: str, banner_id: Optional[str] = None):
        self.rarity = rarity
        self.banner_id = banner_id
        where = f" on banner '{banner_id}'" if banner_id else ""
        super().__init__(f"No items of rarity '{rarity}' in the pool{where}")


class UnknownItemReference(GachaError):
    """A banner references an item id missing from the catalog."""

    def __init__(self, item_id: str, banner_id: Optional[str] = None):
        self.item_id = item_id
        self.banner_id = banner_id
        where = f" by banner '{banner_id}'" if banner_id else ""
        super().__init__(f"Item '{item_id}' referenced{where} is not in the catalog")


class NegativePityCounter(GachaError, ValueError):
    def __init__(self, pity_counter: int):
        self.pity_counter = pity_counter
        super().__init__(f"Pity counter cannot be negative, got {pity_counter}")


class BannerValidationError(GachaError):
    """A banner failed a structural check other than the ones above."""

    def __init__(self, message: str, banner_id: Optional[str] = None):
        self.banner_id = banner_id
        super().__init__(message)


class DuplicateItemId(GachaError, ValueError):
    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Duplicate item id: {item_id}")


class StalePityState(GachaError):
    """The player state changed since the caller last read it."""

    def __init__(self, expected_revision: int, actual_revision: int):
        self.expected_revision = expected_revision
        self.actual_revision = actual_revision
        super().__init__(
            f"Player state is at revision {actual_revision}, "
            f"caller expected {expected_revision}"
        )
