from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import BaseModel, Field, model_validator

from errors import DuplicateItemId, InvalidRateTable

# Tolerance used for every probability-sum comparison.
RATE_EPSILON = 1e-6


class Rarity(str, Enum):
    """Rarity tiers, ordered from lowest to highest."""

    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"

    @property
    def rank(self) -> int:
        return RARITY_ORDER.index(self)

    def __lt__(self, other):
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank >= other.rank


RARITY_ORDER: tuple[Rarity, ...] = (
    Rarity.COMMON,
    Rarity.UNCOMMON,
    Rarity.RARE,
    Rarity.EPIC,
    Rarity.LEGENDARY,
)

# Order in which cumulative rates are walked during a rarity roll. Fixed so
# that boundary rounding resolves the same way for a given random stream.
DRAW_ORDER: tuple[Rarity, ...] = tuple(reversed(RARITY_ORDER))


class ItemCategory(str, Enum):
    CHARACTER = "character"
    WEAPON = "weapon"
    ARTIFACT = "artifact"
    COSTUME = "costume"


class RateTable(BaseModel):
    """Probability of drawing each rarity.

    Construction only bounds each rate to [0, 1]; whether the table sums to 1
    is checked by ``validate_sum``/``ensure_valid`` so that content validation
    can report the problem alongside everything else.
    """

    common: float = Field(0.60, ge=0.0, le=1.0, description="Rate of common")
    uncommon: float = Field(0.25, ge=0.0, le=1.0, description="Rate of uncommon")
    rare: float = Field(0.10, ge=0.0, le=1.0, description="Rate of rare")
    epic: float = Field(0.04, ge=0.0, le=1.0, description="Rate of epic")
    legendary: float = Field(0.01, ge=0.0, le=1.0, description="Rate of legendary")

    model_config = {"frozen": True}

    @classmethod
    def from_mapping(cls, rates: dict[Any, float]) -> "RateTable":
        """Build a table from a rarity -> rate mapping. Missing rarities get 0."""
        values = {rarity.value: 0.0 for rarity in RARITY_ORDER}
        for key, rate in rates.items():
            values[Rarity(key).value] = rate
        return cls(**values)

    def get(self, rarity: Rarity) -> float:
        return getattr(self, Rarity(rarity).value)

    def as_dict(self) -> dict[Rarity, float]:
        return {rarity: self.get(rarity) for rarity in RARITY_ORDER}

    def total(self) -> float:
        return sum(self.get(rarity) for rarity in DRAW_ORDER)

    def positive_rarities(self) -> list[Rarity]:
        return [rarity for rarity in RARITY_ORDER if self.get(rarity) > 0]

    def validate_sum(self, epsilon: float = RATE_EPSILON) -> bool:
        """Check that the rates sum to 1.0 within epsilon."""
        return abs(self.total() - 1.0) <= epsilon

    def ensure_valid(self, banner_id: Optional[str] = None) -> "RateTable":
        if not self.validate_sum():
            raise InvalidRateTable(self.total(), banner_id=banner_id)
        return self

    def with_legendary_boost(self, boost: float) -> "RateTable":
        """Raise the legendary rate by boost, scaling the others down.

        The lower tiers keep their ratios to each other, so the table still
        sums to the same total.
        """
        if boost <= 0 or self.legendary >= 1.0:
            return self
        legendary = min(1.0, self.legendary + boost)
        scale = (1.0 - legendary) / (1.0 - self.legendary)
        return RateTable(
            common=self.common * scale,
            uncommon=self.uncommon * scale,
            rare=self.rare * scale,
            epic=self.epic * scale,
            legendary=legendary,
        )


class GachaItem(BaseModel):
    """A catalog entry that can come out of a banner.

    ``payload_ref`` is opaque to the engine. Consumers such as hiring or
    cosmetics decide what it points at.
    """

    id: str = Field(..., min_length=1, description="Unique item id")
    rarity: Rarity = Field(..., description="Rarity tier of the item")
    display_name: str = Field("", description="Name shown to players")
    category: ItemCategory = Field(
        ItemCategory.CHARACTER, description="Kind of collectible"
    )
    description: str = Field("", description="Flavor text")
    payload_ref: Optional[str] = Field(
        None, description="Opaque reference interpreted by the consumer"
    )

    model_config = {"frozen": True}


class ItemCatalog(BaseModel):
    """Immutable lookup of items by id."""

    items: dict[str, GachaItem] = Field(
        default_factory=dict, description="Items keyed by id"
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_keys_match_ids(self) -> "ItemCatalog":
        for key, item in self.items.items():
            if key != item.id:
                raise ValueError(f"Catalog key '{key}' does not match item id '{item.id}'")
        return self

    @classmethod
    def from_items(cls, items: Iterable[GachaItem]) -> "ItemCatalog":
        by_id: dict[str, GachaItem] = {}
        for item in items:
            if item.id in by_id:
                raise DuplicateItemId(item.id)
            by_id[item.id] = item
        return cls(items=by_id)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self.items

    def __getitem__(self, item_id: str) -> GachaItem:
        return self.items[item_id]

    def __len__(self) -> int:
        return len(self.items)

    def get(self, item_id: str) -> Optional[GachaItem]:
        return self.items.get(item_id)

    def ids(self) -> list[str]:
        return list(self.items.keys())


class PullCost(BaseModel):
    gems: int = Field(300, ge=0, description="Premium currency per pull")
    tickets: int = Field(1, ge=0, description="Alternative currency per pull")

    model_config = {"frozen": True}


class ActivityWindow(BaseModel):
    """Game-tick window during which a banner can be pulled."""

    start: int = Field(0, description="First active tick (inclusive)")
    end: Optional[int] = Field(
        None, description="First inactive tick (exclusive). None = never ends"
    )

    model_config = {"frozen": True}

    def contains(self, tick: int) -> bool:
        if tick < self.start:
            return False
        return self.end is None or tick < self.end


class Banner(BaseModel):
    """Immutable gacha offering.

    A banner is never edited in place: ``revise`` publishes a copy with a
    bumped version, so in-flight pulls always see one consistent config.
    Structural checks (rates summing to 1, pool items existing, ...) live in
    ``validation.validate_banner`` so that content authors get every problem
    in one report.
    """

    id: str = Field(..., min_length=1, description="Banner id")
    name: str = Field("", description="Display name of the banner")
    version: int = Field(1, ge=1, description="Incremented on every revision")
    rate_table: RateTable = Field(
        default_factory=RateTable, description="Rarity probabilities"
    )
    item_pool: tuple[str, ...] = Field(
        default=(), description="Catalog ids drawable from this banner, in order"
    )
    featured_item_ids: tuple[str, ...] = Field(
        default=(), description="Rate-up items, a subset of the pool"
    )
    featured_rate_up_share: float = Field(
        0.0,
        ge=0.0,
        le=1.0,
        description="Share of a tier's mass reserved for its featured items",
    )
    pity_threshold: int = Field(
        90, description="Pull number at which a legendary is guaranteed"
    )
    cost_per_pull: PullCost = Field(
        default_factory=PullCost, description="Price of a single pull"
    )
    window: ActivityWindow = Field(
        default_factory=ActivityWindow, description="When the banner is active"
    )
    is_limited: bool = Field(False, description="Whether this is a limited banner")
    soft_pity_start: Optional[int] = Field(
        None,
        ge=0,
        description="Pity counter at which the legendary rate starts rising. None = off",
    )
    soft_pity_increment: float = Field(
        0.05,
        ge=0.0,
        le=1.0,
        description="Legendary rate added per pull at or past soft_pity_start",
    )

    model_config = {"frozen": True}

    def is_featured(self, item_id: str) -> bool:
        return item_id in self.featured_item_ids

    def is_active(self, tick: int) -> bool:
        return self.window.contains(tick)

    def pulls_until_guaranteed(self, pity_counter: int) -> int:
        """Pulls left, including the guaranteed one, before hard pity."""
        return max(1, self.pity_threshold - pity_counter)

    def is_pity_pull(self, pity_counter: int) -> bool:
        return pity_counter + 1 >= self.pity_threshold

    def rates_for_pity(self, pity_counter: int) -> RateTable:
        """Rate table in effect for the next pull at the given pity counter."""
        if self.soft_pity_start is None or pity_counter < self.soft_pity_start:
            return self.rate_table
        boost = (pity_counter - self.soft_pity_start + 1) * self.soft_pity_increment
        return self.rate_table.with_legendary_boost(boost)

    def revise(self, **changes: Any) -> "Banner":
        """Publish a new banner version with the given fields replaced."""
        data = self.model_dump()
        data.update(changes)
        data["version"] = self.version + 1
        return Banner.model_validate(data)
