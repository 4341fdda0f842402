"""Pull engine.

``draw_one`` turns a banner, the player's pity counter and ownership set, and
an injected random source into one reward. ``draw_batch`` chains it. Neither
function mutates its inputs or keeps state between calls: the caller owns the
pity counter and the ownership set and must persist them atomically with the
result.

Random values are consumed in a fixed order per pull:

1. one value for the rarity roll (skipped when hard pity forces legendary),
2. one value for featured vs non-featured, only when the banner has a
   rate-up share and the selected tier contains featured items,
3. one value for the uniform item pick.
"""

import logging
from datetime import datetime, timezone
from typing import AbstractSet, NamedTuple, Optional

from pydantic import BaseModel, Field, model_validator

from banner import DRAW_ORDER, Banner, ItemCatalog, RateTable, Rarity
from errors import (
    EmptyTierPool,
    InvalidRateTable,
    NegativePityCounter,
    UnknownItemReference,
)
from rng import RNGProvider

logger = logging.getLogger(__name__)


class PullResult(BaseModel):
    """Outcome of a single pull. Immutable."""

    item_id: str = Field(..., description="Id of the drawn item")
    rarity: Rarity = Field(..., description="Rarity of the drawn item")
    is_new: bool = Field(..., description="Item was not owned before this pull")
    is_duplicate: bool = Field(..., description="Item was already owned")
    pity_triggered: bool = Field(
        False, description="Legendary was forced by the hard pity rule"
    )
    timestamp: datetime = Field(..., description="When the pull happened")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_new_xor_duplicate(self) -> "PullResult":
        if self.is_new == self.is_duplicate:
            raise ValueError("is_new and is_duplicate must be opposites")
        return self


class PullOutcome(NamedTuple):
    result: PullResult
    next_pity_counter: int


class BatchOutcome(NamedTuple):
    results: list[PullResult]
    pity_counter: int
    owned_item_ids: frozenset[str]


def roll_rarity(rates: RateTable, rng: RNGProvider) -> Rarity:
    """Pick a rarity with one uniform draw.

    Rates are accumulated in ``DRAW_ORDER`` (legendary first) and the first
    rarity whose running sum exceeds the draw wins. If rounding leaves the
    draw past the final sum, the last positive-rate rarity is used.
    """
    roll = rng.random()
    cumulative = 0.0
    last_positive: Optional[Rarity] = None
    for rarity in DRAW_ORDER:
        rate = rates.get(rarity)
        if rate <= 0:
            continue
        cumulative += rate
        last_positive = rarity
        if roll < cumulative:
            return rarity
    if last_positive is None:
        raise InvalidRateTable(rates.total())
    return last_positive


def tier_items(banner: Banner, catalog: ItemCatalog, rarity: Rarity) -> list[str]:
    """Distinct pool ids of the given rarity, in pool order."""
    items = []
    for item_id in dict.fromkeys(banner.item_pool):
        item = catalog.get(item_id)
        if item is None:
            raise UnknownItemReference(item_id, banner_id=banner.id)
        if item.rarity == rarity:
            items.append(item_id)
    return items


def _select_item(banner: Banner, candidates: list[str], rng: RNGProvider) -> str:
    featured = [item_id for item_id in candidates if banner.is_featured(item_id)]
    if banner.featured_rate_up_share > 0 and featured:
        non_featured = [item_id for item_id in candidates if item_id not in featured]
        featured_roll = rng.random()
        if featured_roll < banner.featured_rate_up_share or not non_featured:
            candidates = featured
        else:
            candidates = non_featured
    picked = rng.pick(candidates)
    if picked is None:
        raise RuntimeError(f"Item selection on banner {banner.id} had no candidates")
    return picked


def draw_one(
    banner: Banner,
    catalog: ItemCatalog,
    pity_counter: int,
    owned_item_ids: AbstractSet[str],
    rng: RNGProvider,
    timestamp: Optional[datetime] = None,
) -> PullOutcome:
    """Perform one pull.

    Args:
        banner: A banner that passed ``validate_banner``.
        catalog: Catalog containing every id in ``banner.item_pool``.
        pity_counter: Pulls since the last legendary on this banner.
        owned_item_ids: Items the player already owns.
        rng: Random source. Consumed in the order documented on this module.
        timestamp: Time stamped on the result. Defaults to now (UTC).

    Returns:
        The pull result and the pity counter to persist for the next pull.

    Raises:
        NegativePityCounter: ``pity_counter`` is below zero.
        EmptyTierPool: The rolled rarity has no items in the pool.
        UnknownItemReference: A pool id is missing from the catalog.
    """
    if pity_counter < 0:
        raise NegativePityCounter(pity_counter)

    pity_triggered = banner.is_pity_pull(pity_counter)
    if pity_triggered:
        rarity = Rarity.LEGENDARY
        logger.debug(
            "Hard pity on banner %s at counter %d", banner.id, pity_counter
        )
    else:
        rarity = roll_rarity(banner.rates_for_pity(pity_counter), rng)

    candidates = tier_items(banner, catalog, rarity)
    if not candidates:
        raise EmptyTierPool(rarity.value, banner_id=banner.id)
    item_id = _select_item(banner, candidates, rng)

    is_new = item_id not in owned_item_ids
    next_pity_counter = 0 if rarity == Rarity.LEGENDARY else pity_counter + 1

    result = PullResult(
        item_id=item_id,
        rarity=rarity,
        is_new=is_new,
        is_duplicate=not is_new,
        pity_triggered=pity_triggered,
        timestamp=timestamp or datetime.now(timezone.utc),
    )
    return PullOutcome(result, next_pity_counter)


def draw_batch(
    banner: Banner,
    catalog: ItemCatalog,
    pity_counter: int,
    owned_item_ids: AbstractSet[str],
    count: int,
    rng: RNGProvider,
    timestamp: Optional[datetime] = None,
) -> BatchOutcome:
    """Perform ``count`` pulls in sequence.

    Pity and ownership are threaded from one pull to the next, so an item
    drawn twice in the same batch is new the first time and a duplicate the
    second. The caller's ownership set is copied, never modified; if any pull
    fails the whole batch raises and nothing needs to be rolled back.
    """
    if count < 0:
        raise ValueError(f"Pull count cannot be negative, got {count}")
    if pity_counter < 0:
        raise NegativePityCounter(pity_counter)

    owned = set(owned_item_ids)
    results: list[PullResult] = []
    for _ in range(count):
        result, pity_counter = draw_one(
            banner, catalog, pity_counter, owned, rng, timestamp=timestamp
        )
        owned.add(result.item_id)
        results.append(result)
    return BatchOutcome(results, pity_counter, frozenset(owned))
