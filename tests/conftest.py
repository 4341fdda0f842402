from datetime import datetime, timezone
from typing import Sequence

import pytest

from banner import Banner, GachaItem, ItemCatalog, RateTable, Rarity
from rng import DefaultRNG
from ui.defaults import create_item_pool

FIXED_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


class ScriptedRNG(DefaultRNG):
    """RNG that replays a fixed list of random() values.

    Raises IndexError when the script runs out, which lets tests assert
    exactly how many values a draw consumed.
    """

    def __init__(self, values: Sequence[float]):
        super().__init__()
        self.values = list(values)
        self.consumed = 0

    def random(self) -> float:
        value = self.values[self.consumed]
        self.consumed += 1
        return value


@pytest.fixture
def scripted_rng():
    return ScriptedRNG


@pytest.fixture
def fixed_time() -> datetime:
    return FIXED_TIME


@pytest.fixture
def catalog() -> ItemCatalog:
    """3 legendary, 5 epic, 10 rare, 15 uncommon, 20 common."""
    return ItemCatalog.from_items(
        create_item_pool(legendary=3, epic=5, rare=10, uncommon=15, common=20)
    )


@pytest.fixture
def banner(catalog) -> Banner:
    """Default 60/25/10/4/1 banner with hard pity at 90 and no rate-up."""
    return Banner(
        id="standard",
        name="Standard Banner",
        item_pool=tuple(catalog.ids()),
        pity_threshold=90,
    )


@pytest.fixture
def legendary_catalog() -> ItemCatalog:
    return ItemCatalog.from_items(
        [
            GachaItem(id="hero", rarity=Rarity.LEGENDARY, display_name="Hero"),
            GachaItem(id="knight", rarity=Rarity.LEGENDARY, display_name="Knight"),
            GachaItem(id="sage", rarity=Rarity.LEGENDARY, display_name="Sage"),
            GachaItem(id="slime", rarity=Rarity.COMMON, display_name="Slime"),
        ]
    )


@pytest.fixture
def legendary_only_rates() -> RateTable:
    return RateTable(common=0.0, uncommon=0.0, rare=0.0, epic=0.0, legendary=1.0)
