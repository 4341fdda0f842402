import pytest

from banner import Banner, RateTable, Rarity
from errors import EmptyTierPool, NegativePityCounter, UnknownItemReference
from gacha import draw_batch, draw_one, roll_rarity
from pull_stats import rarity_frequencies, results_to_frame, within_tolerance
from rng import SeededRNG


def test_rarity_roll_walks_legendary_first(scripted_rng):
    rates = RateTable()
    assert roll_rarity(rates, scripted_rng([0.009])) == Rarity.LEGENDARY
    assert roll_rarity(rates, scripted_rng([0.03])) == Rarity.EPIC
    assert roll_rarity(rates, scripted_rng([0.12])) == Rarity.RARE
    assert roll_rarity(rates, scripted_rng([0.3])) == Rarity.UNCOMMON
    assert roll_rarity(rates, scripted_rng([0.999])) == Rarity.COMMON


def test_rarity_roll_falls_back_to_last_positive_rarity_on_drift(scripted_rng):
    # Sums to 1 - 5e-7, inside the tolerance but below the roll.
    rates = RateTable(
        common=0.5999995, uncommon=0.25, rare=0.10, epic=0.04, legendary=0.01
    )
    assert rates.validate_sum()
    assert roll_rarity(rates, scripted_rng([0.9999999])) == Rarity.COMMON


def test_rarity_roll_skips_zero_rate_tiers(scripted_rng):
    rates = RateTable(common=0.0, uncommon=0.0, rare=0.5, epic=0.5, legendary=0.0)
    assert roll_rarity(rates, scripted_rng([0.0])) == Rarity.EPIC
    assert roll_rarity(rates, scripted_rng([0.99])) == Rarity.RARE


def test_pity_at_threshold_forces_legendary(catalog, fixed_time):
    """pity 89 on a threshold-90 banner is the guaranteed pull."""
    banner = Banner(
        id="scenario-a",
        rate_table=RateTable(
            common=0.60, uncommon=0.25, rare=0.10, epic=0.04, legendary=0.01
        ),
        item_pool=tuple(catalog.ids()),
        pity_threshold=90,
    )
    for seed in range(50):
        result, next_pity = draw_one(
            banner, catalog, 89, set(), SeededRNG(seed), timestamp=fixed_time
        )
        assert result.rarity == Rarity.LEGENDARY
        assert result.pity_triggered
        assert next_pity == 0


def test_pity_pull_skips_rarity_roll(banner, catalog, scripted_rng, fixed_time):
    # Only the item pick is consumed. 0.99 would be common if it were rolled.
    rng = scripted_rng([0.99])
    result, _ = draw_one(banner, catalog, 89, set(), rng, timestamp=fixed_time)
    assert rng.consumed == 1
    assert result.rarity == Rarity.LEGENDARY
    assert result.item_id == "legendary_item_3"


def test_pity_counter_beyond_threshold_still_forces_legendary(banner, catalog):
    result, next_pity = draw_one(banner, catalog, 500, set(), SeededRNG(3))
    assert result.rarity == Rarity.LEGENDARY
    assert result.pity_triggered
    assert next_pity == 0


def test_below_threshold_is_not_pity(banner, catalog, scripted_rng):
    result, next_pity = draw_one(banner, catalog, 88, set(), scripted_rng([0.999, 0.0]))
    assert result.rarity == Rarity.COMMON
    assert not result.pity_triggered
    assert next_pity == 89


@pytest.mark.parametrize("seed", [1, 7, 42, 1234])
def test_next_pity_counter_follows_rarity(banner, catalog, seed):
    rng = SeededRNG(seed)
    pity = 0
    for _ in range(1000):
        result, next_pity = draw_one(banner, catalog, pity, set(), rng)
        if result.rarity == Rarity.LEGENDARY:
            assert next_pity == 0
        else:
            assert next_pity == pity + 1
        assert next_pity < banner.pity_threshold
        pity = next_pity


@pytest.mark.parametrize("seed", [2, 99])
def test_drawn_items_stay_in_pool(catalog, seed):
    pool = ("legendary_item_1", "epic_item_2", "rare_item_3", "uncommon_item_4", "common_item_5")
    banner = Banner(id="small", item_pool=pool, pity_threshold=10)
    rng = SeededRNG(seed)
    pity = 0
    for _ in range(500):
        result, pity = draw_one(banner, catalog, pity, set(), rng)
        assert result.item_id in pool
        assert catalog[result.item_id].rarity == result.rarity


def test_new_and_duplicate_are_exclusive(banner, catalog):
    owned = {f"common_item_{i}" for i in range(1, 11)}
    rng = SeededRNG(5)
    seen_duplicate = seen_new = False
    for _ in range(300):
        result, _ = draw_one(banner, catalog, 0, owned, rng)
        assert result.is_new != result.is_duplicate
        assert result.is_duplicate == (result.item_id in owned)
        seen_duplicate = seen_duplicate or result.is_duplicate
        seen_new = seen_new or result.is_new
    assert seen_duplicate and seen_new


def test_owned_set_is_not_modified(banner, catalog):
    owned = {"common_item_1"}
    draw_one(banner, catalog, 0, owned, SeededRNG(1))
    assert owned == {"common_item_1"}


def test_empirical_rates_match_rate_table(banner, catalog):
    outcome = draw_batch(banner, catalog, 0, set(), 5000, SeededRNG(2024))
    frequencies = rarity_frequencies(results_to_frame([outcome.results]), banner.rate_table)
    assert frequencies["count"].sum() == 5000
    assert within_tolerance(frequencies, tolerance=0.05)


def test_seeded_runs_are_identical(banner, catalog, fixed_time):
    first = draw_batch(banner, catalog, 0, set(), 200, SeededRNG(42), timestamp=fixed_time)
    second = draw_batch(banner, catalog, 0, set(), 200, SeededRNG(42), timestamp=fixed_time)
    assert [r.model_dump_json() for r in first.results] == [
        r.model_dump_json() for r in second.results
    ]
    assert first.pity_counter == second.pity_counter


def test_full_rate_up_never_draws_off_banner_legendary(
    legendary_catalog, legendary_only_rates
):
    banner = Banner(
        id="rate-up",
        rate_table=legendary_only_rates,
        item_pool=("hero", "knight", "sage"),
        featured_item_ids=("hero",),
        featured_rate_up_share=1.0,
    )
    rng = SeededRNG(11)
    for _ in range(500):
        result, _ = draw_one(banner, legendary_catalog, 0, set(), rng)
        assert result.item_id == "hero"


def test_half_rate_up_splits_tier(legendary_catalog, legendary_only_rates):
    banner = Banner(
        id="half",
        rate_table=legendary_only_rates,
        item_pool=("hero", "knight", "sage"),
        featured_item_ids=("hero",),
        featured_rate_up_share=0.5,
    )
    outcome = draw_batch(banner, legendary_catalog, 0, set(), 4000, SeededRNG(8))
    featured = sum(1 for r in outcome.results if r.item_id == "hero")
    assert 0.45 < featured / 4000 < 0.55


def test_featured_only_tier_always_picks_featured(
    legendary_catalog, legendary_only_rates, scripted_rng
):
    banner = Banner(
        id="featured-only",
        rate_table=legendary_only_rates,
        item_pool=("hero",),
        featured_item_ids=("hero",),
        featured_rate_up_share=0.3,
    )
    # Featured roll of 0.9 would mean "non-featured", but there are none.
    rng = scripted_rng([0.5, 0.9, 0.0])
    result, _ = draw_one(banner, legendary_catalog, 0, set(), rng)
    assert result.item_id == "hero"
    assert rng.consumed == 3


def test_rate_up_consumes_rarity_featured_and_pick(
    legendary_catalog, legendary_only_rates, scripted_rng
):
    banner = Banner(
        id="order",
        rate_table=legendary_only_rates,
        item_pool=("hero", "knight", "sage"),
        featured_item_ids=("hero",),
        featured_rate_up_share=0.5,
    )
    # rarity roll, featured roll (0.7 -> non-featured), pick 0.6 of [knight, sage]
    rng = scripted_rng([0.1, 0.7, 0.6])
    result, _ = draw_one(banner, legendary_catalog, 0, set(), rng)
    assert rng.consumed == 3
    assert result.item_id == "sage"


def test_no_featured_roll_without_rate_up_share(legendary_catalog, legendary_only_rates, scripted_rng):
    banner = Banner(
        id="no-share",
        rate_table=legendary_only_rates,
        item_pool=("hero", "knight", "sage"),
        featured_item_ids=("hero",),
    )
    rng = scripted_rng([0.1, 0.4])
    result, _ = draw_one(banner, legendary_catalog, 0, set(), rng)
    assert rng.consumed == 2
    assert result.item_id == "knight"


def test_empty_tier_raises_instead_of_rerolling(catalog, scripted_rng):
    pool = tuple(item_id for item_id in catalog.ids() if not item_id.startswith("epic"))
    banner = Banner(id="no-epics", item_pool=pool)
    owned = {"common_item_1"}
    with pytest.raises(EmptyTierPool) as exc_info:
        draw_one(banner, catalog, 5, owned, scripted_rng([0.03, 0.0]))
    assert exc_info.value.rarity == "epic"
    assert exc_info.value.banner_id == "no-epics"
    assert owned == {"common_item_1"}


def test_unknown_pool_item_raises(catalog):
    banner = Banner(id="ghost", item_pool=tuple(catalog.ids()) + ("ghost_item",))
    with pytest.raises(UnknownItemReference) as exc_info:
        draw_one(banner, catalog, 0, set(), SeededRNG(1))
    assert exc_info.value.item_id == "ghost_item"


def test_negative_pity_counter_rejected(banner, catalog, scripted_rng):
    rng = scripted_rng([])
    with pytest.raises(NegativePityCounter):
        draw_one(banner, catalog, -1, set(), rng)
    assert rng.consumed == 0


def test_soft_pity_raises_legendary_rate(catalog):
    banner = Banner(
        id="soft",
        item_pool=tuple(catalog.ids()),
        soft_pity_start=10,
        soft_pity_increment=0.5,
    )
    assert banner.rates_for_pity(9) == banner.rate_table
    boosted = banner.rates_for_pity(10)
    assert boosted.legendary == pytest.approx(0.51)
    assert boosted.common == pytest.approx(0.60 * 0.49 / 0.99)
    assert boosted.validate_sum()
    assert banner.rates_for_pity(11).legendary == pytest.approx(1.0)


def test_soft_pity_roll_uses_boosted_table(catalog, scripted_rng):
    banner = Banner(
        id="soft",
        item_pool=tuple(catalog.ids()),
        soft_pity_start=10,
        soft_pity_increment=0.5,
    )
    # 0.3 is uncommon on the base table, legendary once boosted to 0.51.
    result, next_pity = draw_one(banner, catalog, 10, set(), scripted_rng([0.3, 0.0]))
    assert result.rarity == Rarity.LEGENDARY
    assert not result.pity_triggered
    assert next_pity == 0


def test_default_timestamp_is_timezone_aware(banner, catalog):
    result, _ = draw_one(banner, catalog, 0, set(), SeededRNG(1))
    assert result.timestamp.tzinfo is not None
