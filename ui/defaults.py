"""Default data creation functions."""

from banner import Banner, GachaItem, ItemCatalog, RateTable, Rarity
from config import BannerTemplate


def create_item_pool(
    legendary: int = 3,
    epic: int = 8,
    rare: int = 15,
    uncommon: int = 24,
    common: int = 30,
) -> list[GachaItem]:
    """Create placeholder items, highest rarity first."""
    counts = {
        Rarity.LEGENDARY: legendary,
        Rarity.EPIC: epic,
        Rarity.RARE: rare,
        Rarity.UNCOMMON: uncommon,
        Rarity.COMMON: common,
    }
    items = []
    for rarity, count in counts.items():
        for i in range(count):
            items.append(
                GachaItem(
                    id=f"{rarity.value}_item_{i + 1}",
                    rarity=rarity,
                    display_name=f"{rarity.value.title()} Item {i + 1}",
                )
            )
    return items


def create_default_catalog() -> ItemCatalog:
    return ItemCatalog.from_items(create_item_pool())


def create_default_templates() -> list[BannerTemplate]:
    """Standard, generous and predatory presets."""
    return [
        BannerTemplate(name="Standard", duration=14),
        BannerTemplate(
            name="Generous",
            rate_table=RateTable(
                common=0.50, uncommon=0.25, rare=0.15, epic=0.07, legendary=0.03
            ),
            pity_threshold=50,
            duration=14,
        ),
        BannerTemplate(
            name="Predatory",
            rate_table=RateTable(
                common=0.75, uncommon=0.15, rare=0.07, epic=0.025, legendary=0.005
            ),
            pity_threshold=200,
            duration=14,
        ),
        BannerTemplate(
            name="Soft pity",
            soft_pity_start=67,
            pity_threshold=90,
            duration=14,
        ),
    ]


def create_default_banners(catalog: ItemCatalog) -> list[Banner]:
    """One banner per default template, each featuring the first legendary."""
    pool = catalog.ids()
    featured = [
        item_id for item_id in pool if catalog[item_id].rarity == Rarity.LEGENDARY
    ][:1]
    banners = []
    for index, template in enumerate(create_default_templates()):
        banners.append(
            template.create_banner(
                banner_id=f"banner-{index + 1}",
                name=f"{template.name} Banner",
                item_pool=pool,
                featured_item_ids=featured,
            )
        )
    return banners
