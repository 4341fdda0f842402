"""Aggregate statistics over pull results, as pandas DataFrames."""

from typing import Optional

import pandas as pd

from banner import RARITY_ORDER, ItemCatalog, RateTable, Rarity
from gacha import PullResult

FRAME_COLUMNS = [
    "experiment",
    "pull",
    "item_id",
    "rarity",
    "is_new",
    "is_duplicate",
    "pity_triggered",
]


def results_to_frame(runs: list[list[PullResult]]) -> pd.DataFrame:
    """One row per pull. ``pull`` is 1-based within its experiment."""
    rows = [
        {
            "experiment": experiment,
            "pull": index + 1,
            "item_id": result.item_id,
            "rarity": result.rarity.value,
            "is_new": result.is_new,
            "is_duplicate": result.is_duplicate,
            "pity_triggered": result.pity_triggered,
        }
        for experiment, run in enumerate(runs)
        for index, result in enumerate(run)
    ]
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def rarity_frequencies(frame: pd.DataFrame, rates: RateTable) -> pd.DataFrame:
    """Observed vs declared rate per rarity, highest rarity first."""
    order = [rarity.value for rarity in reversed(RARITY_ORDER)]
    counts = frame["rarity"].value_counts().reindex(order, fill_value=0)
    total = int(counts.sum())
    table = pd.DataFrame({"count": counts.astype(int)})
    table["observed"] = counts / total if total else 0.0
    declared = rates.as_dict()
    table["expected"] = [declared[Rarity(value)] for value in order]
    table["deviation"] = table["observed"] - table["expected"]
    table.index.name = "rarity"
    return table


def within_tolerance(frequencies: pd.DataFrame, tolerance: float = 0.05) -> bool:
    """Whether every observed rate is within tolerance of its declared rate."""
    return bool((frequencies["deviation"].abs() <= tolerance).all())


def pity_trigger_rate(frame: pd.DataFrame) -> float:
    if frame.empty:
        return 0.0
    return float(frame["pity_triggered"].mean())


def duplicate_rate(frame: pd.DataFrame) -> float:
    if frame.empty:
        return 0.0
    return float(frame["is_duplicate"].mean())


def pulls_per_legendary(frame: pd.DataFrame) -> Optional[float]:
    """Average pulls spent per legendary, None if none was drawn."""
    legendaries = int((frame["rarity"] == Rarity.LEGENDARY.value).sum())
    if legendaries == 0:
        return None
    return len(frame) / legendaries


def popular_items(
    frame: pd.DataFrame, catalog: Optional[ItemCatalog] = None, top: int = 5
) -> pd.DataFrame:
    """Most drawn items with their share of all pulls."""
    counts = frame["item_id"].value_counts().head(top)
    table = pd.DataFrame(
        {
            "item_id": counts.index.tolist(),
            "pull_count": counts.to_numpy(),
        }
    )
    table["percentage"] = table["pull_count"] / len(frame) * 100 if len(frame) else 0.0
    if catalog is not None:
        table["display_name"] = [
            (catalog.get(item_id).display_name if item_id in catalog else item_id)
            for item_id in table["item_id"]
        ]
    return table


def summarize(
    frame: pd.DataFrame, rates: RateTable, compare_rates: bool = True
) -> dict:
    """Headline numbers for a set of pulls.

    ``within_5_percent`` is None when ``compare_rates`` is False, e.g. on a
    soft pity banner whose effective rates differ from ``rates``.
    """
    within = (
        within_tolerance(rarity_frequencies(frame, rates)) if compare_rates else None
    )
    return {
        "total_pulls": len(frame),
        "legendary_count": int((frame["rarity"] == Rarity.LEGENDARY.value).sum()),
        "pity_trigger_rate": pity_trigger_rate(frame),
        "duplicate_rate": duplicate_rate(frame),
        "pulls_per_legendary": pulls_per_legendary(frame),
        "within_5_percent": within,
    }
