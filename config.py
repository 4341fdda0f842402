"""Banner templates: the defaults new banners are built from."""

from pathlib import Path
from typing import Iterable, Optional, Union

from pydantic import BaseModel, Field

from banner import RARITY_ORDER, ActivityWindow, Banner, PullCost, RateTable


class BannerTemplate(BaseModel):
    """Template configuration for gacha banners.

    Holds the balance knobs shared by every banner created from it, so that a
    balance change is one new template rather than edits to live banners.
    """

    name: str = Field("Default", description="Name of the banner template")
    rate_table: RateTable = Field(
        default_factory=RateTable,
        description="Default probability distribution for each rarity",
    )
    featured_rate_up_share: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Share of a tier reserved for featured items when drawing that tier",
    )
    pity_threshold: int = Field(
        default=90,
        ge=1,
        description="Pull number at which a legendary is guaranteed",
    )
    soft_pity_start: Optional[int] = Field(
        default=None,
        ge=0,
        description="Pity counter at which the legendary rate starts rising. None = off",
    )
    soft_pity_increment: float = Field(
        default=0.05,
        ge=0.0,
        le=1.0,
        description="Legendary rate added per pull past soft_pity_start",
    )
    cost_per_pull: PullCost = Field(
        default_factory=PullCost, description="Price of a single pull"
    )
    duration: Optional[int] = Field(
        default=None,
        ge=1,
        description="Banner length in game ticks. None = never ends",
    )
    is_limited: bool = Field(default=False, description="Mark banners as limited")

    def validate_distribution(self) -> bool:
        """Validate that the default rate table sums to 1.0."""
        return self.rate_table.validate_sum()

    def create_banner(
        self,
        banner_id: str,
        item_pool: Iterable[str],
        featured_item_ids: Iterable[str] = (),
        name: str = "",
        start: int = 0,
    ) -> Banner:
        """Build a banner from this template.

        The result still has to pass ``validation.validate_banner`` against
        the catalog before it is published.
        """
        end = None if self.duration is None else start + self.duration
        return Banner(
            id=banner_id,
            name=name or banner_id,
            rate_table=self.rate_table,
            item_pool=tuple(item_pool),
            featured_item_ids=tuple(featured_item_ids),
            featured_rate_up_share=self.featured_rate_up_share,
            pity_threshold=self.pity_threshold,
            cost_per_pull=self.cost_per_pull,
            window=ActivityWindow(start=start, end=end),
            is_limited=self.is_limited,
            soft_pity_start=self.soft_pity_start,
            soft_pity_increment=self.soft_pity_increment,
        )

    def get_description(self) -> str:
        """Markdown summary of the template, for display."""
        lines = [f"**{self.name}**", ""]
        for rarity in reversed(RARITY_ORDER):
            lines.append(f"- {rarity.value}: {self.rate_table.get(rarity) * 100:.2f}%")
        lines.append(f"- Hard pity at pull {self.pity_threshold}")
        if self.soft_pity_start is not None:
            lines.append(
                f"- Soft pity from counter {self.soft_pity_start}, "
                f"+{self.soft_pity_increment * 100:.1f}% per pull"
            )
        if self.featured_rate_up_share > 0:
            lines.append(
                f"- Featured items take {self.featured_rate_up_share * 100:.0f}% of their tier"
            )
        lines.append(
            f"- Cost: {self.cost_per_pull.gems} gems or {self.cost_per_pull.tickets} ticket(s)"
        )
        return "\n".join(lines)


def load_template(path: Union[str, Path]) -> BannerTemplate:
    """Load a template from a JSON file."""
    return BannerTemplate.model_validate_json(Path(path).read_text(encoding="utf-8"))


def save_template(template: BannerTemplate, path: Union[str, Path]) -> None:
    Path(path).write_text(template.model_dump_json(indent=2), encoding="utf-8")
