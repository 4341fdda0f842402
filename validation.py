"""Content-time checks for banners and item catalogs.

These run when a banner is published (static content or mod packages), not
on every pull. ``validate_banner`` collects every problem instead of stopping
at the first so an author can fix a banner in one pass.
"""

import logging
from collections import Counter
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from banner import RARITY_ORDER, Banner, GachaItem, ItemCatalog, Rarity
from errors import (
    BannerValidationError,
    EmptyTierPool,
    InvalidRateTable,
    UnknownItemReference,
)

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class IssueCode(str, Enum):
    INVALID_RATE_TABLE = "invalid_rate_table"
    UNKNOWN_ITEM_REFERENCE = "unknown_item_reference"
    EMPTY_TIER_POOL = "empty_tier_pool"
    EMPTY_ITEM_POOL = "empty_item_pool"
    INVALID_PITY_THRESHOLD = "invalid_pity_threshold"
    FEATURED_NOT_IN_POOL = "featured_not_in_pool"
    INVALID_WINDOW = "invalid_window"
    DUPLICATE_POOL_ITEM = "duplicate_pool_item"
    UNUSED_FEATURED_ITEMS = "unused_featured_items"
    RATE_UP_WITHOUT_FEATURED = "rate_up_without_featured"
    SOFT_PITY_UNREACHABLE = "soft_pity_unreachable"
    DUPLICATE_ITEM_ID = "duplicate_item_id"
    MISSING_DISPLAY_NAME = "missing_display_name"


class ValidationIssue(BaseModel):
    code: IssueCode = Field(..., description="Machine-readable issue type")
    message: str = Field(..., description="Human-readable explanation")
    severity: Severity = Field(Severity.ERROR, description="Error or warning")
    path: str = Field("", description="Where in the content the issue is")
    item_id: Optional[str] = Field(None, description="Item involved, if any")
    rarity: Optional[Rarity] = Field(None, description="Rarity involved, if any")

    model_config = {"frozen": True}

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR


def _error(code: IssueCode, message: str, path: str, item_id: Optional[str] = None):
    return ValidationIssue(code=code, message=message, path=path, item_id=item_id)


def _warning(code: IssueCode, message: str, path: str, item_id: Optional[str] = None):
    return ValidationIssue(
        code=code,
        message=message,
        severity=Severity.WARNING,
        path=path,
        item_id=item_id,
    )


def validate_banner(banner: Banner, catalog: ItemCatalog) -> list[ValidationIssue]:
    """Check a banner against the catalog it will draw from.

    Args:
        banner: The banner about to be published.
        catalog: Catalog holding every item the banner may reference.

    Returns:
        All errors and warnings found, errors first. An empty list means the
        banner is safe to hand to ``draw_one``.
    """
    path = f"banners[{banner.id}]"
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []

    total = banner.rate_table.total()
    if not banner.rate_table.validate_sum():
        errors.append(
            _error(
                IssueCode.INVALID_RATE_TABLE,
                f"Rates sum to {total}, expected 1.0",
                f"{path}.rate_table",
            )
        )

    if not banner.item_pool:
        errors.append(
            _error(IssueCode.EMPTY_ITEM_POOL, "item_pool is empty", f"{path}.item_pool")
        )

    for item_id, count in Counter(banner.item_pool).items():
        if count > 1:
            warnings.append(
                _warning(
                    IssueCode.DUPLICATE_POOL_ITEM,
                    f"Pool item '{item_id}' is listed {count} times",
                    f"{path}.item_pool",
                    item_id=item_id,
                )
            )

    known_pool: list[GachaItem] = []
    for item_id in dict.fromkeys(banner.item_pool):
        item = catalog.get(item_id)
        if item is None:
            errors.append(
                _error(
                    IssueCode.UNKNOWN_ITEM_REFERENCE,
                    f"Pool item '{item_id}' not found in catalog",
                    f"{path}.item_pool",
                    item_id=item_id,
                )
            )
        else:
            known_pool.append(item)

    pool_rarities = {item.rarity for item in known_pool}
    # Hard and soft pity can draw legendary even at a zero base rate
    pity_forces_legendary = (
        banner.pity_threshold > 0 or banner.soft_pity_start is not None
    )
    for rarity in RARITY_ORDER:
        if rarity in pool_rarities:
            continue
        rate = banner.rate_table.get(rarity)
        if rate > 0:
            message = f"Rarity '{rarity.value}' has rate {rate} but no pool items"
        elif rarity == Rarity.LEGENDARY and pity_forces_legendary:
            message = (
                f"Rarity '{rarity.value}' can be drawn through pity "
                "but has no pool items"
            )
        else:
            continue
        errors.append(
            ValidationIssue(
                code=IssueCode.EMPTY_TIER_POOL,
                message=message,
                path=f"{path}.rate_table.{rarity.value}",
                rarity=rarity,
            )
        )

    if banner.pity_threshold <= 0:
        errors.append(
            _error(
                IssueCode.INVALID_PITY_THRESHOLD,
                f"pity_threshold must be at least 1, got {banner.pity_threshold}",
                f"{path}.pity_threshold",
            )
        )

    pool_ids = set(banner.item_pool)
    for item_id in banner.featured_item_ids:
        if item_id not in pool_ids:
            errors.append(
                _error(
                    IssueCode.FEATURED_NOT_IN_POOL,
                    f"Featured item '{item_id}' is not in item_pool",
                    f"{path}.featured_item_ids",
                    item_id=item_id,
                )
            )

    window = banner.window
    if window.end is not None and window.end <= window.start:
        errors.append(
            _error(
                IssueCode.INVALID_WINDOW,
                f"Window ends at {window.end}, not after its start {window.start}",
                f"{path}.window",
            )
        )

    if banner.featured_item_ids and banner.featured_rate_up_share == 0:
        warnings.append(
            _warning(
                IssueCode.UNUSED_FEATURED_ITEMS,
                "Featured items are set but featured_rate_up_share is 0, "
                "so they get no rate-up",
                f"{path}.featured_rate_up_share",
            )
        )
    if banner.featured_rate_up_share > 0 and not banner.featured_item_ids:
        warnings.append(
            _warning(
                IssueCode.RATE_UP_WITHOUT_FEATURED,
                "featured_rate_up_share is set but there are no featured items",
                f"{path}.featured_item_ids",
            )
        )

    if (
        banner.soft_pity_start is not None
        and banner.soft_pity_start >= banner.pity_threshold - 1
    ):
        warnings.append(
            _warning(
                IssueCode.SOFT_PITY_UNREACHABLE,
                f"soft_pity_start {banner.soft_pity_start} is never reached "
                f"before hard pity at {banner.pity_threshold}",
                f"{path}.soft_pity_start",
            )
        )

    issues = errors + warnings
    if issues:
        logger.warning(
            "Banner %s v%d: %d error(s), %d warning(s)",
            banner.id,
            banner.version,
            len(errors),
            len(warnings),
        )
    return issues


def require_valid_banner(banner: Banner, catalog: ItemCatalog) -> Banner:
    """Raise on the first validation error, return the banner otherwise.

    Raises:
        InvalidRateTable: The rates do not sum to 1.
        UnknownItemReference: A pool item is missing from the catalog.
        EmptyTierPool: A rarity with positive rate has no pool items.
        BannerValidationError: Any other structural error.
    """
    for issue in validate_banner(banner, catalog):
        if not issue.is_error:
            continue
        if issue.code == IssueCode.INVALID_RATE_TABLE:
            raise InvalidRateTable(banner.rate_table.total(), banner_id=banner.id)
        if issue.code == IssueCode.UNKNOWN_ITEM_REFERENCE:
            raise UnknownItemReference(issue.item_id or "", banner_id=banner.id)
        if issue.code == IssueCode.EMPTY_TIER_POOL:
            raise EmptyTierPool(issue.rarity.value, banner_id=banner.id)
        raise BannerValidationError(issue.message, banner_id=banner.id)
    return banner


def validate_catalog(items: Iterable[GachaItem]) -> list[ValidationIssue]:
    """Check a list of item definitions before building a catalog from it."""
    issues: list[ValidationIssue] = []
    seen: set[str] = set()
    for index, item in enumerate(items):
        path = f"items[{index}]"
        if item.id in seen:
            issues.append(
                _error(
                    IssueCode.DUPLICATE_ITEM_ID,
                    f"Duplicate item id: {item.id}",
                    path,
                    item_id=item.id,
                )
            )
        seen.add(item.id)
        if not item.display_name.strip():
            issues.append(
                _warning(
                    IssueCode.MISSING_DISPLAY_NAME,
                    f"Item '{item.id}' has no display name",
                    path,
                    item_id=item.id,
                )
            )
    return issues
