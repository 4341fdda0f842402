"""Caller-side state: pity counters, ownership ledger and pull history.

The engine in ``gacha`` is stateless. ``PlayerGachaState`` is the small
record a caller persists per player and threads through it. Reads and writes
of one player's state must be serialized by the caller; ``revision`` supports
an optimistic check for that.
"""

import base64
import json
import logging
import zlib
from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, Field

from banner import Banner, ItemCatalog, Rarity
from errors import StalePityState
from gacha import PullResult, draw_batch
from rng import RNGProvider

logger = logging.getLogger(__name__)

STATE_SCHEMA_VERSION = 1


class PityState(BaseModel):
    """Pity progress of one player on one banner."""

    banner_id: str = Field(..., description="Banner this counter belongs to")
    pulls_since_last_legendary: int = Field(
        0, ge=0, description="Pulls since the last legendary on this banner"
    )

    model_config = {"frozen": True}


class PullHistory(BaseModel):
    """Ordered pull results kept by the caller, with derived counts."""

    results: list[PullResult] = Field(default_factory=list)

    def extend(self, results: list[PullResult]) -> None:
        self.results.extend(results)

    @property
    def total_pulls(self) -> int:
        return len(self.results)

    @property
    def legendary_count(self) -> int:
        return sum(1 for r in self.results if r.rarity == Rarity.LEGENDARY)

    @property
    def pity_trigger_count(self) -> int:
        return sum(1 for r in self.results if r.pity_triggered)

    @property
    def duplicate_count(self) -> int:
        return sum(1 for r in self.results if r.is_duplicate)

    @property
    def new_count(self) -> int:
        return sum(1 for r in self.results if r.is_new)

    def count_by_rarity(self) -> dict[Rarity, int]:
        counts = {rarity: 0 for rarity in Rarity}
        for r in self.results:
            counts[r.rarity] += 1
        return counts

    def pulls_since_last(self, rarity: Rarity) -> Optional[int]:
        """Pulls after the most recent result of rarity, None if never seen."""
        for offset, r in enumerate(reversed(self.results)):
            if r.rarity == rarity:
                return offset
        return None


class PlayerGachaState(BaseModel):
    """Everything the engine needs persisted for one player."""

    schema_version: int = Field(
        STATE_SCHEMA_VERSION, description="Version of this record's layout"
    )
    pity: dict[str, Annotated[int, Field(ge=0)]] = Field(
        default_factory=dict, description="Pity counter per banner id"
    )
    owned_item_ids: set[str] = Field(
        default_factory=set, description="Items the player owns"
    )
    revision: int = Field(
        0, ge=0, description="Bumped on every committed pull, for optimistic checks"
    )

    def pity_for(self, banner_id: str) -> PityState:
        return PityState(
            banner_id=banner_id,
            pulls_since_last_legendary=self.pity.get(banner_id, 0),
        )

    def set_pity(self, state: PityState) -> None:
        self.pity[state.banner_id] = state.pulls_since_last_legendary

    def owns(self, item_id: str) -> bool:
        return item_id in self.owned_item_ids

    def pull(
        self,
        banner: Banner,
        catalog: ItemCatalog,
        count: int,
        rng: RNGProvider,
        expected_revision: Optional[int] = None,
        timestamp: Optional[datetime] = None,
        history: Optional[PullHistory] = None,
    ) -> list[PullResult]:
        """Draw ``count`` times and commit pity and ownership on success.

        Args:
            banner: Validated banner to pull from.
            catalog: Catalog for the banner's pool.
            count: Number of pulls.
            rng: Random source.
            expected_revision: Revision the caller read. If given and the
                state has moved on, nothing is drawn.
            timestamp: Passed through to every result.
            history: Optional history to append the results to.

        Raises:
            StalePityState: ``expected_revision`` does not match.
        """
        if expected_revision is not None and expected_revision != self.revision:
            raise StalePityState(expected_revision, self.revision)

        pity = self.pity_for(banner.id)
        outcome = draw_batch(
            banner,
            catalog,
            pity.pulls_since_last_legendary,
            self.owned_item_ids,
            count,
            rng,
            timestamp=timestamp,
        )
        # Commit only after the whole batch succeeded
        self.pity[banner.id] = outcome.pity_counter
        self.owned_item_ids = set(outcome.owned_item_ids)
        self.revision += 1
        if history is not None:
            history.extend(outcome.results)

        logger.info(
            "Player pulled %d on banner %s, pity now %d (revision %d)",
            count,
            banner.id,
            outcome.pity_counter,
            self.revision,
        )
        return outcome.results


def serialize_state(state: PlayerGachaState) -> str:
    """Serialize player state to a compressed url-safe base64 string."""
    data = state.model_dump(mode="json")
    data["owned_item_ids"] = sorted(data["owned_item_ids"])
    json_str = json.dumps(data, ensure_ascii=False, sort_keys=True)
    compressed = zlib.compress(json_str.encode(), level=9)
    return base64.urlsafe_b64encode(compressed).decode()


def deserialize_state(encoded: str) -> PlayerGachaState:
    """Inverse of ``serialize_state``. Also accepts uncompressed payloads."""
    raw = base64.urlsafe_b64decode(encoded.encode())
    try:
        json_str = zlib.decompress(raw).decode()
    except zlib.error:
        json_str = raw.decode()
    data = json.loads(json_str)
    if not isinstance(data, dict):
        raise ValueError(f"State payload must be an object, got {type(data).__name__}")
    state = PlayerGachaState.model_validate(data)
    if state.schema_version > STATE_SCHEMA_VERSION:
        raise ValueError(
            f"State schema version {state.schema_version} is newer than supported "
            f"{STATE_SCHEMA_VERSION}"
        )
    return state
