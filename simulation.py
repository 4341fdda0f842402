"""Monte-Carlo runs of the pull engine."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import BaseModel, Field

from banner import Banner, ItemCatalog
from gacha import PullResult, draw_batch
from rng import DefaultRNG, RNGProvider, SeededRNG
from validation import require_valid_banner

logger = logging.getLogger(__name__)

# Fixed stamp for simulated pulls so seeded runs compare equal.
SIMULATION_EPOCH = datetime(2000, 1, 1, tzinfo=timezone.utc)


class SimulationResult(BaseModel):
    """Pull sequences of every simulated player, in order."""

    banner_id: str = Field(..., description="Banner that was simulated")
    runs: list[list[PullResult]] = Field(
        default_factory=list, description="One pull sequence per experiment"
    )
    final_pity: list[int] = Field(
        default_factory=list, description="Pity counter left after each experiment"
    )

    @property
    def total_pulls(self) -> int:
        return sum(len(run) for run in self.runs)


class Simulation(BaseModel):
    """Simulates independent players pulling on one banner.

    Attributes:
        banner: Banner to pull from. Validated before the run starts.
        catalog: Catalog for the banner's pool.
        pulls: Number of pulls each simulated player makes.
        experiments: Number of independent players.
        seed: Seed for a reproducible run. None uses an unseeded source.
        starting_pity: Pity counter every player starts with.
        owned_item_ids: Items every player starts owning.
    """

    banner: Banner
    catalog: ItemCatalog
    pulls: int = Field(default=100, ge=0, description="Pulls per experiment")
    experiments: int = Field(default=1, ge=1, description="Number of experiments")
    seed: Optional[int] = Field(default=None, description="Seed for replayable runs")
    starting_pity: int = Field(default=0, ge=0, description="Initial pity counter")
    owned_item_ids: frozenset[str] = Field(
        default=frozenset(), description="Items owned at the start"
    )

    def _make_rng(self) -> RNGProvider:
        if self.seed is None:
            return DefaultRNG()
        return SeededRNG(self.seed)

    def _run_one(self, rng: RNGProvider, result: SimulationResult) -> None:
        outcome = draw_batch(
            self.banner,
            self.catalog,
            self.starting_pity,
            self.owned_item_ids,
            self.pulls,
            rng,
            timestamp=SIMULATION_EPOCH,
        )
        result.runs.append(outcome.results)
        result.final_pity.append(outcome.pity_counter)

    def run(self) -> SimulationResult:
        """Run every experiment synchronously with a single random stream."""
        require_valid_banner(self.banner, self.catalog)
        rng = self._make_rng()
        result = SimulationResult(banner_id=self.banner.id)
        for _ in range(self.experiments):
            self._run_one(rng, result)
        logger.info(
            "Simulated %d pulls on banner %s (%d experiments)",
            result.total_pulls,
            self.banner.id,
            self.experiments,
        )
        return result

    async def run_async(
        self,
        yield_every: int = 100,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> SimulationResult:
        """Same as ``run`` but yields to the event loop between experiments.

        Args:
            yield_every: Experiments between yields and progress reports.
            progress_callback: Optional callback(current, total).

        Returns:
            The same result ``run`` returns for the same seed.
        """
        require_valid_banner(self.banner, self.catalog)
        rng = self._make_rng()
        result = SimulationResult(banner_id=self.banner.id)
        for index in range(self.experiments):
            self._run_one(rng, result)
            done = index + 1
            if done % max(1, yield_every) == 0:
                if progress_callback:
                    progress_callback(done, self.experiments)
                await asyncio.sleep(0)
        if progress_callback:
            progress_callback(self.experiments, self.experiments)
        return result
