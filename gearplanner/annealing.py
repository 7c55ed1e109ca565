"""Simulated annealing over equipment loadouts.

This is a loose analog to metallurgical annealing: heat a material until its
crystal structure melts, then cool it slowly so it settles into one large
crystal.

A worker starts from the fixed-items-only loadout and keeps trying
single-item replacements. A replacement that scores at least as well is
always accepted. A worse one is accepted with probability
exp(-(1 - ratio) / T), where ratio is trial / current score and T is the
temperature. T starts at T0 and falls as (1 - progress)^2 as the worker's
budget runs out, so the run wanders early and hill-climbs near the end.
"""
import enum
import logging
import math
import random
from collections.abc import Callable, Mapping
from typing import Protocol

from gearplanner.budget import SessionBudget
from gearplanner.errors import ConsistencyError, SearchConfigError
from gearplanner.loadout import Configuration, ScoredConfiguration
from gearplanner.models import SearchSettings
from gearplanner.pool import CandidatePool
from gearplanner.results import WorkerResult

logger = logging.getLogger(__name__)

ScoreFn = Callable[[Configuration], float]


class SearchState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    FINISHED = "finished"


class SearchStrategy(Protocol):
    """What run_strategy() needs from a search implementation."""

    budget: SessionBudget
    state: SearchState
    progress_interval: int

    def initialize(self) -> None: ...

    def iterate(self) -> None: ...

    def update_progress(self) -> None: ...

    def get_result(self) -> WorkerResult: ...

    @property
    def finished(self) -> bool: ...


def run_strategy(strategy: SearchStrategy) -> WorkerResult:
    """Drive a strategy from UNINITIALIZED to FINISHED and return its result.

    Budget expiry is sampled between iterations, so a run can overshoot its
    allotment by at most one iteration.
    """
    if strategy.state is not SearchState.UNINITIALIZED:
        raise RuntimeError(f"Search already {strategy.state.value}")
    budget = strategy.budget
    budget.start()
    strategy.initialize()
    strategy.state = SearchState.RUNNING

    interval = strategy.progress_interval
    count = 0
    while not budget.expired():
        strategy.iterate()
        budget.tick()
        count += 1
        if count % interval == 0:
            strategy.update_progress()

    strategy.update_progress()
    strategy.state = SearchState.FINISHED
    return strategy.get_result()


# ---------------------------------------------------------------------------
# Cooling and acceptance
# ---------------------------------------------------------------------------

def cooled_temperature(starting_temperature: float, progress: float) -> float:
    """Quadratic cooling: near T0 for most of the run, 0 at progress 1."""
    portion = 1.0 - min(1.0, max(0.0, progress))
    return starting_temperature * portion * portion


def acceptance_probability(ratio: float, temperature: float) -> float:
    """Metropolis acceptance for a trial/current score ratio."""
    if ratio >= 1:
        return 1.0
    if temperature <= 0:
        return 0.0
    return math.exp(-(1.0 - ratio) / temperature)


# ---------------------------------------------------------------------------
# Worker
# ---------------------------------------------------------------------------

class AnnealingSearch:
    """One independent annealing run over a private budget.

    Pools, the score function and the base configuration are shared
    read-only between workers; everything else here belongs to this worker.
    The score function must return a positive score for any configuration
    reachable from the base; a zero current score is not handled.
    """

    def __init__(self, score_fn: ScoreFn, base: Configuration,
                 pools: Mapping[str, CandidatePool], budget: SessionBudget,
                 settings: SearchSettings | None = None, *,
                 worker_index: int = 0, master: bool = False,
                 rng: random.Random | None = None):
        settings = settings or SearchSettings(workers=1)
        self.score_fn = score_fn
        self.base = base
        self.pools = pools
        self.budget = budget
        self.worker_index = worker_index
        self.master = master
        self.starting_temperature = settings.starting_temperature
        self.progress_interval = settings.progress_interval
        self.rng = rng or random.Random(settings.worker_seed(worker_index))

        # Positions whose slot lost its pool stay empty for the whole run
        self._eligible = tuple(
            i for i in base.eligible_positions
            if len(pools.get(base.position(i).slot, ())) > 0
        )
        if not self._eligible:
            raise SearchConfigError("No searchable slot positions with candidates")

        self.state = SearchState.UNINITIALIZED
        self.temperature = self.starting_temperature
        self.iterations = 0
        self.accepted = 0
        self.current = ScoredConfiguration.empty()
        self.best = ScoredConfiguration.empty()
        self._working: Configuration | None = None
        self._last_reported = -1

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        self.temperature = self.starting_temperature
        self.iterations = 0
        self.accepted = 0
        self.best = ScoredConfiguration.empty()
        self.current = ScoredConfiguration.of(self.base, self.score_fn)
        self._working = self.base.copy()
        self._last_reported = -1
        if self.master:
            logger.info("Worker %d starting at score %.4g (%s)",
                        self.worker_index, self.current.score, self.budget)

    def iterate(self) -> None:
        self._sim_and_update_state()

    def update_progress(self) -> None:
        progress = self.budget.progress_fraction()
        self.temperature = cooled_temperature(self.starting_temperature, progress)
        if self.master:
            self._report(progress)

    def run(self) -> WorkerResult:
        return run_strategy(self)

    @property
    def finished(self) -> bool:
        return self.state is SearchState.FINISHED

    def get_result(self) -> WorkerResult:
        return WorkerResult(
            worker_index=self.worker_index,
            best=self.best,
            iterations=self.iterations,
            accepted=self.accepted,
            elapsed_seconds=self.budget.elapsed(),
        )

    # ------------------------------------------------------------------
    # Annealing step
    # ------------------------------------------------------------------

    def _sim_and_update_state(self) -> None:
        working, filled = self._mutate_current()
        occupied = working.occupied()
        expected = self.current.loadout.occupied() + (1 if filled else 0)
        if occupied != expected:
            raise ConsistencyError(
                f"Mutation left {occupied} items, expected {expected}")
        score = float(self.score_fn(working))
        if working.occupied() != occupied:
            raise ConsistencyError(
                f"Scoring changed item count from {occupied} to {working.occupied()}")
        self.iterations += 1

        ratio = score / self.current.score
        if ratio >= 1:
            trial = ScoredConfiguration(working.snapshot(), score)
            self.current = trial
            self.accepted += 1
            if score > self.best.score:
                self.best = trial
        elif self.rng.random() < acceptance_probability(ratio, self.temperature):
            self.current = ScoredConfiguration(working.snapshot(), score)
            self.accepted += 1

    def _mutate_current(self) -> tuple[Configuration, bool]:
        """Load current into the working buffer and swap one item.

        Returns the buffer and whether the swapped position was empty.
        """
        working = self._working
        working.load(self.current.loadout)
        index = self._eligible[self.rng.randrange(len(self._eligible))]
        filled = working.item_at(index) is None
        pool = self.pools[working.position(index).slot]
        working.replace(index, pool.draw_uniform(self.rng).item)
        return working, filled

    def _report(self, progress: float) -> None:
        decile = int(progress * 10)
        if decile <= self._last_reported:
            return
        self._last_reported = decile
        logger.info("%3d%%  iterations=%d  T=%.4f  current=%.4g  best=%.4g",
                    decile * 10, self.iterations, self.temperature,
                    self.current.score, self.best.score)
