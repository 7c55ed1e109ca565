"""Planning session: pools, worker fan-out, join and merge.

The caller supplies per-slot (item, weight) candidates and a score function.
The session trims each pool, splits its budget across the workers, runs one
AnnealingSearch per budget in parallel and merges the results. Pools, the
score function and the base configuration are shared read-only; the only
synchronization point is waiting for every worker to finish.
"""
import logging
import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass

from gearplanner.aggregate import collect
from gearplanner.annealing import AnnealingSearch, ScoreFn
from gearplanner.budget import DurationBudget, IterationBudget, SessionBudget
from gearplanner.catalog import ItemCatalog
from gearplanner.errors import EmptyPoolError, SearchConfigError, WorkerFailedError
from gearplanner.loadout import Configuration
from gearplanner.models import DEFAULT_SLOTS, Item, SearchSettings, Slot
from gearplanner.pool import CandidatePool
from gearplanner.results import GlobalResult, WorkerResult
from gearplanner.scoring import StatScorer, ValuationContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkerTask:
    """Everything one worker needs; picklable for process executors."""
    worker_index: int
    score_fn: ScoreFn
    base: Configuration
    pools: Mapping[str, CandidatePool]
    budget: SessionBudget
    settings: SearchSettings


def run_worker(task: WorkerTask) -> WorkerResult:
    search = AnnealingSearch(
        task.score_fn, task.base, task.pools, task.budget, task.settings,
        worker_index=task.worker_index, master=task.worker_index == 0,
    )
    return search.run()


def make_budget(settings: SearchSettings) -> SessionBudget:
    if settings.iterations is not None:
        return IterationBudget(settings.iterations)
    return DurationBudget(settings.duration_seconds)


class PlanningSession:
    """One parallel annealing run over a fixed slot table and candidate set."""

    def __init__(self, score_fn: ScoreFn,
                 candidates: Mapping[str, Iterable[tuple[Item, float]]],
                 slots: Sequence[Slot] = DEFAULT_SLOTS,
                 fixed_items: Iterable[Item] = (),
                 skipped_slots: Iterable[str] = (),
                 settings: SearchSettings | None = None):
        self.settings = settings or SearchSettings()
        self.score_fn = score_fn
        self.slots = list(slots)
        self.skipped_slots = set(self.settings.ignored_slots) | set(skipped_slots)
        self.base = Configuration.build(self.slots, fixed_items, self.skipped_slots)
        self.pools = self._build_pools(candidates)
        self.excluded_slots = sorted(
            {self.base.position(i).slot for i in self.base.eligible_positions} - set(self.pools))

    @classmethod
    def from_catalog(cls, catalog: ItemCatalog, scorer: StatScorer,
                     fixed: Iterable[str] = (),
                     slots: Sequence[Slot] = DEFAULT_SLOTS,
                     skipped_slots: Iterable[str] = (),
                     allowed_categories: Iterable[str] | None = None,
                     settings: SearchSettings | None = None) -> "PlanningSession":
        """Build candidates from a catalog, weighted by marginal score.

        Fixed items are looked up in the full catalog; candidates are limited
        to the settings' level range (and allowed categories, if given).
        """
        settings = settings or SearchSettings()
        try:
            fixed_items = [catalog.get(name) for name in fixed]
        except KeyError as e:
            raise SearchConfigError(str(e.args[0])) from e

        context = ValuationContext(scorer, fixed_items)
        pool_source = catalog.filter_by_level(settings.level_range)
        if allowed_categories is not None:
            pool_source = pool_source.filter_by_category(allowed_categories)

        fixed_names = {i.name for i in fixed_items}
        candidates: dict[str, list[tuple[Item, float]]] = {}
        for slot, items in pool_source.by_slot().items():
            candidates[slot] = [
                (context.strip_unused(i), context.item_weight(i))
                for i in items if i.name not in fixed_names
            ]
        return cls(scorer, candidates, slots, fixed_items, skipped_slots, settings)

    def _build_pools(self, candidates: Mapping[str, Iterable[tuple[Item, float]]]
                     ) -> dict[str, CandidatePool]:
        wanted = {self.base.position(i).slot for i in self.base.eligible_positions}
        pools: dict[str, CandidatePool] = {}
        for slot in self.slots:
            if slot.name not in wanted:
                continue
            raw = CandidatePool(slot.name, candidates.get(slot.name, ()))
            try:
                pools[slot.name] = raw.trim(self.settings.min_quality_ratio)
            except EmptyPoolError as e:
                logger.warning("Excluding slot from search: %s", e)
        return pools

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    @property
    def total_candidates(self) -> int:
        return sum(len(p) for p in self.pools.values())

    @property
    def combinations(self) -> float:
        """Estimated search space size: product of non-empty pool sizes."""
        return math.prod(float(len(p)) for p in self.pools.values() if len(p) > 0)

    def start_message(self) -> str:
        lines = ["Beginning loadout sim."]
        for slot, pool in self.pools.items():
            lines.append(f"  {slot:<10} {len(pool):>5} candidates")
        for slot in self.excluded_slots:
            lines.append(f"  {slot:<10}     - excluded (no candidates)")
        budget = make_budget(self.settings)
        lines.append(
            f"{self.total_candidates} items considered, ~{self.combinations:.3g} combinations, "
            f"{self.settings.workers} worker(s), budget {budget}"
        )
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def tasks(self, budget: SessionBudget | None = None) -> list[WorkerTask]:
        budget = budget or make_budget(self.settings)
        return [
            WorkerTask(i, self.score_fn, self.base, self.pools, part, self.settings)
            for i, part in enumerate(budget.split(self.settings.workers))
        ]

    def run(self, budget: SessionBudget | None = None,
            executor_factory: Callable[[int], Executor] | None = None) -> GlobalResult:
        """Run every worker to its budget, then merge.

        A failing worker does not stop the others; once all have finished the
        failures are raised together as WorkerFailedError and no result is
        returned.
        """
        if not self.pools:
            raise SearchConfigError("No slot has candidates left to search")
        tasks = self.tasks(budget)
        factory = executor_factory or self._default_executor
        results: list[WorkerResult] = []
        failed: dict[int, BaseException] = {}
        with factory(len(tasks)) as executor:
            futures = [executor.submit(run_worker, t) for t in tasks]
            for task, future in zip(tasks, futures):
                try:
                    results.append(future.result())
                except Exception as e:
                    logger.error("Worker %d failed", task.worker_index, exc_info=e)
                    failed[task.worker_index] = e

        if failed:
            raise WorkerFailedError(failed) from failed[min(failed)]

        result = collect(results, self.pools, self.base.fixed_positions)
        logger.info("Search complete: best=%.4g after %d iterations in %.2fs",
                    result.score, result.total_iterations, result.elapsed_seconds)
        return result

    def _default_executor(self, n: int) -> Executor:
        if self.settings.executor == "process":
            return ProcessPoolExecutor(max_workers=n)
        return ThreadPoolExecutor(max_workers=n, thread_name_prefix="anneal")
