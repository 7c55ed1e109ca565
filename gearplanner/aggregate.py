"""Merge per-worker results into one global result."""
from collections.abc import Mapping, Sequence

from gearplanner.loadout import Configuration, Loadout
from gearplanner.pool import CandidatePool
from gearplanner.results import GlobalResult, SlotAnnotation, WorkerResult


def merge(results: Sequence[WorkerResult]) -> WorkerResult:
    """Highest-scoring worker result; the earliest one wins a tie."""
    if not results:
        raise ValueError("No worker results to merge")
    best = results[0]
    for r in results[1:]:
        if r.score > best.score:
            best = r
    return best


def annotate(loadout: Loadout | Configuration,
             pools: Mapping[str, CandidatePool],
             fixed_positions: frozenset[int] = frozenset()) -> list[SlotAnnotation]:
    """Rank of every chosen item within its slot's pool, for reporting."""
    notes: list[SlotAnnotation] = []
    for i, (pos, item) in enumerate(loadout.assignments()):
        if item is None:
            continue
        pool = pools.get(pos.slot)
        fixed = i in fixed_positions
        notes.append(SlotAnnotation(
            slot=pos.slot,
            occurrence=pos.occurrence,
            item=item.name,
            fixed=fixed,
            rank=None if fixed or pool is None else pool.rank_of(item),
            pool_size=len(pool) if pool is not None else 0,
        ))
    return notes


def collect(results: Sequence[WorkerResult], pools: Mapping[str, CandidatePool],
            fixed_positions: frozenset[int] = frozenset()) -> GlobalResult:
    """merge() then annotate() the winner."""
    best = merge(results)
    return GlobalResult(
        best=best,
        workers=list(results),
        annotations=annotate(best.loadout, pools, fixed_positions),
    )
