"""Search results: per-worker outcomes and the merged global result."""
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict

from gearplanner.loadout import Loadout, ScoredConfiguration


@dataclass(frozen=True)
class WorkerResult:
    """Best configuration one worker found, plus run statistics."""
    worker_index: int
    best: ScoredConfiguration
    iterations: int
    accepted: int
    elapsed_seconds: float

    @property
    def score(self) -> float:
        return self.best.score

    @property
    def loadout(self) -> Loadout:
        return self.best.loadout


class SlotAnnotation(BaseModel):
    """Where a chosen item ranks within its slot's candidate pool."""
    model_config = ConfigDict(frozen=True)

    slot: str
    occurrence: int
    item: str
    fixed: bool
    rank: int | None = None       # 0-based, best first; None when not drawn from a pool
    pool_size: int = 0

    @property
    def label(self) -> str:
        if self.fixed:
            return "fixed"
        if self.rank is None:
            return "-"
        return f"#{self.rank + 1} of {self.pool_size}"


@dataclass
class GlobalResult:
    """Winning worker result, annotated after the merge."""
    best: WorkerResult
    workers: list[WorkerResult]
    annotations: list[SlotAnnotation] = field(default_factory=list)

    @property
    def score(self) -> float:
        return self.best.score

    @property
    def loadout(self) -> Loadout:
        return self.best.loadout

    @property
    def total_iterations(self) -> int:
        return sum(w.iterations for w in self.workers)

    @property
    def elapsed_seconds(self) -> float:
        """Longest worker run; workers run side by side."""
        return max((w.elapsed_seconds for w in self.workers), default=0.0)
