"""Stat valuation with bonus-type stacking awareness."""
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Protocol

import orjson
from pydantic import BaseModel

from gearplanner.constants import SCORE_FLOOR, STACKING_BONUS
from gearplanner.models import Item


class _HasItems(Protocol):
    def items(self) -> list[Item]: ...


class StatLine(BaseModel):
    """One row of a verbose score breakdown."""
    stat: str
    total: float
    weight: float
    contribution: float


class StatScorer:
    """Scores loadouts as a weighted sum of stacked stat totals.

    Bonuses of the same type to the same stat do not stack: only the largest
    counts. Bonuses of the "stacking" type always add. Stats without a weight
    are ignored. The floor keeps every loadout's score positive, which the
    annealing acceptance ratio relies on.
    """

    def __init__(self, weights: Mapping[str, float], floor: float = SCORE_FLOOR):
        for stat, w in weights.items():
            if w < 0:
                raise ValueError(f"Negative weight for {stat!r}: {w}")
        if floor <= 0:
            raise ValueError(f"Score floor must be positive, got {floor}")
        self.weights: dict[str, float] = dict(weights)
        self.floor = floor

    @classmethod
    def from_json(cls, path: Path, floor: float = SCORE_FLOOR) -> "StatScorer":
        """Load {"stat": weight, ...} from a JSON file."""
        raw = orjson.loads(Path(path).read_bytes())
        if not isinstance(raw, dict):
            raise ValueError(f"{path}: expected a JSON object of stat weights")
        return cls({str(k): float(v) for k, v in raw.items()}, floor)

    @property
    def queried_stats(self) -> set[str]:
        return {s for s, w in self.weights.items() if w > 0}

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def stat_totals(self, items: Iterable[Item]) -> dict[str, float]:
        """Stacked total per weighted stat."""
        best: dict[tuple[str, str], float] = {}
        stacked: dict[str, float] = {}
        for item in items:
            for b in item.bonuses:
                if b.stat not in self.weights:
                    continue
                if b.bonus == STACKING_BONUS:
                    stacked[b.stat] = stacked.get(b.stat, 0.0) + b.value
                    continue
                key = (b.stat, b.bonus)
                prev = best.get(key)
                if prev is None or b.value > prev:
                    best[key] = b.value
        totals = dict(stacked)
        for (stat, _), value in best.items():
            totals[stat] = totals.get(stat, 0.0) + value
        return totals

    def score_items(self, items: Iterable[Item]) -> float:
        totals = self.stat_totals(items)
        return self.floor + sum(self.weights[s] * v for s, v in totals.items())

    def score(self, loadout: _HasItems) -> float:
        return self.score_items(loadout.items())

    def __call__(self, loadout: _HasItems) -> float:
        return self.score_items(loadout.items())

    # ------------------------------------------------------------------
    # Breakdown (for CLI display)
    # ------------------------------------------------------------------

    def breakdown(self, loadout: _HasItems) -> list[StatLine]:
        totals = self.stat_totals(loadout.items())
        lines = [
            StatLine(stat=stat, total=totals.get(stat, 0.0), weight=w,
                     contribution=w * totals.get(stat, 0.0))
            for stat, w in self.weights.items()
        ]
        lines.sort(key=lambda line: line.contribution, reverse=True)
        return lines


class ValuationContext:
    """A scorer plus the fixed items every candidate is judged alongside."""

    def __init__(self, scorer: StatScorer, fixed_items: Iterable[Item] = ()):
        self.scorer = scorer
        self.fixed_items: list[Item] = list(fixed_items)
        self.base_score = scorer.score_items(self.fixed_items)

    def item_weight(self, item: Item) -> float:
        """Marginal score of adding item to the fixed items, never negative."""
        gain = self.scorer.score_items([*self.fixed_items, item]) - self.base_score
        return max(0.0, gain)

    def strip_unused(self, item: Item) -> Item:
        """Copy of item without bonuses to stats nobody asked about."""
        wanted = self.scorer.weights
        kept = tuple(b for b in item.bonuses if b.stat in wanted)
        if len(kept) == len(item.bonuses):
            return item
        return item.model_copy(update={"bonuses": kept})
