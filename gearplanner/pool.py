"""Per-slot candidate pools with O(1) random draws."""
import random
from collections.abc import Iterable, Iterator
from typing import NamedTuple

from gearplanner.errors import EmptyPoolError
from gearplanner.models import Item


class Candidate(NamedTuple):
    """An item and its marginal score in the active valuation context."""
    item:   Item
    weight: float


class CandidatePool:
    """Scored candidates for one slot, best first. Read-only once built.

    Mutation proposals use draw_uniform(): a symmetric proposal is what lets
    the Metropolis rule skip a proposal-ratio correction. Weights are only
    used to trim the pool and for draw_weighted().
    """

    def __init__(self, slot: str, candidates: Iterable[tuple[Item, float]]):
        ordered = sorted(
            (Candidate(item, float(weight)) for item, weight in candidates),
            key=lambda c: c.weight, reverse=True,
        )
        for c in ordered:
            if c.weight < 0:
                raise ValueError(f"Negative weight {c.weight} for {c.item.name!r} in slot {slot!r}")
        self.slot = slot
        self._candidates: tuple[Candidate, ...] = tuple(ordered)
        self._ranks: dict[str, int] = {}
        for i, c in enumerate(self._candidates):
            self._ranks.setdefault(c.item.name, i)
        self._prob, self._alias = _build_alias_table([c.weight for c in self._candidates])

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def candidates(self) -> tuple[Candidate, ...]:
        return self._candidates

    @property
    def weights(self) -> tuple[float, ...]:
        return tuple(c.weight for c in self._candidates)

    @property
    def max_weight(self) -> float:
        return self._candidates[0].weight if self._candidates else 0.0

    def size(self) -> int:
        return len(self._candidates)

    def __len__(self) -> int:
        return len(self._candidates)

    def __iter__(self) -> Iterator[Candidate]:
        return iter(self._candidates)

    def rank_of(self, item: Item) -> int | None:
        """0-based position of item in the pool (best first), None if absent."""
        return self._ranks.get(item.name)

    # ------------------------------------------------------------------
    # Trimming
    # ------------------------------------------------------------------

    def trim(self, min_ratio: float) -> "CandidatePool":
        """New pool without candidates scoring below min_ratio * max weight.

        Raises EmptyPoolError if nothing would survive; the caller must then
        leave the slot out of the search.
        """
        top = self.max_weight
        if min_ratio <= 0:
            kept = list(self._candidates)
        elif top <= 0:
            kept = []
        else:
            kept = [c for c in self._candidates if c.weight / top >= min_ratio]
        if not kept:
            raise EmptyPoolError(self.slot, min_ratio)
        return CandidatePool(self.slot, kept)

    # ------------------------------------------------------------------
    # Draws
    # ------------------------------------------------------------------

    def draw_uniform(self, rng: random.Random) -> Candidate:
        """Any candidate with equal probability, ignoring weights."""
        if not self._candidates:
            raise EmptyPoolError(self.slot, 0.0)
        return self._candidates[rng.randrange(len(self._candidates))]

    def draw_weighted(self, rng: random.Random) -> Candidate:
        """Candidate drawn proportionally to weight (Vose alias method)."""
        if not self._candidates:
            raise EmptyPoolError(self.slot, 0.0)
        i = rng.randrange(len(self._candidates))
        if rng.random() < self._prob[i]:
            return self._candidates[i]
        return self._candidates[self._alias[i]]

    def __repr__(self) -> str:
        return f"CandidatePool({self.slot!r}, {len(self)} candidates)"


def _build_alias_table(weights: list[float]) -> tuple[list[float], list[int]]:
    n = len(weights)
    if n == 0:
        return [], []
    total = sum(weights)
    if total <= 0:
        # All-zero weights degrade to a uniform draw
        return [1.0] * n, list(range(n))

    scaled = [w * n / total for w in weights]
    prob = [0.0] * n
    alias = list(range(n))
    small = [i for i, p in enumerate(scaled) if p < 1.0]
    large = [i for i, p in enumerate(scaled) if p >= 1.0]
    while small and large:
        s = small.pop()
        g = large.pop()
        prob[s] = scaled[s]
        alias[s] = g
        scaled[g] = (scaled[g] + scaled[s]) - 1.0
        if scaled[g] < 1.0:
            small.append(g)
        else:
            large.append(g)
    for i in large + small:
        prob[i] = 1.0
    return prob, alias
