"""Slot assignments: the mutable working configuration and frozen snapshots.

A configuration is laid out once as an ordered list of positions, one per
slot occurrence that can hold an item. Fixed items occupy the first
occurrences of their slot and are never replaced. The number of positions
never changes afterwards; searching only swaps what sits in them.
"""
from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import NamedTuple

from gearplanner.errors import ConsistencyError, SearchConfigError
from gearplanner.models import Item, Slot


class Position(NamedTuple):
    slot:       str
    occurrence: int   # 0-based index among the slot's capacity


class _LoadoutView:
    """Read access shared by Configuration and Loadout."""

    _positions: tuple[Position, ...]
    _items: Sequence[Item | None]

    @property
    def positions(self) -> tuple[Position, ...]:
        return self._positions

    def size(self) -> int:
        """Number of positions, filled or not."""
        return len(self._positions)

    def __len__(self) -> int:
        return len(self._positions)

    def occupied(self) -> int:
        return sum(1 for item in self._items if item is not None)

    def item_at(self, index: int) -> Item | None:
        return self._items[index]

    def items(self) -> list[Item]:
        """Assigned items in position order, empty positions skipped."""
        return [item for item in self._items if item is not None]

    def assignments(self) -> Iterator[tuple[Position, Item | None]]:
        return zip(self._positions, self._items)

    def by_slot(self) -> dict[str, list[Item]]:
        ret: dict[str, list[Item]] = {}
        for pos, item in zip(self._positions, self._items):
            if item is not None:
                ret.setdefault(pos.slot, []).append(item)
        return ret

    def describe(self) -> str:
        parts = [
            f"{pos.slot}[{pos.occurrence}]={item.name}"
            for pos, item in zip(self._positions, self._items) if item is not None
        ]
        return ", ".join(parts) or "(empty)"


class Loadout(_LoadoutView):
    """Immutable snapshot of a configuration."""

    def __init__(self, positions: tuple[Position, ...], items: tuple[Item | None, ...]):
        if len(positions) != len(items):
            raise ConsistencyError(f"{len(positions)} positions but {len(items)} items")
        self._positions = positions
        self._items = items
        self._hash: int | None = None

    @classmethod
    def empty(cls) -> "Loadout":
        return cls((), ())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Loadout):
            return NotImplemented
        return self._positions == other._positions and self._items == other._items

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = hash((self._positions, self._items))
        return self._hash

    def __repr__(self) -> str:
        return f"Loadout({self.describe()})"


class Configuration(_LoadoutView):
    """Mutable slot-occurrence assignment, reused as a scratch buffer.

    `fixed` position indices hold caller-pinned items; `eligible` indices are
    the ones a search may replace.
    """

    def __init__(self, positions: Sequence[Position], items: Sequence[Item | None],
                 fixed: Iterable[int] = ()):
        self._positions = tuple(positions)
        self._items: list[Item | None] = list(items)
        if len(self._items) != len(self._positions):
            raise ConsistencyError(
                f"{len(self._positions)} positions but {len(self._items)} items")
        self._fixed = frozenset(fixed)
        self._eligible = tuple(i for i in range(len(self._positions)) if i not in self._fixed)

    @classmethod
    def build(cls, slots: Iterable[Slot], fixed_items: Iterable[Item] = (),
              skipped_slots: Iterable[str] = ()) -> "Configuration":
        """Lay out positions for a slot table.

        Each fixed item takes the next occurrence of its slot. Remaining
        capacity becomes searchable positions unless the slot is skipped or
        not searchable.
        """
        slot_list = list(slots)
        by_name = {s.name: s for s in slot_list}
        skipped = set(skipped_slots)

        fixed_by_slot: dict[str, list[Item]] = {}
        for item in fixed_items:
            if item.slot not in by_name:
                raise SearchConfigError(f"Fixed item {item.name!r} has unknown slot {item.slot!r}")
            fixed_by_slot.setdefault(item.slot, []).append(item)

        positions: list[Position] = []
        items: list[Item | None] = []
        fixed: list[int] = []
        for slot in slot_list:
            pinned = fixed_by_slot.get(slot.name, [])
            if len(pinned) > slot.capacity:
                raise SearchConfigError(
                    f"{len(pinned)} fixed items for slot {slot.name!r} (capacity {slot.capacity})")
            for occurrence, item in enumerate(pinned):
                fixed.append(len(positions))
                positions.append(Position(slot.name, occurrence))
                items.append(item)
            if slot.name in skipped or not slot.searchable:
                continue
            for occurrence in range(len(pinned), slot.capacity):
                positions.append(Position(slot.name, occurrence))
                items.append(None)
        return cls(positions, items, fixed)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    @property
    def fixed_positions(self) -> frozenset[int]:
        return self._fixed

    @property
    def eligible_positions(self) -> tuple[int, ...]:
        return self._eligible

    def position(self, index: int) -> Position:
        return self._positions[index]

    def copy(self) -> "Configuration":
        return Configuration(self._positions, self._items, self._fixed)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def load(self, source: _LoadoutView) -> None:
        """Overwrite every position with the contents of another layout."""
        if source.positions != self._positions:
            raise ConsistencyError(
                f"Cannot load a {source.size()}-position loadout into {self.size()} positions")
        self._items[:] = source._items

    def replace(self, index: int, item: Item | None) -> None:
        """Swap what sits at one position. Fixed positions are off limits."""
        if index in self._fixed:
            raise SearchConfigError(f"Position {self._positions[index]} is fixed")
        if item is not None and item.slot != self._positions[index].slot:
            raise SearchConfigError(
                f"{item.name!r} goes in {item.slot!r}, not {self._positions[index].slot!r}")
        self._items[index] = item

    def snapshot(self) -> Loadout:
        return Loadout(self._positions, tuple(self._items))

    def __repr__(self) -> str:
        return f"Configuration({self.describe()})"


class ScoredConfiguration(NamedTuple):
    """A snapshot and the score it was given. Never re-scored."""
    loadout: Loadout
    score:   float

    @classmethod
    def of(cls, config: _LoadoutView,
           score_fn: Callable[[_LoadoutView], float]) -> "ScoredConfiguration":
        loadout = config.snapshot() if isinstance(config, Configuration) else config
        return cls(loadout, float(score_fn(config)))

    @classmethod
    def empty(cls) -> "ScoredConfiguration":
        return cls(Loadout.empty(), 0.0)

