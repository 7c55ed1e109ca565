"""Pydantic models for slots, items and search settings.

These are the API-facing schemas; keep field names stable.
"""
import os
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from gearplanner.constants import (
    DEFAULT_DURATION_SECONDS, IGNORED_SLOTS, ITEM_QUALITY_MINIMUM_RATIO,
    PROGRESS_INTERVAL, SLOT_CAPACITY, STARTING_TEMPERATURE,
    TARGET_ITEMS_MAX_LEVEL, TARGET_ITEMS_MIN_LEVEL,
)


def default_worker_count() -> int:
    """One worker per core, leaving one core for everything else."""
    return max(1, (os.cpu_count() or 2) - 1)


# ---------------------------------------------------------------------------
# Slots and items
# ---------------------------------------------------------------------------

class Slot(BaseModel):
    """An equipment slot and how many items it holds at once."""
    model_config = ConfigDict(frozen=True)

    name: str
    capacity: int = Field(default=1, ge=1)
    searchable: bool = True


DEFAULT_SLOTS: tuple[Slot, ...] = tuple(
    Slot(name=name, capacity=capacity) for name, capacity in SLOT_CAPACITY.items()
)


class StatBonus(BaseModel):
    """A single stat bonus carried by an item, e.g. +6 enhancement Strength."""
    model_config = ConfigDict(frozen=True)

    stat: str
    bonus: str      # bonus type; same-type bonuses to one stat do not stack
    value: float


class Item(BaseModel):
    """Catalog item. Hashable so it can sit in immutable loadout snapshots."""
    model_config = ConfigDict(frozen=True)

    name: str
    slot: str
    min_level: int = Field(default=1, ge=1)
    category: str = "any"
    bonuses: tuple[StatBonus, ...] = ()

    @computed_field
    @property
    def stats(self) -> list[str]:
        return sorted({b.stat for b in self.bonuses})

    def __str__(self) -> str:
        return self.name


class LevelRange(BaseModel):
    """Inclusive minimum-level window for candidate items."""
    model_config = ConfigDict(frozen=True)

    min_level: int = Field(default=TARGET_ITEMS_MIN_LEVEL, ge=1)
    max_level: int = Field(default=TARGET_ITEMS_MAX_LEVEL, ge=1)

    @model_validator(mode="after")
    def _check_order(self) -> "LevelRange":
        if self.min_level > self.max_level:
            raise ValueError(f"min_level {self.min_level} > max_level {self.max_level}")
        return self

    def contains(self, level: int) -> bool:
        return self.min_level <= level <= self.max_level


# ---------------------------------------------------------------------------
# Search settings
# ---------------------------------------------------------------------------

class SearchSettings(BaseModel):
    """Tunables for one planning session. Passed in explicitly, never global."""
    model_config = ConfigDict(frozen=True)

    duration_seconds: float = Field(default=DEFAULT_DURATION_SECONDS, gt=0)
    iterations: int | None = Field(default=None, ge=1)  # iteration budget instead of wall clock
    workers: int = Field(default_factory=default_worker_count, ge=1)
    min_quality_ratio: float = Field(default=ITEM_QUALITY_MINIMUM_RATIO, ge=0, le=1)
    starting_temperature: float = Field(default=STARTING_TEMPERATURE, ge=0)
    progress_interval: int = Field(default=PROGRESS_INTERVAL, ge=1)
    seed: int | None = None
    executor: Literal["thread", "process"] = "thread"   # threads share one core for pure-Python scorers
    level_range: LevelRange = Field(default_factory=LevelRange)
    ignored_slots: tuple[str, ...] = IGNORED_SLOTS

    def worker_seed(self, worker_index: int) -> int | None:
        """Per-worker RNG seed; None keeps workers nondeterministic."""
        if self.seed is None:
            return None
        return self.seed + worker_index
