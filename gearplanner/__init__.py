"""gearplanner: parallel simulated-annealing equipment loadout planner."""

from gearplanner.models import (
    Slot, DEFAULT_SLOTS, StatBonus, Item, LevelRange, SearchSettings,
)
from gearplanner.errors import (
    PlannerError, SearchConfigError, EmptyPoolError, ConsistencyError, WorkerFailedError,
)
from gearplanner.budget import SessionBudget, DurationBudget, IterationBudget
from gearplanner.pool import Candidate, CandidatePool
from gearplanner.loadout import Position, Configuration, Loadout, ScoredConfiguration
from gearplanner.results import WorkerResult, SlotAnnotation, GlobalResult
from gearplanner.annealing import (
    AnnealingSearch, SearchState, SearchStrategy, run_strategy,
    acceptance_probability, cooled_temperature,
)
from gearplanner.aggregate import merge, annotate, collect
from gearplanner.catalog import ItemCatalog
from gearplanner.scoring import StatScorer, ValuationContext
from gearplanner.store import LoadoutStore, StoredLoadout
from gearplanner.session import PlanningSession

__all__ = [
    # Models
    "Slot", "DEFAULT_SLOTS", "StatBonus", "Item", "LevelRange", "SearchSettings",
    # Errors
    "PlannerError", "SearchConfigError", "EmptyPoolError", "ConsistencyError",
    "WorkerFailedError",
    # Search core
    "SessionBudget", "DurationBudget", "IterationBudget",
    "Candidate", "CandidatePool",
    "Position", "Configuration", "Loadout", "ScoredConfiguration",
    "AnnealingSearch", "SearchState", "SearchStrategy", "run_strategy",
    "acceptance_probability", "cooled_temperature",
    # Results
    "WorkerResult", "SlotAnnotation", "GlobalResult",
    "merge", "annotate", "collect",
    # Catalog / valuation
    "ItemCatalog", "StatScorer", "ValuationContext",
    # Persistence
    "LoadoutStore", "StoredLoadout",
    # Orchestration
    "PlanningSession",
]
