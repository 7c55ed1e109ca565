"""Shared fixtures for gearplanner unit tests.

Most search tests use a tiny two-slot problem with a hand-written additive
score so expected optima are known exactly. Catalog-backed tests use the
bundled sample catalog and stat weights, loaded once per run.
"""
import pytest

from gearplanner import CandidatePool, Configuration, ItemCatalog, Slot, StatScorer
from gearplanner.catalog import bundled_weights_path
from gearplanner.tests.helpers import FakeClock, make_item


@pytest.fixture
def two_slots() -> list[Slot]:
    return [Slot(name="A", capacity=1), Slot(name="B", capacity=1)]


@pytest.fixture
def base_config(two_slots: list[Slot]) -> Configuration:
    """Slot B pinned to Z, slot A open."""
    return Configuration.build(two_slots, fixed_items=[make_item("Z", "B")])


@pytest.fixture
def pools_xy() -> dict[str, CandidatePool]:
    pool = CandidatePool("A", [(make_item("X"), 10.0), (make_item("Y"), 10.0)])
    return {"A": pool.trim(0.4)}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(scope="session")
def catalog() -> ItemCatalog:
    return ItemCatalog.bundled()


@pytest.fixture(scope="session")
def scorer() -> StatScorer:
    return StatScorer.from_json(bundled_weights_path())
