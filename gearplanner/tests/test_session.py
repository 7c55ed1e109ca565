"""Tests for PlanningSession: pools, parallel run, failure handling."""
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from gearplanner import (
    DurationBudget, PlanningSession, SearchConfigError, SearchSettings, Slot,
    WorkerFailedError,
)
from gearplanner.session import make_budget
from gearplanner.tests.helpers import additive_score, make_item


@pytest.fixture
def candidates():
    return {"A": [(make_item("X"), 10.0), (make_item("Y"), 10.0)]}


def _session(two_slots, candidates, score_fn=additive_score, **settings) -> PlanningSession:
    settings.setdefault("workers", 4)
    settings.setdefault("seed", 5)
    return PlanningSession(score_fn, candidates, slots=two_slots,
                           fixed_items=[make_item("Z", "B")],
                           settings=SearchSettings(**settings))


class TestRun:
    def test_workers_reach_optimum(self, two_slots, candidates) -> None:
        result = _session(two_slots, candidates, workers=3, iterations=3000).run()
        assert result.score == 11.0
        assert len(result.workers) == 3
        assert result.total_iterations == 3000
        assert sorted(w.worker_index for w in result.workers) == [0, 1, 2]

    def test_duration_split_across_workers(self, two_slots, candidates) -> None:
        """1s over 4 workers: each runs ~0.25s, side by side."""
        session = _session(two_slots, candidates, workers=4, duration_seconds=1.0)
        started = time.monotonic()
        result = session.run()
        wall = time.monotonic() - started
        assert len(result.workers) == 4
        for w in result.workers:
            assert w.elapsed_seconds == pytest.approx(0.25, abs=0.1)
        assert wall < 0.75

    def test_uneven_iteration_total_is_kept(self, two_slots, candidates) -> None:
        result = _session(two_slots, candidates, workers=3, iterations=1000).run()
        assert result.total_iterations == 1000
        assert sorted(w.iterations for w in result.workers) == [333, 333, 334]

    def test_explicit_budget_and_executor(self, two_slots, candidates) -> None:
        session = _session(two_slots, candidates, workers=2)
        result = session.run(
            budget=make_budget(SearchSettings(workers=2, iterations=400)),
            executor_factory=lambda n: ThreadPoolExecutor(max_workers=1),
        )
        assert result.total_iterations == 400

    def test_process_executor(self, scorer) -> None:
        """Workers in separate processes; everything they get must pickle."""
        slots = [Slot(name="ring", capacity=2), Slot(name="belt", capacity=1)]
        catalog_items = {
            "ring": [(make_item("Band", "ring"), 1.0)],
            "belt": [(make_item("Sash", "belt"), 1.0)],
        }
        session = PlanningSession(scorer, catalog_items, slots=slots,
                                  settings=SearchSettings(workers=2, iterations=200,
                                                          executor="process", seed=1))
        result = session.run()
        assert len(result.workers) == 2
        assert result.total_iterations == 200


class TestFailures:
    def test_one_failing_worker_fails_the_run(self, two_slots, candidates) -> None:
        lock = threading.Lock()
        calls = [0]

        def flaky_score(config) -> float:
            with lock:
                calls[0] += 1
                n = calls[0]
            if n == 50:
                raise RuntimeError("scorer blew up")
            return additive_score(config)

        session = _session(two_slots, candidates, flaky_score, workers=4, iterations=2000)
        with pytest.raises(WorkerFailedError) as exc:
            session.run()
        assert len(exc.value.failed) == 1
        assert isinstance(exc.value.__cause__, RuntimeError)
        assert "scorer blew up" in str(exc.value)

    def test_no_pools_left(self, two_slots) -> None:
        session = _session(two_slots, {"A": [(make_item("X"), 0.0)]}, iterations=10)
        assert session.pools == {}
        with pytest.raises(SearchConfigError):
            session.run()


class TestPools:
    def test_empty_pool_slot_excluded(self, candidates, caplog) -> None:
        caplog.set_level(logging.WARNING, logger="gearplanner.session")
        slots = [Slot(name="A"), Slot(name="B"), Slot(name="C")]
        session = PlanningSession(additive_score, candidates, slots=slots,
                                  fixed_items=[make_item("Z", "B")],
                                  settings=SearchSettings(workers=1, iterations=500, seed=2))
        assert session.excluded_slots == ["C"]
        assert "Excluding slot" in caplog.text
        assert session.run().score == 11.0

    def test_trims_low_candidates(self, two_slots) -> None:
        cands = {"A": [(make_item("X"), 10.0), (make_item("Y"), 3.0)]}
        session = _session(two_slots, cands, iterations=10)
        assert [c.item.name for c in session.pools["A"]] == ["X"]

    def test_skipped_slot_gets_no_pool(self, two_slots, candidates) -> None:
        session = PlanningSession(additive_score, candidates, slots=two_slots,
                                  skipped_slots=["B"],
                                  settings=SearchSettings(workers=1))
        assert set(session.pools) == {"A"}
        assert session.excluded_slots == []

    def test_start_message(self, two_slots, candidates) -> None:
        session = _session(two_slots, candidates, workers=2, iterations=100)
        msg = session.start_message()
        assert msg.startswith("Beginning loadout sim.")
        assert "2 items considered" in msg
        assert "2 worker(s)" in msg
        assert session.combinations == 2.0
        assert session.total_candidates == 2

    def test_tasks_one_per_worker(self, two_slots, candidates) -> None:
        session = _session(two_slots, candidates, workers=3)
        tasks = session.tasks(DurationBudget(3.0))
        assert [t.worker_index for t in tasks] == [0, 1, 2]
        assert all(t.budget.total_seconds == pytest.approx(1.0) for t in tasks)
        assert tasks[0].base is tasks[1].base


class TestFromCatalog:
    def test_builds_pools_from_catalog(self, catalog, scorer) -> None:
        session = PlanningSession.from_catalog(
            catalog, scorer, fixed=["quiver of alacrity"],
            settings=SearchSettings(workers=2, iterations=2000, seed=11),
        )
        assert "quiver" not in session.pools
        helmets = [c.item.name for c in session.pools["helmet"]]
        assert "Rusty Helm" not in helmets
        assert "Unadorned Trinket" not in [c.item.name for c in session.pools["trinket"]]
        for pool in session.pools.values():
            for c in pool:
                assert set(c.item.stats) <= set(scorer.weights)

        quiver = catalog.get("Quiver of Alacrity")
        result = session.run()
        assert quiver in result.loadout.items()
        assert result.score > scorer.score_items([quiver])

    def test_category_filter(self, catalog, scorer) -> None:
        session = PlanningSession.from_catalog(
            catalog, scorer, allowed_categories=["cloth"],
            settings=SearchSettings(workers=1, iterations=10),
        )
        armor = [c.item.name for c in session.pools["armor"]]
        assert "Dragonscale Plate" not in armor
        assert "Robe of the Serene" in armor

    def test_unknown_fixed_item(self, catalog, scorer) -> None:
        with pytest.raises(SearchConfigError):
            PlanningSession.from_catalog(catalog, scorer, fixed=["Sword of Nowhere"],
                                         settings=SearchSettings(workers=1))
