"""Tests for StatScorer / ValuationContext (scoring.py)."""
import pytest

from gearplanner import Item, StatBonus, StatScorer, ValuationContext


def _item(name: str, slot: str, *bonuses: tuple[str, str, float]) -> Item:
    return Item(name=name, slot=slot, min_level=28,
                bonuses=tuple(StatBonus(stat=s, bonus=b, value=v) for s, b, v in bonuses))


@pytest.fixture
def simple_scorer() -> StatScorer:
    return StatScorer({"wisdom": 1.0, "ki": 2.0})


class TestStacking:
    def test_same_bonus_type_takes_largest(self, simple_scorer) -> None:
        items = [_item("a", "helmet", ("wisdom", "enhancement", 11)),
                 _item("b", "ring", ("wisdom", "enhancement", 13))]
        assert simple_scorer.stat_totals(items) == {"wisdom": 13}

    def test_different_bonus_types_add(self, simple_scorer) -> None:
        items = [_item("a", "helmet", ("wisdom", "enhancement", 11)),
                 _item("b", "ring", ("wisdom", "insightful", 4))]
        assert simple_scorer.stat_totals(items) == {"wisdom": 15}

    def test_stacking_bonus_always_adds(self, simple_scorer) -> None:
        items = [_item("a", "helmet", ("ki", "stacking", 5)),
                 _item("b", "ring", ("ki", "stacking", 3))]
        assert simple_scorer.stat_totals(items) == {"ki": 8}

    def test_unweighted_stats_ignored(self, simple_scorer) -> None:
        items = [_item("a", "helmet", ("spot", "enhancement", 6))]
        assert simple_scorer.stat_totals(items) == {}


class TestScore:
    def test_floor_plus_weighted_sum(self, simple_scorer) -> None:
        items = [_item("a", "helmet", ("wisdom", "enhancement", 10), ("ki", "stacking", 2))]
        assert simple_scorer.score_items(items) == pytest.approx(1.0 + 10 + 4)

    def test_empty_loadout_scores_floor(self, simple_scorer, base_config) -> None:
        assert simple_scorer.score_items([]) == 1.0
        assert simple_scorer(base_config) == 1.0

    def test_rejects_negative_weight(self) -> None:
        with pytest.raises(ValueError):
            StatScorer({"wisdom": -1.0})

    def test_rejects_non_positive_floor(self) -> None:
        with pytest.raises(ValueError):
            StatScorer({"wisdom": 1.0}, floor=0.0)

    def test_from_json(self, tmp_path) -> None:
        path = tmp_path / "w.json"
        path.write_text('{"wisdom": 2, "ki": 0}')
        scorer = StatScorer.from_json(path)
        assert scorer.weights == {"wisdom": 2.0, "ki": 0.0}
        assert scorer.queried_stats == {"wisdom"}

    def test_from_json_rejects_list(self, tmp_path) -> None:
        path = tmp_path / "w.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError):
            StatScorer.from_json(path)

    def test_breakdown_sorted_by_contribution(self, simple_scorer) -> None:
        items = [_item("a", "helmet", ("wisdom", "enhancement", 3), ("ki", "stacking", 5))]

        class _Loadout:
            def items(self):
                return items

        lines = simple_scorer.breakdown(_Loadout())
        assert [line.stat for line in lines] == ["ki", "wisdom"]
        assert lines[0].contribution == 10.0


class TestValuationContext:
    def test_marginal_weight_against_fixed(self, simple_scorer) -> None:
        fixed = _item("fixed", "helmet", ("wisdom", "enhancement", 13))
        ctx = ValuationContext(simple_scorer, [fixed])
        weaker = _item("weaker", "ring", ("wisdom", "enhancement", 11))
        other = _item("other", "ring", ("wisdom", "insightful", 4))
        assert ctx.item_weight(weaker) == 0.0
        assert ctx.item_weight(other) == pytest.approx(4.0)

    def test_strip_unused(self, simple_scorer) -> None:
        ctx = ValuationContext(simple_scorer)
        item = _item("a", "helmet", ("wisdom", "enhancement", 3), ("spot", "insightful", 6))
        stripped = ctx.strip_unused(item)
        assert stripped.stats == ["wisdom"]
        assert item.stats == ["spot", "wisdom"]
        plain = _item("b", "helmet", ("ki", "stacking", 1))
        assert ctx.strip_unused(plain) is plain
