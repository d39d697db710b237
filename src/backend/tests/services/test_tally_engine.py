"""
Tests for the weighted tally engine.
"""

import pytest

from models.topic import Setting
from services.tally_engine import TallyEngine, WeightedTallyEngine


@pytest.fixture
def weighted() -> WeightedTallyEngine:
    return WeightedTallyEngine()


@pytest.mark.unit
class TestWeightedTallyEngine:
    """Test normalised weighted scoring."""

    def test_empty_setting(self, weighted: WeightedTallyEngine) -> None:
        result = weighted.compute(Setting())
        assert result.ranking == []
        assert result.ballot_count == 0

    def test_weights_are_normalised_per_voter(self, weighted: WeightedTallyEngine) -> None:
        setting = Setting(
            voters={"u1", "u2"},
            plans=["a", "b"],
            votes={"u1": {"a": 3.0, "b": 1.0}, "u2": {"b": 100.0}},
        )

        result = weighted.compute(setting)

        scores = {score.plan_id: score.score for score in result.ranking}
        assert scores["a"] == pytest.approx(0.75)
        assert scores["b"] == pytest.approx(1.25)
        assert [score.plan_id for score in result.ranking] == ["b", "a"]
        assert result.voter_count == 2
        assert result.ballot_count == 2

    def test_ties_keep_plan_order(self, weighted: WeightedTallyEngine) -> None:
        setting = Setting(voters={"u1"}, plans=["b", "a"], votes={"u1": {"a": 1.0, "b": 1.0}})

        result = weighted.compute(setting)

        assert [score.plan_id for score in result.ranking] == ["b", "a"]

    def test_unknown_plans_and_zero_votes_ignored(self, weighted: WeightedTallyEngine) -> None:
        setting = Setting(
            voters={"u1", "u2"},
            plans=["a"],
            votes={"u1": {"gone": 5.0, "a": 1.0}, "u2": {"a": 0.0}},
        )

        result = weighted.compute(setting)

        assert result.ranking[0].score == pytest.approx(1.0)
        assert result.ballot_count == 1

    def test_votes_of_non_voters_ignored(self, weighted: WeightedTallyEngine) -> None:
        setting = Setting(voters={"u1"}, plans=["a"], votes={"ghost": {"a": 1.0}})

        result = weighted.compute(setting)

        assert result.ranking[0].score == 0.0
        assert result.ballot_count == 0

    def test_satisfies_engine_protocol(self, weighted: WeightedTallyEngine) -> None:
        engine: TallyEngine = weighted
        assert engine.compute(Setting()).voter_count == 0
