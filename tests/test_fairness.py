"""Tests for habita.core.fairness — distribution and score tiers."""

import pytest

from habita.core.fairness import (
    compute_adult_distribution,
    project_fairness,
    score_bar_width,
    score_tier,
    summarize,
)
from habita.data.models import FairnessDetails


class TestAdultDistribution:
    def test_counts_adults_only(self, make_plan):
        plan = make_plan([
            ("Dishes", "m1", "Ana"), ("Trash", "m1", "Ana"),
            ("Laundry", "m2", "Beto"), ("Toys", "m3", "Cami"),
        ])
        assert compute_adult_distribution(plan.assignments) == {"Ana": 2, "Beto": 1}

    def test_idle_adults_from_members(self, make_plan, members):
        plan = make_plan([("Dishes", "m1", "Ana")])
        assert compute_adult_distribution(plan.assignments, members) == {"Ana": 1, "Beto": 0}

    def test_duplicates_counted_once(self, make_plan):
        plan = make_plan([("Dishes", "m1", "Ana"), ("Dishes", "m1", "Ana")])
        assert compute_adult_distribution(plan.assignments) == {"Ana": 1}


class TestProjectFairness:
    def test_server_details_win(self, make_plan):
        server = FairnessDetails(adult_distribution={"Ana": 5}, is_symmetric=False, max_difference=5)
        plan = make_plan([("Dishes", "m2", "Beto")])
        assert project_fairness(plan.assignments, server) is server

    def test_local_recount_symmetric(self, make_plan):
        plan = make_plan([("Dishes", "m1", "Ana"), ("Laundry", "m2", "Beto"), ("Trash", "m1", "Ana")])
        details = project_fairness(plan.assignments)
        assert details.adult_distribution == {"Ana": 2, "Beto": 1}
        assert details.max_difference == 1
        assert details.is_symmetric is True

    def test_local_recount_asymmetric(self, make_plan, members):
        plan = make_plan([("A", "m1", "Ana"), ("B", "m1", "Ana"), ("C", "m1", "Ana")])
        details = project_fairness(plan.assignments, members=members)
        assert details.max_difference == 3
        assert details.is_symmetric is False

    def test_single_adult_has_no_difference(self, make_plan):
        plan = make_plan([("A", "m1", "Ana"), ("B", "m1", "Ana"), ("C", "m1", "Ana"), ("D", "m1", "Ana")])
        details = project_fairness(plan.assignments)
        assert details.max_difference == 0
        assert details.is_symmetric is True

    def test_stale_after_local_edit_falls_back(self, store, make_plan):
        """A local edit drops the server's numbers; the summary then reflects the real list."""
        from habita.data.models import MemberType

        server = FairnessDetails(adult_distribution={"Ana": 1, "Beto": 1}, max_difference=0)
        store.replace_plan(make_plan([("Dishes", "m1", "Ana"), ("Laundry", "m2", "Beto")]), server)
        store.add_assignment("Trash", "m1", "Ana", MemberType.ADULT)

        details = project_fairness(store.assignments, store.server_fairness)
        assert details.adult_distribution == {"Ana": 2, "Beto": 1}


class TestScore:
    @pytest.mark.parametrize(
        "score,tier",
        [(100, "good"), (80, "good"), (79, "medium"), (60, "medium"), (59, "poor"), (0, "poor")],
    )
    def test_tiers(self, score, tier):
        assert score_tier(score) == tier

    def test_bar_width_clamped(self):
        assert score_bar_width(-5) == 0
        assert score_bar_width(42) == 42
        assert score_bar_width(130) == 100

    def test_summarize(self, make_plan):
        plan = make_plan([("Dishes", "m1", "Ana")], score=65)
        summary = summarize(plan)
        assert summary.balance_score == 65
        assert summary.tier == "medium"
        assert summary.bar_width == 65
        assert summary.details.adult_distribution == {"Ana": 1}
