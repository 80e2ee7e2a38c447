"""Tests for habita.data.models — plan dataclasses."""

from dataclasses import asdict
from datetime import datetime

from habita.data.models import (
    Assignment,
    FairnessDetails,
    MemberType,
    Plan,
    PlanStatus,
)


def test_assignment_defaults():
    a = Assignment(task_name="Dishes", member_id="m1", member_name="Ana", member_type=MemberType.ADULT)
    assert a.reason == ""
    assert a.day_of_week is None
    assert a.start_time is None
    assert a.end_time is None


def test_plan_defaults():
    now = datetime(2026, 10, 19)
    plan = Plan(
        id="p1", status=PlanStatus.PENDING, balance_score=70,
        duration_days=7, created_at=now, expires_at=now,
    )
    assert plan.assignments == []
    assert plan.notes == []
    assert plan.excluded_tasks == []
    assert plan.applied_at is None
    assert plan.start_date is None


def test_plans_do_not_share_lists():
    now = datetime(2026, 10, 19)
    p1 = Plan(id="p1", status=PlanStatus.PENDING, balance_score=0, duration_days=1, created_at=now, expires_at=now)
    p2 = Plan(id="p2", status=PlanStatus.PENDING, balance_score=0, duration_days=1, created_at=now, expires_at=now)
    p1.notes.append("x")
    assert p2.notes == []


def test_fairness_defaults():
    details = FairnessDetails()
    assert details.adult_distribution == {}
    assert details.is_symmetric is True
    assert details.max_difference == 0


def test_assignment_serializable():
    a = Assignment(
        task_name="Dishes", member_id="m1", member_name="Ana",
        member_type=MemberType.ADULT, day_of_week=2, start_time="18:00",
    )
    d = asdict(a)
    assert d["task_name"] == "Dishes"
    assert d["day_of_week"] == 2
    assert d["member_type"] == MemberType.ADULT
