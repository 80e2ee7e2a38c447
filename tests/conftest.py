"""Shared test fixtures and configuration.

Sets up fake environment variables so habita.config doesn't sys.exit(),
and provides common fixtures like a household, a pending plan and a
mocked backend.
"""

import os

# Patch env vars BEFORE any habita imports
os.environ.setdefault("HABITA_API_URL", "https://habita.test")
os.environ.setdefault("HABITA_API_TOKEN", "")
os.environ.setdefault("DUPLICATE_POLICY", "allow")
os.environ.setdefault("NOTIFIER_PROVIDER", "log")

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def members():
    """Two adults and a child."""
    from habita.data.models import MemberSummary, MemberType

    return [
        MemberSummary(id="m1", name="Ana", type=MemberType.ADULT),
        MemberSummary(id="m2", name="Beto", type=MemberType.ADULT),
        MemberSummary(id="m3", name="Cami", type=MemberType.CHILD),
    ]


@pytest.fixture
def make_plan():
    """Return a factory building a Plan from (task, member_id, member_name) tuples."""
    from habita.data.models import Assignment, MemberType, Plan, PlanStatus

    def _make(rows=(), status=PlanStatus.PENDING, plan_id="plan-1", score=85):
        now = datetime(2026, 10, 19, 9, 0)
        assignments = [
            Assignment(
                task_name=task,
                member_id=member_id,
                member_name=name,
                member_type=MemberType.CHILD if member_id == "m3" else MemberType.ADULT,
                reason="Balanced load",
            )
            for task, member_id, name in rows
        ]
        return Plan(
            id=plan_id,
            status=status,
            balance_score=score,
            duration_days=7,
            created_at=now,
            expires_at=now + timedelta(days=7),
            assignments=assignments,
        )

    return _make


@pytest.fixture
def three_task_plan(make_plan):
    return make_plan([
        ("Dishes", "m1", "Ana"),
        ("Laundry", "m2", "Beto"),
        ("Trash", "m1", "Ana"),
    ])


@pytest.fixture
def api():
    """A PlanApiPort stand-in with every call mocked."""
    mock = MagicMock()
    mock.preview_plan = AsyncMock()
    mock.apply_plan = AsyncMock()
    mock.discard_plan = AsyncMock(return_value=None)
    mock.patch_assignment = AsyncMock(return_value=None)
    mock.create_task = AsyncMock(return_value={"id": "t-new"})
    mock.submit_feedback = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def notifier():
    mock = MagicMock()
    mock.send_toast = AsyncMock()
    return mock


@pytest.fixture
def store():
    from habita.core.assignment_store import AssignmentStore

    return AssignmentStore()
