"""
Habita Plan Client — Data Models.

A plan is the aggregate of task-to-member assignments for a time window.
Only one plan lives in client memory at a time; the server owns history.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class MemberType(Enum):
    ADULT = "ADULT"
    TEEN = "TEEN"
    CHILD = "CHILD"


class PlanStatus(Enum):
    PENDING = "PENDING"
    APPLIED = "APPLIED"


class TaskFrequency(Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"
    ONCE = "ONCE"


@dataclass
class Assignment:
    """One task-to-member commitment, optionally scoped to a day/time slot.

    The task name is the task's identity within a plan (not a durable id).
    """

    task_name: str
    member_id: str
    member_name: str
    member_type: MemberType
    reason: str = ""
    day_of_week: int | None = None    # 1 = Monday … 7 = Sunday
    start_time: str | None = None     # "HH:MM"
    end_time: str | None = None       # "HH:MM"


@dataclass
class ExcludedTask:
    """A task whose recurrence is longer than the plan window."""

    task_name: str
    frequency: TaskFrequency


@dataclass
class FairnessDetails:
    """Per-adult task counts and how evenly they are spread."""

    adult_distribution: dict[str, int] = field(default_factory=dict)
    is_symmetric: bool = True
    max_difference: int = 0


@dataclass
class MemberSummary:
    id: str
    name: str
    type: MemberType
    current_pending: int = 0
    assigned_in_plan: int | None = None


@dataclass
class TaskSummary:
    id: str
    name: str
    frequency: TaskFrequency
    weight: int = 1
    estimated_minutes: int | None = None


@dataclass
class Plan:
    """The single plan held in client memory."""

    id: str
    status: PlanStatus
    balance_score: int
    duration_days: int
    created_at: datetime
    expires_at: datetime
    notes: list[str] = field(default_factory=list)
    assignments: list[Assignment] = field(default_factory=list)
    excluded_tasks: list[ExcludedTask] = field(default_factory=list)
    start_date: date | None = None
    applied_at: datetime | None = None


@dataclass
class PlanPreview:
    """A freshly generated plan plus the household context it was built for."""

    plan: Plan
    members: list[MemberSummary] = field(default_factory=list)
    fairness: FairnessDetails | None = None


@dataclass
class ApplyResult:
    success: bool
    assignments_created: int
