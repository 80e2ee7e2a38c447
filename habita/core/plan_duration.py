"""Plan duration helpers: presets, labels, date range checks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TypeVar

from habita.data.models import TaskFrequency

MAX_PLAN_DURATION_DAYS = 30

# Shortest plan in which a task of this frequency comes due at least once
_FREQUENCY_MIN_DAYS: dict[TaskFrequency, int] = {
    TaskFrequency.DAILY: 1,
    TaskFrequency.ONCE: 1,
    TaskFrequency.WEEKLY: 7,
    TaskFrequency.BIWEEKLY: 14,
    TaskFrequency.MONTHLY: 30,
}


@dataclass(frozen=True)
class DurationPreset:
    label: str
    days: int


DURATION_PRESETS: tuple[DurationPreset, ...] = (
    DurationPreset("1 day", 1),
    DurationPreset("3 days", 3),
    DurationPreset("1 week", 7),
    DurationPreset("2 weeks", 14),
    DurationPreset("1 month", 30),
)


@dataclass
class DateRangeCheck:
    is_valid: bool
    error: str = ""


def duration_label(days: int) -> str:
    for preset in DURATION_PRESETS:
        if preset.days == days:
            return preset.label
    return f"{days} {'day' if days == 1 else 'days'}"


def compute_duration_days(start: date, end: date) -> int:
    """Number of days in [start, end], both ends included."""
    return (end - start).days + 1


def validate_date_range(start: date, end: date, today: date | None = None) -> DateRangeCheck:
    today = today or date.today()

    if start < today:
        return DateRangeCheck(False, "Start date cannot be in the past")
    if end < start:
        return DateRangeCheck(False, "End date must be on or after the start date")
    if compute_duration_days(start, end) > MAX_PLAN_DURATION_DAYS:
        return DateRangeCheck(False, f"Plans can last at most {MAX_PLAN_DURATION_DAYS} days")
    return DateRangeCheck(True)


T = TypeVar("T")


def partition_tasks_by_duration(
    tasks: list[T], duration_days: int,
) -> tuple[list[T], list[T]]:
    """Split tasks into (included, excluded) for a plan of duration_days.

    Each task needs a ``frequency`` attribute holding a TaskFrequency.
    Unknown frequencies are treated as weekly.
    """
    included: list[T] = []
    excluded: list[T] = []
    for task in tasks:
        min_days = _FREQUENCY_MIN_DAYS.get(task.frequency, 7)
        if min_days <= duration_days:
            included.append(task)
        else:
            excluded.append(task)
    return included, excluded
