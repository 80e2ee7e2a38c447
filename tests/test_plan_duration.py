"""Tests for habita.core.plan_duration — presets and date ranges."""

from dataclasses import dataclass
from datetime import date

from habita.core.plan_duration import (
    MAX_PLAN_DURATION_DAYS,
    compute_duration_days,
    duration_label,
    partition_tasks_by_duration,
    validate_date_range,
)
from habita.data.models import TaskFrequency

TODAY = date(2026, 10, 19)


@dataclass
class _Task:
    name: str
    frequency: TaskFrequency


class TestDurationLabel:
    def test_presets(self):
        assert duration_label(1) == "1 day"
        assert duration_label(7) == "1 week"
        assert duration_label(30) == "1 month"

    def test_custom(self):
        assert duration_label(5) == "5 days"
        assert duration_label(21) == "21 days"


class TestDateRange:
    def test_inclusive_duration(self):
        assert compute_duration_days(date(2026, 10, 20), date(2026, 10, 20)) == 1
        assert compute_duration_days(date(2026, 10, 20), date(2026, 10, 26)) == 7

    def test_valid(self):
        assert validate_date_range(TODAY, date(2026, 10, 25), today=TODAY).is_valid

    def test_past_start(self):
        check = validate_date_range(date(2026, 10, 18), date(2026, 10, 25), today=TODAY)
        assert not check.is_valid
        assert "past" in check.error

    def test_end_before_start(self):
        check = validate_date_range(date(2026, 10, 25), date(2026, 10, 20), today=TODAY)
        assert not check.is_valid

    def test_too_long(self):
        check = validate_date_range(TODAY, date(2026, 11, 19), today=TODAY)
        assert not check.is_valid
        assert str(MAX_PLAN_DURATION_DAYS) in check.error

    def test_exactly_max(self):
        assert validate_date_range(TODAY, date(2026, 11, 17), today=TODAY).is_valid


class TestPartition:
    def test_week_plan_excludes_longer_frequencies(self):
        tasks = [
            _Task("Dishes", TaskFrequency.DAILY),
            _Task("Sheets", TaskFrequency.WEEKLY),
            _Task("Windows", TaskFrequency.BIWEEKLY),
            _Task("Fridge", TaskFrequency.MONTHLY),
            _Task("Paint", TaskFrequency.ONCE),
        ]
        included, excluded = partition_tasks_by_duration(tasks, 7)
        assert [t.name for t in included] == ["Dishes", "Sheets", "Paint"]
        assert [t.name for t in excluded] == ["Windows", "Fridge"]

    def test_month_plan_includes_all(self):
        tasks = [_Task("Fridge", TaskFrequency.MONTHLY), _Task("Dishes", TaskFrequency.DAILY)]
        included, excluded = partition_tasks_by_duration(tasks, 30)
        assert len(included) == 2
        assert excluded == []
