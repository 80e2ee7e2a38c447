"""Assignment identity keys.

Every place that needs to tell two assignments apart (selection, dedup,
reassignment) goes through this module. There is no other key format.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from habita.data.models import Assignment

_SEP = "|"


def key_for(
    task_name: str,
    member_id: str,
    day_of_week: int | None = None,
    start_time: str | None = None,
) -> str:
    """Build an assignment key from loose values.

    ``task|member`` without a day, ``task|member|day`` with one, and
    ``task|member|day|start`` when a start time qualifies the day slot.
    A start time without a day is ignored.
    """
    parts = [task_name, member_id]
    if day_of_week is not None:
        parts.append(str(day_of_week))
        if start_time:
            parts.append(start_time)
    return _SEP.join(parts)


def assignment_key(assignment: Assignment) -> str:
    """Return the canonical key of an assignment."""
    return key_for(
        assignment.task_name,
        assignment.member_id,
        assignment.day_of_week,
        assignment.start_time,
    )
