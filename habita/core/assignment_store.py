"""
Habita Plan Client — Assignment Set Store.

Owns the one plan held in memory and the set of assignment keys the user
intends to commit. All edits here are local and synchronous; whether they
may run before or only after a backend round-trip is decided by
habita.core.plan_lifecycle.

Invariant: every selected key belongs to an assignment currently in the plan.
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from habita.core.assignment_key import assignment_key, key_for
from habita.data.models import Assignment, MemberType, Plan, PlanStatus

if TYPE_CHECKING:
    from habita.data.models import FairnessDetails, MemberSummary

logger = logging.getLogger(__name__)

REASON_ADDED = "Added manually"
REASON_REASSIGNED = "Reassigned manually"


class DuplicatePolicy(Enum):
    ALLOW = "allow"     # append anyway; remove takes out the first match
    REJECT = "reject"   # refuse to add a key that is already present


class StoreError(Exception):
    """Base class for assignment store failures."""


class NoPlanError(StoreError):
    """Raised when an edit is attempted with no plan loaded."""


class DuplicateAssignmentError(StoreError):
    """Raised under DuplicatePolicy.REJECT when the key already exists."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Assignment already in plan: {key}")
        self.key = key


class AssignmentStore:
    """In-memory plan aggregate with a parallel selection set."""

    def __init__(self, duplicate_policy: DuplicatePolicy = DuplicatePolicy.ALLOW) -> None:
        self.duplicate_policy = duplicate_policy
        self._plan: Plan | None = None
        self._selected: set[str] = set()
        self._server_fairness: FairnessDetails | None = None

    # ------------------------------------------------------------------
    # Aggregate access
    # ------------------------------------------------------------------

    @property
    def plan(self) -> Plan | None:
        return self._plan

    @property
    def status(self) -> PlanStatus | None:
        return self._plan.status if self._plan else None

    @property
    def assignments(self) -> list[Assignment]:
        return list(self._plan.assignments) if self._plan else []

    @property
    def selection(self) -> frozenset[str]:
        return frozenset(self._selected)

    @property
    def server_fairness(self) -> FairnessDetails | None:
        """Fairness reported by the backend, until a local edit invalidates it."""
        return self._server_fairness

    @property
    def selected_count(self) -> int:
        return len(self._selected)

    @property
    def total_count(self) -> int:
        return len(self._plan.assignments) if self._plan else 0

    def has_key(self, key: str) -> bool:
        if self._plan is None:
            return False
        return any(assignment_key(a) == key for a in self._plan.assignments)

    def is_selected(self, key: str) -> bool:
        return key in self._selected

    # ------------------------------------------------------------------
    # Whole-plan replacement
    # ------------------------------------------------------------------

    def replace_plan(self, plan: Plan, fairness: FairnessDetails | None = None) -> None:
        """Swap in a new plan. A pending plan starts fully selected."""
        self._plan = plan
        self._server_fairness = fairness
        if plan.status == PlanStatus.PENDING:
            self._selected = {assignment_key(a) for a in plan.assignments}
        else:
            self._selected = set()
        logger.debug(
            "Plan %s loaded (%s, %d assignment(s))",
            plan.id, plan.status.value, len(plan.assignments),
        )

    def clear(self) -> None:
        self._plan = None
        self._selected = set()
        self._server_fairness = None

    def mark_applied(self, applied_at: datetime | None = None) -> None:
        plan = self._require_plan()
        plan.status = PlanStatus.APPLIED
        plan.applied_at = applied_at or datetime.now()
        self._selected = set()

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def toggle_selection(
        self,
        task_name: str,
        member_id: str,
        day_of_week: int | None = None,
        start_time: str | None = None,
    ) -> bool:
        """Flip a key in the selection. Returns whether it is now selected.

        Does nothing unless the plan is pending and holds that key.
        """
        if self.status != PlanStatus.PENDING:
            return False

        key = key_for(task_name, member_id, day_of_week, start_time)
        if key in self._selected:
            self._selected.discard(key)
            return False
        if not self.has_key(key):
            logger.warning("Ignoring toggle for unknown assignment %s", key)
            return False
        self._selected.add(key)
        return True

    def check_can_add(
        self,
        task_name: str,
        member_id: str,
        day_of_week: int | None = None,
        start_time: str | None = None,
    ) -> None:
        """Raise if adding this key would break the duplicate policy."""
        self._require_plan()
        key = key_for(task_name, member_id, day_of_week, start_time)
        if self.duplicate_policy == DuplicatePolicy.REJECT and self.has_key(key):
            raise DuplicateAssignmentError(key)

    def add_assignment(
        self,
        task_name: str,
        member_id: str,
        member_name: str,
        member_type: MemberType,
        day_of_week: int | None = None,
        start_time: str | None = None,
        end_time: str | None = None,
    ) -> Assignment:
        self.check_can_add(task_name, member_id, day_of_week, start_time)
        plan = self._require_plan()

        assignment = Assignment(
            task_name=task_name,
            member_id=member_id,
            member_name=member_name,
            member_type=member_type,
            reason=REASON_ADDED,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
        )
        plan.assignments.append(assignment)
        if plan.status == PlanStatus.PENDING:
            self._selected.add(assignment_key(assignment))
        self._server_fairness = None
        return assignment

    def find_first(
        self,
        task_name: str,
        member_id: str,
        day_of_week: int | None = None,
        start_time: str | None = None,
    ) -> Assignment | None:
        if self._plan is None:
            return None
        key = key_for(task_name, member_id, day_of_week, start_time)
        for a in self._plan.assignments:
            if assignment_key(a) == key:
                return a
        return None

    def remove_assignment(
        self,
        task_name: str,
        member_id: str,
        day_of_week: int | None = None,
        start_time: str | None = None,
    ) -> Assignment | None:
        """Remove the first assignment with this key (one physical record)."""
        plan = self._require_plan()
        key = key_for(task_name, member_id, day_of_week, start_time)

        for index, a in enumerate(plan.assignments):
            if assignment_key(a) == key:
                removed = plan.assignments.pop(index)
                self._selected.discard(key)
                self._server_fairness = None
                return removed
        return None

    def matching_for_reassign(self, task_name: str, old_member_id: str) -> list[Assignment]:
        if self._plan is None:
            return []
        return [
            a for a in self._plan.assignments
            if a.task_name == task_name and a.member_id == old_member_id
        ]

    def check_can_reassign(
        self, task_name: str, old_member_id: str, new_member_id: str,
    ) -> None:
        """Raise if a rewritten key would collide under DuplicatePolicy.REJECT."""
        self._require_plan()
        if self.duplicate_policy != DuplicatePolicy.REJECT:
            return
        for a in self.matching_for_reassign(task_name, old_member_id):
            new_key = key_for(task_name, new_member_id, a.day_of_week, a.start_time)
            if self.has_key(new_key):
                raise DuplicateAssignmentError(new_key)

    def reassign_assignment(
        self, task_name: str, old_member_id: str, new_member: MemberSummary,
    ) -> int:
        """Move every (task, old member) assignment to new_member, any day.

        Selected keys follow their assignment to the new member.
        Returns the number of records rewritten.
        """
        self.check_can_reassign(task_name, old_member_id, new_member.id)
        matches = self.matching_for_reassign(task_name, old_member_id)

        for a in matches:
            old_key = assignment_key(a)
            was_selected = old_key in self._selected
            self._selected.discard(old_key)

            a.member_id = new_member.id
            a.member_name = new_member.name
            a.member_type = new_member.type
            a.reason = REASON_REASSIGNED

            if was_selected:
                self._selected.add(assignment_key(a))

        if matches:
            self._server_fairness = None
        return len(matches)

    # ------------------------------------------------------------------
    # Read side — duplicates collapse here
    # ------------------------------------------------------------------

    def unique_assignments(self) -> list[Assignment]:
        """Assignments in plan order, first occurrence of each key only."""
        seen: set[str] = set()
        unique: list[Assignment] = []
        for a in self.assignments:
            key = assignment_key(a)
            if key in seen:
                continue
            seen.add(key)
            unique.append(a)
        return unique

    def selected_assignments(self) -> list[Assignment]:
        return [a for a in self.unique_assignments() if assignment_key(a) in self._selected]

    def assignments_by_member(self) -> dict[str, list[Assignment]]:
        grouped: dict[str, list[Assignment]] = {}
        for a in self.unique_assignments():
            grouped.setdefault(a.member_id, []).append(a)
        return grouped

    def assignments_by_day(self) -> dict[int | None, list[Assignment]]:
        """Group by day of week; unscheduled assignments land under None.

        Within a day, assignments are ordered by start time (untimed last).
        """
        grouped: dict[int | None, list[Assignment]] = {}
        for a in self.unique_assignments():
            grouped.setdefault(a.day_of_week, []).append(a)
        for day_assignments in grouped.values():
            day_assignments.sort(key=lambda a: (a.start_time is None, a.start_time or ""))
        return grouped

    # ------------------------------------------------------------------

    def _require_plan(self) -> Plan:
        if self._plan is None:
            raise NoPlanError("No plan loaded")
        return self._plan
