"""
Habita Plan Client — Plan Lifecycle.

NONE → PENDING → APPLIED, and back to NONE on discard or regeneration.
The current state alone decides how assignment edits are carried out:

- PENDING: LocalMutationStrategy edits the store immediately.
- APPLIED: RemoteMutationStrategy asks the backend first and only touches
  the store once the backend has accepted the change. A failure leaves the
  store exactly as it was.
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable, Protocol

from habita.core.assignment_store import NoPlanError
from habita.data.models import PlanStatus

if TYPE_CHECKING:
    from habita.core.assignment_store import AssignmentStore
    from habita.data.models import Assignment, FairnessDetails, MemberSummary, MemberType, Plan
    from habita.ports.plan_api_port import PlanApiPort

logger = logging.getLogger(__name__)

# Re-fetch of the surrounding page data after a confirmed server-side change
RefreshCallback = Callable[[], Awaitable[None]]


class PlanState(Enum):
    NONE = "none"
    PENDING = "pending"
    APPLIED = "applied"


_ALLOWED: dict[PlanState, set[PlanState]] = {
    PlanState.NONE: {PlanState.PENDING, PlanState.APPLIED},
    PlanState.PENDING: {PlanState.APPLIED, PlanState.NONE},
    PlanState.APPLIED: {PlanState.NONE},
}


class InvalidTransitionError(Exception):
    """Raised when a lifecycle step is not allowed from the current state."""

    def __init__(self, current: PlanState, target: PlanState) -> None:
        super().__init__(f"Cannot move plan from {current.value} to {target.value}")
        self.current = current
        self.target = target


def state_of(plan: Plan | None) -> PlanState:
    if plan is None:
        return PlanState.NONE
    if plan.status == PlanStatus.APPLIED:
        return PlanState.APPLIED
    return PlanState.PENDING


async def run_refresh(refresh: RefreshCallback | None) -> None:
    """Invoke the page refresh hook; a failing refresh never undoes a commit."""
    if refresh is None:
        return
    try:
        await refresh()
    except Exception as exc:
        logger.warning("Refresh after plan change failed: %s", exc)


# ---------------------------------------------------------------------------
# Mutation strategies
# ---------------------------------------------------------------------------


class MutationStrategy(Protocol):
    async def add(
        self,
        store: AssignmentStore,
        task_name: str,
        member_id: str,
        member_name: str,
        member_type: MemberType,
        day_of_week: int | None = None,
        start_time: str | None = None,
        end_time: str | None = None,
    ) -> Assignment | None: ...

    async def remove(
        self,
        store: AssignmentStore,
        task_name: str,
        member_id: str,
        day_of_week: int | None = None,
        start_time: str | None = None,
    ) -> Assignment | None: ...

    async def reassign(
        self,
        store: AssignmentStore,
        task_name: str,
        old_member_id: str,
        new_member: MemberSummary,
    ) -> int: ...


class LocalMutationStrategy:
    """Draft plans: edits are optimistic and need no network."""

    async def add(
        self,
        store: AssignmentStore,
        task_name: str,
        member_id: str,
        member_name: str,
        member_type: MemberType,
        day_of_week: int | None = None,
        start_time: str | None = None,
        end_time: str | None = None,
    ) -> Assignment:
        return store.add_assignment(
            task_name, member_id, member_name, member_type,
            day_of_week, start_time, end_time,
        )

    async def remove(
        self,
        store: AssignmentStore,
        task_name: str,
        member_id: str,
        day_of_week: int | None = None,
        start_time: str | None = None,
    ) -> Assignment | None:
        return store.remove_assignment(task_name, member_id, day_of_week, start_time)

    async def reassign(
        self,
        store: AssignmentStore,
        task_name: str,
        old_member_id: str,
        new_member: MemberSummary,
    ) -> int:
        return store.reassign_assignment(task_name, old_member_id, new_member)


class RemoteMutationStrategy:
    """Applied plans: the backend must accept an edit before it is shown.

    PlanApiError from the backend propagates untouched, with the store
    unchanged. No retries. An edit confirmed after its plan was replaced
    or cleared is not committed to whatever the store holds by then.
    """

    def __init__(self, api: PlanApiPort, refresh: RefreshCallback | None = None) -> None:
        self._api = api
        self._refresh = refresh

    async def _superseded(self, store: AssignmentStore, plan: Plan, action: str) -> bool:
        if store.plan is plan:
            return False
        logger.warning(
            "Plan %s was replaced while '%s' was in flight; local copy left as is",
            plan.id, action,
        )
        await run_refresh(self._refresh)
        return True

    async def add(
        self,
        store: AssignmentStore,
        task_name: str,
        member_id: str,
        member_name: str,
        member_type: MemberType,
        day_of_week: int | None = None,
        start_time: str | None = None,
        end_time: str | None = None,
    ) -> Assignment | None:
        store.check_can_add(task_name, member_id, day_of_week, start_time)
        plan = store.plan

        await self._api.patch_assignment(
            plan.id, "add", task_name, member_id, day_of_week=day_of_week,
        )
        if await self._superseded(store, plan, "add"):
            return None
        added = store.add_assignment(
            task_name, member_id, member_name, member_type,
            day_of_week, start_time, end_time,
        )
        logger.info("Plan %s: added '%s' for %s", plan.id, task_name, member_id)
        await run_refresh(self._refresh)
        return added

    async def remove(
        self,
        store: AssignmentStore,
        task_name: str,
        member_id: str,
        day_of_week: int | None = None,
        start_time: str | None = None,
    ) -> Assignment | None:
        if store.find_first(task_name, member_id, day_of_week, start_time) is None:
            return None
        plan = store.plan

        await self._api.patch_assignment(
            plan.id, "remove", task_name, member_id, day_of_week=day_of_week,
        )
        if await self._superseded(store, plan, "remove"):
            return None
        removed = store.remove_assignment(task_name, member_id, day_of_week, start_time)
        logger.info("Plan %s: removed '%s' from %s", plan.id, task_name, member_id)
        await run_refresh(self._refresh)
        return removed

    async def reassign(
        self,
        store: AssignmentStore,
        task_name: str,
        old_member_id: str,
        new_member: MemberSummary,
    ) -> int:
        if not store.matching_for_reassign(task_name, old_member_id):
            return 0
        store.check_can_reassign(task_name, old_member_id, new_member.id)
        plan = store.plan

        await self._api.patch_assignment(
            plan.id, "reassign", task_name, old_member_id,
            new_member_id=new_member.id,
        )
        if await self._superseded(store, plan, "reassign"):
            return 0
        count = store.reassign_assignment(task_name, old_member_id, new_member)
        logger.info(
            "Plan %s: reassigned '%s' %s → %s (%d record(s))",
            plan.id, task_name, old_member_id, new_member.id, count,
        )
        await run_refresh(self._refresh)
        return count


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class PlanLifecycle:
    """Guards state transitions of the store's plan and hands out strategies."""

    def __init__(
        self,
        store: AssignmentStore,
        api: PlanApiPort,
        refresh: RefreshCallback | None = None,
    ) -> None:
        self._store = store
        self._local = LocalMutationStrategy()
        self._remote = RemoteMutationStrategy(api, refresh)

    @property
    def state(self) -> PlanState:
        return state_of(self._store.plan)

    def _check(self, target: PlanState) -> None:
        current = self.state
        if target not in _ALLOWED[current]:
            raise InvalidTransitionError(current, target)

    def begin(self, plan: Plan, fairness: FairnessDetails | None = None) -> None:
        """NONE → PENDING with a freshly generated plan."""
        self._check(PlanState.PENDING)
        plan.status = PlanStatus.PENDING
        self._store.replace_plan(plan, fairness)
        logger.info("Plan %s pending with %d assignment(s)", plan.id, len(plan.assignments))

    def restore(self, plan: Plan) -> None:
        """Load a plan that already exists server-side, in whatever state it is."""
        self._check(state_of(plan))
        self._store.replace_plan(plan)
        logger.info("Plan %s restored as %s", plan.id, plan.status.value)

    def confirm_applied(self, applied_at: datetime | None = None) -> None:
        """PENDING → APPLIED. Call only once the backend reported created assignments."""
        self._check(PlanState.APPLIED)
        self._store.mark_applied(applied_at)
        logger.info("Plan %s applied", self._store.plan.id)

    def reset(self) -> None:
        """Drop the plan (discard or regeneration)."""
        if self.state == PlanState.NONE:
            return
        plan_id = self._store.plan.id
        self._store.clear()
        logger.info("Plan %s cleared", plan_id)

    def strategy(self) -> MutationStrategy:
        state = self.state
        if state == PlanState.PENDING:
            return self._local
        if state == PlanState.APPLIED:
            return self._remote
        raise NoPlanError("No plan loaded")
