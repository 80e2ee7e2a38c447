"""
Habita Plan Client — UI-Agnostic Plan Service.

Handlers behind the plan page: generate, regenerate, apply, discard, and
edit assignments. Every handler catches backend failures at its own
boundary, sends a toast through the NotificationPort, and returns a
structured response object. Nothing raised by the backend escapes.

Each UI adapter (web, Telegram, CLI) calls this service and renders the
response objects in its own way.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Iterable

from habita.core.assignment_store import (
    AssignmentStore,
    DuplicateAssignmentError,
    DuplicatePolicy,
    NoPlanError,
    StoreError,
)
from habita.core.fairness import FairnessSummary, summarize
from habita.core.plan_duration import (
    MAX_PLAN_DURATION_DAYS,
    duration_label,
    partition_tasks_by_duration,
    validate_date_range,
)
from habita.core.plan_lifecycle import (
    InvalidTransitionError,
    PlanLifecycle,
    PlanState,
    run_refresh,
)
from habita.data.models import TaskFrequency
from habita.ports.notification_port import Toast, ToastLevel
from habita.ports.plan_api_port import (
    NoEligibleTasksError,
    PlanApiError,
    ServiceUnavailableError,
)

if TYPE_CHECKING:
    from habita.core.plan_lifecycle import RefreshCallback
    from habita.data.models import Assignment, MemberSummary, MemberType, Plan, TaskSummary
    from habita.ports.notification_port import NotificationPort
    from habita.ports.plan_api_port import PlanApiPort

logger = logging.getLogger(__name__)

GENERIC_RETRY = "Please try again."
PLAN_CHANGED = "The plan changed before the edit was confirmed."
MAX_FEEDBACK_COMMENT = 500


# ---------------------------------------------------------------------------
# Response types
# ---------------------------------------------------------------------------


class ResponseKind(Enum):
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"
    NO_ACTION = "no_action"
    CONFIRMATION_REQUIRED = "confirmation_required"


@dataclass
class ServiceResponse:
    kind: ResponseKind
    message: str


@dataclass
class SuccessResponse(ServiceResponse):
    assignment: Assignment | None = None
    count: int = 0


@dataclass
class InfoResponse(ServiceResponse):
    pass


@dataclass
class ErrorResponse(ServiceResponse):
    pass


@dataclass
class NoActionResponse(ServiceResponse):
    pass


@dataclass
class ConfirmationResponse(ServiceResponse):
    action: str = ""                       # "discard" | "regenerate"
    details: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# PlanService
# ---------------------------------------------------------------------------


class PlanService:
    """Owns the in-memory plan and routes every user action through it.

    Returns structured response objects and sends toasts — never raises for
    backend failures.
    """

    def __init__(
        self,
        api: PlanApiPort,
        notifier: NotificationPort,
        store: AssignmentStore | None = None,
        refresh: RefreshCallback | None = None,
    ) -> None:
        if store is None:
            from habita.config import settings

            store = AssignmentStore(DuplicatePolicy(settings.DUPLICATE_POLICY))

        self._api = api
        self._notifier = notifier
        self._store = store
        self._refresh = refresh
        self._lifecycle = PlanLifecycle(store, api, refresh)
        self._members: list[MemberSummary] = []
        self._last_duration_days: int | None = None

        # Busy flags for the presentation layer
        self.is_generating = False
        self.is_applying = False
        self.is_discarding = False
        self.is_mutating = False

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def store(self) -> AssignmentStore:
        return self._store

    @property
    def plan(self) -> Plan | None:
        return self._store.plan

    @property
    def state(self) -> PlanState:
        return self._lifecycle.state

    @property
    def members(self) -> list[MemberSummary]:
        return list(self._members)

    @property
    def selected_count(self) -> int:
        return self._store.selected_count

    @property
    def total_count(self) -> int:
        return self._store.total_count

    def fairness(self) -> FairnessSummary | None:
        if self.plan is None:
            return None
        return summarize(self.plan, self._store.server_fairness, self._members)

    def load_existing(self, plan: Plan | None, members: list[MemberSummary]) -> None:
        """Seed the service with the plan the page was rendered with."""
        self._members = list(members)
        self._lifecycle.reset()
        if plan is not None:
            self._lifecycle.restore(plan)
            self._last_duration_days = plan.duration_days

    # ------------------------------------------------------------------
    # Toast helpers
    # ------------------------------------------------------------------

    async def _toast(self, level: ToastLevel, title: str, message: str = "") -> None:
        try:
            await self._notifier.send_toast(Toast(level=level, title=title, message=message))
        except Exception as exc:
            logger.error("Failed to deliver toast '%s': %s", title, exc)

    async def _success(self, title: str, message: str, **kwargs) -> SuccessResponse:
        await self._toast(ToastLevel.SUCCESS, title, message)
        return SuccessResponse(kind=ResponseKind.SUCCESS, message=message, **kwargs)

    async def _info(self, title: str, message: str) -> InfoResponse:
        await self._toast(ToastLevel.INFO, title, message)
        return InfoResponse(kind=ResponseKind.INFO, message=message)

    async def _error(self, title: str, message: str) -> ErrorResponse:
        await self._toast(ToastLevel.ERROR, title, message)
        return ErrorResponse(kind=ResponseKind.ERROR, message=message)

    # ------------------------------------------------------------------
    # Public: generation
    # ------------------------------------------------------------------

    async def generate(
        self,
        duration_days: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> ServiceResponse:
        """Request a plan preview and hold it as the pending plan.

        Either a duration in days or an explicit start/end date range.
        Only valid with no plan loaded; use regenerate() otherwise.
        """
        if self.state != PlanState.NONE:
            return ErrorResponse(
                kind=ResponseKind.ERROR,
                message="A plan is already loaded. Regenerate it to start over.",
            )

        if start_date is not None or end_date is not None:
            if start_date is None or end_date is None:
                return await self._error("Invalid dates", "Both a start and an end date are needed.")
            check = validate_date_range(start_date, end_date)
            if not check.is_valid:
                return await self._error("Invalid dates", check.error)
        else:
            if duration_days is None:
                from habita.config import settings

                duration_days = settings.DEFAULT_PLAN_DURATION_DAYS
            if not 1 <= duration_days <= MAX_PLAN_DURATION_DAYS:
                return await self._error(
                    "Invalid duration",
                    f"A plan must last between 1 and {MAX_PLAN_DURATION_DAYS} days.",
                )

        self.is_generating = True
        try:
            preview = await self._api.preview_plan(
                duration_days=duration_days, start_date=start_date, end_date=end_date,
            )
        except ServiceUnavailableError:
            return await self._info("Service unavailable", "Plan generation is not configured.")
        except NoEligibleTasksError as exc:
            return await self._info("No tasks", exc.message or "There are no tasks to assign.")
        except PlanApiError as exc:
            logger.error("Generate plan error: %s", exc)
            return await self._error("Error", f"Could not generate the plan. {GENERIC_RETRY}")
        finally:
            self.is_generating = False

        try:
            self._lifecycle.begin(preview.plan, preview.fairness)
        except InvalidTransitionError as exc:
            # Another generation landed while this one was in flight
            logger.warning("Discarding stale preview %s: %s", preview.plan.id, exc)
            return NoActionResponse(kind=ResponseKind.NO_ACTION, message="A newer plan is already loaded.")

        if preview.members:
            self._members = list(preview.members)
        self._last_duration_days = preview.plan.duration_days

        count = len(preview.plan.assignments)
        return SuccessResponse(
            kind=ResponseKind.SUCCESS,
            message=f"Plan ready with {count} assignment(s). Review and apply it.",
            count=count,
        )

    async def regenerate(
        self,
        confirmed: bool = False,
        duration_days: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> ServiceResponse:
        """Throw away the current plan and generate a new one.

        Needs explicit confirmation when a plan is loaded.
        """
        if self.state != PlanState.NONE and not confirmed:
            return ConfirmationResponse(
                kind=ResponseKind.CONFIRMATION_REQUIRED,
                message="Regenerating replaces the current plan. Continue?",
                action="regenerate",
            )

        if duration_days is None and start_date is None and end_date is None:
            duration_days = self._last_duration_days

        self._lifecycle.reset()
        return await self.generate(
            duration_days=duration_days, start_date=start_date, end_date=end_date,
        )

    # ------------------------------------------------------------------
    # Public: apply / discard
    # ------------------------------------------------------------------

    async def apply(self) -> ServiceResponse:
        """Commit the selected assignments.

        The plan becomes APPLIED only when the backend reports that it
        created at least one assignment.
        """
        if self.state != PlanState.PENDING:
            return ErrorResponse(kind=ResponseKind.ERROR, message="Only a pending plan can be applied.")

        selected = self._store.selected_assignments()
        if not selected:
            return await self._info("Nothing selected", "Select at least one assignment to apply.")

        plan_id = self.plan.id
        self.is_applying = True
        try:
            result = await self._api.apply_plan(plan_id, selected)
        except PlanApiError as exc:
            logger.error("Apply plan error: %s", exc)
            return await self._error("Error", f"Could not apply the plan. {GENERIC_RETRY}")
        finally:
            self.is_applying = False

        if result.success and result.assignments_created > 0:
            self._lifecycle.confirm_applied()
            response = await self._success(
                "Plan applied!",
                f"{result.assignments_created} task(s) assigned",
                count=result.assignments_created,
            )
            await run_refresh(self._refresh)
            return response

        if result.assignments_created == 0:
            logger.warning("Plan %s: apply created nothing", plan_id)
            return await self._info("No changes", "Every task was already assigned.")

        return await self._error("Error", f"Could not apply the plan. {GENERIC_RETRY}")

    async def discard(self, confirmed: bool = False) -> ServiceResponse:
        """Delete the pending plan. Needs explicit confirmation."""
        if self.state != PlanState.PENDING:
            return ErrorResponse(kind=ResponseKind.ERROR, message="Only a pending plan can be discarded.")

        if not confirmed:
            return ConfirmationResponse(
                kind=ResponseKind.CONFIRMATION_REQUIRED,
                message="Discard this plan? Its assignments will be lost.",
                action="discard",
                details=[a.task_name for a in self._store.unique_assignments()],
            )

        self.is_discarding = True
        try:
            await self._api.discard_plan(self.plan.id)
        except PlanApiError as exc:
            logger.error("Discard plan error: %s", exc)
            return await self._error("Error", "Could not discard the plan.")
        finally:
            self.is_discarding = False

        self._lifecycle.reset()
        response = await self._success("Plan discarded", "You can generate a new one whenever you like.")
        await run_refresh(self._refresh)
        return response

    # ------------------------------------------------------------------
    # Public: assignment edits
    # ------------------------------------------------------------------

    def toggle(
        self,
        task_name: str,
        member_id: str,
        day_of_week: int | None = None,
        start_time: str | None = None,
    ) -> bool:
        """Select or deselect an assignment of the pending plan."""
        return self._store.toggle_selection(task_name, member_id, day_of_week, start_time)

    def _find_member(self, member_id: str) -> MemberSummary | None:
        return next((m for m in self._members if m.id == member_id), None)

    async def add(
        self,
        task_name: str,
        member_id: str,
        day_of_week: int | None = None,
        start_time: str | None = None,
        end_time: str | None = None,
        member_name: str | None = None,
        member_type: MemberType | None = None,
        task_catalog: Iterable[TaskSummary] | None = None,
        new_task_frequency: TaskFrequency = TaskFrequency.WEEKLY,
        new_task_weight: int = 2,
    ) -> ServiceResponse:
        """Add an assignment to the plan.

        ``task_catalog`` is the household's task list. When given, a task
        missing from it (case-insensitive) is created first, and a catalog
        task that does not come due within the plan's duration is refused,
        the same way generation leaves it out.
        """
        if member_name is None or member_type is None:
            member = self._find_member(member_id)
            if member is None:
                return await self._error("Error", "Member not found.")
            member_name = member_name or member.name
            member_type = member_type or member.type

        try:
            strategy = self._lifecycle.strategy()
        except NoPlanError:
            return ErrorResponse(kind=ResponseKind.ERROR, message="No plan loaded.")

        try:
            self._store.check_can_add(task_name, member_id, day_of_week, start_time)
        except DuplicateAssignmentError:
            return await self._error("Duplicate", "This task is already assigned to this member on that day.")

        create_task = False
        if task_catalog is not None:
            catalog_task = next(
                (t for t in task_catalog if t.name.lower() == task_name.lower()), None,
            )
            if catalog_task is None:
                create_task = True
            else:
                duration = self.plan.duration_days
                _, excluded = partition_tasks_by_duration([catalog_task], duration)
                if excluded:
                    return await self._info(
                        "Not due",
                        f"{catalog_task.name} does not come due within {duration_label(duration)}.",
                    )

        self.is_mutating = True
        try:
            if create_task:
                try:
                    await self._api.create_task(task_name, new_task_frequency, new_task_weight)
                except PlanApiError as exc:
                    logger.error("Create task '%s' failed: %s", task_name, exc)
                    return await self._error("Error", "Could not create the task.")

            try:
                added = await strategy.add(
                    self._store, task_name, member_id, member_name, member_type,
                    day_of_week, start_time, end_time,
                )
            except DuplicateAssignmentError:
                return await self._error("Duplicate", "This task is already assigned to this member on that day.")
            except PlanApiError as exc:
                logger.error("Add assignment error: %s", exc)
                return await self._error("Error", "Could not add the assignment.")
            except StoreError as exc:
                logger.warning("Add assignment dropped: %s", exc)
                return await self._error("Error", PLAN_CHANGED)
        finally:
            self.is_mutating = False

        if added is None:
            return NoActionResponse(kind=ResponseKind.NO_ACTION, message=PLAN_CHANGED)
        return await self._success("Added", f"{task_name} assigned to {member_name}", assignment=added)

    async def remove(
        self,
        task_name: str,
        member_id: str,
        day_of_week: int | None = None,
        start_time: str | None = None,
    ) -> ServiceResponse:
        try:
            strategy = self._lifecycle.strategy()
        except NoPlanError:
            return ErrorResponse(kind=ResponseKind.ERROR, message="No plan loaded.")

        plan = self.plan
        self.is_mutating = True
        try:
            removed = await strategy.remove(self._store, task_name, member_id, day_of_week, start_time)
        except PlanApiError as exc:
            logger.error("Remove assignment error: %s", exc)
            return await self._error("Error", "Could not remove the assignment.")
        except StoreError as exc:
            logger.warning("Remove assignment dropped: %s", exc)
            return await self._error("Error", PLAN_CHANGED)
        finally:
            self.is_mutating = False

        if removed is None:
            message = PLAN_CHANGED if self.plan is not plan else f"{task_name} is not in the plan."
            return NoActionResponse(kind=ResponseKind.NO_ACTION, message=message)
        return await self._success("Removed", f"{task_name} removed from the plan", assignment=removed)

    async def reassign(
        self, task_name: str, old_member_id: str, new_member_id: str,
    ) -> ServiceResponse:
        """Hand every (task, old member) assignment to another member."""
        if old_member_id == new_member_id:
            return NoActionResponse(kind=ResponseKind.NO_ACTION, message="Already assigned to that member.")

        new_member = self._find_member(new_member_id)
        if new_member is None:
            return await self._error("Error", "Member not found.")

        try:
            strategy = self._lifecycle.strategy()
        except NoPlanError:
            return ErrorResponse(kind=ResponseKind.ERROR, message="No plan loaded.")

        plan = self.plan
        self.is_mutating = True
        try:
            count = await strategy.reassign(self._store, task_name, old_member_id, new_member)
        except DuplicateAssignmentError:
            return await self._error("Duplicate", f"{new_member.name} already has {task_name}.")
        except PlanApiError as exc:
            logger.error("Reassign error: %s", exc)
            return await self._error("Error", "Could not reassign the task.")
        except StoreError as exc:
            logger.warning("Reassign dropped: %s", exc)
            return await self._error("Error", PLAN_CHANGED)
        finally:
            self.is_mutating = False

        if count == 0:
            message = PLAN_CHANGED if self.plan is not plan else f"{task_name} is not in the plan."
            return NoActionResponse(kind=ResponseKind.NO_ACTION, message=message)
        return await self._success(
            "Reassigned", f"{task_name} now belongs to {new_member.name}", count=count,
        )

    # ------------------------------------------------------------------
    # Public: feedback
    # ------------------------------------------------------------------

    async def submit_feedback(
        self, plan_id: str, rating: int, comment: str | None = None,
    ) -> ServiceResponse:
        """Rate a finished plan (1–5) with an optional short comment."""
        if not isinstance(rating, int) or not 1 <= rating <= 5:
            return ErrorResponse(kind=ResponseKind.ERROR, message="Rating must be between 1 and 5.")
        if comment is not None and len(comment) > MAX_FEEDBACK_COMMENT:
            return ErrorResponse(
                kind=ResponseKind.ERROR,
                message=f"Comment must be at most {MAX_FEEDBACK_COMMENT} characters.",
            )

        try:
            await self._api.submit_feedback(plan_id, rating, comment)
        except PlanApiError as exc:
            logger.error("Feedback for plan %s failed: %s", plan_id, exc)
            return await self._error("Error", "Could not send your feedback.")

        return await self._success("Thanks!", "Your feedback was saved.")
