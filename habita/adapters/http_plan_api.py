"""Habita REST adapter — implements PlanApiPort over HTTP with httpx.

All knowledge of URLs, JSON field names and status codes lives here.
Core modules never import this directly; they depend on the PlanApiPort
protocol.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from habita.config import settings
from habita.data.models import (
    ApplyResult,
    Assignment,
    ExcludedTask,
    FairnessDetails,
    MemberSummary,
    MemberType,
    Plan,
    PlanPreview,
    PlanStatus,
    TaskFrequency,
)
from habita.ports.plan_api_port import (
    NoEligibleTasksError,
    PlanApiError,
    ServiceUnavailableError,
)

logger = logging.getLogger(__name__)

_PREVIEW_PATH = "/api/ai/preview-plan"
_APPLY_PATH = "/api/ai/apply-plan"
_TASKS_PATH = "/api/tasks"

PATCH_ACTIONS = ("add", "remove", "reassign")


# ---------------------------------------------------------------------------
# Wire contract — camelCase JSON from the backend
# ---------------------------------------------------------------------------


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WireAssignment(_Wire):
    task_name: str
    member_id: str
    member_name: str
    member_type: MemberType = MemberType.ADULT
    reason: str = ""
    day_of_week: int | None = Field(default=None, ge=1, le=7)
    start_time: str | None = None
    end_time: str | None = None


class WireExcludedTask(_Wire):
    task_name: str
    frequency: TaskFrequency


class WirePlan(_Wire):
    id: str
    assignments: list[WireAssignment] = []
    balance_score: int = 0
    notes: list[str] = []
    duration_days: int = 7
    start_date: date | None = None
    end_date: date | None = None
    excluded_tasks: list[WireExcludedTask] = []

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def date_part(cls, v: str | None) -> str | None:
        # ISO datetimes arrive as "2026-10-20T00:00:00.000Z"
        if isinstance(v, str):
            return v[:10] or None
        return v


class WireMember(_Wire):
    id: str
    name: str
    type: MemberType
    current_pending: int = 0
    assigned_in_plan: int | None = None


class WireFairness(_Wire):
    adult_distribution: dict[str, int] = {}
    is_symmetric: bool = True
    max_difference: int = 0


class WirePreview(_Wire):
    plan: WirePlan
    members: list[WireMember] = []
    fairness_details: WireFairness | None = None


class WireApplyResult(_Wire):
    success: bool = False
    assignments_created: int = 0


def _to_preview(wire: WirePreview, now: datetime | None = None) -> PlanPreview:
    """Convert the wire preview into a pending domain Plan.

    The expiry is synthesized client-side from the duration.
    """
    now = now or datetime.now()
    wp = wire.plan
    plan = Plan(
        id=wp.id,
        status=PlanStatus.PENDING,
        balance_score=wp.balance_score,
        duration_days=wp.duration_days,
        created_at=now,
        expires_at=now + timedelta(days=wp.duration_days),
        notes=list(wp.notes),
        assignments=[Assignment(**a.model_dump()) for a in wp.assignments],
        excluded_tasks=[ExcludedTask(**t.model_dump()) for t in wp.excluded_tasks],
        start_date=wp.start_date,
    )
    members = [MemberSummary(**m.model_dump()) for m in wire.members]
    fairness = (
        FairnessDetails(**wire.fairness_details.model_dump())
        if wire.fairness_details is not None
        else None
    )
    return PlanPreview(plan=plan, members=members, fairness=fairness)


def _error_text(resp: httpx.Response, default: str) -> str:
    try:
        data = resp.json()
    except ValueError:
        return default
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return default


def _is_success(resp: httpx.Response) -> bool:
    return 200 <= resp.status_code < 300


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------


class HttpPlanApi:
    """httpx implementation of PlanApiPort."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._base_url = (base_url or settings.HABITA_API_URL).rstrip("/")
        self._token = settings.HABITA_API_TOKEN if token is None else token
        self._timeout = settings.HTTP_TIMEOUT_SECONDS if timeout is None else timeout

    def _client(self) -> httpx.AsyncClient:
        kwargs: dict = {"base_url": self._base_url}
        if self._token:
            kwargs["headers"] = {"Authorization": f"Bearer {self._token}"}
        if self._timeout is not None:
            kwargs["timeout"] = self._timeout
        return httpx.AsyncClient(**kwargs)

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            async with self._client() as client:
                return await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise PlanApiError(f"{method} {path} failed: {exc}") from exc

    def _raise_for(self, resp: httpx.Response, method: str, path: str) -> None:
        if _is_success(resp):
            return
        logger.error("%s %s returned HTTP %d", method, path, resp.status_code)
        raise PlanApiError(
            _error_text(resp, f"{method} {path} returned HTTP {resp.status_code}"),
            status_code=resp.status_code,
        )

    # ------------------------------------------------------------------

    async def preview_plan(
        self,
        duration_days: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> PlanPreview:
        """Generate a plan preview.

        With a date range the preview is requested by POST; otherwise by
        GET with a ``durationDays`` query parameter.
        """
        if start_date is not None and end_date is not None:
            resp = await self._request(
                "POST", _PREVIEW_PATH,
                json={"startDate": start_date.isoformat(), "endDate": end_date.isoformat()},
            )
        else:
            params = {}
            if duration_days is not None:
                params["durationDays"] = duration_days
            resp = await self._request("GET", _PREVIEW_PATH, params=params)

        if resp.status_code == 503:
            logger.warning("Plan generation unavailable (HTTP 503)")
            raise ServiceUnavailableError(
                _error_text(resp, "Plan generation is not configured"), status_code=503,
            )
        if resp.status_code == 400:
            raise NoEligibleTasksError(
                _error_text(resp, "There are no tasks to assign"), status_code=400,
            )
        self._raise_for(resp, "GET/POST", _PREVIEW_PATH)

        try:
            wire = WirePreview.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            logger.error("Malformed plan preview: %s", exc)
            raise PlanApiError(f"Malformed plan preview: {exc}") from exc

        preview = _to_preview(wire)
        logger.info(
            "Preview %s: %d assignment(s), score %d, %d day(s)",
            preview.plan.id, len(preview.plan.assignments),
            preview.plan.balance_score, preview.plan.duration_days,
        )
        return preview

    async def apply_plan(self, plan_id: str, assignments: list[Assignment]) -> ApplyResult:
        body = {
            "planId": plan_id,
            "assignments": [
                {"taskName": a.task_name, "memberId": a.member_id, "memberName": a.member_name}
                for a in assignments
            ],
        }
        resp = await self._request("POST", _APPLY_PATH, json=body)
        self._raise_for(resp, "POST", _APPLY_PATH)

        try:
            wire = WireApplyResult.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            raise PlanApiError(f"Malformed apply result: {exc}") from exc
        return ApplyResult(success=wire.success, assignments_created=wire.assignments_created)

    async def discard_plan(self, plan_id: str) -> None:
        path = f"/api/plans/{plan_id}"
        resp = await self._request("DELETE", path)
        self._raise_for(resp, "DELETE", path)
        logger.info("Plan %s discarded", plan_id)

    async def patch_assignment(
        self,
        plan_id: str,
        action: str,
        task_name: str,
        member_id: str,
        day_of_week: int | None = None,
        new_member_id: str | None = None,
    ) -> None:
        if action not in PATCH_ACTIONS:
            raise ValueError(f"Unknown assignment action: {action!r}")
        if action == "reassign" and not new_member_id:
            raise ValueError("reassign needs new_member_id")

        body: dict = {"action": action, "taskName": task_name, "memberId": member_id}
        if day_of_week is not None:
            body["dayOfWeek"] = day_of_week
        if new_member_id is not None:
            body["newMemberId"] = new_member_id

        path = f"/api/plans/{plan_id}/assignments"
        resp = await self._request("PATCH", path, json=body)
        self._raise_for(resp, "PATCH", path)

    async def create_task(self, name: str, frequency: TaskFrequency, weight: int) -> dict:
        resp = await self._request(
            "POST", _TASKS_PATH,
            json={"name": name, "frequency": frequency.value, "weight": weight},
        )
        self._raise_for(resp, "POST", _TASKS_PATH)
        logger.info("Task '%s' created", name)
        try:
            return resp.json()
        except ValueError:
            return {}

    async def submit_feedback(
        self, plan_id: str, rating: int, comment: str | None = None,
    ) -> None:
        body: dict = {"rating": rating}
        if comment:
            body["comment"] = comment
        path = f"/api/plans/{plan_id}/feedback"
        resp = await self._request("POST", path, json=body)
        self._raise_for(resp, "POST", path)
