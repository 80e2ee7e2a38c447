"""Plan API port — abstract interface for the Habita backend.

Core modules depend on this protocol, never on a specific HTTP client.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol

from habita.data.models import (
    ApplyResult,
    Assignment,
    PlanPreview,
    TaskFrequency,
)


class PlanApiError(Exception):
    """Raised when any backend call fails (non-2xx or transport error)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ServiceUnavailableError(PlanApiError):
    """Plan generation is not configured on the backend (HTTP 503)."""


class NoEligibleTasksError(PlanApiError):
    """The household has nothing to distribute (HTTP 400 on preview)."""


class PlanApiPort(Protocol):
    """Abstract backend interface used by core modules."""

    async def preview_plan(
        self,
        duration_days: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> PlanPreview: ...

    async def apply_plan(
        self, plan_id: str, assignments: list[Assignment]
    ) -> ApplyResult: ...

    async def discard_plan(self, plan_id: str) -> None: ...

    async def patch_assignment(
        self,
        plan_id: str,
        action: str,
        task_name: str,
        member_id: str,
        day_of_week: int | None = None,
        new_member_id: str | None = None,
    ) -> None: ...

    async def create_task(
        self, name: str, frequency: TaskFrequency, weight: int
    ) -> dict: ...

    async def submit_feedback(
        self, plan_id: str, rating: int, comment: str | None = None
    ) -> None: ...
