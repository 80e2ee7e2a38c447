"""
Habita Plan Client — Entry Point.

`python main.py [duration_days]` requests a plan preview from the backend
and logs how it distributes the household's tasks.
"""

import asyncio
import logging
import sys

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from habita.adapters.http_plan_api import HttpPlanApi
from habita.adapters.notifier_factory import create_notifier
from habita.core.plan_duration import duration_label
from habita.core.plan_service import PlanService, ResponseKind

logger = logging.getLogger("habita")


async def preview(duration_days: int | None = None) -> int:
    service = PlanService(HttpPlanApi(), create_notifier())
    response = await service.generate(duration_days=duration_days)
    if response.kind != ResponseKind.SUCCESS:
        logger.info(response.message)
        return 1

    plan = service.plan
    logger.info("Plan %s for %s", plan.id, duration_label(plan.duration_days))
    for member_id, assignments in service.store.assignments_by_member().items():
        names = ", ".join(a.task_name for a in assignments)
        logger.info("  %s: %s", assignments[0].member_name or member_id, names)
    for excluded in plan.excluded_tasks:
        logger.info("  upcoming (%s): %s", excluded.frequency.value.lower(), excluded.task_name)

    summary = service.fairness()
    logger.info(
        "Balance %d/100 (%s), adults: %s",
        summary.balance_score, summary.tier, summary.details.adult_distribution,
    )
    for note in plan.notes:
        logger.info("  note: %s", note)
    return 0


def main() -> None:
    duration = int(sys.argv[1]) if len(sys.argv) > 1 else None
    sys.exit(asyncio.run(preview(duration)))


if __name__ == "__main__":
    main()
