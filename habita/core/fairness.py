"""
Habita Plan Client — Fairness summary.

The balance score itself is computed by the backend and is opaque here.
This module only projects the adult task distribution for display and maps
the score onto a colour tier.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from habita.core.assignment_key import assignment_key
from habita.data.models import FairnessDetails, MemberType

if TYPE_CHECKING:
    from habita.data.models import Assignment, MemberSummary, Plan

# Same tolerance the backend uses when it reports is_symmetric
SYMMETRY_TOLERANCE = 2

GOOD_THRESHOLD = 80
MEDIUM_THRESHOLD = 60


@dataclass
class FairnessSummary:
    balance_score: int
    tier: str            # "good" | "medium" | "poor"
    bar_width: int       # percent, 0–100
    details: FairnessDetails


def compute_adult_distribution(
    assignments: list[Assignment],
    members: list[MemberSummary] | None = None,
) -> dict[str, int]:
    """Count assignments per adult display name.

    Adults from ``members`` with nothing assigned appear with 0. Repeated
    keys are counted once.
    """
    distribution: dict[str, int] = {}
    for m in members or []:
        if m.type == MemberType.ADULT:
            distribution.setdefault(m.name, 0)

    seen: set[str] = set()
    for a in assignments:
        key = assignment_key(a)
        if key in seen:
            continue
        seen.add(key)
        if a.member_type == MemberType.ADULT:
            distribution[a.member_name] = distribution.get(a.member_name, 0) + 1
    return distribution


def project_fairness(
    assignments: list[Assignment],
    server_details: FairnessDetails | None = None,
    members: list[MemberSummary] | None = None,
) -> FairnessDetails:
    """Server details when available, otherwise a local recount."""
    if server_details is not None:
        return server_details

    distribution = compute_adult_distribution(assignments, members)
    counts = list(distribution.values())
    max_difference = max(counts) - min(counts) if len(counts) > 1 else 0
    return FairnessDetails(
        adult_distribution=distribution,
        is_symmetric=max_difference <= SYMMETRY_TOLERANCE,
        max_difference=max_difference,
    )


def score_tier(score: int) -> str:
    if score >= GOOD_THRESHOLD:
        return "good"
    if score >= MEDIUM_THRESHOLD:
        return "medium"
    return "poor"


def score_bar_width(score: int) -> int:
    return max(0, min(100, score))


def summarize(
    plan: Plan,
    server_details: FairnessDetails | None = None,
    members: list[MemberSummary] | None = None,
) -> FairnessSummary:
    return FairnessSummary(
        balance_score=plan.balance_score,
        tier=score_tier(plan.balance_score),
        bar_width=score_bar_width(plan.balance_score),
        details=project_fairness(plan.assignments, server_details, members),
    )
