"""Weekly KPI performance scoring.

A member's score is the share of their KPI group's points earned this week,
as an integer 0-100. Every function here is pure; callers write the result
back onto ``TeamMember.performance_score``.
"""
import math
from typing import Dict, List, Optional, Sequence

from solvo_core.schemas.kpi import KpiDefinition, KpiGroup, KpiLedgerItem, KpiLedgerResponse, KpiProgress
from solvo_core.schemas.team import LeaderboardEntry, TeamMember

# KPI definitions carry no polarity field; a name containing this marker is scored lower-is-better.
LOWER_IS_BETTER_MARKER = "cancel"


def find_member(team_members: Sequence[TeamMember], member_id: str) -> Optional[TeamMember]:
    return next((m for m in team_members if m.id == member_id), None)


def find_group(kpi_groups: Sequence[KpiGroup], group_id: Optional[str]) -> Optional[KpiGroup]:
    if not group_id:
        return None
    return next((g for g in kpi_groups if g.id == group_id), None)


def find_progress(
    kpi_progress: Sequence[KpiProgress], member_id: str, kpi_definition_id: str
) -> Optional[KpiProgress]:
    return next(
        (
            p for p in kpi_progress
            if p.team_member_id == member_id and p.kpi_definition_id == kpi_definition_id
        ),
        None,
    )


def progress_actual(kpi_progress: Sequence[KpiProgress], member_id: str, kpi_definition_id: str) -> float:
    """Current-week actual for one KPI. A member with no ledger row yet has logged 0."""
    row = find_progress(kpi_progress, member_id, kpi_definition_id)
    return row.actual if row is not None else 0.0


def is_lower_better(kpi: KpiDefinition) -> bool:
    return LOWER_IS_BETTER_MARKER in kpi.name.lower()


def achievement_ratio(kpi: KpiDefinition, actual: float) -> float:
    """Fraction of the KPI's points earned, 0.0-1.0. No bonus for beating the goal."""
    if kpi.goal == 0:
        # A zero goal means "keep this at zero"
        return 1.0 if actual == 0 else 0.0
    if is_lower_better(kpi):
        return max(0.0, 1 - actual / kpi.goal)
    return min(actual / kpi.goal, 1.0)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_performance_score(
    member_id: str,
    kpi_groups: Sequence[KpiGroup],
    kpi_progress: Sequence[KpiProgress],
    team_members: Sequence[TeamMember],
) -> int:
    member = find_member(team_members, member_id)
    if member is None:
        return 0

    group = find_group(kpi_groups, member.kpi_group_id)
    if group is None or not group.kpis:
        return 0

    total_possible = sum(kpi.points for kpi in group.kpis)
    if total_possible == 0:
        return 0

    earned = sum(
        achievement_ratio(kpi, progress_actual(kpi_progress, member_id, kpi.id)) * kpi.points
        for kpi in group.kpis
    )
    return round_half_up(earned / total_possible * 100)


def recalculate_scores(
    team_members: Sequence[TeamMember],
    kpi_groups: Sequence[KpiGroup],
    kpi_progress: Sequence[KpiProgress],
) -> List[TeamMember]:
    """Full recompute for every member; scores are never updated incrementally."""
    return [
        m.model_copy(update={
            "performance_score": calculate_performance_score(m.id, kpi_groups, kpi_progress, team_members)
        })
        for m in team_members
    ]


def rank_members(team_members: Sequence[TeamMember]) -> Dict[str, int]:
    """member id -> 1-based rank by score, highest first. Ties keep list order."""
    ordered = sorted(team_members, key=lambda m: m.performance_score, reverse=True)
    return {m.id: rank for rank, m in enumerate(ordered, start=1)}


def build_leaderboard(team_members: Sequence[TeamMember]) -> List[LeaderboardEntry]:
    ranks = rank_members(team_members)
    entries = []
    for m in team_members:
        rank = ranks[m.id]
        entries.append(LeaderboardEntry(
            rank=rank,
            team_member_id=m.id,
            name=m.name,
            performance_score=m.performance_score,
            previous_performance_score=m.previous_performance_score,
            score_change=m.performance_score - m.previous_performance_score,
            previous_rank=m.previous_rank,
            # No finished week yet means no movement to report
            rank_change=m.previous_rank - rank if m.previous_rank else 0,
            rank_history=list(m.rank_history),
        ))
    return sorted(entries, key=lambda e: e.rank)


def build_kpi_ledger(
    member: TeamMember, kpi_groups: Sequence[KpiGroup], kpi_progress: Sequence[KpiProgress]
) -> KpiLedgerResponse:
    group = find_group(kpi_groups, member.kpi_group_id)
    items = []
    for kpi in group.kpis if group else []:
        actual = progress_actual(kpi_progress, member.id, kpi.id)
        ratio = achievement_ratio(kpi, actual)
        items.append(KpiLedgerItem(
            kpi_definition_id=kpi.id,
            name=kpi.name,
            type=kpi.type,
            goal=kpi.goal,
            points=kpi.points,
            actual=actual,
            lower_is_better=is_lower_better(kpi),
            achievement_ratio=ratio,
            points_earned=ratio * kpi.points,
        ))
    return KpiLedgerResponse(
        team_member_id=member.id,
        kpi_group_id=group.id if group else None,
        performance_score=member.performance_score,
        kpis=items,
    )
