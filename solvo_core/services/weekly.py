"""End-of-week archival and historical snapshot backfill.

A week is open while ``kpi_progress`` holds live actuals. Ending the week
archives one snapshot per member, re-ranks the team, freezes each score as
next week's trend baseline and zeroes the ledger.
"""
import logging
from datetime import date, timedelta
from typing import List, Mapping, Sequence

from solvo_core.core.errors import NotFoundError, StateValidationError
from solvo_core.schemas.data import AppData
from solvo_core.schemas.kpi import KpiGroup, KpiProgress
from solvo_core.schemas.snapshot import KpiSnapshot, WeeklyPerformanceSnapshot
from solvo_core.schemas.team import TeamMember
from solvo_core.services.performance import (
    calculate_performance_score,
    find_group,
    find_member,
    progress_actual,
    rank_members,
)

logger = logging.getLogger(__name__)


def start_of_week(day: date) -> date:
    """Monday of the week containing ``day``. Sunday closes the week, it does not open one."""
    return day - timedelta(days=day.weekday())


def kpi_snapshots_for(
    member: TeamMember, kpi_groups: Sequence[KpiGroup], kpi_progress: Sequence[KpiProgress]
) -> List[KpiSnapshot]:
    group = find_group(kpi_groups, member.kpi_group_id)
    if group is None:
        return []
    return [
        KpiSnapshot(
            name=kpi.name,
            type=kpi.type,
            goal=kpi.goal,
            points=kpi.points,
            actual=progress_actual(kpi_progress, member.id, kpi.id),
        )
        for kpi in group.kpis
    ]


def upsert_snapshots(
    existing: Sequence[WeeklyPerformanceSnapshot], incoming: Sequence[WeeklyPerformanceSnapshot]
) -> List[WeeklyPerformanceSnapshot]:
    """One snapshot per (team_member_id, week_of): incoming snapshots replace every stored match."""
    keys = {(s.team_member_id, s.week_of) for s in incoming}
    kept = [s for s in existing if (s.team_member_id, s.week_of) not in keys]
    return kept + list(incoming)


def end_week(data: AppData, today: date, rank_history_limit: int = 10) -> AppData:
    week_of = start_of_week(today)

    # 1. Archive the open week
    snapshots = [
        WeeklyPerformanceSnapshot(
            team_member_id=m.id,
            week_of=week_of,
            performance_score=m.performance_score,
            kpi_snapshots=kpi_snapshots_for(m, data.kpi_groups, data.kpi_progress),
        )
        for m in data.team_members
    ]

    # 2. Re-rank and freeze this week's score as the trend baseline
    ranks = rank_members(data.team_members)
    members = []
    for m in data.team_members:
        rank = ranks[m.id]
        members.append(m.model_copy(update={
            "previous_performance_score": m.performance_score,
            "rank": rank,
            "previous_rank": rank,
            "rank_history": (list(m.rank_history) + [rank])[-rank_history_limit:],
        }))

    # 3. Zero the ledger; rows stay so definitions keep their progress slots
    progress = [p.model_copy(update={"actual": 0}) for p in data.kpi_progress]

    logger.info("Archived week of %s: %d snapshot(s)", week_of.isoformat(), len(snapshots))
    return data.model_copy(update={
        "weekly_snapshots": upsert_snapshots(data.weekly_snapshots, snapshots),
        "team_members": members,
        "kpi_progress": progress,
    })


def save_historical_snapshot(
    data: AppData, member_id: str, week_of: date, actuals: Mapping[str, float]
) -> AppData:
    """Score a past week from supplied actuals and insert or replace its snapshot."""
    member = find_member(data.team_members, member_id)
    if member is None:
        raise NotFoundError("Team member", member_id)
    group = find_group(data.kpi_groups, member.kpi_group_id)
    if group is None:
        raise StateValidationError(f"Team member {member_id} has no KPI group assigned")

    # Throwaway ledger: the live one belongs to the current week
    ledger = [
        KpiProgress(
            id=f"temp_{member_id}_{kpi_id}",
            team_member_id=member_id,
            kpi_definition_id=kpi_id,
            actual=actual,
        )
        for kpi_id, actual in actuals.items()
    ]
    snapshot = WeeklyPerformanceSnapshot(
        team_member_id=member_id,
        week_of=week_of,
        performance_score=calculate_performance_score(member_id, data.kpi_groups, ledger, data.team_members),
        kpi_snapshots=kpi_snapshots_for(member, data.kpi_groups, ledger),
    )

    snapshots = upsert_snapshots(data.weekly_snapshots, [snapshot])

    logger.info("Saved historical snapshot for member=%s week=%s", member_id, week_of.isoformat())
    return data.model_copy(update={"weekly_snapshots": snapshots})
