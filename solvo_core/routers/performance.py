from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import date
from typing import Dict, List, Optional
from solvo_core.config import settings
from solvo_core.database import get_db
from solvo_core.core.auth import get_current_user
from solvo_core.core.http import ai_http_error, apply_action, require
from solvo_core.schemas.snapshot import (
    EndWeekResponse,
    HistoricalSnapshotCreate,
    PerformanceSummaryResponse,
    WeeklyPerformanceSnapshot,
)
from solvo_core.schemas.team import LeaderboardEntry
from solvo_core.services.ai_client import AIClient, AIError, get_ai_client
from solvo_core.services.performance import build_leaderboard, find_member
from solvo_core.services.state import EndWeek, SaveHistoricalSnapshot
from solvo_core.services.storage import StateStore, get_state_store
from solvo_core.services.weekly import start_of_week

router = APIRouter(prefix="/performance", tags=["performance"])

NOT_ENOUGH_HISTORY = "Not enough historical data to generate a summary."


@router.get("/scores", response_model=Dict[str, int])
async def get_scores(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    state = await store.load(db, current_user.id)
    return {m.id: m.performance_score for m in state.team_members}


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
async def get_leaderboard(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    state = await store.load(db, current_user.id)
    return build_leaderboard(state.team_members)


@router.post("/end-week", response_model=EndWeekResponse)
async def end_week(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    today = date.today()
    week_of = start_of_week(today)

    state = await apply_action(
        store, db, current_user.id, EndWeek(today, rank_history_limit=settings.RANK_HISTORY_LIMIT)
    )

    member_ids = {m.id for m in state.team_members}
    archived = [s for s in state.weekly_snapshots if s.week_of == week_of and s.team_member_id in member_ids]
    return EndWeekResponse(week_of=week_of, snapshots=archived)


@router.get("/snapshots", response_model=List[WeeklyPerformanceSnapshot])
async def list_snapshots(
    team_member_id: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    state = await store.load(db, current_user.id)
    snapshots = state.weekly_snapshots
    if team_member_id is not None:
        snapshots = [s for s in snapshots if s.team_member_id == team_member_id]
    return sorted(snapshots, key=lambda s: s.week_of)


@router.post("/snapshots", response_model=WeeklyPerformanceSnapshot)
async def save_historical_snapshot(
    snapshot_in: HistoricalSnapshotCreate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    actuals = tuple((k.kpi_definition_id, k.actual) for k in snapshot_in.kpis)
    action = SaveHistoricalSnapshot(snapshot_in.team_member_id, snapshot_in.week_of, actuals)
    state = await apply_action(store, db, current_user.id, action)
    return next(
        s for s in state.weekly_snapshots
        if s.team_member_id == snapshot_in.team_member_id and s.week_of == snapshot_in.week_of
    )


@router.get("/{member_id}/summary", response_model=PerformanceSummaryResponse)
async def get_performance_summary(
    member_id: str,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store),
    ai_client: AIClient = Depends(get_ai_client)
):
    state = await store.load(db, current_user.id)
    member = require(find_member(state.team_members, member_id), "Team member", member_id)

    history = sorted(
        (s for s in state.weekly_snapshots if s.team_member_id == member_id), key=lambda s: s.week_of
    )
    if not history:
        return PerformanceSummaryResponse(team_member_id=member_id, summary=NOT_ENOUGH_HISTORY)

    try:
        summary = await ai_client.generate_performance_summary(member, history)
    except AIError as e:
        raise ai_http_error(e)
    return PerformanceSummaryResponse(team_member_id=member_id, summary=summary)
