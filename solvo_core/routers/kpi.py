from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from solvo_core.database import get_db
from solvo_core.core.auth import get_current_user
from solvo_core.core.http import apply_action, check_path_id, require
from solvo_core.schemas.kpi import KpiGroup, KpiLedgerResponse, KpiProgressUpdate
from solvo_core.services.performance import build_kpi_ledger, find_group, find_member
from solvo_core.services.state import DeleteKpiGroup, SaveKpiGroup, UpdateKpiProgress
from solvo_core.services.storage import StateStore, get_state_store

router = APIRouter(prefix="/kpi", tags=["kpi"])


@router.get("/groups", response_model=List[KpiGroup])
async def list_kpi_groups(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    state = await store.load(db, current_user.id)
    return state.kpi_groups


@router.put("/groups/{group_id}", response_model=KpiGroup)
async def save_kpi_group(
    group_id: str,
    group_in: KpiGroup,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    check_path_id(group_id, group_in.id)
    state = await apply_action(store, db, current_user.id, SaveKpiGroup(group_in))
    return find_group(state.kpi_groups, group_id)


@router.delete("/groups/{group_id}")
async def delete_kpi_group(
    group_id: str,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    await apply_action(store, db, current_user.id, DeleteKpiGroup(group_id))
    return {"message": "KPI group deleted"}


@router.get("/progress/{member_id}", response_model=KpiLedgerResponse)
async def get_kpi_ledger(
    member_id: str,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    state = await store.load(db, current_user.id)
    member = require(find_member(state.team_members, member_id), "Team member", member_id)
    return build_kpi_ledger(member, state.kpi_groups, state.kpi_progress)


@router.put("/progress", response_model=KpiLedgerResponse)
async def update_kpi_progress(
    progress_in: KpiProgressUpdate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    action = UpdateKpiProgress(progress_in.team_member_id, progress_in.kpi_definition_id, progress_in.actual)
    state = await apply_action(store, db, current_user.id, action)
    member = find_member(state.team_members, progress_in.team_member_id)
    return build_kpi_ledger(member, state.kpi_groups, state.kpi_progress)
