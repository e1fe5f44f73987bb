from fastapi import APIRouter, Depends
from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from solvo_core.database import get_db
from solvo_core.core.auth import get_current_user
from solvo_core.core.http import apply_action, check_path_id, require
from solvo_core.schemas.team import CoachingSessionCreate, TeamMember, TeamMemberNotesUpdate
from solvo_core.services.performance import find_member
from solvo_core.services.ptl import coaching_session_from_plan
from solvo_core.services.state import AddCoachingSession, DeleteTeamMember, SaveTeamMember, UpdateTeamMemberNotes
from solvo_core.services.storage import StateStore, get_state_store

router = APIRouter(prefix="/team", tags=["team"])


@router.get("", response_model=List[TeamMember])
async def list_team_members(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    state = await store.load(db, current_user.id)
    return state.team_members


@router.get("/{member_id}", response_model=TeamMember)
async def get_team_member(
    member_id: str,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    state = await store.load(db, current_user.id)
    return require(find_member(state.team_members, member_id), "Team member", member_id)


@router.put("/{member_id}", response_model=TeamMember)
async def save_team_member(
    member_id: str,
    member_in: TeamMember,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    check_path_id(member_id, member_in.id)
    state = await apply_action(store, db, current_user.id, SaveTeamMember(member_in))
    # Score is recomputed on save, so return the stored record rather than the payload
    return find_member(state.team_members, member_id)


@router.delete("/{member_id}")
async def delete_team_member(
    member_id: str,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    await apply_action(store, db, current_user.id, DeleteTeamMember(member_id))
    return {"message": "Team member deleted"}


@router.put("/{member_id}/notes", response_model=TeamMember)
async def update_team_member_notes(
    member_id: str,
    notes_in: TeamMemberNotesUpdate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    state = await apply_action(store, db, current_user.id, UpdateTeamMemberNotes(member_id, notes_in.notes))
    return find_member(state.team_members, member_id)


@router.post("/{member_id}/coaching-sessions", response_model=TeamMember)
async def add_coaching_session(
    member_id: str,
    session_in: CoachingSessionCreate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    session = coaching_session_from_plan(session_in, session_in.session_date or date.today())
    state = await apply_action(store, db, current_user.id, AddCoachingSession(member_id, session))
    return find_member(state.team_members, member_id)
