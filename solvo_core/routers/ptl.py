from fastapi import APIRouter, Depends
from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from solvo_core.database import get_db
from solvo_core.core.auth import get_current_user
from solvo_core.core.http import ai_http_error, apply_action, require
from solvo_core.schemas.ptl import CoachingPlan, PtlAssessmentResponse, PtlReport
from solvo_core.schemas.team import TeamMember
from solvo_core.services.ai_client import AIClient, AIError, get_ai_client
from solvo_core.services.performance import find_member
from solvo_core.services.ptl import build_ptl_assessment, coaching_session_from_plan, compute_ptl
from solvo_core.services.state import AddCoachingSession, SavePtlReport
from solvo_core.services.storage import StateStore, get_state_store

router = APIRouter(prefix="/ptl", tags=["ptl"])


@router.get("/{member_id}", response_model=PtlAssessmentResponse)
async def get_ptl_assessment(
    member_id: str,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store),
    ai_client: AIClient = Depends(get_ai_client)
):
    state = await store.load(db, current_user.id)
    member = require(find_member(state.team_members, member_id), "Team member", member_id)
    return await build_ptl_assessment(member, state.tasks, state.clients, ai_client)


@router.post("/{member_id}/save", response_model=TeamMember)
async def save_ptl_report(
    member_id: str,
    report_in: PtlReport,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store)
):
    state = await apply_action(store, db, current_user.id, SavePtlReport(member_id, report_in))
    return find_member(state.team_members, member_id)


@router.post("/{member_id}/coaching-plan", response_model=CoachingPlan)
async def generate_coaching_plan(
    member_id: str,
    report_in: Optional[PtlReport] = None,
    save: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store),
    ai_client: AIClient = Depends(get_ai_client)
):
    state = await store.load(db, current_user.id)
    member = require(find_member(state.team_members, member_id), "Team member", member_id)

    # Explicit report first, then the saved one, then a fresh computation
    report = report_in or member.ptl_report or compute_ptl(member, state.tasks, state.clients)

    try:
        plan = await ai_client.generate_ptl_coaching_plan(report)
    except AIError as e:
        raise ai_http_error(e)

    if save:
        session = coaching_session_from_plan(plan, date.today())
        await apply_action(store, db, current_user.id, AddCoachingSession(member_id, session))
    return plan
