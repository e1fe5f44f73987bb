"""Application state transitions.

``reduce(state, action)`` returns a new ``AppData`` and never mutates its input.
Referential cascades (client → tasks, member → ledger rows, KPI group →
assignments) happen here, and scores are recomputed after every action that
touches the KPI catalog, the ledger or member assignments.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, Optional, Tuple, Type

from solvo_core.core.errors import NotFoundError
from solvo_core.schemas.client import Client, ClientStatus, PulseLogEntry, ShoutOut
from solvo_core.schemas.data import AppData, COLLECTIONS
from solvo_core.schemas.kpi import KpiGroup, KpiProgress
from solvo_core.schemas.ptl import PtlReport
from solvo_core.schemas.task import Task, TaskStatus
from solvo_core.schemas.team import CoachingSession, TeamMember
from solvo_core.services.performance import find_member, find_progress, recalculate_scores
from solvo_core.services.weekly import end_week, save_historical_snapshot


@dataclass(frozen=True)
class SaveTask:
    task: Task

@dataclass(frozen=True)
class DeleteTask:
    task_id: str

@dataclass(frozen=True)
class ChangeTaskStatus:
    task_id: str
    status: TaskStatus

@dataclass(frozen=True)
class SaveClient:
    client: Client

@dataclass(frozen=True)
class DeleteClient:
    client_id: str

@dataclass(frozen=True)
class UpdateClientStatus:
    client_id: str
    status: ClientStatus

@dataclass(frozen=True)
class UpdateClientNotes:
    client_id: str
    notes: str

@dataclass(frozen=True)
class AddClientPulseLog:
    client_id: str
    entry: PulseLogEntry

@dataclass(frozen=True)
class SaveTeamMember:
    member: TeamMember

@dataclass(frozen=True)
class DeleteTeamMember:
    member_id: str

@dataclass(frozen=True)
class UpdateTeamMemberNotes:
    member_id: str
    notes: str

@dataclass(frozen=True)
class AddCoachingSession:
    member_id: str
    session: CoachingSession

@dataclass(frozen=True)
class SaveKpiGroup:
    group: KpiGroup

@dataclass(frozen=True)
class DeleteKpiGroup:
    group_id: str

@dataclass(frozen=True)
class UpdateKpiProgress:
    member_id: str
    kpi_definition_id: str
    actual: float

@dataclass(frozen=True)
class EndWeek:
    today: date
    rank_history_limit: int = 10

@dataclass(frozen=True)
class SaveHistoricalSnapshot:
    member_id: str
    week_of: date
    actuals: Tuple[Tuple[str, float], ...] = field(default_factory=tuple)

@dataclass(frozen=True)
class SavePtlReport:
    member_id: str
    report: PtlReport

@dataclass(frozen=True)
class AddShoutOut:
    shout_out: ShoutOut

@dataclass(frozen=True)
class ReplaceState:
    data: AppData


def _upsert(items: list, item) -> list:
    if any(existing.id == item.id for existing in items):
        return [item if existing.id == item.id else existing for existing in items]
    return items + [item]


def _require(items: list, ident: str, kind: str):
    found = next((i for i in items if i.id == ident), None)
    if found is None:
        raise NotFoundError(kind, ident)
    return found


def _replace(items: list, updated) -> list:
    return [updated if i.id == updated.id else i for i in items]


# --- tasks ---

def _save_task(state: AppData, action: SaveTask) -> AppData:
    return state.model_copy(update={"tasks": _upsert(list(state.tasks), action.task)})

def _delete_task(state: AppData, action: DeleteTask) -> AppData:
    _require(state.tasks, action.task_id, "Task")
    return state.model_copy(update={"tasks": [t for t in state.tasks if t.id != action.task_id]})

def _change_task_status(state: AppData, action: ChangeTaskStatus) -> AppData:
    task = _require(state.tasks, action.task_id, "Task")
    updated = task.model_copy(update={"status": action.status})
    return state.model_copy(update={"tasks": _replace(state.tasks, updated)})


# --- clients ---

def _save_client(state: AppData, action: SaveClient) -> AppData:
    return state.model_copy(update={"clients": _upsert(list(state.clients), action.client)})

def _delete_client(state: AppData, action: DeleteClient) -> AppData:
    _require(state.clients, action.client_id, "Client")
    return state.model_copy(update={
        "clients": [c for c in state.clients if c.id != action.client_id],
        "tasks": [t for t in state.tasks if t.client_id != action.client_id],
    })

def _update_client(state: AppData, client_id: str, **changes) -> AppData:
    client = _require(state.clients, client_id, "Client")
    return state.model_copy(update={"clients": _replace(state.clients, client.model_copy(update=changes))})

def _update_client_status(state: AppData, action: UpdateClientStatus) -> AppData:
    return _update_client(state, action.client_id, status=action.status)

def _update_client_notes(state: AppData, action: UpdateClientNotes) -> AppData:
    return _update_client(state, action.client_id, notes=action.notes)

def _add_client_pulse_log(state: AppData, action: AddClientPulseLog) -> AppData:
    client = _require(state.clients, action.client_id, "Client")
    return _update_client(state, action.client_id, pulse_log=list(client.pulse_log) + [action.entry])


# --- team ---

def _save_team_member(state: AppData, action: SaveTeamMember) -> AppData:
    existing = find_member(state.team_members, action.member.id)
    if existing is None:
        return state.model_copy(update={"team_members": list(state.team_members) + [action.member]})
    # Partial payloads merge onto the stored record
    merged = TeamMember.model_validate({**existing.model_dump(), **action.member.model_dump(exclude_unset=True)})
    return state.model_copy(update={"team_members": _replace(state.team_members, merged)})

def _delete_team_member(state: AppData, action: DeleteTeamMember) -> AppData:
    _require(state.team_members, action.member_id, "Team member")
    return state.model_copy(update={
        "team_members": [m for m in state.team_members if m.id != action.member_id],
        "kpi_progress": [p for p in state.kpi_progress if p.team_member_id != action.member_id],
        "tasks": [
            t.model_copy(update={"assigned_to": None}) if t.assigned_to == action.member_id else t
            for t in state.tasks
        ],
    })

def _update_team_member_notes(state: AppData, action: UpdateTeamMemberNotes) -> AppData:
    member = _require(state.team_members, action.member_id, "Team member")
    home_office = member.home_office.model_copy(update={"notes": action.notes})
    updated = member.model_copy(update={"home_office": home_office})
    return state.model_copy(update={"team_members": _replace(state.team_members, updated)})

def _save_ptl_report(state: AppData, action: SavePtlReport) -> AppData:
    member = _require(state.team_members, action.member_id, "Team member")
    updated = member.model_copy(update={"ptl_report": action.report})
    return state.model_copy(update={"team_members": _replace(state.team_members, updated)})


def _add_coaching_session(state: AppData, action: AddCoachingSession) -> AppData:
    member = _require(state.team_members, action.member_id, "Team member")
    updated = member.model_copy(update={"coaching_sessions": list(member.coaching_sessions) + [action.session]})
    return state.model_copy(update={"team_members": _replace(state.team_members, updated)})

# --- KPI catalog and ledger ---

def _save_kpi_group(state: AppData, action: SaveKpiGroup) -> AppData:
    return state.model_copy(update={"kpi_groups": _upsert(list(state.kpi_groups), action.group)})

def _delete_kpi_group(state: AppData, action: DeleteKpiGroup) -> AppData:
    group = _require(state.kpi_groups, action.group_id, "KPI group")
    kpi_ids = {kpi.id for kpi in group.kpis}
    return state.model_copy(update={
        "kpi_groups": [g for g in state.kpi_groups if g.id != action.group_id],
        "kpi_progress": [p for p in state.kpi_progress if p.kpi_definition_id not in kpi_ids],
        "team_members": [
            m.model_copy(update={"kpi_group_id": None}) if m.kpi_group_id == action.group_id else m
            for m in state.team_members
        ],
    })

def _find_kpi_definition(state: AppData, kpi_definition_id: str):
    for group in state.kpi_groups:
        for kpi in group.kpis:
            if kpi.id == kpi_definition_id:
                return kpi
    return None

def _update_kpi_progress(state: AppData, action: UpdateKpiProgress) -> AppData:
    _require(state.team_members, action.member_id, "Team member")
    if _find_kpi_definition(state, action.kpi_definition_id) is None:
        raise NotFoundError("KPI definition", action.kpi_definition_id)

    row = find_progress(state.kpi_progress, action.member_id, action.kpi_definition_id)
    if row is None:
        row = KpiProgress(
            id=f"kp_{action.member_id}_{action.kpi_definition_id}",
            team_member_id=action.member_id,
            kpi_definition_id=action.kpi_definition_id,
            actual=action.actual,
        )
        progress = list(state.kpi_progress) + [row]
    else:
        progress = _replace(state.kpi_progress, row.model_copy(update={"actual": action.actual}))
    return state.model_copy(update={"kpi_progress": progress})


# --- weekly lifecycle ---

def _end_week(state: AppData, action: EndWeek) -> AppData:
    return end_week(state, action.today, action.rank_history_limit)

def _save_historical_snapshot(state: AppData, action: SaveHistoricalSnapshot) -> AppData:
    return save_historical_snapshot(state, action.member_id, action.week_of, dict(action.actuals))


def _add_shout_out(state: AppData, action: AddShoutOut) -> AppData:
    return state.model_copy(update={"shout_outs": [action.shout_out] + list(state.shout_outs)})

def _replace_state(state: AppData, action: ReplaceState) -> AppData:
    return action.data


_REDUCERS: Dict[Type, Callable] = {
    SaveTask: _save_task,
    DeleteTask: _delete_task,
    ChangeTaskStatus: _change_task_status,
    SaveClient: _save_client,
    DeleteClient: _delete_client,
    UpdateClientStatus: _update_client_status,
    UpdateClientNotes: _update_client_notes,
    AddClientPulseLog: _add_client_pulse_log,
    SaveTeamMember: _save_team_member,
    DeleteTeamMember: _delete_team_member,
    UpdateTeamMemberNotes: _update_team_member_notes,
    SavePtlReport: _save_ptl_report,
    AddCoachingSession: _add_coaching_session,
    SaveKpiGroup: _save_kpi_group,
    DeleteKpiGroup: _delete_kpi_group,
    UpdateKpiProgress: _update_kpi_progress,
    EndWeek: _end_week,
    SaveHistoricalSnapshot: _save_historical_snapshot,
    AddShoutOut: _add_shout_out,
    ReplaceState: _replace_state,
}

# Actions after which cached performance scores are stale
_RESCORING_ACTIONS = (
    SaveTeamMember,
    DeleteTeamMember,
    SaveKpiGroup,
    DeleteKpiGroup,
    UpdateKpiProgress,
    EndWeek,
    ReplaceState,
)


def reduce(state: AppData, action) -> AppData:
    reducer = _REDUCERS.get(type(action))
    if reducer is None:
        raise TypeError(f"Unknown action: {type(action).__name__}")
    new_state = reducer(state, action)
    if isinstance(action, _RESCORING_ACTIONS):
        new_state = new_state.model_copy(update={
            "team_members": recalculate_scores(new_state.team_members, new_state.kpi_groups, new_state.kpi_progress)
        })
    return new_state


def changed_collections(old: AppData, new: AppData) -> Tuple[str, ...]:
    return tuple(name for name in COLLECTIONS if getattr(old, name) != getattr(new, name))


def find_by_id(items: list, ident: str) -> Optional[object]:
    return next((i for i in items if i.id == ident), None)
