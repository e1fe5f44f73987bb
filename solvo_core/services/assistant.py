"""AI assistant replies and tool calls.

The assistant answers with plain text or with one tool call. Tool calls are
validated against a closed set of commands; anything else is rejected before
it can touch the application state. A valid call becomes a state action plus
a confirmation message for the user.
"""
import logging
from datetime import date, timedelta
from typing import Annotated, Any, Dict, Literal, Optional, Sequence, Tuple, Union
from uuid import uuid4

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from solvo_core.schemas.client import ClientStatus, PulseLogEntry, ShoutOut
from solvo_core.schemas.data import AppData
from solvo_core.schemas.task import Task, TaskPriority, TaskStatus
from solvo_core.services.state import (
    AddClientPulseLog,
    AddShoutOut,
    ChangeTaskStatus,
    SaveTask,
    UpdateClientNotes,
    UpdateClientStatus,
    UpdateTeamMemberNotes,
    find_by_id,
)

logger = logging.getLogger(__name__)


class AssistantError(Exception):
    pass


class UnknownToolError(AssistantError):
    def __init__(self, name: Any):
        self.name = name
        super().__init__(f"Sorry, I recognized an action ('{name}') but don't know how to perform it.")


class ToolArgumentError(AssistantError):
    pass


class _Args(BaseModel):
    model_config = {"populate_by_name": True}


class CreateTaskArgs(_Args):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    assignee_name: str = Field(..., alias="assigneeName")
    client_name: Optional[str] = Field(None, alias="clientName")
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[date] = Field(None, alias="dueDate")


class UpdateTaskStatusArgs(_Args):
    task_id: str = Field(..., alias="taskId")
    new_status: TaskStatus = Field(..., alias="newStatus")


class UpdateClientStatusArgs(_Args):
    client_id: str = Field(..., alias="clientId")
    new_status: ClientStatus = Field(..., alias="newStatus")


class UpdateClientNotesArgs(_Args):
    client_name: str = Field(..., alias="clientName")
    new_notes: str = Field(..., alias="newNotes")


class AddClientPulseLogArgs(_Args):
    client_name: str = Field(..., alias="clientName")
    pulse_type: Literal["Meeting", "Call", "Email", "Note"] = Field(..., alias="pulseType")
    pulse_notes: str = Field(..., alias="pulseNotes")


class UpdateTeamMemberNotesArgs(_Args):
    team_member_name: str = Field(..., alias="teamMemberName")
    new_notes: str = Field(..., alias="newNotes")


class SendShoutOutArgs(_Args):
    to_team_member_name: str = Field(..., alias="toTeamMemberName")
    message: str = Field(..., min_length=1)


class CreateTaskCall(BaseModel):
    name: Literal["create_task"]
    args: CreateTaskArgs

class UpdateTaskStatusCall(BaseModel):
    name: Literal["update_task_status"]
    args: UpdateTaskStatusArgs

class UpdateClientStatusCall(BaseModel):
    name: Literal["update_client_status"]
    args: UpdateClientStatusArgs

class UpdateClientNotesCall(BaseModel):
    name: Literal["update_client_notes"]
    args: UpdateClientNotesArgs

class AddClientPulseLogCall(BaseModel):
    name: Literal["add_client_pulse_log"]
    args: AddClientPulseLogArgs

class UpdateTeamMemberNotesCall(BaseModel):
    name: Literal["update_team_member_notes"]
    args: UpdateTeamMemberNotesArgs

class SendShoutOutCall(BaseModel):
    name: Literal["send_shout_out"]
    args: SendShoutOutArgs


ToolCall = Annotated[
    Union[
        CreateTaskCall,
        UpdateTaskStatusCall,
        UpdateClientStatusCall,
        UpdateClientNotesCall,
        AddClientPulseLogCall,
        UpdateTeamMemberNotesCall,
        SendShoutOutCall,
    ],
    Field(discriminator="name"),
]
_tool_call_adapter = TypeAdapter(ToolCall)

KNOWN_TOOLS = frozenset({
    "create_task",
    "update_task_status",
    "update_client_status",
    "update_client_notes",
    "add_client_pulse_log",
    "update_team_member_notes",
    "send_shout_out",
})


class AssistantReply(BaseModel):
    type: Literal["text", "tool_call", "error"]
    text: Optional[str] = None
    call: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    details: Optional[str] = None


def parse_tool_call(call: Any) -> ToolCall:
    if not isinstance(call, dict):
        raise ToolArgumentError("The assistant returned a malformed action.")
    name = call.get("name")
    if name not in KNOWN_TOOLS:
        logger.warning("Rejected unknown assistant tool %r", name)
        raise UnknownToolError(name)
    try:
        return _tool_call_adapter.validate_python({"name": name, "args": call.get("args") or {}})
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"][1:]) or "args" for err in e.errors())
        raise ToolArgumentError(f"The '{name}' action had invalid arguments: {fields}.") from e


def match_by_name(items: Sequence, name: str):
    """Exact case-insensitive match first, then the first close (substring) match."""
    wanted = name.strip().lower()
    for item in items:
        if item.name.lower() == wanted:
            return item
    for item in items:
        candidate = item.name.lower()
        if wanted and (wanted in candidate or candidate in wanted):
            return item
    return None


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:12]}"


def tool_call_to_action(
    state: AppData, call: ToolCall, current_user_name: str, today: date
) -> Tuple[object, str]:
    try:
        return _to_action(state, call, current_user_name, today)
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][-1]) for err in e.errors() if err["loc"])
        raise ToolArgumentError(f"The '{call.name}' action had invalid arguments: {fields or 'args'}.") from e


def _to_action(
    state: AppData, call: ToolCall, current_user_name: str, today: date
) -> Tuple[object, str]:
    args = call.args

    if isinstance(call, CreateTaskCall):
        assignee = match_by_name(state.team_members, args.assignee_name)
        if assignee is None:
            raise ToolArgumentError(f"I couldn't find a team member named '{args.assignee_name}'.")
        client = None
        if args.client_name:
            client = match_by_name(state.clients, args.client_name)
            if client is None:
                raise ToolArgumentError(f"I couldn't find a client named '{args.client_name}'.")
        task = Task(
            id=_new_id("task_ai"),
            title=args.title,
            description=args.description,
            status=TaskStatus.PENDING,
            due_date=(args.due_date or today + timedelta(days=1)).isoformat(),
            assigned_to=assignee.id,
            client_id=client.id if client else None,
            priority=args.priority,
        )
        return SaveTask(task), f"OK, I've created the task '{task.title}' and assigned it to {assignee.name}."

    if isinstance(call, UpdateTaskStatusCall):
        task = find_by_id(state.tasks, args.task_id)
        if task is None:
            raise ToolArgumentError(f"I couldn't find a task with ID '{args.task_id}'.")
        return (
            ChangeTaskStatus(task.id, args.new_status),
            f"Done. The task '{task.title}' is now {args.new_status.value}.",
        )

    if isinstance(call, UpdateClientStatusCall):
        client = find_by_id(state.clients, args.client_id)
        if client is None:
            raise ToolArgumentError(f"I couldn't find a client with ID '{args.client_id}'.")
        return (
            UpdateClientStatus(client.id, args.new_status),
            f"Done. {client.name} is now marked as {args.new_status.value}.",
        )

    if isinstance(call, UpdateClientNotesCall):
        client = match_by_name(state.clients, args.client_name)
        if client is None:
            raise ToolArgumentError(f"I couldn't find a client named '{args.client_name}'.")
        return UpdateClientNotes(client.id, args.new_notes), f"I've updated the notes for {client.name}."

    if isinstance(call, AddClientPulseLogCall):
        client = match_by_name(state.clients, args.client_name)
        if client is None:
            raise ToolArgumentError(f"I couldn't find a client named '{args.client_name}'.")
        entry = PulseLogEntry(
            id=_new_id("pulse"), date=today.isoformat(), type=args.pulse_type, notes=args.pulse_notes
        )
        return AddClientPulseLog(client.id, entry), f"I've logged a {args.pulse_type.lower()} for {client.name}."

    if isinstance(call, UpdateTeamMemberNotesCall):
        member = match_by_name(state.team_members, args.team_member_name)
        if member is None:
            raise ToolArgumentError(f"I couldn't find a team member named '{args.team_member_name}'.")
        return UpdateTeamMemberNotes(member.id, args.new_notes), f"I've updated the notes for {member.name}."

    if isinstance(call, SendShoutOutCall):
        member = match_by_name(state.team_members, args.to_team_member_name)
        if member is None:
            raise ToolArgumentError(f"I couldn't find a team member named '{args.to_team_member_name}'.")
        shout_out = ShoutOut(
            id=_new_id("so"),
            from_name=current_user_name,
            to_name=member.name,
            message=args.message,
            date=today.isoformat(),
        )
        return AddShoutOut(shout_out), f"Shout-out sent to {member.name}!"

    raise UnknownToolError(call.name)


def assistant_context(state: AppData, user_id: int, user_name: str) -> Dict[str, Any]:
    return {
        "currentUser": {"id": str(user_id), "name": user_name},
        "clients": [c.model_dump(mode="json") for c in state.clients],
        "tasks": [t.model_dump(mode="json") for t in state.tasks],
        "teamMembers": [m.model_dump(mode="json", exclude={"ptl_report"}) for m in state.team_members],
    }
