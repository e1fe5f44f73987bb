"""
Tests for assistant tool-call validation and dispatch.
"""

from datetime import date

import pytest

from factories import client, member, task
from solvo_core.schemas.data import AppData
from solvo_core.schemas.task import TaskPriority
from solvo_core.services.assistant import (
    CreateTaskArgs,
    CreateTaskCall,
    ToolArgumentError,
    UnknownToolError,
    match_by_name,
    parse_tool_call,
    tool_call_to_action,
)
from solvo_core.services.state import AddShoutOut, ChangeTaskStatus, SaveTask, UpdateClientNotes, reduce

TODAY = date(2024, 6, 3)


def _state():
    return AppData(
        team_members=[member("ana", "Ana Diaz"), member("ben", "Ben Okafor")],
        clients=[client("c1", name="Acme Logistics"), client("c2", name="Globex")],
        tasks=[task("t1", title="Send renewal quote", assigned_to="ben")],
    )


class TestParseToolCall:
    def test_unknown_tool_is_rejected(self):
        with pytest.raises(UnknownToolError) as exc:
            parse_tool_call({"name": "delete_everything", "args": {}})
        assert "delete_everything" in str(exc.value)

    def test_non_dict_call_is_rejected(self):
        with pytest.raises(ToolArgumentError):
            parse_tool_call(["create_task"])

    def test_missing_arguments_are_reported(self):
        with pytest.raises(ToolArgumentError, match="assigneeName"):
            parse_tool_call({"name": "create_task", "args": {"title": "Follow up"}})

    def test_bad_enum_value_is_rejected(self):
        with pytest.raises(ToolArgumentError):
            parse_tool_call({"name": "update_task_status", "args": {"taskId": "t1", "newStatus": "Done-ish"}})

    def test_overlong_title_is_rejected(self):
        with pytest.raises(ToolArgumentError, match="title"):
            parse_tool_call({"name": "create_task", "args": {"title": "x" * 250, "assigneeName": "Ana"}})

    def test_camel_case_arguments_are_parsed(self):
        call = parse_tool_call({
            "name": "create_task",
            "args": {"title": "Follow up", "assigneeName": "ana", "priority": "High", "dueDate": "2024-06-10"},
        })
        assert isinstance(call, CreateTaskCall)
        assert call.args.assignee_name == "ana"
        assert call.args.due_date == date(2024, 6, 10)


class TestMatchByName:
    def test_exact_match_wins_over_partial(self):
        members = [member("a", "Ana Diaz Jr"), member("b", "Ana Diaz")]
        assert match_by_name(members, "ana diaz").id == "b"

    def test_partial_match(self):
        assert match_by_name(_state().clients, "acme").id == "c1"

    def test_no_match(self):
        assert match_by_name(_state().clients, "Initech") is None


class TestToolCallToAction:
    def test_create_task_defaults_due_date_to_tomorrow(self):
        call = parse_tool_call({"name": "create_task", "args": {"title": "Prep QBR", "assigneeName": "Ana", "clientName": "Globex"}})
        action, message = tool_call_to_action(_state(), call, "Team Lead", TODAY)
        assert isinstance(action, SaveTask)
        assert action.task.assigned_to == "ana"
        assert action.task.client_id == "c2"
        assert action.task.due_date == "2024-06-04"
        assert "Ana Diaz" in message

    def test_invalid_task_fields_become_argument_errors(self):
        args = CreateTaskArgs.model_construct(
            title="x" * 250, description="", assignee_name="Ana", client_name=None,
            priority=TaskPriority.MEDIUM, due_date=None,
        )
        call = CreateTaskCall(name="create_task", args=args)
        with pytest.raises(ToolArgumentError, match="title"):
            tool_call_to_action(_state(), call, "Team Lead", TODAY)

    def test_create_task_for_unknown_member_fails(self):
        call = parse_tool_call({"name": "create_task", "args": {"title": "Prep QBR", "assigneeName": "Zed"}})
        with pytest.raises(ToolArgumentError, match="Zed"):
            tool_call_to_action(_state(), call, "Team Lead", TODAY)

    def test_task_status_update(self):
        call = parse_tool_call({"name": "update_task_status", "args": {"taskId": "t1", "newStatus": "Completed"}})
        action, _ = tool_call_to_action(_state(), call, "Team Lead", TODAY)
        assert isinstance(action, ChangeTaskStatus)
        assert reduce(_state(), action).tasks[0].status == "Completed"

    def test_unknown_task_id_fails(self):
        call = parse_tool_call({"name": "update_task_status", "args": {"taskId": "t9", "newStatus": "Completed"}})
        with pytest.raises(ToolArgumentError):
            tool_call_to_action(_state(), call, "Team Lead", TODAY)

    def test_client_notes_resolved_by_name(self):
        call = parse_tool_call({"name": "update_client_notes", "args": {"clientName": "globex", "newNotes": "Renewal in Q3"}})
        action, _ = tool_call_to_action(_state(), call, "Team Lead", TODAY)
        assert action == UpdateClientNotes("c2", "Renewal in Q3")

    def test_pulse_log_appends_entry(self):
        call = parse_tool_call({
            "name": "add_client_pulse_log",
            "args": {"clientName": "Acme", "pulseType": "Call", "pulseNotes": "Happy with delivery"},
        })
        action, _ = tool_call_to_action(_state(), call, "Team Lead", TODAY)
        entry = reduce(_state(), action).clients[0].pulse_log[0]
        assert (entry.type, entry.date) == ("Call", "2024-06-03")

    def test_shout_out_is_sent_from_current_user(self):
        call = parse_tool_call({"name": "send_shout_out", "args": {"toTeamMemberName": "Ben", "message": "Great save!"}})
        action, message = tool_call_to_action(_state(), call, "Team Lead", TODAY)
        assert isinstance(action, AddShoutOut)
        assert (action.shout_out.from_name, action.shout_out.to_name) == ("Team Lead", "Ben Okafor")
        assert message == "Shout-out sent to Ben Okafor!"
